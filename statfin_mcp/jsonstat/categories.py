"""
Category selection for JSON-stat dimensions.

StatFin tables carry no machine-readable "this is the total" marker, so the
right slice of an incidental dimension (sex, industry, ...) and the wanted
indicator among near-duplicates are chosen by matching codes and labels.
Every resolver here falls back to the first category when nothing matches.
That fallback is a soft failure: the caller gets *a* slice, which may not be
the intended one if StatFin renames its labels.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

AGGREGATE_CODES: frozenset[str] = frozenset({"SSS", "S", "YHT", "0000"})
TOTAL_LABEL_TERMS: tuple[str, ...] = ("yhteensä", "kaikki")
TOTAL_LABELS: tuple[str, ...] = ("koko toimiala",)


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term.lower() in text for term in terms)


def resolve_total_index(labels: Mapping[str, str]) -> int:
    """
    Picks the index of the "all categories combined" entry of an incidental
    dimension. Order of preference: an aggregate sentinel code, then a label
    mentioning "yhteensä"/"kaikki" (or exactly "koko toimiala"), then index 0.
    """
    codes: list[str] = list(labels.keys())

    for idx, code in enumerate(codes):
        if code in AGGREGATE_CODES:
            return idx

    for idx, code in enumerate(codes):
        label: str = (labels[code] or "").lower()
        if _contains_any(label, TOTAL_LABEL_TERMS) or label in TOTAL_LABELS:
            return idx

    logger.debug("No total category among %s; using the first one.", codes[:5])
    return 0


def resolve_indicator_index(
    labels: Mapping[str, str],
    keywords: Sequence[str],
    exclude: Sequence[str] = (),
) -> int:
    """
    Picks the first indicator whose label contains any of `keywords` and none
    of `exclude` (case-insensitive). Falls back to index 0.
    """
    for idx, label in enumerate(labels.values()):
        text: str = (label or "").lower()
        if _contains_any(text, keywords) and not _contains_any(text, exclude):
            return idx

    logger.debug("No indicator label matched %s; using the first one.", list(keywords))
    return 0


@dataclass(frozen=True)
class LabelRule:
    """
    A predicate over one indicator label, all comparisons case-insensitive:
      - every term in `include` must appear,
      - at least one term in `any_of` must appear (when any are given),
      - no term in `exclude` may appear,
      - when `exact` is set, the whole label must equal it.
    """

    include: tuple[str, ...] = ()
    any_of: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    exact: str | None = None

    def matches(self, label: str) -> bool:
        text: str = label.lower()
        if self.exact is not None and text != self.exact.lower():
            return False
        if not all(term.lower() in text for term in self.include):
            return False
        if self.any_of and not _contains_any(text, self.any_of):
            return False
        return not _contains_any(text, self.exclude)


def resolve_preferred_label(
    labels: Sequence[str], rules: Sequence[LabelRule]
) -> str | None:
    """
    Applies `rules` in priority order and returns the first label accepted by
    the highest-priority rule that accepts anything. None when no rule
    matches any label.
    """
    for rule in rules:
        for label in labels:
            if rule.matches(label):
                return label
    return None


def resolve_preferred_code(
    labels: Mapping[str, str], rules: Sequence[LabelRule]
) -> str | None:
    """Same policy as resolve_preferred_label, returning the category code."""
    for rule in rules:
        for code, label in labels.items():
            if rule.matches(label or ""):
                return code
    return None
