"""
Flattens a StatisticalTable into per-year, per-municipality series.

Every non-entity, non-year dimension is pinned to a single category (the
"total" slice for incidental dimensions, the wanted indicator for the
indicator dimension) unless the selection policy says to split or sum over
the indicator dimension. Cells outside the pinned slice are ignored, null
cells never produce a value, and nothing is interpolated or zero-filled.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from statfin_mcp.jsonstat.categories import resolve_indicator_index, resolve_total_index
from statfin_mcp.jsonstat.coordinates import decode_coordinates
from statfin_mcp.models.types import Municipality, StatisticalTable, TimeSeries, YearRecord

logger = logging.getLogger(__name__)

TOTAL_SERIES: str = "total"

ENTITY_FRAGMENTS: tuple[str, ...] = ("alue", "kunta")
YEAR_FRAGMENTS: tuple[str, ...] = ("vuosi",)
INDICATOR_FRAGMENTS: tuple[str, ...] = ("tiedot",)


###############################################################################
# Selection policies
###############################################################################


@dataclass(frozen=True)
class SelectIndicator:
    """
    Keep one indicator, chosen by keyword from the indicator dimension
    (named, or detected by "tiedot" in its id). Tables without an indicator
    dimension are fine; all extra dimensions are then pinned to totals.
    """

    keywords: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    indicator_dim: str | None = None


@dataclass(frozen=True)
class SplitIndicators:
    """Emit one series per indicator category, keyed by its label or code."""

    indicator_dim: str | None = None
    by: str = "label"


@dataclass(frozen=True)
class SumIndicators:
    """Add up every category of the indicator dimension into one series."""

    indicator_dim: str


Selection = SelectIndicator | SplitIndicators | SumIndicators


###############################################################################
# Helpers
###############################################################################


def find_dimension(
    dim_ids: Sequence[str],
    preferred: str | None,
    fragments: Sequence[str] = (),
    skip: Sequence[str] = (),
) -> str | None:
    """
    Returns `preferred` if the table has it, otherwise the first dimension id
    containing one of `fragments` (case-insensitive). Ids in `skip` are never
    returned.
    """
    candidates: list[str] = [d for d in dim_ids if d not in skip]
    if preferred and preferred in candidates:
        return preferred
    for dim in candidates:
        lowered: str = dim.lower()
        if any(fragment in lowered for fragment in fragments):
            return dim
    return None


def _parse_year(code: str) -> int | None:
    try:
        year: int = int(code)
    except ValueError:
        logger.warning("Skipping non-numeric year category '%s'.", code)
        return None
    return year if year > 0 else None


def _to_series(by_year: dict[int, dict[Municipality, float]]) -> TimeSeries:
    return tuple(
        YearRecord(year=year, values=dict(values))
        for year, values in sorted(by_year.items())
    )


###############################################################################
# Decoding
###############################################################################


def decode_table(
    table: StatisticalTable,
    entity_dim: str | None,
    year_dim: str | None,
    selection: Selection = SelectIndicator(),
) -> dict[str, TimeSeries]:
    """
    Decodes `table` into {series_key: TimeSeries}.

    SelectIndicator and SumIndicators produce a single series under
    TOTAL_SERIES; SplitIndicators produces one per indicator category. When
    the entity or year dimension (or, for split/sum, the indicator dimension)
    is missing, the result is {} rather than an exception.
    """
    dims: list[str] = table.dimensions
    entity: str | None = find_dimension(dims, entity_dim, ENTITY_FRAGMENTS)
    year: str | None = find_dimension(dims, year_dim, YEAR_FRAGMENTS, skip=[entity or ""])
    if entity is None or year is None:
        logger.warning(
            "Table dimensions %s lack an entity or year dimension (wanted %s/%s).",
            dims,
            entity_dim,
            year_dim,
        )
        return {}

    indicator: str | None = find_dimension(
        dims, selection.indicator_dim, INDICATOR_FRAGMENTS, skip=[entity, year]
    )
    if indicator is None and not isinstance(selection, SelectIndicator):
        logger.warning(
            "Table dimensions %s lack the indicator dimension '%s'.",
            dims,
            selection.indicator_dim,
        )
        return {}

    # 1) Pin every remaining dimension to one category
    fixed: dict[int, int] = {}
    for pos, dim in enumerate(dims):
        if dim in (entity, year):
            continue
        labels: dict[str, str] = table.categories[dim]
        if dim == indicator:
            if isinstance(selection, SelectIndicator):
                fixed[pos] = resolve_indicator_index(
                    labels, selection.keywords, selection.exclude
                )
            continue
        fixed[pos] = resolve_total_index(labels)

    entity_pos: int = dims.index(entity)
    year_pos: int = dims.index(year)
    indicator_pos: int | None = dims.index(indicator) if indicator else None
    splitting: bool = isinstance(selection, SplitIndicators)
    summing: bool = isinstance(selection, SumIndicators)

    entities: list[Municipality | None] = [
        Municipality.from_label(label) or Municipality.from_label(code)
        for code, label in table.categories[entity].items()
    ]
    years: list[int | None] = [_parse_year(code) for code in table.codes(year)]

    series_keys: list[str] = [TOTAL_SERIES]
    if splitting and indicator is not None:
        by_code: bool = selection.by == "code"
        series_keys = [
            code if by_code else label
            for code, label in table.categories[indicator].items()
        ]

    collected: dict[str, dict[int, dict[Municipality, float]]] = {
        key: {y: {} for y in years if y is not None} for key in series_keys
    }

    # 2) Walk the value array and keep the cells inside the pinned slice
    for linear_index, value in enumerate(table.values):
        if value is None:
            continue
        coords: list[int] = decode_coordinates(linear_index, table.sizes)
        if any(coords[pos] != wanted for pos, wanted in fixed.items()):
            continue

        muni: Municipality | None = entities[coords[entity_pos]]
        year_number: int | None = years[coords[year_pos]]
        if muni is None or year_number is None:
            continue

        key: str = TOTAL_SERIES
        if splitting and indicator_pos is not None:
            key = series_keys[coords[indicator_pos]]

        bucket: dict[Municipality, float] = collected[key][year_number]
        if summing:
            bucket[muni] = bucket.get(muni, 0.0) + value
        else:
            bucket[muni] = value

    # 3) One record per year, ascending
    return {key: _to_series(by_year) for key, by_year in collected.items()}


def decode_series(
    table: StatisticalTable,
    entity_dim: str | None,
    year_dim: str | None,
    selection: SelectIndicator | SumIndicators = SelectIndicator(),
) -> TimeSeries:
    """Decodes a single-series selection; empty when the table does not fit."""
    return decode_table(table, entity_dim, year_dim, selection).get(TOTAL_SERIES, ())
