import logging
import math
from typing import Any

from statfin_mcp.exceptions import TableFormatError
from statfin_mcp.models.types import (
    JsonStatCategory,
    JsonStatDataset,
    JsonStatDimension,
    StatisticalTable,
)

logger = logging.getLogger(__name__)


def _ordered_categories(dim_id: str, dimension: JsonStatDimension) -> dict[str, str]:
    """
    Returns {code: label} for one dimension in category-index order. JSON-stat
    allows `index` to be a list of codes or a {code: position} mapping, and
    `label` may be missing, in which case the code doubles as the label.
    """
    category: JsonStatCategory = dimension.get("category") or {}
    index: Any = category.get("index")
    labels: dict[str, str] = category.get("label") or {}

    if isinstance(index, list):
        codes: list[str] = [str(code) for code in index]
    elif isinstance(index, dict):
        codes = [
            str(code) for code, _ in sorted(index.items(), key=lambda item: int(item[1]))
        ]
    elif labels:
        # Single-category dimensions may omit the index entirely
        codes = list(labels.keys())
    else:
        raise TableFormatError(f"Dimension '{dim_id}' has no category index.")

    return {code: str(labels.get(code, code)) for code in codes}


def _dense_values(raw: Any, total: int) -> list[float | None]:
    if isinstance(raw, list):
        if len(raw) != total:
            raise TableFormatError(
                f"Value array has {len(raw)} entries, expected {total}."
            )
        return [None if v is None else float(v) for v in raw]

    if isinstance(raw, dict):
        dense: list[float | None] = [None] * total
        for key, v in raw.items():
            pos: int = int(key)
            if not 0 <= pos < total:
                raise TableFormatError(f"Sparse value position {pos} out of range.")
            dense[pos] = None if v is None else float(v)
        return dense

    raise TableFormatError(f"Unsupported value container: {type(raw).__name__}")


def parse_json_stat2(data: JsonStatDataset) -> StatisticalTable:
    """
    Validates a PxWeb "json-stat2" response and converts it into a
    StatisticalTable. Raises TableFormatError when the payload is not a
    well-formed dataset (missing keys, size/value mismatch, inconsistent
    dimension cardinalities).
    """
    if not isinstance(data, dict):
        raise TableFormatError("JSON-stat payload is not an object.")

    try:
        dim_ids: list[str] = [str(d) for d in data["id"]]
        sizes: list[int] = [int(s) for s in data["size"]]
        dimensions: dict[str, JsonStatDimension] = data["dimension"]
        raw_values: Any = data["value"]
    except (KeyError, TypeError, ValueError) as ex:
        raise TableFormatError(f"Malformed JSON-stat dataset: {ex}") from ex

    if len(dim_ids) != len(sizes):
        raise TableFormatError(
            f"{len(dim_ids)} dimension ids but {len(sizes)} sizes."
        )

    categories: dict[str, dict[str, str]] = {}
    for dim_id, size in zip(dim_ids, sizes):
        if dim_id not in dimensions:
            raise TableFormatError(f"Dimension '{dim_id}' listed in id but not described.")
        ordered: dict[str, str] = _ordered_categories(dim_id, dimensions[dim_id])
        if len(ordered) != size:
            raise TableFormatError(
                f"Dimension '{dim_id}' has {len(ordered)} categories, size says {size}."
            )
        categories[dim_id] = ordered

    values: list[float | None] = _dense_values(raw_values, math.prod(sizes))
    logger.debug(
        "Parsed JSON-stat table %s with %d cells.",
        dict(zip(dim_ids, sizes)),
        len(values),
    )
    return StatisticalTable(
        dimensions=dim_ids, sizes=sizes, categories=categories, values=values
    )
