from statfin_mcp.jsonstat.categories import (
    LabelRule,
    resolve_indicator_index,
    resolve_preferred_code,
    resolve_preferred_label,
    resolve_total_index,
)
from statfin_mcp.jsonstat.coordinates import decode_coordinates, encode_coordinates
from statfin_mcp.jsonstat.decoder import (
    TOTAL_SERIES,
    SelectIndicator,
    SplitIndicators,
    SumIndicators,
    decode_series,
    decode_table,
)
from statfin_mcp.jsonstat.table import parse_json_stat2

__all__ = [
    "LabelRule",
    "SelectIndicator",
    "SplitIndicators",
    "SumIndicators",
    "TOTAL_SERIES",
    "decode_coordinates",
    "decode_series",
    "decode_table",
    "encode_coordinates",
    "parse_json_stat2",
    "resolve_indicator_index",
    "resolve_preferred_code",
    "resolve_preferred_label",
    "resolve_total_index",
]
