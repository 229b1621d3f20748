from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Required, TypedDict

from statfin_mcp.config import MUNICIPALITY_CODES


###############################################################################
# Entities
###############################################################################


class Municipality(str, Enum):
    """
    The five municipalities of the Kaustinen sub-region tracked by the
    dashboard. The enum value is the label StatFin uses for the area, which is
    also the key used when a record is serialized to JSON.
    """

    HALSUA = "Halsua"
    KAUSTINEN = "Kaustinen"
    LESTIJARVI = "Lestijärvi"
    TOHOLAMPI = "Toholampi"
    VETELI = "Veteli"

    @property
    def code(self) -> str:
        return MUNICIPALITY_CODES[self.value]

    @classmethod
    def from_label(cls, label: str | None) -> "Municipality | None":
        """Maps a StatFin area label (or code) to a municipality, None if unknown."""
        if not label:
            return None
        needle: str = label.strip()
        for muni in cls:
            if muni.value == needle or muni.code == needle:
                return muni
        return None


ALL_MUNICIPALITIES: list[Municipality] = list(Municipality)


###############################################################################
# Decoded series
###############################################################################


@dataclass(frozen=True)
class YearRecord:
    """
    One calendar year of observations. A municipality is a key in `values`
    only when a value was observed for it; a missing key means "unknown",
    which is different from a present 0.0.
    """

    year: int
    values: dict[Municipality, float] = field(default_factory=dict)

    def get(self, muni: Municipality) -> float | None:
        return self.values.get(muni)

    def has(self, muni: Municipality) -> bool:
        return muni in self.values

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {"year": self.year}
        for muni in ALL_MUNICIPALITIES:
            if muni in self.values:
                row[muni.value] = self.values[muni]
        return row


TimeSeries = tuple[YearRecord, ...]


class ForecastPoint(NamedTuple):
    year: int
    value: int


###############################################################################
# JSON-stat 2.0 wire shapes (PxWeb "json-stat2" response)
###############################################################################


class JsonStatCategory(TypedDict, total=False):
    index: dict[str, int] | list[str]
    label: dict[str, str]


class JsonStatDimension(TypedDict, total=False):
    label: str
    category: Required[JsonStatCategory]


class JsonStatDataset(TypedDict, total=False):
    """
    The subset of a JSON-stat 2.0 dataset the decoder relies on. `value` is
    either a dense list (with None for suppressed cells) or a sparse mapping
    from stringified linear index to value.
    """

    label: str
    id: Required[list[str]]
    size: Required[list[int]]
    dimension: Required[dict[str, JsonStatDimension]]
    value: Required[list[float | None] | dict[str, float | None]]


@dataclass(frozen=True)
class StatisticalTable:
    """
    Parsed, validated form of a JSON-stat dataset. `categories[dim]` maps
    category code to label in index order; `values` is dense and has exactly
    prod(sizes) entries.
    """

    dimensions: list[str]
    sizes: list[int]
    categories: dict[str, dict[str, str]]
    values: list[float | None]

    def codes(self, dim: str) -> list[str]:
        return list(self.categories.get(dim, {}).keys())


###############################################################################
# PxWeb request shapes
###############################################################################


class PxSelection(TypedDict):
    filter: str
    values: list[str]


class PxQueryItem(TypedDict):
    code: str
    selection: PxSelection


class PxTableQuery(TypedDict):
    query: list[PxQueryItem]
    response: dict[str, str]


###############################################################################
# Dashboard state
###############################################################################


@dataclass(frozen=True)
class DashboardData:
    """
    Everything one dashboard load produced. A dataset that failed to load is
    an empty series (or an empty mapping for projections), never an error.
    """

    population: TimeSeries = ()
    employment: TimeSeries = ()
    unemployment: TimeSeries = ()
    dependency_ratio: TimeSeries = ()
    education: TimeSeries = ()
    enterprises: TimeSeries = ()
    births: TimeSeries = ()
    dependency_projection: TimeSeries = ()
    projections: dict[str, TimeSeries] = field(default_factory=dict)

    def dataset(self, name: str) -> TimeSeries | None:
        """Looks up a series by dataset name, projections as `projection:<code>`."""
        if name.startswith("projection:"):
            return self.projections.get(name.split(":", 1)[1])
        if name in DATASET_NAMES:
            return getattr(self, name)
        return None


DATASET_NAMES: list[str] = [
    "population",
    "employment",
    "unemployment",
    "dependency_ratio",
    "education",
    "enterprises",
    "births",
    "dependency_projection",
]


class StatfinLifespanContext(TypedDict):
    """
    Data held in the server's memory for its lifetime ('lifespan_context').
    The session object owns the latest DashboardData and refreshes it on
    demand; nothing else is cached.
    """

    session: Any  # statfin_mcp.services.dashboard.DashboardSession
