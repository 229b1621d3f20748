"""
Dashboard loading: fetch every dataset concurrently, pick the wanted
indicators out of the key-figures table and hand back one DashboardData.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from statfin_mcp.jsonstat.categories import LabelRule, resolve_preferred_label
from statfin_mcp.models.types import DashboardData, TimeSeries
from statfin_mcp.services import statfin_api

logger = logging.getLogger(__name__)

###############################################################################
# Key-figure indicator selection
###############################################################################

POPULATION_RULES: tuple[LabelRule, ...] = (LabelRule(exact="väkiluku"),)

# Prefer the 18-64 age band and never the year-over-year change variant
EMPLOYMENT_RULES: tuple[LabelRule, ...] = (
    LabelRule(include=("työllisyysaste", "%"), any_of=("18", "64"), exclude=("muutos",)),
    LabelRule(include=("työllisyysaste", "%"), exclude=("muutos",)),
)

UNEMPLOYMENT_RULES: tuple[LabelRule, ...] = (
    LabelRule(include=("työttöm", "%"), any_of=("18", "64"), exclude=("muutos",)),
    LabelRule(include=("työttöm", "%"), exclude=("muutos",)),
)

DEPENDENCY_RULES: tuple[LabelRule, ...] = (
    LabelRule(exact="Väestöllinen huoltosuhde"),
    LabelRule(include=("huoltosuhde", "väestö"), exclude=("muutos",)),
)


def select_key_figures(key_figures: Mapping[str, TimeSeries]) -> dict[str, TimeSeries]:
    """
    Picks population, employment rate, unemployment rate and demographic
    dependency ratio out of the key-figures series (keyed by label).
    Indicators that cannot be identified are left out.
    """
    labels: list[str] = list(key_figures.keys())
    wanted: dict[str, tuple[LabelRule, ...]] = {
        "population": POPULATION_RULES,
        "employment": EMPLOYMENT_RULES,
        "unemployment": UNEMPLOYMENT_RULES,
        "dependency_ratio": DEPENDENCY_RULES,
    }
    selected: dict[str, TimeSeries] = {}
    for name, rules in wanted.items():
        label: str | None = resolve_preferred_label(labels, rules)
        if label is None:
            logger.warning("No key-figure indicator found for '%s'.", name)
            continue
        logger.debug("Using key-figure '%s' for %s.", label, name)
        selected[name] = key_figures[label]
    return selected


###############################################################################
# Loading
###############################################################################


async def load_dashboard(client: httpx.AsyncClient | None = None) -> DashboardData:
    """
    Issues every dataset fetch at once and waits for all of them. A dataset
    whose adapter returned None (or raised) is simply empty in the result.
    """

    async def run(client: httpx.AsyncClient) -> list[Any]:
        return await asyncio.gather(
            statfin_api.fetch_key_figures(client),
            statfin_api.fetch_education(client),
            statfin_api.fetch_enterprises(client),
            statfin_api.fetch_births(client),
            statfin_api.fetch_projections(client),
            statfin_api.fetch_dependency_projection(client),
            return_exceptions=True,
        )

    if client is None:
        async with httpx.AsyncClient() as own_client:
            results = await run(own_client)
    else:
        results = await run(client)

    names: list[str] = [
        "key_figures",
        "education",
        "enterprises",
        "births",
        "projections",
        "dependency_projection",
    ]
    settled: dict[str, Any] = {}
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            logger.error("Dataset '%s' failed unexpectedly: %r", name, result)
            settled[name] = None
        else:
            settled[name] = result

    key_figures = settled["key_figures"] or {}
    selected: dict[str, TimeSeries] = select_key_figures(key_figures)

    data = DashboardData(
        population=selected.get("population", ()),
        employment=selected.get("employment", ()),
        unemployment=selected.get("unemployment", ()),
        dependency_ratio=selected.get("dependency_ratio", ()),
        education=settled["education"] or (),
        enterprises=settled["enterprises"] or (),
        births=settled["births"] or (),
        dependency_projection=settled["dependency_projection"] or (),
        projections=dict(settled["projections"] or {}),
    )
    logger.info(
        "Dashboard loaded: %d population years, %d projection series.",
        len(data.population),
        len(data.projections),
    )
    return data


class DashboardSession:
    """
    Holds the newest DashboardData for the lifetime of a server. Each
    refresh re-fetches everything. A load that finishes after a newer
    refresh was started, or after the session was closed, is discarded so it
    cannot overwrite fresher state.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client: httpx.AsyncClient | None = client
        self._generation: int = 0
        self._closed: bool = False
        self.data: DashboardData = DashboardData()
        self.loaded: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def refresh(self) -> DashboardData:
        self._generation += 1
        generation: int = self._generation

        data: DashboardData = await load_dashboard(self._client)

        if self._closed or generation != self._generation:
            logger.info("Discarding stale dashboard load (generation %d).", generation)
            return self.data
        self.data = data
        self.loaded = True
        return data

    def close(self) -> None:
        self._closed = True
