from typing import Any

from mcp.server.fastmcp.server import Context

from statfin_mcp.config import FORECAST_HORIZON
from statfin_mcp.models.types import DATASET_NAMES, DashboardData, Municipality
from statfin_mcp.series import series_summary, series_to_rows
from statfin_mcp.services.dashboard import DashboardSession
from statfin_mcp.tools.municipality_tools import parse_municipalities_param
from statfin_mcp.utils.context import get_session
from statfin_mcp.views import enterprise_forecast_chart, population_outlook, projection_outlook


def dataset_counts(data: DashboardData) -> dict[str, int]:
    counts: dict[str, int] = {name: len(data.dataset(name) or ()) for name in DATASET_NAMES}
    for code, series in data.projections.items():
        counts[f"projection:{code}"] = len(series)
    return counts


async def refresh_dashboard(ctx: Context) -> dict[str, Any]:  # type: ignore[Context]
    """
    **Purpose:** Re-fetches every StatFin dataset behind the dashboard and
    replaces the server's current data with the result. Nothing is cached
    between refreshes; each dataset that fails to load is simply empty.

    **Return Value:**
    *   `datasets` (dict[str, int]): number of years decoded per dataset
        (0 means "no data available" for that dataset).
    *   `empty` (list[str]): datasets that came back empty.
    """
    session: DashboardSession = get_session(ctx)
    data: DashboardData = await session.refresh()
    counts: dict[str, int] = dataset_counts(data)
    return {
        "datasets": counts,
        "empty": [name for name, count in counts.items() if count == 0],
    }


async def get_dataset_series(
    dataset: str,
    ctx: Context,  # type: ignore[Context]
) -> dict[str, Any]:
    """
    **Purpose:** Returns one decoded time series: one row per year, with a
    key per municipality that has a published value for that year. A
    missing municipality key means "unknown", not zero.

    **Arguments:**
    *   `dataset` (str): one of `population`, `employment`, `unemployment`,
        `dependency_ratio`, `education`, `enterprises`, `births`,
        `dependency_projection`, or `projection:<code>` for a population
        projection indicator (`vaesto_e24`, `vm01_e24`, `vm4243_e24`,
        `valisays_e24`).

    **Return Value:**
    *   `dataset` (str), `rows` (list[dict]) such as
        `{"year": 2024, "Kaustinen": 4261.0, "Veteli": 3047.0}`.
    *   `summary` (list[dict]): per municipality, `years` with a value,
        `latest_year`, `latest_value`, `min` and `max`.
    *   `error` (str, optional) for an unknown dataset name.
    """
    session: DashboardSession = get_session(ctx)
    series = session.data.dataset(dataset.strip())
    if series is None:
        known: list[str] = DATASET_NAMES + [
            f"projection:{code}" for code in session.data.projections
        ]
        return {"error": f"Unknown dataset '{dataset}'. Known datasets: {known}"}
    return {
        "dataset": dataset.strip(),
        "rows": series_to_rows(series),
        "summary": series_summary(series),
    }


async def forecast_enterprises(
    municipality: str,
    ctx: Context,  # type: ignore[Context]
    horizon_years: int = FORECAST_HORIZON,
) -> dict[str, Any]:
    """
    **Purpose:** Extends a municipality's enterprise count with a linear
    least-squares forecast and returns chart-ready rows.

    **Arguments:**
    *   `municipality` (str): name or StatFin code, e.g. "Toholampi" or "KU849".
    *   `horizon_years` (int, optional): number of forecast years (default 5).

    **Return Value:**
    *   `forecast` (list[dict]): `{"year", "value"}` points, never negative.
        Empty when fewer than two years are observed.
    *   `rows` (list[dict]): `{"year", "observed", "forecast"}`; the last
        observed year carries the same value in both channels.
    """
    selected, unknown = parse_municipalities_param(municipality)
    if unknown or len(selected) != 1:
        return {"error": f"Expected exactly one known municipality, got '{municipality}'."}
    if horizon_years < 1:
        return {"error": "horizon_years must be at least 1."}
    session: DashboardSession = get_session(ctx)
    return enterprise_forecast_chart(session.data, selected[0], horizon_years)


async def get_population_outlook(ctx: Context) -> dict[str, Any]:  # type: ignore[Context]
    """
    **Purpose:** Population history merged with the official population
    projection (projected years never override published ones), plus the
    2030 projection figures for each municipality.
    """
    session: DashboardSession = get_session(ctx)
    data: DashboardData = session.data
    return {
        "rows": population_outlook(data),
        "outlook": {muni.value: projection_outlook(data, muni) for muni in Municipality},
    }
