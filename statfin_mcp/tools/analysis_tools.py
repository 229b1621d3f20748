from typing import Any

from mcp.server.fastmcp.server import Context

from statfin_mcp.models.types import DashboardData
from statfin_mcp.services.insights import generate_insight
from statfin_mcp.tools.municipality_tools import parse_municipalities_param
from statfin_mcp.utils.context import get_session
from statfin_mcp.views import available_years, executive_overview, regional_overview


def _check_year(data: DashboardData, year: int | None) -> str | None:
    years: list[int] = available_years(data)
    if year is not None and years and year not in years:
        return f"Year {year} not available. Available years: {years}"
    return None


async def get_regional_overview(
    ctx: Context,  # type: ignore[Context]
    municipalities: str = "",
    year: int | None = None,
) -> dict[str, Any]:
    """
    **Purpose:** The regional overview for a selection of municipalities:
    combined population and its change since the first year, the largest
    municipality, a per-municipality summary table and the population
    outlook.

    **Arguments:**
    *   `municipalities` (str, optional): comma-separated names or codes.
        Empty means all five.
    *   `year` (int, optional): the year to view. Defaults to the newest
        population year. Figures not yet published for that year fall back
        to the newest earlier year.

    **Return Value:**
    *   `stats` (dict | None), `table` (dict | None): None when nothing is
        selected or population data is unavailable.
    *   `table.totals`: counts are summed; employment and unemployment are
        the plain mean over municipalities with a value.
    """
    selected, unknown = parse_municipalities_param(municipalities)
    if unknown:
        return {"error": f"Unknown municipalities: {unknown}"}
    data: DashboardData = get_session(ctx).data
    year_error: str | None = _check_year(data, year)
    if year_error:
        return {"error": year_error}
    return regional_overview(data, selected, year)


async def get_municipality_overview(
    municipality: str,
    ctx: Context,  # type: ignore[Context]
    year: int | None = None,
) -> dict[str, Any]:
    """
    **Purpose:** The executive view of one municipality: current population,
    employment rate, unemployment rate and enterprise count with their
    change from the previous published year, the enterprise forecast chart,
    the employment chart and the 2030 projection figures.

    **Arguments:**
    *   `municipality` (str): name or StatFin code.
    *   `year` (int, optional): the year to view (defaults to the newest).
    """
    selected, unknown = parse_municipalities_param(municipality)
    if unknown or len(selected) != 1:
        return {"error": f"Expected exactly one known municipality, got '{municipality}'."}
    data: DashboardData = get_session(ctx).data
    year_error: str | None = _check_year(data, year)
    if year_error:
        return {"error": year_error}
    overview: dict[str, Any] | None = executive_overview(data, selected[0], year)
    if overview is None:
        return {"error": "Population data is not available."}
    return overview


async def generate_insights(
    ctx: Context,  # type: ignore[Context]
    municipalities: str = "",
) -> dict[str, Any]:
    """
    **Purpose:** A short Finnish-language analysis of the selected
    municipalities written by a text-generation model from their population
    change, latest employment rate and enterprise count. When the model is
    unavailable a fixed explanatory sentence is returned instead.
    """
    selected, unknown = parse_municipalities_param(municipalities)
    if unknown:
        return {"error": f"Unknown municipalities: {unknown}"}
    data: DashboardData = get_session(ctx).data
    text: str = await generate_insight(data, selected)
    return {"selected": [m.value for m in selected], "text": text}
