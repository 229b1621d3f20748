"""
View construction for the two dashboard views.

Each function takes the loaded DashboardData plus the user's selections and
returns plain JSON-ready dictionaries. Nothing here fetches, caches or keeps
state between calls.
"""

from collections.abc import Sequence
from typing import Any

import polars as pl

from statfin_mcp.config import (
    DEFAULT_LAST_YEAR,
    FORECAST_HORIZON,
    OUTLOOK_YEAR,
    PROJECTED_BIRTHS,
    PROJECTED_NET_MIGRATION,
    PROJECTED_POPULATION,
    PROJECTED_POPULATION_CHANGE,
)
from statfin_mcp.models.types import DashboardData, Municipality, TimeSeries
from statfin_mcp.series import (
    bridge_forecast,
    find_record,
    latest_valid,
    latest_value,
    linear_forecast,
    merge_historical_and_projected,
    series_to_rows,
    series_years,
    value_at,
)

###############################################################################
# Shared helpers
###############################################################################


def available_years(data: DashboardData) -> list[int]:
    return series_years(data.population)


def default_year(data: DashboardData) -> int:
    """The newest population year, which is what the dashboard opens on."""
    years: list[int] = available_years(data)
    return years[-1] if years else DEFAULT_LAST_YEAR


def combined_population(data: DashboardData) -> TimeSeries:
    return merge_historical_and_projected(
        data.population, data.projections.get(PROJECTED_POPULATION, ())
    )


def _round1(value: float) -> float:
    return round(value, 1)


###############################################################################
# Regional overview
###############################################################################


def regional_stats(
    data: DashboardData, selected: Sequence[Municipality], year: int
) -> dict[str, Any] | None:
    """Combined population, change since the first year and the largest municipality."""
    if not selected or not data.population:
        return None

    current = find_record(data.population, year) or data.population[0]
    first = data.population[0]

    current_total: float = sum(current.get(m) or 0 for m in selected)
    initial_total: float = sum(first.get(m) or 0 for m in selected)
    pct_change: float = (
        (current_total - initial_total) / initial_total * 100 if initial_total > 0 else 0.0
    )

    largest: Municipality = selected[0]
    for muni in selected:
        if (current.get(muni) or 0) > (current.get(largest) or 0):
            largest = muni

    return {
        "year": current.year,
        "first_year": first.year,
        "current_total": current_total,
        "pct_change": _round1(pct_change),
        "largest": largest.value,
        "direction": "growing" if pct_change > 0 else "declining",
    }


def regional_table(
    data: DashboardData, selected: Sequence[Municipality], year: int
) -> dict[str, Any] | None:
    """
    Per-municipality figures for `year`, each taken from the newest published
    year at or before it. Counts are summed across the selection; rates are a
    plain mean over the municipalities that have a value.
    """
    if not selected or not data.population:
        return None

    rows: list[dict[str, Any]] = [
        {
            "municipality": muni.value,
            "population": latest_value(data.population, muni, year) or 0.0,
            "employment": latest_value(data.employment, muni, year),
            "unemployment": latest_value(data.unemployment, muni, year),
            "education": latest_value(data.education, muni, year),
            "business": latest_value(data.enterprises, muni, year),
            "births": latest_value(data.births, muni, year),
        }
        for muni in selected
    ]

    frame: pl.DataFrame = pl.DataFrame(
        rows,
        schema={
            "municipality": pl.Utf8,
            "population": pl.Float64,
            "employment": pl.Float64,
            "unemployment": pl.Float64,
            "education": pl.Float64,
            "business": pl.Float64,
            "births": pl.Float64,
        },
    ).sort("population", descending=True, maintain_order=True)

    def mean_or_zero(column: str) -> float:
        mean: float | None = frame[column].drop_nulls().mean()
        return float(mean) if mean is not None else 0.0

    totals: dict[str, float] = {
        "population": float(frame["population"].fill_null(0).sum()),
        "employment": mean_or_zero("employment"),
        "unemployment": mean_or_zero("unemployment"),
        "education": float(frame["education"].fill_null(0).sum()),
        "business": float(frame["business"].fill_null(0).sum()),
        "births": float(frame["births"].fill_null(0).sum()),
    }
    return {"year": year, "rows": frame.to_dicts(), "totals": totals}


def population_outlook(data: DashboardData) -> list[dict[str, Any]]:
    """History merged with the official projection, projected years flagged."""
    last_hist: int = default_year(data)
    return [
        {**row, "projected": row["year"] > last_hist}
        for row in series_to_rows(combined_population(data))
    ]


def regional_overview(
    data: DashboardData, selected: Sequence[Municipality], year: int | None = None
) -> dict[str, Any]:
    view_year: int = year if year is not None else default_year(data)
    return {
        "year": view_year,
        "available_years": available_years(data),
        "selected": [m.value for m in selected],
        "stats": regional_stats(data, selected, view_year),
        "table": regional_table(data, selected, view_year),
        "population_outlook": population_outlook(data),
    }


###############################################################################
# Executive view (one municipality)
###############################################################################


def _trend_label(cur_year: int | None, prev_year: int | None, unit: str, year: int) -> str:
    if not cur_year or not prev_year:
        return ""
    if cur_year == year:
        return f"vs {prev_year} {unit}"
    return f"{cur_year} vs {prev_year} {unit}"


def _current_and_previous(
    series: TimeSeries, muni: Municipality, year: int
) -> tuple[tuple[float | None, int | None], tuple[float | None, int | None]]:
    current = latest_valid(series, muni, year)
    previous: tuple[float | None, int | None] = (None, None)
    if current[1] is not None:
        previous = latest_valid(series, muni, current[1] - 1)
    return current, previous


def enterprise_forecast_chart(
    data: DashboardData,
    muni: Municipality,
    horizon_years: int = FORECAST_HORIZON,
) -> dict[str, Any]:
    """Observed enterprise counts bridged into a linear forecast."""
    last_hist: int = (
        max(series_years(data.enterprises)) if data.enterprises else DEFAULT_LAST_YEAR
    )
    forecast = linear_forecast(data.enterprises, muni, horizon_years, last_year=last_hist)
    rows = bridge_forecast(data.enterprises, muni, forecast, years=available_years(data))
    return {
        "municipality": muni.value,
        "last_historical_year": last_hist,
        "forecast": [p._asdict() for p in forecast],
        "rows": rows,
    }


def executive_overview(
    data: DashboardData, muni: Municipality, year: int | None = None
) -> dict[str, Any] | None:
    if not data.population:
        return None
    view_year: int = year if year is not None else default_year(data)

    pop_cur, pop_prev = _current_and_previous(data.population, muni, view_year)
    emp_cur, emp_prev = _current_and_previous(data.employment, muni, view_year)
    unemp_cur, unemp_prev = _current_and_previous(data.unemployment, muni, view_year)
    bus_cur, bus_prev = _current_and_previous(data.enterprises, muni, view_year)

    current: dict[str, float | None] = {
        "population": pop_cur[0] or 0,
        "employment": emp_cur[0],
        "unemployment": unemp_cur[0],
        "business": bus_cur[0],
    }

    def pct(cur: float | None, prev: float | None) -> float | None:
        return _round1((cur - prev) / prev * 100) if prev and cur else None

    def points(cur: float | None, prev: float | None) -> float | None:
        return _round1(cur - prev) if prev and cur else None

    trends: dict[str, float | None] = {
        "population": pct(current["population"], pop_prev[0]),
        "employment": points(current["employment"], emp_prev[0]),
        "unemployment": points(current["unemployment"], unemp_prev[0]),
        "business": pct(current["business"], bus_prev[0]),
    }
    trend_labels: dict[str, str] = {
        "population": _trend_label(pop_cur[1], pop_prev[1], "(%)", view_year),
        "employment": _trend_label(emp_cur[1], emp_prev[1], "(%yks)", view_year),
        "unemployment": _trend_label(unemp_cur[1], unemp_prev[1], "(%yks)", view_year),
        "business": _trend_label(bus_cur[1], bus_prev[1], "(%)", view_year),
    }

    employment_chart: list[dict[str, Any]] = [
        {
            "year": y,
            "employment": value_at(data.employment, y, muni),
            "unemployment": value_at(data.unemployment, y, muni),
        }
        for y in available_years(data)
        if y <= DEFAULT_LAST_YEAR
    ]

    return {
        "municipality": muni.value,
        "year": view_year,
        "current": current,
        "trends": trends,
        "trend_labels": trend_labels,
        "enterprise_chart": enterprise_forecast_chart(data, muni),
        "employment_chart": employment_chart,
        "outlook": projection_outlook(data, muni),
    }


def projection_outlook(
    data: DashboardData, muni: Municipality, year: int = OUTLOOK_YEAR
) -> dict[str, float]:
    """Projected population, net migration, births and change for `year` (0 if absent)."""

    def projected(code: str) -> float:
        return value_at(data.projections.get(code, ()), year, muni) or 0.0

    return {
        "year": year,
        "population": projected(PROJECTED_POPULATION),
        "net_migration": projected(PROJECTED_NET_MIGRATION),
        "births": projected(PROJECTED_BIRTHS),
        "population_change": projected(PROJECTED_POPULATION_CHANGE),
    }
