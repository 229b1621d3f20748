"""
Operations on decoded TimeSeries: merging historical and projected data,
a least-squares enterprise forecast, chart bridging rows and "latest
published value" lookups. All functions are pure and return new objects.
"""

import math
from collections.abc import Iterable
from typing import Any

import numpy as np
import numpy.typing as npt
import polars as pl

from statfin_mcp.config import DEFAULT_LAST_YEAR, FIRST_YEAR, FORECAST_HORIZON
from statfin_mcp.models.types import (
    ALL_MUNICIPALITIES,
    ForecastPoint,
    Municipality,
    TimeSeries,
    YearRecord,
)

###############################################################################
# Lookups
###############################################################################


def series_years(series: TimeSeries) -> list[int]:
    return [record.year for record in series]


def find_record(series: TimeSeries, year: int) -> YearRecord | None:
    for record in series:
        if record.year == year:
            return record
    return None


def value_at(series: TimeSeries, year: int, muni: Municipality) -> float | None:
    record: YearRecord | None = find_record(series, year)
    return record.get(muni) if record else None


def latest_valid(
    series: TimeSeries,
    muni: Municipality,
    start_year: int,
    floor_year: int = FIRST_YEAR,
) -> tuple[float | None, int | None]:
    """
    Walks back from `start_year` to `floor_year` and returns the first known
    (value, year) for `muni`. Used when the newest year is not yet published
    for every dataset. (None, None) when nothing is known.
    """
    for year in range(start_year, floor_year - 1, -1):
        value: float | None = value_at(series, year, muni)
        if value is not None:
            return value, year
    return None, None


def latest_value(
    series: TimeSeries,
    muni: Municipality,
    target_year: int,
    floor_year: int = FIRST_YEAR,
) -> float | None:
    return latest_valid(series, muni, target_year, floor_year)[0]


def last_known(series: TimeSeries, muni: Municipality) -> float | None:
    """The newest value for `muni` anywhere in the series."""
    for record in reversed(series):
        value: float | None = record.get(muni)
        if value is not None:
            return value
    return None


###############################################################################
# Merge
###############################################################################


def merge_historical_and_projected(
    historical: TimeSeries,
    projected: TimeSeries,
    default_year: int = DEFAULT_LAST_YEAR,
) -> TimeSeries:
    """
    Appends the projected records that lie strictly after the last historical
    year. Historical values always win at an overlapping year.
    """
    max_hist_year: int = (
        max(record.year for record in historical) if historical else default_year
    )
    later: list[YearRecord] = [r for r in projected if r.year > max_hist_year]
    return tuple(sorted([*historical, *later], key=lambda r: r.year))


###############################################################################
# Forecast
###############################################################################


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def linear_forecast(
    series: TimeSeries,
    muni: Municipality,
    horizon_years: int = FORECAST_HORIZON,
    last_year: int | None = None,
) -> list[ForecastPoint]:
    """
    Extends the observed values of `muni` with an ordinary least-squares line.

    Returns `horizon_years` points for the years after `last_year` (default:
    the last year in the series), rounded half-up and clamped at zero. Fewer
    than two observations, or a degenerate fit, give an empty list.
    """
    points: list[tuple[int, float]] = [
        (record.year, record.values[muni]) for record in series if record.has(muni)
    ]
    if len(points) < 2:
        return []

    x: npt.NDArray[np.float64] = np.array([p[0] for p in points], dtype=np.float64)
    y: npt.NDArray[np.float64] = np.array([p[1] for p in points], dtype=np.float64)
    n: int = len(points)

    sum_x: float = float(x.sum())
    sum_y: float = float(y.sum())
    sum_xy: float = float((x * y).sum())
    sum_xx: float = float((x * x).sum())

    denominator: float = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return []

    slope: float = (n * sum_xy - sum_x * sum_y) / denominator
    intercept: float = (sum_y - slope * sum_x) / n

    base_year: int = last_year if last_year is not None else series[-1].year
    forecast: list[ForecastPoint] = []
    for i in range(1, horizon_years + 1):
        target_year: int = base_year + i
        predicted: int = _round_half_up(slope * target_year + intercept)
        forecast.append(ForecastPoint(year=target_year, value=max(0, predicted)))
    return forecast


def bridge_forecast(
    series: TimeSeries,
    muni: Municipality,
    forecast: list[ForecastPoint],
    years: Iterable[int] | None = None,
) -> list[dict[str, int | float | None]]:
    """
    Chart rows with separate "observed" and "forecast" channels. The last
    historical year appears in both channels with the same value so a line
    chart has no gap; later years appear only in "forecast".
    """
    last_hist_year: int = (
        max(series_years(series)) if series else DEFAULT_LAST_YEAR
    )
    forecast_by_year: dict[int, int] = {p.year: p.value for p in forecast}
    base_years: Iterable[int] = years if years is not None else series_years(series)
    all_years: list[int] = sorted(set(base_years) | set(forecast_by_year))

    rows: list[dict[str, int | float | None]] = []
    for year in all_years:
        observed: float | None = None
        projected: float | None = None
        if year <= last_hist_year:
            observed = value_at(series, year, muni)
            if year == last_hist_year:
                projected = observed
        else:
            projected = forecast_by_year.get(year)
        rows.append({"year": year, "observed": observed, "forecast": projected})
    return rows


###############################################################################
# Tabular export
###############################################################################


def series_to_frame(series: TimeSeries) -> pl.DataFrame:
    """Long-format frame (year, municipality, value) of the known values."""
    rows: list[dict[str, int | str | float]] = [
        {"year": record.year, "municipality": muni.value, "value": record.values[muni]}
        for record in series
        for muni in ALL_MUNICIPALITIES
        if muni in record.values
    ]
    return pl.DataFrame(
        rows,
        schema={"year": pl.Int64, "municipality": pl.Utf8, "value": pl.Float64},
    )


def series_to_rows(series: TimeSeries) -> list[dict[str, int | float]]:
    return [record.to_dict() for record in series]


def series_summary(series: TimeSeries) -> list[dict[str, Any]]:
    """Per-municipality year count, newest value and range of a series."""
    frame: pl.DataFrame = series_to_frame(series)
    if frame.is_empty():
        return []
    return (
        frame.group_by("municipality")
        .agg(
            pl.len().alias("years"),
            pl.col("year").max().alias("latest_year"),
            pl.col("value").sort_by("year").last().alias("latest_value"),
            pl.col("value").min().alias("min"),
            pl.col("value").max().alias("max"),
        )
        .sort("municipality")
        .to_dicts()
    )
