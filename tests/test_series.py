import polars as pl

from statfin_mcp.models.types import ForecastPoint, Municipality, YearRecord
from statfin_mcp.series import (
    bridge_forecast,
    last_known,
    latest_valid,
    latest_value,
    linear_forecast,
    merge_historical_and_projected,
    series_summary,
    series_to_frame,
    series_to_rows,
)

H = Municipality.HALSUA
K = Municipality.KAUSTINEN
V = Municipality.VETELI


def make_series(rows):
    return tuple(YearRecord(year=y, values=dict(v)) for y, v in sorted(rows.items()))


class TestLinearForecast:
    def test_perfect_line(self):
        series = make_series(
            {2020: {H: 100.0}, 2021: {H: 110.0}, 2022: {H: 120.0}, 2023: {H: 130.0}, 2024: {H: 140.0}}
        )
        forecast = linear_forecast(series, H, 5)
        assert forecast == [
            ForecastPoint(2025, 150),
            ForecastPoint(2026, 160),
            ForecastPoint(2027, 170),
            ForecastPoint(2028, 180),
            ForecastPoint(2029, 190),
        ]

    def test_clamped_at_zero(self):
        series = make_series({2023: {H: 10.0}, 2024: {H: 0.0}})
        forecast = linear_forecast(series, H, 3)
        assert [p.value for p in forecast] == [0, 0, 0]
        assert all(p.value >= 0 for p in forecast)

    def test_rounds_half_up(self):
        # slope 0.5: 2025 -> 11.0, 2026 -> 11.5
        series = make_series({2023: {H: 10.0}, 2024: {H: 10.5}})
        assert [p.value for p in linear_forecast(series, H, 2)] == [11, 12]

    def test_fewer_than_two_points(self):
        series = make_series({2023: {H: 10.0}, 2024: {K: 20.0}})
        assert linear_forecast(series, H) == []
        assert linear_forecast((), H) == []

    def test_skips_unknown_years(self):
        series = make_series({2020: {H: 100.0}, 2021: {}, 2022: {H: 120.0}})
        assert linear_forecast(series, H, 1) == [ForecastPoint(2023, 130)]

    def test_explicit_last_year(self):
        series = make_series({2020: {H: 100.0}, 2021: {H: 110.0}})
        assert linear_forecast(series, H, 1, last_year=2024) == [ForecastPoint(2025, 150)]

    def test_degenerate_fit(self):
        series = (YearRecord(2024, {H: 1.0}), YearRecord(2024, {H: 2.0}))
        assert linear_forecast(series, H) == []


class TestMerge:
    def test_projection_only_after_history(self):
        hist = make_series({2023: {H: 1110.0}, 2024: {H: 1100.0}})
        proj = make_series(
            {2024: {H: 1099.0}, 2025: {H: 1090.0}, 2030: {H: 1040.0}, 2045: {H: 900.0}}
        )
        merged = merge_historical_and_projected(hist, proj)
        assert [r.year for r in merged] == [2023, 2024, 2025, 2030, 2045]
        assert merged[1].get(H) == 1100.0

    def test_empty_history_uses_default_year(self):
        proj = make_series({2024: {H: 1.0}, 2025: {H: 2.0}})
        merged = merge_historical_and_projected((), proj, default_year=2024)
        assert [r.year for r in merged] == [2025]

    def test_empty_projection(self):
        hist = make_series({2024: {H: 1.0}})
        assert merge_historical_and_projected(hist, ()) == hist


class TestBridge:
    def test_seam_year_in_both_channels(self):
        series = make_series({2023: {H: 106.0}, 2024: {H: 108.0}})
        forecast = [ForecastPoint(2025, 110), ForecastPoint(2026, 112)]
        rows = bridge_forecast(series, H, forecast)
        assert rows == [
            {"year": 2023, "observed": 106.0, "forecast": None},
            {"year": 2024, "observed": 108.0, "forecast": 108.0},
            {"year": 2025, "observed": None, "forecast": 110},
            {"year": 2026, "observed": None, "forecast": 112},
        ]

    def test_extra_base_years(self):
        series = make_series({2023: {H: 106.0}})
        rows = bridge_forecast(series, H, [], years=[2022, 2023])
        assert rows[0] == {"year": 2022, "observed": None, "forecast": None}
        assert rows[1] == {"year": 2023, "observed": 106.0, "forecast": 106.0}


class TestLookups:
    def test_latest_valid_walks_back(self):
        series = make_series({2022: {H: 72.5}, 2023: {H: 73.0}, 2024: {}})
        assert latest_valid(series, H, 2024) == (73.0, 2023)
        assert latest_value(series, H, 2022) == 72.5

    def test_latest_valid_nothing_known(self):
        series = make_series({2024: {K: 1.0}})
        assert latest_valid(series, H, 2024) == (None, None)

    def test_latest_valid_respects_floor(self):
        series = make_series({2019: {H: 1.0}, 2020: {}})
        assert latest_valid(series, H, 2020) == (None, None)
        assert latest_valid(series, H, 2020, floor_year=2019) == (1.0, 2019)

    def test_last_known(self):
        series = make_series({2022: {H: 1.0}, 2023: {H: 2.0}, 2024: {}})
        assert last_known(series, H) == 2.0
        assert last_known(series, K) is None


class TestExport:
    def test_rows_omit_unknown(self):
        series = make_series({2024: {V: 3047.0, K: 4261.0}})
        assert series_to_rows(series) == [{"year": 2024, "Kaustinen": 4261.0, "Veteli": 3047.0}]

    def test_frame(self):
        series = make_series({2023: {H: 1.0}, 2024: {H: 2.0, K: 3.0}})
        frame = series_to_frame(series)
        assert frame.columns == ["year", "municipality", "value"]
        assert frame.height == 3
        assert frame.filter(pl.col("municipality") == "Kaustinen")["value"].to_list() == [3.0]

    def test_summary_per_municipality(self):
        series = make_series({2022: {K: 4280.0}, 2023: {H: 1110.0, K: 4300.0}, 2024: {K: 4261.0}})
        assert series_summary(series) == [
            {"municipality": "Halsua", "years": 1, "latest_year": 2023,
             "latest_value": 1110.0, "min": 1110.0, "max": 1110.0},
            {"municipality": "Kaustinen", "years": 3, "latest_year": 2024,
             "latest_value": 4261.0, "min": 4261.0, "max": 4300.0},
        ]

    def test_summary_of_empty_series(self):
        assert series_summary(make_series({2024: {}})) == []
