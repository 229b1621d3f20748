import math
from typing import Any, Callable, cast
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from mcp.server.fastmcp.server import Context

from statfin_mcp.models.types import DashboardData, Municipality, YearRecord
from statfin_mcp.services.dashboard import DashboardSession

H = Municipality.HALSUA
K = Municipality.KAUSTINEN
L = Municipality.LESTIJARVI
T = Municipality.TOHOLAMPI
V = Municipality.VETELI

AREAS: dict[str, str] = {
    "KU074": "Halsua",
    "KU236": "Kaustinen",
    "KU421": "Lestijärvi",
    "KU849": "Toholampi",
    "KU924": "Veteli",
}


def _build_json_stat(
    dimensions: list[tuple[str, dict[str, str]]],
    values: list[float | None] | dict[str, float | None],
) -> dict[str, Any]:
    """
    Builds a PxWeb "json-stat2" payload. `dimensions` lists (id, {code: label})
    in value-array order; the last dimension varies fastest.
    """
    payload: dict[str, Any] = {
        "class": "dataset",
        "version": "2.0",
        "id": [dim_id for dim_id, _ in dimensions],
        "size": [len(cats) for _, cats in dimensions],
        "dimension": {
            dim_id: {
                "label": dim_id,
                "category": {
                    "index": {code: i for i, code in enumerate(cats)},
                    "label": dict(cats),
                },
            }
            for dim_id, cats in dimensions
        },
        "value": values,
    }
    if isinstance(values, list):
        assert len(values) == math.prod(payload["size"])
    return payload


@pytest.fixture
def json_stat() -> Callable[..., dict[str, Any]]:
    """Returns the JSON-stat payload builder."""
    return _build_json_stat


def _series(rows: dict[int, dict[Municipality, float]]) -> tuple[YearRecord, ...]:
    return tuple(YearRecord(year=y, values=dict(v)) for y, v in sorted(rows.items()))


@pytest.fixture
def sample_data() -> DashboardData:
    """
    A small but complete dashboard load. Employment and unemployment stop at
    2023 so "newest published year" fallbacks are exercised; Lestijärvi has
    no enterprise figure for 2022.
    """
    population = _series(
        {
            2020: {H: 1150.0, K: 4300.0, L: 730.0, T: 3200.0, V: 3200.0},
            2021: {H: 1140.0, K: 4290.0, L: 720.0, T: 3150.0, V: 3150.0},
            2022: {H: 1120.0, K: 4280.0, L: 710.0, T: 3100.0, V: 3100.0},
            2023: {H: 1110.0, K: 4270.0, L: 700.0, T: 3050.0, V: 3080.0},
            2024: {H: 1100.0, K: 4261.0, L: 690.0, T: 3000.0, V: 3047.0},
        }
    )
    employment = _series(
        {
            2020: {H: 70.0, K: 75.0, T: 72.0},
            2021: {H: 71.0, K: 76.0, T: 73.0},
            2022: {H: 72.5, K: 77.0, T: 74.0},
            2023: {H: 73.0, K: 78.2, T: 74.5},
            2024: {},
        }
    )
    unemployment = _series(
        {
            2020: {H: 8.0, K: 6.0, T: 7.0},
            2021: {H: 7.5, K: 5.5, T: 6.5},
            2022: {H: 7.0, K: 5.0, T: 6.0},
            2023: {H: 6.5, K: 4.8, T: 5.9},
            2024: {},
        }
    )
    enterprises = _series(
        {
            2020: {H: 100.0, K: 150.0, L: 40.0},
            2021: {H: 102.0, K: 160.0, L: 41.0},
            2022: {H: 104.0, K: 170.0},
            2023: {H: 106.0, K: 180.0, L: 43.0},
        }
    )
    projected_population = _series(
        {
            2024: {H: 1099.0, K: 4255.0},
            2025: {H: 1090.0, K: 4240.0},
            2030: {H: 1040.0, K: 4150.0},
            2045: {H: 900.0, K: 3900.0},
        }
    )
    return DashboardData(
        population=population,
        employment=employment,
        unemployment=unemployment,
        dependency_ratio=_series({2024: {H: 85.1, K: 72.3}}),
        education=_series({2024: {H: 12.0, K: 45.0}}),
        enterprises=enterprises,
        births=_series({2024: {H: 6.0, K: 40.0, T: 22.0}}),
        dependency_projection=_series({2030: {H: 90.0}}),
        projections={
            "vaesto_e24": projected_population,
            "vm01_e24": _series({2030: {H: 7.0, K: 38.0}}),
            "vm4243_e24": _series({2030: {H: -5.0, K: 12.0}}),
            "valisays_e24": _series({2030: {H: -10.0, K: -8.0}}),
        },
    )


@pytest.fixture
def mock_session(sample_data: DashboardData) -> MagicMock:
    session = MagicMock(spec=DashboardSession)
    session.data = sample_data
    session.loaded = True
    session.refresh = AsyncMock(return_value=sample_data)
    return session


@pytest.fixture
def mock_context(mock_session: MagicMock) -> Context:
    """
    Creates a mock Context whose lifespan_context holds a dashboard session
    preloaded with `sample_data`, the way the StatFin MCP tools expect it.
    """
    request_context = MagicMock()
    request_context.lifespan_context = {"session": mock_session}

    context = MagicMock(spec=Context)
    context.request_context = request_context

    return cast(Context, context)


def json_response(payload: Any, status_code: int = 200, url: str = "https://example.test") -> httpx.Response:
    return httpx.Response(
        status_code, json=payload, request=httpx.Request("POST", url)
    )


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    return json_response
