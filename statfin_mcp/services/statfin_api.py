"""
Fetch adapters for the StatFin PxWeb API.

Each `fetch_*` coroutine posts one table query, decodes the JSON-stat answer
and returns the decoded series, or None when anything on the way fails.
Failures never propagate past the adapter: a broken dataset must not take
the rest of the dashboard down with it.
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, cast

import httpx

from statfin_mcp.config import (
    BASE_URL,
    BIRTHS_TABLE,
    DEPENDENCY_PROJECTION_TABLE,
    EDUCATION_TABLE,
    ENTERPRISES_TABLE,
    KEY_FIGURES_TABLE,
    PROJECTIONS_TABLE,
    REQUEST_TIMEOUT,
)
from statfin_mcp.exceptions import StatfinError
from statfin_mcp.jsonstat.decoder import (
    SelectIndicator,
    SplitIndicators,
    SumIndicators,
    decode_series,
    decode_table,
)
from statfin_mcp.jsonstat.table import parse_json_stat2
from statfin_mcp.models.types import JsonStatDataset, PxTableQuery, StatisticalTable, TimeSeries
from statfin_mcp.services import queries

logger = logging.getLogger(__name__)


def table_url(table_path: str) -> str:
    return f"{BASE_URL}/{table_path.lstrip('/')}"


@asynccontextmanager
async def _client_scope(
    client: httpx.AsyncClient | None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Uses the caller's client when given, otherwise a short-lived one."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient() as own_client:
        yield own_client


async def _fetch_data_from_statfin(
    url: str,
    query: PxTableQuery,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    POSTs a table query and returns the decoded JSON body. Transport and
    decoding problems come back as {"error", "details", "endpoint"} instead of
    raising, so callers can treat them like any other "no data" answer.
    """
    async with _client_scope(client) as http:
        logger.info("Fetching table: %s", url)
        try:
            resp = await http.post(url, json=query, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
            data: dict[str, Any] = resp.json()
        except (
            httpx.RequestError,
            httpx.HTTPStatusError,
            json.JSONDecodeError,
        ) as ex:
            error_msg: str = f"Error accessing StatFin API: {ex}"
            logger.error(error_msg)
            return {"error": error_msg, "details": str(ex), "endpoint": url}

    if not isinstance(data, dict):
        return {"error": "Unexpected response body", "endpoint": url}
    return data


async def _load_table(
    name: str,
    table_path: str,
    query: PxTableQuery,
    client: httpx.AsyncClient | None,
) -> StatisticalTable | None:
    url: str = table_url(table_path)
    data: dict[str, Any] = await _fetch_data_from_statfin(url, query, client)
    if "error" in data:
        logger.warning("Dataset '%s' unavailable: %s", name, data["error"])
        return None
    try:
        return parse_json_stat2(cast(JsonStatDataset, data))
    except (StatfinError, KeyError, TypeError, ValueError) as ex:
        logger.warning("Dataset '%s' returned an unreadable table: %s", name, ex)
        return None


###############################################################################
# Dataset adapters
###############################################################################


async def fetch_key_figures(
    client: httpx.AsyncClient | None = None,
) -> dict[str, TimeSeries] | None:
    """Municipal key figures (Kuntien avainluvut), one series per indicator label."""
    table = await _load_table(
        "key_figures", KEY_FIGURES_TABLE, queries.key_figures_query(), client
    )
    if table is None:
        return None
    return decode_table(table, "Alue", "Vuosi", SplitIndicators("Tiedot", by="label"))


async def fetch_education(
    client: httpx.AsyncClient | None = None,
) -> TimeSeries | None:
    """Applicants to further education, summed over destination types."""
    table = await _load_table(
        "education", EDUCATION_TABLE, queries.education_query(), client
    )
    if table is None:
        return None
    return decode_series(
        table, "Oppilaitoksen sijaintialue", "Vuosi", SumIndicators("Jatko-opinnot")
    )


async def fetch_enterprises(
    client: httpx.AsyncClient | None = None,
) -> TimeSeries | None:
    table = await _load_table(
        "enterprises", ENTERPRISES_TABLE, queries.enterprises_query(), client
    )
    if table is None:
        return None
    return decode_series(
        table, "Kunta", "Vuosi", SelectIndicator(keywords=("yritys", "lukumäärä"))
    )


async def fetch_births(
    client: httpx.AsyncClient | None = None,
) -> TimeSeries | None:
    table = await _load_table("births", BIRTHS_TABLE, queries.births_query(), client)
    if table is None:
        return None
    return decode_series(
        table, "Alue", "Vuosi", SelectIndicator(keywords=("elävänä syntyneet",))
    )


async def fetch_projections(
    client: httpx.AsyncClient | None = None,
) -> dict[str, TimeSeries] | None:
    """Population projection, one series per projection indicator code."""
    table = await _load_table(
        "projections", PROJECTIONS_TABLE, queries.projections_query(), client
    )
    if table is None:
        return None
    return decode_table(table, "Alue", "Vuosi", SplitIndicators("Tiedot", by="code"))


async def fetch_dependency_projection(
    client: httpx.AsyncClient | None = None,
) -> TimeSeries | None:
    table = await _load_table(
        "dependency_projection",
        DEPENDENCY_PROJECTION_TABLE,
        queries.dependency_projection_query(),
        client,
    )
    if table is None:
        return None
    return decode_series(table, "Alue", "Vuosi", SelectIndicator(keywords=("huoltosuhde",)))
