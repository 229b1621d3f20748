"""
Short written analysis of the selected municipalities, generated by the
Gemini API. The numbers are summarized here; the text itself comes from the
model, and every failure mode answers with a fixed fallback sentence.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from statfin_mcp.config import (
    GEMINI_MODEL,
    GEMINI_TEMPERATURE,
    GEMINI_URL,
    REQUEST_TIMEOUT,
    gemini_api_key,
)
from statfin_mcp.models.types import DashboardData, Municipality
from statfin_mcp.series import last_known

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE: str = "Tekoälyanalyysi ei ole saatavilla: API-avain puuttuu."
NO_SELECTION_MESSAGE: str = "Valitse vähintään yksi kunta nähdäksesi analyysin."
EMPTY_RESPONSE_MESSAGE: str = "Analyysin luominen epäonnistui."
API_ERROR_MESSAGE: str = "Virhe haettaessa tekoälyanalyysiä. Yritä myöhemmin uudelleen."


def build_insight_summary(
    data: DashboardData, selected: Sequence[Municipality]
) -> list[dict[str, Any]]:
    """
    One row per selected municipality: population change from the first year
    of the series to the last known value, and the latest known employment
    rate and enterprise count (None when never published).
    """
    if not data.population:
        return []
    first_record = data.population[0]
    summary: list[dict[str, Any]] = []
    for muni in selected:
        latest_pop: float | None = last_known(data.population, muni)
        summary.append(
            {
                "municipality": muni.value,
                "population_change": (latest_pop or 0) - (first_record.get(muni) or 0),
                "latest_employment_rate": last_known(data.employment, muni),
                "latest_business_count": last_known(data.enterprises, muni),
            }
        )
    return summary


def build_insight_prompt(
    data: DashboardData, selected: Sequence[Municipality]
) -> str:
    first_year: int = data.population[0].year
    last_year: int = data.population[-1].year
    summary: list[dict[str, Any]] = build_insight_summary(data, selected)
    names: str = ", ".join(muni.value for muni in selected)
    return (
        "Olet data-analyytikko. Alla on tiivistelmä Tilastokeskuksen toteumaluvuista "
        f"Kaustisen seutukunnan kunnista vuosilta {first_year}-{last_year}.\n"
        f"Tarkasteltavat kunnat: {names}.\n\n"
        "Koostedata (väestömuutos tarkastelujaksolla, viimeisin tunnettu "
        "työllisyysaste ja yritysten lukumäärä):\n"
        f"{json.dumps(summary, ensure_ascii=False)}\n\n"
        "Kirjoita lyhyt ja asiallinen analyysi (enintään 3-4 lausetta) kuntien "
        "nykytilasta ja elinvoimasta. Yhdistä väestökehitys, työllisyys ja "
        "yrityskanta. Vastaa suomeksi ilman markdown-muotoilua."
    )


def _extract_text(result: dict[str, Any]) -> str:
    candidates: list[dict[str, Any]] = result.get("candidates") or []
    if not candidates:
        return ""
    parts: list[dict[str, Any]] = (candidates[0].get("content") or {}).get("parts") or []
    return "\n".join(p.get("text", "") for p in parts if "text" in p).strip()


async def generate_insight(
    data: DashboardData,
    selected: Sequence[Municipality],
    client: httpx.AsyncClient | None = None,
) -> str:
    """Returns the model's analysis, or a fixed Finnish fallback sentence."""
    api_key: str | None = gemini_api_key()
    if not api_key:
        return MISSING_KEY_MESSAGE
    if not selected or not data.population:
        return NO_SELECTION_MESSAGE

    payload: dict[str, Any] = {
        "contents": [{"parts": [{"text": build_insight_prompt(data, selected)}]}],
        "generationConfig": {"temperature": GEMINI_TEMPERATURE},
    }
    url: str = GEMINI_URL.format(model=GEMINI_MODEL)
    # Never in the URL: HTTPStatusError messages (and so the logs) include it
    headers: dict[str, str] = {"x-goog-api-key": api_key}

    try:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                resp = await own_client.post(
                    url, headers=headers, json=payload, timeout=REQUEST_TIMEOUT
                )
        else:
            resp = await client.post(
                url, headers=headers, json=payload, timeout=REQUEST_TIMEOUT
            )
        resp.raise_for_status()
        text: str = _extract_text(resp.json())
    except (
        httpx.RequestError,
        httpx.HTTPStatusError,
        json.JSONDecodeError,
        AttributeError,
        TypeError,
    ) as ex:
        logger.error("Gemini API error: %s", ex)
        return API_ERROR_MESSAGE

    return text or EMPTY_RESPONSE_MESSAGE
