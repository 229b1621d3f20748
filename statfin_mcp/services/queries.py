"""PxWeb table queries, one builder per dataset the dashboard loads."""

from collections.abc import Sequence

from statfin_mcp.config import (
    BIRTHS_YEARS,
    EDUCATION_DESTINATIONS,
    HISTORY_YEARS,
    MUNICIPALITY_CODES,
    PROJECTION_CODES,
    PROJECTION_SEXES,
    PROJECTION_YEARS,
)
from statfin_mcp.models.types import PxQueryItem, PxTableQuery


def item_selection(code: str, values: Sequence[str]) -> PxQueryItem:
    return {"code": code, "selection": {"filter": "item", "values": list(values)}}


def all_selection(code: str) -> PxQueryItem:
    return {"code": code, "selection": {"filter": "all", "values": ["*"]}}


def build_table_query(items: Sequence[PxQueryItem]) -> PxTableQuery:
    return {"query": list(items), "response": {"format": "json-stat2"}}


def municipality_codes() -> list[str]:
    return list(MUNICIPALITY_CODES.values())


def key_figures_query(years: Sequence[str] = HISTORY_YEARS) -> PxTableQuery:
    # Tiedot is requested with "all": item-filtering it makes the API reject
    # the query with 400 whenever an indicator code is renamed.
    return build_table_query(
        [
            item_selection("Alue", municipality_codes()),
            all_selection("Tiedot"),
            item_selection("Vuosi", years),
        ]
    )


def education_query(years: Sequence[str] = HISTORY_YEARS) -> PxTableQuery:
    return build_table_query(
        [
            item_selection("Vuosi", years),
            item_selection("Oppilaitoksen sijaintialue", municipality_codes()),
            item_selection("Jatko-opinnot", EDUCATION_DESTINATIONS),
        ]
    )


def enterprises_query(years: Sequence[str] = HISTORY_YEARS) -> PxTableQuery:
    return build_table_query(
        [
            item_selection("Vuosi", years),
            item_selection("Kunta", municipality_codes()),
        ]
    )


def births_query(years: Sequence[str] = BIRTHS_YEARS) -> PxTableQuery:
    return build_table_query(
        [
            item_selection("Vuosi", years),
            item_selection("Alue", municipality_codes()),
        ]
    )


def projections_query(years: Sequence[str] = PROJECTION_YEARS) -> PxTableQuery:
    return build_table_query(
        [
            item_selection("Alue", municipality_codes()),
            item_selection("Vuosi", years),
            item_selection("Sukupuoli", PROJECTION_SEXES),
            item_selection("Tiedot", PROJECTION_CODES),
        ]
    )


def dependency_projection_query(
    years: Sequence[str] = PROJECTION_YEARS,
) -> PxTableQuery:
    return build_table_query(
        [
            item_selection("Alue", municipality_codes()),
            item_selection("Vuosi", years),
        ]
    )
