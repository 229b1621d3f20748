from statfin_mcp.models.types import ALL_MUNICIPALITIES, Municipality


def parse_municipalities_param(param: str | None) -> tuple[list[Municipality], list[str]]:
    """
    Parses a comma-separated list of municipality names or StatFin codes
    (e.g. "Kaustinen, KU924"). An empty value means all five. Returns the
    recognised municipalities in input order and the tokens that matched
    nothing.
    """
    if not param or not param.strip():
        return list(ALL_MUNICIPALITIES), []

    selected: list[Municipality] = []
    unknown: list[str] = []
    for token in (part.strip() for part in param.split(",")):
        if not token:
            continue
        muni: Municipality | None = Municipality.from_label(token)
        if muni is None:
            # Accept case-insensitive names as well
            muni = next(
                (m for m in ALL_MUNICIPALITIES if m.value.lower() == token.lower()),
                None,
            )
        if muni is None:
            unknown.append(token)
        elif muni not in selected:
            selected.append(muni)
    return selected, unknown


async def list_municipalities() -> list[dict[str, str]]:
    """
    **Purpose:** Returns the five municipalities of the Kaustinen sub-region
    that every other tool works with, with their StatFin area codes.

    **Use Cases:**
    *   "Which municipalities does the dashboard cover?"
    *   "What is the StatFin code of Veteli?"

    **Return Value:**
    A list of dictionaries, each containing:
    *   `id` (str): The StatFin area code (e.g., "KU236" for Kaustinen)
    *   `name` (str): The municipality name (e.g., "Kaustinen")

    The list is sorted by area code.
    """
    result: list[dict[str, str]] = [
        {"id": muni.code, "name": muni.value} for muni in ALL_MUNICIPALITIES
    ]
    result.sort(key=lambda x: x["id"])
    return result
