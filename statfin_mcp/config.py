import os

###############################################################################
# StatFin PxWeb API
###############################################################################

BASE_URL: str = os.environ.get(
    "STATFIN_BASE_URL", "https://pxdata.stat.fi/PxWeb/api/v1/fi"
).rstrip("/")

REQUEST_TIMEOUT: float = float(os.environ.get("STATFIN_TIMEOUT", "60"))

KEY_FIGURES_TABLE: str = "Kuntien_avainluvut/2025/kuntien_avainluvut_2025_aikasarja.px"
EDUCATION_TABLE: str = "StatFin/khak/statfin_khak_pxt_11fy.px"
ENTERPRISES_TABLE: str = "StatFin/alyr/statfin_alyr_pxt_13wz.px"
BIRTHS_TABLE: str = "StatFin/synt/statfin_synt_pxt_14lh.px"
PROJECTIONS_TABLE: str = "StatFin/vaenn/statfin_vaenn_pxt_14wy.px"
DEPENDENCY_PROJECTION_TABLE: str = "StatFin/vaenn/statfin_vaenn_pxt_14wz.px"

###############################################################################
# Municipalities and years
###############################################################################

# Kaustinen sub-region, StatFin area codes
MUNICIPALITY_CODES: dict[str, str] = {
    "Halsua": "KU074",
    "Kaustinen": "KU236",
    "Lestijärvi": "KU421",
    "Toholampi": "KU849",
    "Veteli": "KU924",
}

HISTORY_YEARS: list[str] = ["2020", "2021", "2022", "2023", "2024"]
BIRTHS_YEARS: list[str] = ["2024"]
PROJECTION_YEARS: list[str] = ["2024", "2025", "2030", "2045"]

FIRST_YEAR: int = 2020
DEFAULT_LAST_YEAR: int = 2024
FORECAST_HORIZON: int = 5
OUTLOOK_YEAR: int = 2030

EDUCATION_DESTINATIONS: list[str] = ["1", "2", "5", "8", "9"]
PROJECTION_SEXES: list[str] = ["SSS", "1", "2"]

# Population projection indicator codes (2024 projection round)
PROJECTED_BIRTHS: str = "vm01_e24"
PROJECTED_NET_MIGRATION: str = "vm4243_e24"
PROJECTED_POPULATION_CHANGE: str = "valisays_e24"
PROJECTED_POPULATION: str = "vaesto_e24"
PROJECTION_CODES: list[str] = [
    PROJECTED_BIRTHS,
    PROJECTED_NET_MIGRATION,
    PROJECTED_POPULATION_CHANGE,
    PROJECTED_POPULATION,
]

###############################################################################
# Text generation
###############################################################################

GEMINI_MODEL: str = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_URL: str = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)
GEMINI_TEMPERATURE: float = 0.2

LOG_LEVEL: str = os.environ.get("STATFIN_LOG_LEVEL", "INFO").upper()


def gemini_api_key() -> str | None:
    """Reads the API key at call time so tests and deployments can set it late."""
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY") or None
