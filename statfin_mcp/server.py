import logging
import os
import sys
import traceback

from mcp.server.fastmcp import FastMCP

from statfin_mcp.config import LOG_LEVEL
from statfin_mcp.lifespan.context import app_lifespan
from statfin_mcp.prompts.entry_prompt import statfin_entry_point
from statfin_mcp.tools.analysis_tools import (
    generate_insights,
    get_municipality_overview,
    get_regional_overview,
)
from statfin_mcp.tools.data_tools import (
    forecast_enterprises,
    get_dataset_series,
    get_population_outlook,
    refresh_dashboard,
)
from statfin_mcp.tools.municipality_tools import list_municipalities

# Instantiate FastMCP
mcp: FastMCP = FastMCP("StatFinServer", lifespan=app_lifespan)

# Register all tool functions
mcp.tool()(list_municipalities)
mcp.tool()(get_dataset_series)
mcp.tool()(refresh_dashboard)
mcp.tool()(get_regional_overview)
mcp.tool()(get_municipality_overview)
mcp.tool()(forecast_enterprises)
mcp.tool()(get_population_outlook)
mcp.tool()(generate_insights)

# Register the prompt
mcp.prompt()(statfin_entry_point)


def main() -> None:
    # stdout belongs to the stdio transport
    logging.basicConfig(
        level=LOG_LEVEL,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    transport: str = os.environ.get("MCP_TRANSPORT", "stdio").lower()
    print("[StatFin MCP Main] Script starting...", file=sys.stderr)
    try:
        if transport == "sse":
            mcp.settings.port = int(os.environ.get("PORT", "8000"))
            mcp.settings.host = "0.0.0.0"
        print(
            f"[StatFin MCP Main] Calling mcp.run(transport='{transport}')...",
            file=sys.stderr,
        )
        mcp.run(transport=transport)  # type: ignore[arg-type]
    except Exception as e:
        print(
            f"[StatFin MCP Main] EXCEPTION caught around mcp.run(): {e}", file=sys.stderr
        )
        traceback.print_exc(file=sys.stderr)
        raise
    finally:
        print("[StatFin MCP Main] Script exiting.", file=sys.stderr)


if __name__ == "__main__":
    main()
