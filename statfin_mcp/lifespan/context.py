import sys
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from statfin_mcp.models.types import StatfinLifespanContext
from statfin_mcp.services.dashboard import DashboardSession


@asynccontextmanager
async def app_lifespan(server: Any) -> AsyncIterator[StatfinLifespanContext]:
    """
    Creates the dashboard session and performs the first load at startup.
    Yields the dictionary that becomes ctx.request_context.lifespan_context.
    A failed dataset only leaves that dataset empty, so startup never aborts
    on upstream trouble.
    """
    print("[StatFin MCP Lifespan] Starting lifespan setup...", file=sys.stderr)
    session = DashboardSession()
    await session.refresh()
    print(
        f"[StatFin MCP] Initial load complete: "
        f"{len(session.data.population)} population years.",
        file=sys.stderr,
    )

    context_data: StatfinLifespanContext = {"session": session}
    try:
        yield context_data
    except Exception as e:
        print(
            f"[StatFin MCP Lifespan] Exception DURING yield/server run?: {e}",
            file=sys.stderr,
        )
        traceback.print_exc(file=sys.stderr)
        raise
    finally:
        session.close()
        print("[StatFin MCP] Shutting down.", file=sys.stderr)
