import logging
from typing import Any

from mcp.server.fastmcp.server import Context

from statfin_mcp.services.dashboard import DashboardSession

logger = logging.getLogger(__name__)


def get_session(ctx: Context) -> DashboardSession:  # type: ignore[Context]
    """
    Returns the dashboard session the lifespan stored on the request context.
    Raises RuntimeError when the context carries no session, which only
    happens if a tool is invoked outside a running server.
    """
    request_context: Any = getattr(ctx, "request_context", None) if ctx else None
    lifespan_ctx: Any = getattr(request_context, "lifespan_context", None)
    session: Any = lifespan_ctx.get("session") if isinstance(lifespan_ctx, dict) else None
    if session is None:
        logger.warning("Tool called without a dashboard session in its context.")
        raise RuntimeError("Server context invalid. Unable to reach the dashboard session.")
    return session
