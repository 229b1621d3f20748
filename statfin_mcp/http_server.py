"""
HTTP server for StatFin MCP: the same tools as the MCP server, behind a
small JSON API for clients that do not speak MCP.
"""
import inspect
import logging
import os
import sys
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any, Callable

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from statfin_mcp.config import LOG_LEVEL
from statfin_mcp.lifespan.context import app_lifespan
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

logger = logging.getLogger(__name__)

# Tool registry
TOOLS: dict[str, Callable[..., Any]] = {
    "list_municipalities": list_municipalities,
    "get_dataset_series": get_dataset_series,
    "refresh_dashboard": refresh_dashboard,
    "get_regional_overview": get_regional_overview,
    "get_municipality_overview": get_municipality_overview,
    "forecast_enterprises": forecast_enterprises,
    "get_population_outlook": get_population_outlook,
    "generate_insights": generate_insights,
}


def make_context(lifespan_context: Any) -> Any:
    """Wraps the lifespan dictionary so tools can read it as ctx.request_context.lifespan_context."""
    return SimpleNamespace(
        request_context=SimpleNamespace(lifespan_context=lifespan_context)
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources"""
    async with app_lifespan(None) as context:
        app.state.context = context
        yield


app = FastAPI(
    title="StatFin MCP HTTP Server",
    description="HTTP endpoint for the StatFin regional statistics tools",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


class ToolRequest(BaseModel):
    tool_name: str
    arguments: dict[str, Any] = {}


class ToolResponse(BaseModel):
    success: bool
    result: Any = None
    error: str | None = None


@app.get("/")
async def root():
    return {
        "name": "StatFin MCP HTTP Server",
        "version": "0.1.0",
        "description": "Statistics Finland figures for the Kaustinen sub-region",
        "endpoints": {
            "/tools": "List available tools",
            "/tool": "Execute a tool (POST)",
            "/health": "Health check",
        },
    }


@app.get("/health")
async def health():
    session = getattr(app.state, "context", {}).get("session")
    return {
        "status": "healthy",
        "data_loaded": bool(session and session.loaded),
    }


@app.get("/tools")
async def list_tools():
    """List all available tools with their parameters"""
    tool_descriptions: dict[str, Any] = {}
    for tool_name, tool_func in TOOLS.items():
        sig = inspect.signature(tool_func)
        params: dict[str, Any] = {}
        for param_name, param in sig.parameters.items():
            if param_name == "ctx":
                continue
            params[param_name] = {
                "required": param.default is inspect.Parameter.empty,
                "type": str(param.annotation)
                if param.annotation is not inspect.Parameter.empty
                else "Any",
            }
        tool_descriptions[tool_name] = {
            "description": inspect.getdoc(tool_func) or "No description available",
            "parameters": params,
        }
    return tool_descriptions


@app.post("/tool")
async def execute_tool(request: ToolRequest) -> ToolResponse:
    """Execute a specific tool with given arguments"""
    tool_name: str = request.tool_name
    if tool_name not in TOOLS:
        raise HTTPException(
            status_code=404,
            detail=f"Tool '{tool_name}' not found. Available tools: {list(TOOLS.keys())}",
        )

    tool_func = TOOLS[tool_name]
    arguments: dict[str, Any] = dict(request.arguments)
    if "ctx" in inspect.signature(tool_func).parameters:
        arguments["ctx"] = make_context(app.state.context)

    try:
        result = tool_func(**arguments)
        if inspect.isawaitable(result):
            result = await result
    except TypeError as e:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid arguments for tool '{tool_name}': {e}",
        )
    except Exception as e:
        logger.exception("Tool '%s' failed.", tool_name)
        raise HTTPException(
            status_code=500,
            detail=f"Error executing tool '{tool_name}': {e}",
        )

    if isinstance(result, dict) and "error" in result:
        return ToolResponse(success=False, result=result, error=result["error"])
    return ToolResponse(success=True, result=result)


def main():
    """Run the HTTP server"""
    import uvicorn

    logging.basicConfig(level=LOG_LEVEL, stream=sys.stderr)
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8001")))


if __name__ == "__main__":
    main()
