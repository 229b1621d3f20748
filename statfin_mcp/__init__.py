from statfin_mcp.server import main, mcp

__all__ = ["main", "mcp"]
