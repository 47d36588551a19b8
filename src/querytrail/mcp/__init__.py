"""FastMCP server exposing query tracking and analytics tools."""
from querytrail.mcp.server import create_server, run_server

__all__ = ["create_server", "run_server"]
