"""FastMCP server setup and tool registration."""
from fastmcp import FastMCP

from .tools import analytics, queries


def create_server() -> FastMCP:
    """Create and configure the MCP server."""
    mcp = FastMCP("querytrail")

    # Recording and finalization
    queries.register(mcp)

    # Aggregations and suggestions
    analytics.register(mcp)

    return mcp


def run_server(transport: str = "stdio", host: str = "127.0.0.1", port: int = 8000):
    """Run the MCP server."""
    server = create_server()
    if transport == "stdio":
        server.run(show_banner=False)
    else:
        server.run(transport=transport, host=host, port=port, show_banner=False)
