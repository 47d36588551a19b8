"""MCP tool registrations."""

__all__ = [
    "queries",
    "analytics",
]
