"""
QueryTrail - Keystroke-level search query tracking

Folds partial submissions into evolving query records, finalizes and
consolidates them, and answers search analytics over the results.
"""

__version__ = "1.0.0"

# Core exports
from querytrail.classifier import analyze, appears_complete
from querytrail.schemas import QueryRecord, QueryStat, RecordOutcome
from querytrail.service import QueryService
from querytrail.storage import InMemoryQueryStore, SQLiteQueryStore, open_store

# MCP server
from querytrail.mcp import create_server, run_server

__all__ = [
    "__version__",
    "analyze",
    "appears_complete",
    "QueryRecord",
    "QueryStat",
    "RecordOutcome",
    "QueryService",
    "InMemoryQueryStore",
    "SQLiteQueryStore",
    "open_store",
    "create_server",
    "run_server",
]
