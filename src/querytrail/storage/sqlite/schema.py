"""
SQLite Schema Definitions

Contains table definitions, indices, and schema initialization logic.
"""

import sqlite3
from querytrail.logging_config import logger
from querytrail.exceptions import SchemaError
from querytrail.storage.sqlite.config import SCHEMA_VERSION


SCHEMA_SQL = """
-- Query records: one row per tracked search session
CREATE TABLE IF NOT EXISTS query_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL CHECK(length(trim(text)) > 0 AND length(text) <= 255),
    final_text TEXT,
    user_key TEXT NOT NULL CHECK(length(trim(user_key)) > 0),
    completed INTEGER NOT NULL DEFAULT 0 CHECK(completed IN (0, 1)),
    created_at TEXT NOT NULL,  -- ISO-8601 UTC, fixed width so it sorts lexically

    CHECK(completed = 0 OR final_text IS NOT NULL)
);

-- Session matching and cleanup look up one user's in-progress records by recency
CREATE INDEX IF NOT EXISTS idx_query_records_user_state
    ON query_records(user_key, completed, created_at);
-- Aggregations group completed records by final text
CREATE INDEX IF NOT EXISTS idx_query_records_final
    ON query_records(completed, final_text);
CREATE INDEX IF NOT EXISTS idx_query_records_created ON query_records(created_at);

-- Metadata table
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at REAL DEFAULT (julianday('now'))
);

INSERT OR IGNORE INTO metadata (key, value) VALUES ('created_at', strftime('%s', 'now'));
"""


def init_schema(conn: sqlite3.Connection, db_path: str) -> None:
    """
    Initialize database schema if not exists.

    Args:
        conn: SQLite connection
        db_path: Path to database file (for logging)

    Raises:
        SchemaError: If schema initialization fails
    """
    try:
        conn.executescript(SCHEMA_SQL)
        conn.execute(
            "INSERT OR IGNORE INTO metadata (key, value) VALUES ('schema_version', ?)",
            (SCHEMA_VERSION,),
        )
        logger.debug(f"Initialized SQLite schema at {db_path}")
    except sqlite3.Error as e:
        raise SchemaError(f"Failed to initialize database schema: {e}")
