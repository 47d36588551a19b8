"""
SQLite Persistence Layer

Owns the database file: opening connections, schema bootstrap, transactions,
metadata and size/count statistics. Record-level SQL lives in records.py.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional, Union

from querytrail.logging_config import logger
from querytrail.exceptions import SchemaError, StoreError
from querytrail.storage.sqlite.schema import init_schema
from querytrail.storage.sqlite.config import DEFAULT_DB_NAME, DEFAULT_TIMEOUT, ENABLE_WAL_MODE

_STATS_SQL = """
SELECT
    COUNT(*) AS total_records,
    COALESCE(SUM(completed), 0) AS completed_records,
    COUNT(DISTINCT user_key) AS distinct_users
FROM query_records
"""


class SQLitePersistence:
    """
    Database lifecycle for one query store file.

    Every call opens a short-lived connection, so instances are safe to
    share between threads.

    Args:
        db_path: A .db file, or a directory that will hold querytrail.db
    """

    def __init__(self, db_path: Union[str, Path]):
        db_path = Path(db_path)
        if db_path.suffix == '.db':
            self.db_path = db_path
        else:
            self.db_path = db_path / DEFAULT_DB_NAME
        self.data_dir = self.db_path.parent

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """
        Open a connection with name-addressable rows and WAL journaling.

        Raises:
            StoreError: If the database file cannot be opened
        """
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=DEFAULT_TIMEOUT)
            conn.row_factory = sqlite3.Row
            if ENABLE_WAL_MODE:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute(f"PRAGMA busy_timeout = {int(DEFAULT_TIMEOUT * 1000)}")
        except sqlite3.Error as e:
            raise StoreError("connect", f"{self.db_path}: {e}")
        return conn

    @contextmanager
    def transaction(self):
        """
        Yield a connection that commits on success and rolls back on error.

        Usage:
            with persistence.transaction() as conn:
                conn.execute(...)
        """
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Rolled back transaction on {self.db_path.name}: {e}")
            raise
        finally:
            conn.close()

    def _init_schema(self):
        try:
            with self.transaction() as conn:
                init_schema(conn, str(self.db_path))
        except SchemaError:
            raise
        except StoreError as e:
            raise SchemaError(e.message) from e
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to open database {self.db_path}: {e}")

    def get_metadata(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StoreError("get_metadata", str(e))
        finally:
            conn.close()
        return row["value"] if row else None

    def get_stats(self) -> Dict[str, Any]:
        """
        Record counts and file size.

        Returns:
            Dict with total_records, completed_records, in_progress_records,
            distinct_users and db_size_bytes
        """
        conn = self._get_connection()
        try:
            row = conn.execute(_STATS_SQL).fetchone()
        except sqlite3.Error as e:
            raise StoreError("get_stats", str(e))
        finally:
            conn.close()

        stats = dict(row)
        stats["in_progress_records"] = stats["total_records"] - stats["completed_records"]
        stats["db_size_bytes"] = self.db_path.stat().st_size if self.db_path.exists() else 0
        return stats
