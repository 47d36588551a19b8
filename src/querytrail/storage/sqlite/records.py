"""
SQLite Record Operations

Handles CRUD and aggregation for query records.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from querytrail.logging_config import logger
from querytrail.exceptions import RecordValidationError, StoreError
from querytrail.schemas import QueryRecord, utc_now
from querytrail.storage.base import GROUPABLE_FIELDS, RecordQuery, check_fields

# "a prefixes b": compare b's leading characters against all of a
_PREFIX_RELATED_SQL = (
    "(substr(lower(?), 1, length({col})) = lower({col})"
    " OR substr(lower({col}), 1, length(?)) = lower(?))"
)


def format_timestamp(value: datetime) -> str:
    """Serialize to fixed-width ISO-8601 UTC so string order equals time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def build_where(query: RecordQuery) -> Tuple[str, List[Any]]:
    """
    Translate a RecordQuery into a WHERE clause and parameters.

    Returns:
        ("WHERE ..." or "", params)
    """
    clauses = []
    params: List[Any] = []

    if query.user_key is not None:
        clauses.append("user_key = ?")
        params.append(query.user_key)
    if query.completed is not None:
        clauses.append("completed = ?")
        params.append(1 if query.completed else 0)
    if query.created_since is not None:
        clauses.append("created_at >= ?")
        params.append(format_timestamp(query.created_since))
    if query.related_to_text is not None:
        clauses.append(_PREFIX_RELATED_SQL.format(col="text"))
        params.extend([query.related_to_text] * 3)
    if query.related_to_final is not None:
        clauses.append("final_text IS NOT NULL AND " + _PREFIX_RELATED_SQL.format(col="final_text"))
        params.extend([query.related_to_final] * 3)
    if query.exclude_final is not None:
        clauses.append("(final_text IS NULL OR final_text != ?)")
        params.append(query.exclude_final)
    if query.exclude_id is not None:
        clauses.append("id != ?")
        params.append(query.exclude_id)
    if query.final_contains is not None:
        # instr() matches the needle literally, no LIKE wildcards to escape
        clauses.append("final_text IS NOT NULL AND instr(lower(final_text), lower(?)) > 0")
        params.append(query.final_contains)

    where = "WHERE " + " AND ".join(clauses) if clauses else ""
    return where, params


def _row_to_record(row: sqlite3.Row) -> QueryRecord:
    return QueryRecord(
        id=row["id"],
        text=row["text"],
        final_text=row["final_text"],
        user_key=row["user_key"],
        completed=bool(row["completed"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _encode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    encoded = dict(fields)
    if "completed" in encoded:
        encoded["completed"] = 1 if encoded["completed"] else 0
    return encoded


@contextmanager
def _translate_errors(operation: str):
    """Map sqlite3 failures onto the store's exception types."""
    try:
        yield
    except sqlite3.IntegrityError as e:
        raise RecordValidationError(f"Constraint violated during {operation}: {e}")
    except sqlite3.Error as e:
        raise StoreError(operation, str(e))


class SQLiteRecordOperations:
    """
    Query record CRUD and aggregation.

    All write methods accept an optional connection for transaction support.
    """

    def __init__(self, get_connection_func, clock=None):
        """
        Initialize with a connection factory function.

        Args:
            get_connection_func: Callable that returns a new SQLite connection
            clock: Callable returning the current UTC datetime (for created_at)
        """
        self._get_connection = get_connection_func
        self._clock = clock or utc_now

    def insert(self, record: QueryRecord, conn: Optional[sqlite3.Connection] = None) -> QueryRecord:
        created_at = record.created_at or self._clock()
        _conn = conn or self._get_connection()
        try:
            with _translate_errors("insert"):
                cursor = _conn.execute(
                    """
                    INSERT INTO query_records (text, final_text, user_key, completed, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        record.text,
                        record.final_text,
                        record.user_key,
                        1 if record.completed else 0,
                        format_timestamp(created_at),
                    ),
                )
                if not conn:
                    _conn.commit()
            logger.debug(f"Inserted query record {cursor.lastrowid} for {record.user_key}")
            return record.model_copy(update={"id": cursor.lastrowid, "created_at": created_at})
        finally:
            if not conn:
                _conn.close()

    def get(self, record_id: int) -> Optional[QueryRecord]:
        conn = self._get_connection()
        try:
            with _translate_errors("get"):
                row = conn.execute("SELECT * FROM query_records WHERE id = ?", (record_id,)).fetchone()
            return _row_to_record(row) if row else None
        finally:
            conn.close()

    def find_all(self, query: RecordQuery) -> List[QueryRecord]:
        where, params = build_where(query)
        if query.order == "recent":
            order = "ORDER BY created_at DESC, id DESC"
        else:
            order = "ORDER BY created_at ASC, id ASC"
        sql = f"SELECT * FROM query_records {where} {order}"
        if query.limit is not None:
            sql += " LIMIT ?"
            params.append(int(query.limit))

        conn = self._get_connection()
        try:
            with _translate_errors("find_all"):
                rows = conn.execute(sql, params).fetchall()
            return [_row_to_record(row) for row in rows]
        finally:
            conn.close()

    def update(self, record_id: int, fields: Dict[str, Any],
               conn: Optional[sqlite3.Connection] = None) -> bool:
        check_fields(fields)
        if not fields:
            return self.get(record_id) is not None
        encoded = _encode_fields(fields)
        assignments = ", ".join(f"{name} = ?" for name in encoded)

        _conn = conn or self._get_connection()
        try:
            with _translate_errors("update"):
                cursor = _conn.execute(
                    f"UPDATE query_records SET {assignments} WHERE id = ?",
                    [*encoded.values(), record_id],
                )
                if not conn:
                    _conn.commit()
            return cursor.rowcount > 0
        finally:
            if not conn:
                _conn.close()

    def update_where(self, query: RecordQuery, fields: Dict[str, Any],
                     conn: Optional[sqlite3.Connection] = None) -> int:
        check_fields(fields)
        encoded = _encode_fields(fields)
        assignments = ", ".join(f"{name} = ?" for name in encoded)
        where, params = build_where(query)

        _conn = conn or self._get_connection()
        try:
            with _translate_errors("update_where"):
                cursor = _conn.execute(
                    f"UPDATE query_records SET {assignments} {where}",
                    [*encoded.values(), *params],
                )
                if not conn:
                    _conn.commit()
            return cursor.rowcount
        finally:
            if not conn:
                _conn.close()

    def delete_where(self, query: RecordQuery, conn: Optional[sqlite3.Connection] = None) -> int:
        where, params = build_where(query)
        _conn = conn or self._get_connection()
        try:
            with _translate_errors("delete_where"):
                cursor = _conn.execute(f"DELETE FROM query_records {where}", params)
                if not conn:
                    _conn.commit()
            return cursor.rowcount
        finally:
            if not conn:
                _conn.close()

    def group_count(self, query: RecordQuery, field: str) -> Dict[str, int]:
        check_fields({field: None}, allowed=GROUPABLE_FIELDS)
        where, params = build_where(query)
        null_filter = f"{field} IS NOT NULL"
        where = f"{where} AND {null_filter}" if where else f"WHERE {null_filter}"

        conn = self._get_connection()
        try:
            with _translate_errors("group_count"):
                rows = conn.execute(
                    f"SELECT {field} AS value, COUNT(*) AS n FROM query_records {where} GROUP BY {field}",
                    params,
                ).fetchall()
            return {row["value"]: row["n"] for row in rows}
        finally:
            conn.close()

    def count(self, query: RecordQuery) -> int:
        where, params = build_where(query)
        conn = self._get_connection()
        try:
            with _translate_errors("count"):
                return conn.execute(f"SELECT COUNT(*) FROM query_records {where}", params).fetchone()[0]
        finally:
            conn.close()
