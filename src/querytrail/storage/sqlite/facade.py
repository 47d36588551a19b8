"""
SQLite Storage Facade

Public QueryStore implementation backed by SQLite. Delegates connection
handling to the persistence layer and row operations to the records module.
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from querytrail.schemas import QueryRecord
from querytrail.storage.base import QueryStore, RecordQuery
from querytrail.storage.sqlite.persistence import SQLitePersistence
from querytrail.storage.sqlite.records import SQLiteRecordOperations


class SQLiteQueryStore(QueryStore):
    """
    SQLite-backed query record store.

    Modular architecture:
    - persistence: Connection management, transactions, metadata
    - records: Query record CRUD and aggregation

    Args:
        db_path: Path to a .db file or a directory to create querytrail.db in
        clock: Optional callable returning the current UTC datetime
    """

    def __init__(self, db_path: Union[str, Path], clock: Optional[Callable] = None):
        self.persistence = SQLitePersistence(db_path)
        self.records = SQLiteRecordOperations(self.persistence._get_connection, clock=clock)
        self.db_path = self.persistence.db_path

    # ========== RECORD OPERATIONS ==========

    def insert(self, record: QueryRecord) -> QueryRecord:
        return self.records.insert(record)

    def get(self, record_id: int) -> Optional[QueryRecord]:
        return self.records.get(record_id)

    def find_all(self, query: RecordQuery) -> List[QueryRecord]:
        return self.records.find_all(query)

    def update(self, record_id: int, **fields: Any) -> bool:
        return self.records.update(record_id, fields)

    def update_where(self, query: RecordQuery, **fields: Any) -> int:
        return self.records.update_where(query, fields)

    def delete_where(self, query: RecordQuery) -> int:
        return self.records.delete_where(query)

    def group_count(self, query: RecordQuery, field: str) -> Dict[str, int]:
        return self.records.group_count(query, field)

    def count(self, query: RecordQuery) -> int:
        return self.records.count(query)

    # ========== METADATA & STATS ==========

    def get_metadata(self, key: str):
        """Get metadata value by key."""
        return self.persistence.get_metadata(key)

    def get_stats(self):
        """Get store statistics."""
        return self.persistence.get_stats()
