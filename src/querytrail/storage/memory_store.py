"""
In-memory record store.

Records are indexed by user_key so per-user lookups (session matching,
cleanup, merging) never scan other users' records. Returned records are
copies; mutating them does not touch the store.
"""

import threading
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from querytrail.exceptions import RecordValidationError
from querytrail.logging_config import logger
from querytrail.schemas import QueryRecord, utc_now
from querytrail.storage.base import (
    GROUPABLE_FIELDS,
    QueryStore,
    RecordQuery,
    check_fields,
    is_prefix_related,
)


class InMemoryQueryStore(QueryStore):
    """Thread-safe dict-backed QueryStore with a per-user index."""

    def __init__(self, clock: Optional[Callable] = None):
        self._records: Dict[int, QueryRecord] = {}
        self._by_user: Dict[str, set] = defaultdict(set)
        self._next_id = 1
        self._clock = clock or utc_now
        self.lock = threading.Lock()

    def insert(self, record: QueryRecord) -> QueryRecord:
        with self.lock:
            stored = record.model_copy(update={
                "id": self._next_id,
                "created_at": record.created_at or self._clock(),
            })
            self._next_id += 1
            self._records[stored.id] = stored
            self._by_user[stored.user_key].add(stored.id)
            logger.debug(f"Inserted query record {stored.id} for {stored.user_key}")
            return stored.model_copy()

    def get(self, record_id: int) -> Optional[QueryRecord]:
        with self.lock:
            record = self._records.get(record_id)
            return record.model_copy() if record else None

    def find_all(self, query: RecordQuery) -> List[QueryRecord]:
        with self.lock:
            return [r.model_copy() for r in self._select(query)]

    def update(self, record_id: int, **fields: Any) -> bool:
        check_fields(fields)
        with self.lock:
            record = self._records.get(record_id)
            if record is None:
                return False
            self._records[record_id] = self._apply(record, fields)
            return True

    def update_where(self, query: RecordQuery, **fields: Any) -> int:
        check_fields(fields)
        with self.lock:
            matched = self._select(query)
            # Validate everything before writing anything
            updated = [self._apply(record, fields) for record in matched]
            for record in updated:
                self._records[record.id] = record
            return len(updated)

    def delete_where(self, query: RecordQuery) -> int:
        with self.lock:
            matched = self._select(query)
            for record in matched:
                del self._records[record.id]
                self._by_user[record.user_key].discard(record.id)
            return len(matched)

    def group_count(self, query: RecordQuery, field: str) -> Dict[str, int]:
        check_fields({field: None}, allowed=GROUPABLE_FIELDS)
        with self.lock:
            counts: Dict[str, int] = {}
            for record in self._select(query):
                value = getattr(record, field)
                if value is None:
                    continue
                counts[value] = counts.get(value, 0) + 1
            return counts

    def count(self, query: RecordQuery) -> int:
        with self.lock:
            return len(self._select(query))

    # ========== INTERNALS (caller holds the lock) ==========

    def _candidates(self, query: RecordQuery) -> Iterable[QueryRecord]:
        if query.user_key is not None:
            return [self._records[i] for i in self._by_user.get(query.user_key, ())]
        return self._records.values()

    def _select(self, query: RecordQuery) -> List[QueryRecord]:
        matched = [r for r in self._candidates(query) if _matches(r, query)]

        if query.order == "recent":
            matched.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        else:
            matched.sort(key=lambda r: (r.created_at, r.id))

        if query.limit is not None:
            matched = matched[:query.limit]
        return matched

    @staticmethod
    def _apply(record: QueryRecord, fields: Dict[str, Any]) -> QueryRecord:
        try:
            return QueryRecord.model_validate({**record.model_dump(), **fields})
        except ValidationError as e:
            raise RecordValidationError(f"Record {record.id} rejected: {e.errors()[0]['msg']}")


def _matches(record: QueryRecord, query: RecordQuery) -> bool:
    if query.user_key is not None and record.user_key != query.user_key:
        return False
    if query.completed is not None and record.completed != query.completed:
        return False
    if query.created_since is not None and record.created_at < query.created_since:
        return False
    if query.related_to_text is not None and not is_prefix_related(record.text, query.related_to_text):
        return False
    if query.related_to_final is not None and not is_prefix_related(record.final_text, query.related_to_final):
        return False
    if query.exclude_final is not None and record.final_text == query.exclude_final:
        return False
    if query.exclude_id is not None and record.id == query.exclude_id:
        return False
    if query.final_contains is not None:
        if record.final_text is None or query.final_contains.lower() not in record.final_text.lower():
            return False
    return True
