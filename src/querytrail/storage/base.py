"""
Record store contract.

Every backend answers the same small set of predicate queries over
QueryRecords. Prefix relations are case-insensitive and hold in either
direction: "ruby" is related to "ruby on rails" and vice versa.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from querytrail.schemas import QueryRecord

GROUPABLE_FIELDS = ("text", "final_text")
UPDATABLE_FIELDS = ("text", "final_text", "completed")


@dataclass
class RecordQuery:
    """
    Predicate over query records. Unset attributes do not filter.

    Attributes:
        user_key: Only records of this user
        completed: Only completed (True) or in-progress (False) records
        created_since: Only records created at or after this instant
        related_to_text: `text` equals, prefixes, or is prefixed by this value
        related_to_final: `final_text` equals, prefixes, or is prefixed by this value
        exclude_final: Skip records whose `final_text` equals this value exactly
        exclude_id: Skip the record with this id
        final_contains: `final_text` contains this substring (case-insensitive)
        order: "recent" (newest first), "oldest", or None for store order
        limit: Maximum number of records to return
    """
    user_key: Optional[str] = None
    completed: Optional[bool] = None
    created_since: Optional[datetime] = None
    related_to_text: Optional[str] = None
    related_to_final: Optional[str] = None
    exclude_final: Optional[str] = None
    exclude_id: Optional[int] = None
    final_contains: Optional[str] = None
    order: Optional[Literal["recent", "oldest"]] = None
    limit: Optional[int] = None


def is_prefix_related(a: Optional[str], b: Optional[str]) -> bool:
    """True if either string is a case-insensitive prefix of the other."""
    if a is None or b is None:
        return False
    a, b = a.lower(), b.lower()
    return a.startswith(b) or b.startswith(a)


def check_fields(fields: Dict[str, Any], allowed=UPDATABLE_FIELDS) -> None:
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValueError(f"Unsupported field(s): {', '.join(sorted(unknown))}")


class QueryStore(ABC):
    """Persistence gateway for query records."""

    @abstractmethod
    def insert(self, record: QueryRecord) -> QueryRecord:
        """Store a new record; returns it with `id` and `created_at` assigned."""

    @abstractmethod
    def get(self, record_id: int) -> Optional[QueryRecord]:
        """Fetch one record by id."""

    @abstractmethod
    def find_all(self, query: RecordQuery) -> List[QueryRecord]:
        """Return every record matching `query`."""

    def find_one(self, query: RecordQuery) -> Optional[QueryRecord]:
        """Return the first record matching `query`, or None."""
        found = self.find_all(replace(query, limit=1))
        return found[0] if found else None

    @abstractmethod
    def update(self, record_id: int, **fields: Any) -> bool:
        """Update fields of one record; False if it does not exist."""

    @abstractmethod
    def update_where(self, query: RecordQuery, **fields: Any) -> int:
        """Update fields on every matching record; returns the count."""

    @abstractmethod
    def delete_where(self, query: RecordQuery) -> int:
        """Delete every matching record; returns the count."""

    @abstractmethod
    def group_count(self, query: RecordQuery, field: str) -> Dict[str, int]:
        """Count matching records grouped by `field` ("text" or "final_text")."""

    @abstractmethod
    def count(self, query: RecordQuery) -> int:
        """Count matching records."""

    def close(self) -> None:
        """Release backend resources."""
