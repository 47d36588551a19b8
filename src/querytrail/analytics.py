"""
Search analytics over completed query records.

All functions degrade to an empty result when the store fails.
Equal counts are ordered alphabetically by query text so results are stable
across backends.
"""

from datetime import timedelta
from typing import Callable, Dict, List, Optional, Tuple

from querytrail.exceptions import QueryTrailError
from querytrail.logging_config import logger
from querytrail.schemas import utc_now
from querytrail.storage.base import QueryStore, RecordQuery


def rank_counts(counts: Dict[str, int], limit: int) -> List[Tuple[str, int]]:
    """Sort (query, count) pairs by count descending, then query ascending."""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:max(limit, 0)]


class SearchAnalytics:
    """Aggregation queries for dashboards and suggestion boxes."""

    def __init__(self, store: QueryStore, clock: Optional[Callable] = None):
        self.store = store
        self._clock = clock or utc_now

    def _ranked(self, query: RecordQuery, field: str, limit: int, label: str) -> List[Tuple[str, int]]:
        try:
            return rank_counts(self.store.group_count(query, field), limit)
        except QueryTrailError as e:
            logger.error(f"Failed to get {label}: {e}")
            return []

    def stats_for(self, user_key: Optional[str], limit: int = 20) -> List[Tuple[str, int]]:
        """Top completed final texts of one user with their counts."""
        if not user_key:
            return []
        return self._ranked(
            RecordQuery(user_key=user_key, completed=True), "final_text", limit, "user stats"
        )

    def global_stats(self, limit: int = 100) -> List[Tuple[str, int]]:
        """Top completed final texts across all users with their counts."""
        return self._ranked(RecordQuery(completed=True), "final_text", limit, "global stats")

    def suggestions(self, prefix_text: Optional[str], limit: int = 10) -> List[str]:
        """Distinct completed final texts containing `prefix_text`, most frequent first."""
        prefix_text = (prefix_text or "").strip()
        if not prefix_text:
            return []
        ranked = self._ranked(
            RecordQuery(completed=True, final_contains=prefix_text), "final_text", limit, "suggestions"
        )
        return [query for query, _ in ranked]

    def popular_searches(self, limit: int = 10) -> List[str]:
        """Distinct completed final texts, most frequent first."""
        return [query for query, _ in self.global_stats(limit)]

    def top_queries(self, limit: int = 10, days: int = 7) -> List[Tuple[str, int]]:
        """Most frequent submitted texts (completed or not) over the last `days` days."""
        since = self._clock() - timedelta(days=days)
        return self._ranked(RecordQuery(created_since=since), "text", limit, "top queries")

    def recent_searches(self, user_key: Optional[str], limit: int = 5) -> List[str]:
        """The user's most recent distinct completed final texts."""
        if not user_key:
            return []
        try:
            records = self.store.find_all(
                RecordQuery(user_key=user_key, completed=True, order="recent", limit=limit)
            )
        except QueryTrailError as e:
            logger.error(f"Failed to load recent searches: {e}")
            return []

        seen = []
        for record in records:
            if record.final_text not in seen:
                seen.append(record.final_text)
        return seen
