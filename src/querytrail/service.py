"""
Query Service

The operation surface offered to the MCP server and the CLI. Every method
returns a structured result; store and validation failures are reported in
the payload instead of raised.
"""

from contextlib import nullcontext
from typing import Any, Callable, Dict, List, Optional

from querytrail import classifier, config
from querytrail.analytics import SearchAnalytics
from querytrail.consolidation import CleanupReport, FinalizationEngine
from querytrail.exceptions import QueryTrailError, RecordValidationError
from querytrail.locks import KeyedLocks
from querytrail.logging_config import logger
from querytrail.schemas import MAX_QUERY_LENGTH, QueryStat, RecordOutcome, normalize_query_text
from querytrail.storage.base import QueryStore
from querytrail.tracker import QuerySessionTracker


class QueryService:
    """
    Records partial queries and answers analytics requests.

    Args:
        store: Record store shared by all components
        recency_minutes: Session matching window override
        serialize_per_user: Hold a per-user lock around tracking and
            finalization; defaults to tracking.serialize_per_user
        clock: Callable returning the current UTC datetime
    """

    def __init__(
        self,
        store: QueryStore,
        recency_minutes: Optional[int] = None,
        serialize_per_user: Optional[bool] = None,
        clock: Optional[Callable] = None,
    ):
        self.store = store
        self.tracker = QuerySessionTracker(store, recency_minutes=recency_minutes, clock=clock)
        self.engine = FinalizationEngine(store)
        self.analytics = SearchAnalytics(store, clock=clock)
        if serialize_per_user is None:
            serialize_per_user = config.serialize_per_user()
        self._locks = KeyedLocks() if serialize_per_user else None

    def _user_lock(self, user_key: str):
        if self._locks is None:
            return nullcontext()
        return self._locks.hold(user_key)

    # ========== RECORDING ==========

    def record_partial_query(
        self,
        text: Optional[str],
        user_key: Optional[str],
        client_says_final: bool = False,
        force_complete: bool = False,
    ) -> RecordOutcome:
        """
        Track a keystroke-level submission and complete it when warranted.

        A query is completed when force_complete is set, or when the client
        says it is final and the classifier agrees. If the client says final
        but the classifier disagrees, the record stays in progress and the
        outcome is "incomplete".
        """
        raw = (text or "").strip()
        if not raw:
            logger.info(f"Skipping empty search from {user_key}")
            return RecordOutcome(status="empty", completeness="empty", message="Query cannot be empty")

        if not user_key or not user_key.strip():
            return RecordOutcome(
                status="error", error_type="validation", message="user_key: must not be blank"
            )

        query = normalize_query_text(raw)
        if len(raw) > MAX_QUERY_LENGTH:
            logger.warning(f"Query truncated for user {user_key} from {len(raw)} to {MAX_QUERY_LENGTH} characters")

        analysis = classifier.analyze(query)
        logger.debug(
            f"Completeness analysis for '{query}': words={analysis.word_count} "
            f"chars={analysis.char_length} first='{analysis.first_word}' last='{analysis.last_word}' "
            f"punctuation={analysis.ends_with_punctuation} rule={analysis.rule} "
            f"decision={'COMPLETE' if analysis.appears_complete else 'INCOMPLETE'}"
        )

        should_complete = force_complete or (client_says_final and analysis.appears_complete)

        try:
            with self._user_lock(user_key):
                record = self.tracker.track(query, user_key)

                if should_complete:
                    if not self.engine.finish(record, query):
                        return RecordOutcome(
                            status="error",
                            error_type="store",
                            message=f"Could not complete search query {record.id}",
                        )
                    logger.info(f"Recorded search '{query}' ({user_key})")
                    completeness = "complete"
                elif client_says_final:
                    logger.info(f"Rejected incomplete search '{query}' ({user_key})")
                    completeness = "incomplete"
                else:
                    completeness = "in_progress"
        except RecordValidationError as e:
            logger.error(f"Could not save search query: {e.message}")
            return RecordOutcome(status="error", error_type="validation", message=e.message)
        except QueryTrailError as e:
            logger.error(f"Search processing failed: {e}")
            return RecordOutcome(status="error", error_type="store", message="Search processing failed")

        return RecordOutcome(
            status="ok",
            query=record.text,
            completed=record.completed,
            id=record.id,
            completeness=completeness,
            analysis={
                "appears_complete": analysis.appears_complete,
                "is_final": should_complete,
                "client_marked_final": client_says_final,
            },
        )

    def finish_query(self, record_id: int, final_text: Optional[str] = None) -> Dict[str, Any]:
        """Finalize an existing record by id."""
        try:
            record = self.store.get(record_id)
        except QueryTrailError as e:
            logger.error(f"Failed to load search query {record_id}: {e}")
            return {"status": "error", "message": "Could not load search query"}

        if record is None:
            return {"status": "error", "message": f"Search query {record_id} not found"}

        with self._user_lock(record.user_key):
            if not self.engine.finish(record, final_text):
                return {"status": "error", "message": f"Could not complete search query {record_id}"}

        return {"status": "ok", "id": record.id, "final_text": record.final_text, "completed": True}

    def cleanup(self, user_key: str, final_text: str) -> CleanupReport:
        """Run consolidation for a user without finishing a record."""
        final_text = normalize_query_text(final_text)
        with self._user_lock(user_key):
            return self.engine.cleanup(user_key, final_text)

    def classify(self, text: Optional[str]) -> Dict[str, Any]:
        return classifier.analyze(text).to_dict()

    # ========== ANALYTICS ==========

    def user_stats(self, user_key: Optional[str], limit: Optional[int] = 50) -> List[QueryStat]:
        limit = config.clamp_limit("user_stats", limit)
        return [QueryStat(query=q, count=n) for q, n in self.analytics.stats_for(user_key, limit)]

    def global_stats(self, limit: Optional[int] = 100) -> List[QueryStat]:
        limit = config.clamp_limit("global_stats", limit)
        return [QueryStat(query=q, count=n) for q, n in self.analytics.global_stats(limit)]

    def suggestions(self, prefix_text: Optional[str], limit: Optional[int] = 10) -> List[str]:
        limit = config.clamp_limit("suggestions", limit)
        return self.analytics.suggestions(prefix_text, limit)

    def popular_searches(self, limit: Optional[int] = 10) -> List[str]:
        limit = config.clamp_limit("popular_searches", limit)
        return self.analytics.popular_searches(limit)

    def top_queries(self, limit: Optional[int] = 10, days: Optional[int] = 7) -> List[QueryStat]:
        limit = config.clamp_limit("top_queries", limit)
        days = config.clamp_limit("top_queries_days", days)
        return [QueryStat(query=q, count=n) for q, n in self.analytics.top_queries(limit, days)]

    def recent_searches(self, user_key: Optional[str], limit: Optional[int] = 5) -> List[str]:
        limit = config.clamp_limit("recent_searches", limit)
        return self.analytics.recent_searches(user_key, limit)
