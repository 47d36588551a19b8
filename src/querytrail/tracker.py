"""
Query Session Tracker

Folds successive keystroke-driven submissions from one user into a single
evolving in-progress record instead of creating one record per keystroke.

A submission continues an existing record when, for the same user, an
in-progress record created within the recency window has text that equals,
prefixes, or is prefixed by the new text (case-insensitive). The most recent
such record wins.
"""

from datetime import timedelta
from typing import Callable, Optional

from querytrail import config
from querytrail.exceptions import StoreError
from querytrail.logging_config import logger
from querytrail.schemas import QueryRecord, normalize_query_text, utc_now
from querytrail.storage.base import QueryStore, RecordQuery


class QuerySessionTracker:
    """
    Tracks in-progress queries per user.

    Args:
        store: Record store
        recency_minutes: Lookback window; defaults to tracking.recency_minutes
        clock: Callable returning the current UTC datetime
    """

    def __init__(
        self,
        store: QueryStore,
        recency_minutes: Optional[int] = None,
        clock: Optional[Callable] = None,
    ):
        self.store = store
        self.recency = timedelta(
            minutes=recency_minutes if recency_minutes is not None else config.recency_minutes()
        )
        self._clock = clock or utc_now

    def find_in_progress(self, text: str, user_key: str) -> Optional[QueryRecord]:
        """Most recent in-progress record of `user_key` that `text` continues."""
        return self.store.find_one(RecordQuery(
            user_key=user_key,
            completed=False,
            created_since=self._clock() - self.recency,
            related_to_text=text,
            order="recent",
        ))

    def track(self, text: Optional[str], user_key: Optional[str]) -> Optional[QueryRecord]:
        """
        Record a (possibly partial) query for a user.

        Text is stripped and truncated to the maximum stored length.

        Returns:
            The updated or newly created record, or None for blank input

        Raises:
            StoreError: If the fallback insert also fails
            RecordValidationError: If the record is rejected by validation
        """
        text = normalize_query_text(text)
        if not text or not user_key or not user_key.strip():
            return None

        try:
            existing = self.find_in_progress(text, user_key)
            if existing is not None and self.store.update(existing.id, text=text):
                existing.text = text
                logger.debug(f"Continued query {existing.id} for {user_key}: '{text}'")
                return existing
        except StoreError as e:
            # Never lose a submission because matching failed
            logger.error(f"Error tracking query for {user_key}: {e}")

        record = self.store.insert(QueryRecord.create(text=text, user_key=user_key, completed=False))
        logger.debug(f"Started query {record.id} for {user_key}: '{text}'")
        return record
