"""
Finalization & Consolidation Engine

Finishing a query marks its record completed with a canonical final text,
then tidies the user's history:

1. In-progress records that are prefixes or extensions of the final text are
   obsolete partial states of the same session and are deleted.
2. Completed records whose final text is a prefix or extension of the new
   final text are rewritten to it, so "ruby" and "ruby on rails" converge to
   one analytics bucket once the fuller phrase is seen.

Cleanup failures are logged and never prevent the record update.
"""

from dataclasses import dataclass
from typing import Optional

from querytrail.exceptions import QueryTrailError
from querytrail.logging_config import logger
from querytrail.schemas import QueryRecord, normalize_query_text
from querytrail.storage.base import QueryStore, RecordQuery


@dataclass
class CleanupReport:
    """What a cleanup pass changed."""
    deleted: int = 0
    merged: int = 0
    failed: bool = False

    def to_dict(self) -> dict:
        return {"deleted": self.deleted, "merged": self.merged, "failed": self.failed}


class FinalizationEngine:
    """Completes query records and consolidates related ones."""

    def __init__(self, store: QueryStore):
        self.store = store

    def delete_incomplete(self, user_key: str, final_text: str, keep_id: Optional[int] = None) -> int:
        """Delete the user's in-progress records prefix-related to `final_text`."""
        return self.store.delete_where(RecordQuery(
            user_key=user_key,
            completed=False,
            related_to_text=final_text,
            exclude_id=keep_id,
        ))

    def merge_similar(self, user_key: str, final_text: str) -> int:
        """Rewrite prefix-related completed final texts of the user to `final_text`."""
        return self.store.update_where(
            RecordQuery(
                user_key=user_key,
                completed=True,
                related_to_final=final_text,
                exclude_final=final_text,
            ),
            final_text=final_text,
        )

    def cleanup(self, user_key: Optional[str], final_text: Optional[str],
                keep_id: Optional[int] = None) -> CleanupReport:
        """
        Delete obsolete partial records and merge similar completed ones.

        Args:
            user_key: Owner of the records to tidy
            final_text: Canonical text the session ended with
            keep_id: Record to spare from deletion (the one being finished)

        Returns:
            CleanupReport; errors are logged and flagged, never raised
        """
        report = CleanupReport()
        if not user_key or not final_text:
            return report

        try:
            report.deleted = self.delete_incomplete(user_key, final_text, keep_id)
            if report.deleted:
                logger.info(f"Cleaned up {report.deleted} partial queries for user {user_key}")
        except QueryTrailError as e:
            report.failed = True
            logger.error(f"Error deleting partial queries for {user_key}: {e}")

        try:
            report.merged = self.merge_similar(user_key, final_text)
            if report.merged:
                logger.info(f"Merged {report.merged} similar queries to '{final_text}'")
        except QueryTrailError as e:
            report.failed = True
            logger.error(f"Error merging similar queries for {user_key}: {e}")

        return report

    def finish(self, record: QueryRecord, final_text: Optional[str] = None) -> bool:
        """
        Mark `record` completed with `final_text` (defaults to its current text).

        Returns:
            True if the record was updated, False if the update failed
        """
        final_text = normalize_query_text(final_text) or record.text

        self.cleanup(record.user_key, final_text, keep_id=record.id)

        try:
            updated = self.store.update(record.id, completed=True, final_text=final_text)
        except QueryTrailError as e:
            logger.error(f"Failed to finish search {record.id}: {e}")
            return False

        if not updated:
            logger.error(f"Failed to finish search {record.id}: record no longer exists")
            return False

        record.final_text = final_text
        record.completed = True
        return True
