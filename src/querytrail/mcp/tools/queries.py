"""Query recording tools - keystroke tracking and finalization."""
from typing import Optional

from querytrail.logging_config import logger
from querytrail.mcp.service_manager import get_service


def register(mcp):
    @mcp.tool()
    def record_query(
        query: str,
        user_key: str,
        is_final: bool = False,
        force_complete: bool = False,
    ) -> dict:
        """
        Record a (possibly partial) search query typed by a user.

        Successive partial submissions from the same user are folded into one
        in-progress record. The query is completed when force_complete is set,
        or when is_final is set and the query reads as a complete search.

        Args:
            query: Current query text (truncated to 255 characters)
            user_key: Opaque identifier of the submitting client
            is_final: Client believes the user finished typing
            force_complete: Complete the query regardless of analysis

        Returns:
            {status, query, completed, id, completeness, analysis}
        """
        try:
            outcome = get_service().record_partial_query(
                query, user_key, client_says_final=is_final, force_complete=force_complete
            )
            return outcome.model_dump(exclude_none=True)
        except Exception as e:
            logger.exception(f"record_query failed: {e}")
            return {"status": "error", "message": "Search processing failed"}

    @mcp.tool()
    def finish_query(query_id: int, final_text: Optional[str] = None) -> dict:
        """
        Mark a tracked query as completed and consolidate related queries.

        Args:
            query_id: Record id returned by record_query
            final_text: Canonical text (defaults to the record's current text)

        Returns:
            {status, id, final_text, completed} or {status: "error", message}
        """
        try:
            return get_service().finish_query(query_id, final_text)
        except Exception as e:
            logger.exception(f"finish_query failed: {e}")
            return {"status": "error", "message": "Could not complete search query"}

    @mcp.tool()
    def classify_query(query: str) -> dict:
        """
        Check whether a query reads as a complete search intent.

        Zero side effects: nothing is recorded.

        Args:
            query: Text to classify

        Returns:
            Analysis with appears_complete, deciding rule, word and character counts
        """
        return {"status": "ok", **get_service().classify(query)}
