"""Search analytics tools - stats, suggestions and popular searches."""
from querytrail.config import clamp_limit
from querytrail.mcp.service_manager import get_service


def _format_stats(stats) -> list:
    return [stat.model_dump() for stat in stats]


def register(mcp):
    @mcp.tool()
    def user_stats(user_key: str, limit: int = 50) -> dict:
        """
        Most frequent completed searches of one user.

        Args:
            user_key: Opaque client identifier
            limit: Max entries (clamped to 1-50)

        Returns:
            {status, analytics: [{query, count}]}
        """
        return {"status": "ok", "analytics": _format_stats(get_service().user_stats(user_key, limit))}

    @mcp.tool()
    def global_stats(limit: int = 100) -> dict:
        """
        Most frequent completed searches across all users.

        Args:
            limit: Max entries (clamped to 1-100)

        Returns:
            {status, analytics: [{query, count}]}
        """
        return {"status": "ok", "analytics": _format_stats(get_service().global_stats(limit))}

    @mcp.tool()
    def search_suggestions(query: str, limit: int = 10) -> dict:
        """
        Completed searches containing the given text, most frequent first.

        Args:
            query: Text typed so far
            limit: Max suggestions (clamped to 1-10)

        Returns:
            {status, query, suggestions: [str]}
        """
        query = (query or "").strip()
        if not query:
            return {"status": "ok", "suggestions": []}
        return {"status": "ok", "query": query, "suggestions": get_service().suggestions(query, limit)}

    @mcp.tool()
    def popular_searches(limit: int = 10) -> dict:
        """
        Most frequent completed searches.

        Args:
            limit: Max entries (clamped to 5-20)

        Returns:
            {status, suggestions: [str]}
        """
        return {"status": "ok", "suggestions": get_service().popular_searches(limit)}

    @mcp.tool()
    def top_queries(limit: int = 10, days: int = 7) -> dict:
        """
        Most frequently submitted query texts over a recent period.

        Counts every submission, completed or not.

        Args:
            limit: Max entries (clamped to 5-50)
            days: Lookback in days (clamped to 1-365)

        Returns:
            {status, period_days, queries: [{query, count}]}
        """
        return {
            "status": "ok",
            "period_days": clamp_limit("top_queries_days", days),
            "queries": _format_stats(get_service().top_queries(limit, days)),
        }

    @mcp.tool()
    def recent_searches(user_key: str, limit: int = 5) -> dict:
        """
        A user's most recent distinct completed searches.

        Args:
            user_key: Opaque client identifier
            limit: Max entries (clamped to 1-5)

        Returns:
            {status, searches: [str]}
        """
        return {"status": "ok", "searches": get_service().recent_searches(user_key, limit)}
