"""Tests for search analytics MCP tools."""
import pytest

from .conftest import unwrap_result


@pytest.fixture
def seeded(query_service):
    """Completed searches: rails x3, django x2, ruby on rails x1 (u2)."""
    for text, times, user in (("rails", 3, "u1"), ("django", 2, "u1"), ("ruby on rails", 1, "u2")):
        for _ in range(times):
            query_service.record_partial_query(text, user, force_complete=True)
    return query_service


class TestStats:

    @pytest.mark.asyncio
    async def test_global_stats(self, mcp_client, seeded):
        result = unwrap_result(await mcp_client.call_tool("global_stats", {}))

        assert result["status"] == "ok"
        assert result["analytics"] == [
            {"query": "rails", "count": 3},
            {"query": "django", "count": 2},
            {"query": "ruby on rails", "count": 1},
        ]

    @pytest.mark.asyncio
    async def test_user_stats(self, mcp_client, seeded):
        result = unwrap_result(await mcp_client.call_tool("user_stats", {"user_key": "u2"}))
        assert result["analytics"] == [{"query": "ruby on rails", "count": 1}]

    @pytest.mark.asyncio
    async def test_limit_clamped(self, mcp_client, seeded):
        result = unwrap_result(await mcp_client.call_tool("global_stats", {"limit": 0}))
        assert len(result["analytics"]) == 1


class TestSuggestions:

    @pytest.mark.asyncio
    async def test_search_suggestions(self, mcp_client, seeded):
        result = unwrap_result(
            await mcp_client.call_tool("search_suggestions", {"query": "RAIL"})
        )
        assert result["query"] == "RAIL"
        assert result["suggestions"] == ["rails", "ruby on rails"]

    @pytest.mark.asyncio
    async def test_blank_query(self, mcp_client, seeded):
        result = unwrap_result(await mcp_client.call_tool("search_suggestions", {"query": " "}))
        assert result == {"status": "ok", "suggestions": []}

    @pytest.mark.asyncio
    async def test_popular_searches(self, mcp_client, seeded):
        result = unwrap_result(await mcp_client.call_tool("popular_searches", {"limit": 2}))
        # Minimum popular limit is 5, so all three come back
        assert result["suggestions"] == ["rails", "django", "ruby on rails"]


class TestTopAndRecent:

    @pytest.mark.asyncio
    async def test_top_queries(self, mcp_client, seeded):
        result = unwrap_result(
            await mcp_client.call_tool("top_queries", {"limit": 10, "days": 0})
        )
        assert result["period_days"] == 1
        assert result["queries"][0] == {"query": "rails", "count": 3}

    @pytest.mark.asyncio
    async def test_recent_searches(self, mcp_client, seeded):
        result = unwrap_result(
            await mcp_client.call_tool("recent_searches", {"user_key": "u1"})
        )
        assert set(result["searches"]) == {"rails", "django"}


@pytest.mark.asyncio
async def test_tools_registered(mcp_client):
    names = {tool.name for tool in await mcp_client.list_tools()}
    assert names == {
        "record_query",
        "finish_query",
        "classify_query",
        "user_stats",
        "global_stats",
        "search_suggestions",
        "popular_searches",
        "top_queries",
        "recent_searches",
    }
