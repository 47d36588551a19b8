"""Tests for query recording MCP tools."""
import pytest

from .conftest import unwrap_result


async def record(client, query, user_key="agent-1", **kwargs):
    return unwrap_result(
        await client.call_tool("record_query", {"query": query, "user_key": user_key, **kwargs})
    )


class TestRecordQuery:
    """Tests for record_query tool."""

    @pytest.mark.asyncio
    async def test_in_progress(self, mcp_client):
        result = await record(mcp_client, "how to")

        assert result["status"] == "ok"
        assert result["completeness"] == "in_progress"
        assert result["completed"] is False
        assert isinstance(result["id"], int)

    @pytest.mark.asyncio
    async def test_session_completes(self, mcp_client):
        first = await record(mcp_client, "how to")
        final = await record(mcp_client, "how to use rails", is_final=True)

        assert final["id"] == first["id"]
        assert final["completeness"] == "complete"
        assert final["analysis"]["client_marked_final"] is True

    @pytest.mark.asyncio
    async def test_incomplete(self, mcp_client):
        result = await record(mcp_client, "how to use the", is_final=True)
        assert result["completeness"] == "incomplete"
        assert result["completed"] is False

    @pytest.mark.asyncio
    async def test_empty(self, mcp_client):
        result = await record(mcp_client, "   ")
        assert result["status"] == "empty"
        assert result["message"] == "Query cannot be empty"

    @pytest.mark.asyncio
    async def test_blank_user_key(self, mcp_client):
        result = await record(mcp_client, "how to", user_key="")
        assert result["status"] == "error"
        assert result["error_type"] == "validation"

    @pytest.mark.asyncio
    async def test_truncation(self, mcp_client):
        result = await record(mcp_client, "q" * 500)
        assert len(result["query"]) == 255


class TestFinishQuery:
    """Tests for finish_query tool."""

    @pytest.mark.asyncio
    async def test_finish(self, mcp_client, query_service):
        recorded = await record(mcp_client, "ruby on ra")
        result = unwrap_result(
            await mcp_client.call_tool(
                "finish_query", {"query_id": recorded["id"], "final_text": "ruby on rails"}
            )
        )

        assert result["status"] == "ok"
        assert result["final_text"] == "ruby on rails"
        assert query_service.store.get(recorded["id"]).completed is True

    @pytest.mark.asyncio
    async def test_unknown_id(self, mcp_client):
        result = unwrap_result(await mcp_client.call_tool("finish_query", {"query_id": 4242}))
        assert result["status"] == "error"


class TestClassifyQuery:
    """Tests for classify_query tool."""

    @pytest.mark.asyncio
    async def test_classify_has_no_side_effects(self, mcp_client, query_service):
        result = unwrap_result(
            await mcp_client.call_tool("classify_query", {"query": "What is Ruby on Rails?"})
        )

        assert result["status"] == "ok"
        assert result["appears_complete"] is True
        assert result["rule"] == "terminal_punctuation"
        assert query_service.store.get_stats()["total_records"] == 0
