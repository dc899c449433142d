from __future__ import annotations

import json

import pytest

from apollo.mcp import McpDispatcher
from apollo.tools import build_registry


@pytest.fixture
def dispatcher(make_context) -> McpDispatcher:
    return McpDispatcher(build_registry(make_context(github=False)), "1.0.0")


@pytest.mark.asyncio
async def test_initialize(dispatcher: McpDispatcher) -> None:
    response = await dispatcher.handle({"jsonrpc": "2.0", "id": 1, "method": "initialize"})

    assert response == {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {
            "protocolVersion": "2025-03-26",
            "capabilities": {"tools": {}},
            "serverInfo": {"name": "apollo-actions", "version": "1.0.0"},
        },
    }


@pytest.mark.asyncio
async def test_tools_list(dispatcher: McpDispatcher) -> None:
    response = await dispatcher.handle({"jsonrpc": "2.0", "id": "a", "method": "tools/list"})

    names = [tool["name"] for tool in response["result"]["tools"]]
    assert len(names) == 16
    assert "ask_apollo" in names
    assert "create_github_issue" in names


@pytest.mark.asyncio
async def test_unknown_method(dispatcher: McpDispatcher) -> None:
    response = await dispatcher.handle({"jsonrpc": "2.0", "id": 7, "method": "resources/list"})

    assert response["id"] == 7
    assert response["error"] == {"code": -32601, "message": "Method not found: resources/list"}


@pytest.mark.asyncio
async def test_invalid_requests(dispatcher: McpDispatcher) -> None:
    assert (await dispatcher.handle("hello"))["error"]["code"] == -32600
    assert (await dispatcher.handle({"jsonrpc": "2.0", "id": 3}))["error"]["code"] == -32600


@pytest.mark.asyncio
async def test_notifications_and_ping(dispatcher: McpDispatcher) -> None:
    assert await dispatcher.handle({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
    assert (await dispatcher.handle({"jsonrpc": "2.0", "id": 9, "method": "ping"}))["result"] == {}


@pytest.mark.asyncio
async def test_tool_failure_is_a_result_not_a_protocol_error(dispatcher: McpDispatcher) -> None:
    response = await dispatcher.handle(
        {
            "jsonrpc": "2.0",
            "id": 4,
            "method": "tools/call",
            "params": {"name": "does_not_exist", "arguments": {}},
        }
    )

    assert "error" not in response
    result = response["result"]
    assert result["isError"] is True
    assert json.loads(result["content"][0]["text"]) == {
        "success": False,
        "error": "Unknown tool: does_not_exist",
    }


@pytest.mark.asyncio
async def test_tool_call_wraps_result_as_text_content(dispatcher: McpDispatcher) -> None:
    response = await dispatcher.handle(
        {
            "jsonrpc": "2.0",
            "id": 5,
            "method": "tools/call",
            "params": {"name": "run_health_check", "arguments": {"service": "checkout-api"}},
        }
    )

    result = response["result"]
    assert result["isError"] is False
    assert result["content"][0]["type"] == "text"
    payload = json.loads(result["content"][0]["text"])
    assert payload["service"] == "checkout-api"
    assert payload["success"] is True


@pytest.mark.asyncio
async def test_batch_requests(dispatcher: McpDispatcher) -> None:
    responses = await dispatcher.handle(
        [
            {"jsonrpc": "2.0", "id": 1, "method": "ping"},
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            {"jsonrpc": "2.0", "id": 2, "method": "bogus"},
        ]
    )

    assert [r["id"] for r in responses] == [1, 2]
    assert responses[1]["error"]["code"] == -32601
