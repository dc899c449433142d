from __future__ import annotations

from typing import Any

import pytest

from apollo.tools import ACTION_TOOLS, READ_TOOLS, Tool, ToolRegistry, build_registry


class _EchoTool(Tool):
    name = "echo"
    description = "Echo the text back."
    input_schema = {
        "type": "object",
        "properties": {"text": {"type": "string"}, "times": {"type": "number"}},
        "required": ["text"],
    }

    async def execute(self, *, text: str, times: int = 1) -> dict[str, Any]:
        return {"success": True, "echo": text * int(times)}


class _BrokenTool(Tool):
    name = "broken"
    description = "Always raises."

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        raise RuntimeError("downstream exploded")


def _registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(_EchoTool())
    registry.register(_BrokenTool())
    return registry


def test_duplicate_names_are_rejected() -> None:
    registry = _registry()

    with pytest.raises(ValueError, match="Duplicate tool name: echo"):
        registry.register(_EchoTool())


@pytest.mark.asyncio
async def test_unknown_tool_is_a_result_not_an_exception() -> None:
    result = await _registry().execute("nope", {})

    assert result == {"success": False, "error": "Unknown tool: nope"}


@pytest.mark.asyncio
async def test_missing_required_arguments() -> None:
    result = await _registry().execute("echo", {"times": 2})

    assert result["success"] is False
    assert result["error"] == "Missing required argument(s): text"


@pytest.mark.asyncio
async def test_arguments_filtered_to_schema_and_json_strings_accepted() -> None:
    registry = _registry()

    assert await registry.execute("echo", {"text": "ab", "times": 2, "extra": "ignored"}) == {
        "success": True,
        "echo": "abab",
    }
    assert (await registry.execute("echo", '{"text": "x"}'))["echo"] == "x"
    assert (await registry.execute("echo", "{not json"))["success"] is False


@pytest.mark.asyncio
async def test_handler_exception_becomes_failed_result() -> None:
    result = await _registry().execute("broken", None)

    assert result == {"success": False, "error": "downstream exploded"}


def test_catalog_has_sixteen_uniquely_named_tools(make_context) -> None:
    registry = build_registry(make_context())

    assert len(registry) == 16
    assert len(ACTION_TOOLS) == 11
    assert len(READ_TOOLS) == 5
    for definition in registry.to_mcp_tools():
        assert set(definition) == {"name", "description", "inputSchema"}
        assert definition["inputSchema"]["type"] == "object"
        required = definition["inputSchema"]["required"]
        assert set(required) <= set(definition["inputSchema"]["properties"])
