"""Tool base class and the registry exposed over MCP."""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from typing import Any

import structlog

logger = structlog.get_logger()

ToolResult = dict[str, Any]


class Tool(ABC):
    """Base class for all gateway tools.

    Subclasses declare ``name``, ``description`` and ``input_schema`` as class
    attributes and implement ``execute``. A tool either completes its primary
    effect and reports ``success: True``, or reports failure without claiming
    effects it did not perform.
    """

    name: str
    description: str
    input_schema: dict[str, Any] = {"type": "object", "properties": {}, "required": []}

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Run the action and return a result object."""
        ...

    @property
    def properties(self) -> dict[str, Any]:
        return self.input_schema.get("properties", {})

    @property
    def required(self) -> list[str]:
        return list(self.input_schema.get("required", []))

    def to_mcp_tool(self) -> dict[str, Any]:
        """Tool definition in MCP ``tools/list`` format."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    """Name → tool lookup, built once at startup."""

    def __init__(self) -> None:
        self.tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool. Names are unique for the life of the process."""
        name = getattr(tool, "name", "")
        if not name or not getattr(tool, "description", ""):
            raise ValueError(f"{type(tool).__name__} must declare a name and description")
        if name in self.tools:
            raise ValueError(f"Duplicate tool name: {name}")
        self.tools[name] = tool
        logger.debug("tool.registered", name=name)

    def get(self, name: str) -> Tool | None:
        return self.tools.get(name)

    def __len__(self) -> int:
        return len(self.tools)

    def __contains__(self, name: object) -> bool:
        return name in self.tools

    async def execute(self, name: str, arguments: str | dict[str, Any] | None) -> ToolResult:
        """Execute a tool by name; failures come back as result objects."""
        tool = self.get(name)
        if not tool:
            logger.warning("tool.unknown", name=name)
            return {"success": False, "error": f"Unknown tool: {name}"}

        if arguments is None:
            arguments = {}
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError:
                return {"success": False, "error": f"Invalid JSON arguments: {arguments[:200]}"}
        if not isinstance(arguments, dict):
            return {"success": False, "error": "Arguments must be an object"}

        missing = [key for key in tool.required if arguments.get(key) in (None, "")]
        if missing:
            return {
                "success": False,
                "error": f"Missing required argument(s): {', '.join(missing)}",
            }

        kwargs = {key: value for key, value in arguments.items() if key in tool.properties}
        start = time.monotonic()
        try:
            result = await tool.execute(**kwargs)
        except Exception as e:
            logger.error("tool.error", name=name, error=str(e), error_type=type(e).__name__)
            return {"success": False, "error": str(e) or type(e).__name__}

        logger.info(
            "tool.executed",
            name=name,
            success=result.get("success", True),
            duration=f"{time.monotonic() - start:.2f}s",
        )
        return result

    def to_mcp_tools(self) -> list[dict[str, Any]]:
        return [tool.to_mcp_tool() for tool in self.tools.values()]

    def list_tools(self) -> list[dict[str, str]]:
        """List all tools with names and descriptions."""
        return [{"name": t.name, "description": t.description} for t in self.tools.values()]
