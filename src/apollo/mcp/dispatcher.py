"""JSON-RPC 2.0 dispatch for the MCP method set.

Only protocol problems become JSON-RPC errors. Everything a tool does,
including failing, comes back as a ``tools/call`` result.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from apollo.tools.base import ToolRegistry

logger = structlog.get_logger()

PROTOCOL_VERSION = "2025-03-26"
SERVER_NAME = "apollo-actions"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def error_response(code: int, message: str, request_id: Any = None) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


class McpDispatcher:
    """Maps JSON-RPC requests onto the tool registry."""

    def __init__(self, registry: ToolRegistry, version: str) -> None:
        self.registry = registry
        self.version = version

    async def handle(self, payload: Any) -> dict[str, Any] | list[dict[str, Any]] | None:
        """Handle a decoded request body; ``None`` means nothing to send back."""
        if isinstance(payload, list):
            if not payload:
                return error_response(INVALID_REQUEST, "Invalid Request: empty batch")
            responses = [r for r in [await self._handle_one(item) for item in payload] if r is not None]
            return responses or None
        return await self._handle_one(payload)

    async def _handle_one(self, request: Any) -> dict[str, Any] | None:
        if not isinstance(request, dict):
            return error_response(INVALID_REQUEST, "Invalid Request: expected an object")

        request_id = request.get("id")
        method = request.get("method")
        if not method or not isinstance(method, str):
            return error_response(
                INVALID_REQUEST, "Invalid Request: missing or invalid method", request_id
            )

        # Notifications carry no id and never get a response.
        is_notification = "id" not in request
        if is_notification and method.startswith("notifications/"):
            logger.debug("mcp.notification", method=method)
            return None

        params = request.get("params") or {}
        try:
            result = await self._dispatch(method, params)
        except RpcError as e:
            if is_notification:
                return None
            logger.warning("mcp.rpc_error", method=method, code=e.code, error=e.message)
            return error_response(e.code, e.message, request_id)
        except Exception as e:
            logger.exception("mcp.internal_error", method=method, error=str(e))
            if is_notification:
                return None
            return error_response(INTERNAL_ERROR, "Internal error", request_id)

        if is_notification:
            return None
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def _dispatch(self, method: str, params: Any) -> dict[str, Any]:
        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": self.version},
            }
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": self.registry.to_mcp_tools()}
        if method == "tools/call":
            return await self._call_tool(params)
        raise RpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    async def _call_tool(self, params: Any) -> dict[str, Any]:
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            raise RpcError(INVALID_PARAMS, "Invalid params: tools/call requires a tool name")

        name = params["name"]
        logger.info("mcp.tool_call", tool=name)
        result = await self.registry.execute(name, params.get("arguments"))
        return {
            "content": [{"type": "text", "text": json.dumps(result, indent=2, default=str)}],
            "isError": result.get("success") is False,
        }
