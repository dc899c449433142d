"""MCP JSON-RPC surface."""

from apollo.mcp.dispatcher import PROTOCOL_VERSION, SERVER_NAME, McpDispatcher

__all__ = ["PROTOCOL_VERSION", "SERVER_NAME", "McpDispatcher"]
