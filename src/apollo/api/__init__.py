"""HTTP surface: MCP endpoint and health."""
