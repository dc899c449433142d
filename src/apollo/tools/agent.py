"""Hand a free-form question to the reasoning engine."""

from __future__ import annotations

from apollo.agent.client import ReasoningError
from apollo.tools.base import ToolResult
from apollo.tools.context import ContextTool, schema, string

MCP_CHANNEL = "mcp-client"


class AskApolloTool(ContextTool):
    name = "ask_apollo"
    description = (
        "Ask Apollo (the AI SRE agent) a question or give it an instruction. Apollo has access to "
        "all Elasticsearch data, can investigate incidents, create records, and notify teams. Use "
        "this for complex queries that need AI reasoning."
    )
    input_schema = schema(
        {
            "question": string(
                "Your question or instruction for Apollo. Examples: 'What caused the last "
                "checkout-api incident?', 'Investigate production anomalies', 'Search past "
                "incidents for payment timeouts'"
            )
        },
        ["question"],
    )

    async def execute(self, *, question: str) -> ToolResult:
        reasoning = self.ctx.reasoning
        if not reasoning.configured:
            return {"success": False, "error": "Apollo reasoning engine not configured"}
        try:
            response = await reasoning.converse(question, MCP_CHANNEL)
        except ReasoningError as e:
            return {"success": False, "question": question, "error": str(e)}
        return {"success": True, "question": question, "response": response}
