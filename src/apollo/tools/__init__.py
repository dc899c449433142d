"""Tool catalog exposed over MCP."""

from __future__ import annotations

from apollo.tools.agent import AskApolloTool
from apollo.tools.alerts import SendSlackNotificationTool, SendTelegramAlertTool
from apollo.tools.base import Tool, ToolRegistry, ToolResult
from apollo.tools.context import ContextTool, ToolContext
from apollo.tools.queries import (
    GetRecentDeploymentsTool,
    GetRecentIncidentsTool,
    GetServiceHealthTool,
    SearchErrorLogsTool,
)
from apollo.tools.records import CreateIncidentRecordTool, GeneratePostmortemTool, UpdateStatusPageTool
from apollo.tools.remediation import ExecuteRollbackTool, RecommendRollbackTool, RunHealthCheckTool
from apollo.tools.tickets import CreateGitHubIssueTool, CreateJiraTicketTool, CreatePagerDutyIncidentTool

ACTION_TOOLS: list[type[ContextTool]] = [
    SendTelegramAlertTool,
    CreateIncidentRecordTool,
    RecommendRollbackTool,
    SendSlackNotificationTool,
    ExecuteRollbackTool,
    RunHealthCheckTool,
    CreateJiraTicketTool,
    CreatePagerDutyIncidentTool,
    GeneratePostmortemTool,
    UpdateStatusPageTool,
    CreateGitHubIssueTool,
]

READ_TOOLS: list[type[ContextTool]] = [
    GetServiceHealthTool,
    GetRecentIncidentsTool,
    GetRecentDeploymentsTool,
    SearchErrorLogsTool,
    AskApolloTool,
]


def build_registry(ctx: ToolContext) -> ToolRegistry:
    """Register every catalog tool against ``ctx``."""
    registry = ToolRegistry()
    for tool_cls in [*ACTION_TOOLS, *READ_TOOLS]:
        registry.register(tool_cls(ctx))
    return registry


__all__ = [
    "ACTION_TOOLS",
    "READ_TOOLS",
    "Tool",
    "ToolContext",
    "ToolRegistry",
    "ToolResult",
    "build_registry",
]
