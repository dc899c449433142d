"""Shared collaborators and helpers for tool handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from apollo.agent.client import ReasoningClient
from apollo.config import TicketingConfig
from apollo.integrations import ElasticClient, GitHubClient, SlackWebhookNotifier, TelegramNotifier
from apollo.tools.base import Tool

SIGNATURE = "Apollo SRE Agent"

SEVERITY_SCHEMA: dict[str, Any] = {
    "type": "string",
    "description": "P1, P2, or P3",
    "enum": ["P1", "P2", "P3"],
}

SEVERITY_EMOJI = {"P1": "\U0001F534", "P2": "\U0001F7E0", "P3": "\U0001F7E1"}


@dataclass
class ToolContext:
    """Integrations a handler may touch. Each is gated by its own config."""

    elastic: ElasticClient
    telegram: TelegramNotifier
    slack: SlackWebhookNotifier
    github: GitHubClient
    reasoning: ReasoningClient
    ticketing: TicketingConfig = field(default_factory=TicketingConfig)


class ContextTool(Tool):
    """Tool that works against the shared ``ToolContext``."""

    def __init__(self, ctx: ToolContext) -> None:
        self.ctx = ctx


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required or []}


def string(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}
