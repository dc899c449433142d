"""Slack incoming-webhook notifications."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from apollo.integrations.errors import DeliveryError, NotConfiguredError

logger = structlog.get_logger()

SEVERITY_COLORS = {"P1": "#FF0000", "P2": "#FF8C00", "P3": "#FFD700"}
DEFAULT_COLOR = "#808080"


def header(text: str) -> dict[str, Any]:
    # Slack caps header text at 150 characters
    return {"type": "header", "text": {"type": "plain_text", "text": text[:150]}}


def fields(*items: str) -> dict[str, Any]:
    return {"type": "section", "fields": [{"type": "mrkdwn", "text": item} for item in items]}


def section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def context(text: str) -> dict[str, Any]:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def link_button(label: str, url: str) -> dict[str, Any]:
    return {
        "type": "actions",
        "elements": [
            {
                "type": "button",
                "text": {"type": "plain_text", "text": label},
                "url": url,
                "style": "primary",
            }
        ],
    }


class SlackWebhookNotifier:
    """Posts colored block attachments to one incoming webhook."""

    def __init__(
        self,
        webhook_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout_s: float = 10.0,
    ) -> None:
        self.webhook_url = webhook_url.strip()
        self._transport = transport
        self.timeout_s = timeout_s

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url)

    async def post(self, blocks: list[dict[str, Any]], *, color: str = DEFAULT_COLOR) -> None:
        if not self.configured:
            raise NotConfiguredError("Slack webhook not configured")

        payload = {"attachments": [{"color": color, "blocks": blocks}]}
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_s),
            transport=self._transport,
        ) as client:
            resp = await client.post(self.webhook_url, json=payload)
        if resp.status_code >= 400:
            logger.warning("slack.webhook_failed", status_code=resp.status_code, body=resp.text[:300])
            raise DeliveryError(
                f"Slack: {resp.text[:300]}",
                status_code=resp.status_code,
                body=resp.text[:300],
            )
