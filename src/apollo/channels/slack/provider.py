"""Slack channel provider (Socket Mode push events via slack_bolt)."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from apollo.channels.base import (
    AvailabilityCheck,
    ChannelInboundEvent,
    ChannelProvider,
    ChannelStatus,
    InboundHandler,
)
from apollo.config import SlackChannelConfig
from apollo.text import split_message, to_slack_mrkdwn

logger = structlog.get_logger()

Say = Callable[..., Awaitable[Any]]

MENTION_TOKEN = re.compile(r"<@[A-Z0-9]+>")

ACK_MESSAGE = ":mag: Apollo is investigating..."
UNAVAILABLE_MESSAGE = "Apollo is running but Kibana is not configured. Use the Kibana UI."
GREETING = (
    ":wave: Hi! I'm Apollo, your AI SRE agent. Try asking me something like:\n"
    "• `@Apollo what's the error rate on checkout-api?`\n"
    "• `@Apollo run a full production scan`\n"
    "• `@Apollo search past incidents for payment timeouts`"
)


def strip_mentions(text: str) -> str:
    return MENTION_TOKEN.sub("", text or "").strip()


def is_ignored(event: dict[str, Any]) -> bool:
    """Bot-authored messages and subtypes (edits, joins, deletes) never reach the agent."""
    return bool(event.get("bot_id") or event.get("bot_profile") or event.get("subtype"))


class SlackChannelProvider(ChannelProvider):
    def __init__(
        self,
        *,
        config: SlackChannelConfig,
        inbound_handler: InboundHandler,
        agent_available: AvailabilityCheck | None = None,
    ) -> None:
        self.config = config
        self.inbound_handler = inbound_handler
        self.agent_available = agent_available or (lambda: True)

        self._app: AsyncApp | None = None
        self._handler: AsyncSocketModeHandler | None = None
        self._status = ChannelStatus(
            channel="slack",
            mode="socket",
            running=False,
            enabled=self.enabled,
        )

    @property
    def name(self) -> str:
        return "slack"

    @property
    def enabled(self) -> bool:
        return bool(self.config.enabled and self.config.bot_configured)

    async def start(self) -> None:
        if not self.enabled:
            return

        app = AsyncApp(token=self.config.bot_token.strip())

        async def on_app_mention(event: dict[str, Any], say: Say) -> None:
            await self.handle_mention(event, say)

        async def on_message(event: dict[str, Any], say: Say) -> None:
            await self.handle_direct_message(event, say)

        app.event("app_mention")(on_app_mention)
        app.event("message")(on_message)

        self._app = app
        self._handler = AsyncSocketModeHandler(app, self.config.app_token.strip())
        await self._handler.connect_async()
        self._status.running = True

    async def stop(self) -> None:
        if self._handler is not None:
            await self._handler.close_async()
            self._handler = None
        self._app = None
        self._status.running = False

    async def handle_mention(self, event: dict[str, Any], say: Say) -> None:
        """``@Apollo ...`` in a channel; replies go to the message's thread."""
        if is_ignored(event):
            return
        thread_ts = event.get("ts")
        text = strip_mentions(event.get("text") or "")
        if not text:
            await say(text=GREETING, thread_ts=thread_ts)
            return

        channel = str(event.get("channel") or "")
        logger.info("channels.slack.mention", channel=channel, length=len(text))
        await self._converse(
            ChannelInboundEvent(
                channel="slack",
                session_key=f"slack-{channel}",
                sender_id=str(event.get("user") or ""),
                peer_id=channel,
                text=text,
                message_id=thread_ts,
                thread_id=thread_ts,
            ),
            say,
            thread_ts=thread_ts,
        )

    async def handle_direct_message(self, event: dict[str, Any], say: Say) -> None:
        if is_ignored(event) or event.get("channel_type") != "im":
            return
        text = (event.get("text") or "").strip()
        if not text:
            return

        user = str(event.get("user") or "")
        logger.info("channels.slack.direct_message", user=user, length=len(text))
        await self._converse(
            ChannelInboundEvent(
                channel="slack",
                session_key=f"slack-dm-{user}",
                sender_id=user,
                peer_id=str(event.get("channel") or ""),
                text=text,
                message_id=event.get("ts"),
            ),
            say,
        )

    async def _converse(
        self,
        inbound: ChannelInboundEvent,
        say: Say,
        *,
        thread_ts: str | None = None,
    ) -> None:
        self._status.record_inbound()
        if not self.agent_available():
            await say(text=UNAVAILABLE_MESSAGE, thread_ts=thread_ts)
            return

        await say(text=ACK_MESSAGE, thread_ts=thread_ts)
        try:
            reply = await self.inbound_handler(inbound)
        except Exception as e:
            logger.warning("channels.slack.reply_failed", session_key=inbound.session_key, error=str(e))
            self._status.record_error(e)
            await say(text=f":x: Error: {e}", thread_ts=thread_ts)
            return

        for chunk in split_message(to_slack_mrkdwn(reply), self.config.max_message_chars):
            await say(text=chunk, thread_ts=thread_ts)
        self._status.record_outbound()
