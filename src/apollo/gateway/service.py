"""Single inbound path from chat channels to the reasoning engine."""

from __future__ import annotations

import time

import structlog

from apollo.agent.client import ReasoningClient, ReasoningError
from apollo.channels.base import ChannelInboundEvent
from apollo.channels.commands import expand_command, parse_command

logger = structlog.get_logger()


class ConversationGateway:
    """Expands shortcut commands and runs one reasoning turn per inbound message."""

    def __init__(self, *, reasoning: ReasoningClient) -> None:
        self.reasoning = reasoning

    @property
    def available(self) -> bool:
        return self.reasoning.configured

    async def handle_event(self, event: ChannelInboundEvent) -> str:
        """Handle one normalized chat message and return the raw markdown reply."""
        return await self.ask(event.text, event.session_key, source=event.channel)

    async def ask(self, text: str, session_key: str, *, source: str = "internal") -> str:
        if not self.available:
            raise ReasoningError("Apollo reasoning engine is not configured")

        command = parse_command(text)
        prompt = expand_command(text)
        start = time.monotonic()
        try:
            reply = await self.reasoning.converse(prompt, session_key)
        except ReasoningError as e:
            logger.warning(
                "gateway.turn_failed",
                source=source,
                session_key=session_key,
                command=command,
                error=str(e),
            )
            raise

        logger.info(
            "gateway.turn",
            source=source,
            session_key=session_key,
            command=command,
            reply_length=len(reply),
            duration=f"{time.monotonic() - start:.2f}s",
        )
        return reply

    async def reset(self, session_key: str) -> bool:
        """Forget the upstream conversation for ``session_key``."""
        removed = self.reasoning.reset(session_key)
        logger.info("gateway.session_reset", session_key=session_key, had_session=removed)
        return removed
