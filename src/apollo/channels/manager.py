"""Channel runtime manager."""

from __future__ import annotations

import structlog

from apollo.channels.base import (
    AvailabilityCheck,
    ChannelProvider,
    ChannelStatus,
    ClearConversationHandler,
    InboundHandler,
)
from apollo.channels.slack.provider import SlackChannelProvider
from apollo.channels.telegram.provider import TelegramChannelProvider
from apollo.config import ApolloConfig

logger = structlog.get_logger()


class ChannelRuntimeManager:
    """Owns lifecycle and status of all chat channel providers."""

    def __init__(
        self,
        config: ApolloConfig,
        inbound_handler: InboundHandler,
        clear_conversation_handler: ClearConversationHandler | None = None,
        agent_available: AvailabilityCheck | None = None,
    ) -> None:
        self.config = config
        self.providers: list[ChannelProvider] = [
            TelegramChannelProvider(
                config=config.telegram,
                inbound_handler=inbound_handler,
                clear_conversation_handler=clear_conversation_handler,
                agent_available=agent_available,
            ),
            SlackChannelProvider(
                config=config.slack,
                inbound_handler=inbound_handler,
                agent_available=agent_available,
            ),
        ]

    async def start(self) -> None:
        """Start all configured providers; one failing provider does not stop the others."""
        for provider in self.providers:
            if not provider.enabled:
                logger.info("channels.provider.disabled", provider=provider.name)
                continue
            try:
                await provider.start()
                logger.info("channels.provider.started", provider=provider.name)
            except Exception as e:
                provider.status().record_error(e)
                logger.error("channels.provider.start_failed", provider=provider.name, error=str(e))

    async def stop(self) -> None:
        for provider in self.providers:
            try:
                await provider.stop()
                logger.info("channels.provider.stopped", provider=provider.name)
            except Exception as e:
                logger.warning(
                    "channels.provider.stop_failed",
                    provider=provider.name,
                    error=str(e),
                )

    def statuses(self) -> list[ChannelStatus]:
        return [provider.status() for provider in self.providers]

    def get(self, name: str) -> ChannelProvider | None:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None
