"""Apollo action gateway: FastAPI application entrypoint."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from apollo import __version__
from apollo.agent import ConversationStore, ReasoningClient
from apollo.automation import ScanScheduler
from apollo.channels import ChannelRuntimeManager
from apollo.config import get_config
from apollo.gateway import ConversationGateway
from apollo.integrations import ElasticClient, GitHubClient, SlackWebhookNotifier, TelegramNotifier
from apollo.logging import setup_logging
from apollo.mcp import SERVER_NAME, McpDispatcher
from apollo.tools import ToolContext, build_registry

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown lifecycle."""
    config = get_config()
    setup_logging(level=config.log_level, fmt=config.log_format, service=SERVER_NAME, version=__version__)

    logger.info("apollo.starting", version=__version__, port=config.port)

    conversations = ConversationStore()
    reasoning = ReasoningClient(config.elastic, conversations)
    telegram = TelegramNotifier(config.telegram)

    registry = build_registry(
        ToolContext(
            elastic=ElasticClient(config.elastic),
            telegram=telegram,
            slack=SlackWebhookNotifier(config.slack.webhook_url),
            github=GitHubClient(config.github),
            reasoning=reasoning,
            ticketing=config.ticketing,
        )
    )
    dispatcher = McpDispatcher(registry, __version__)

    gateway = ConversationGateway(reasoning=reasoning)
    channel_manager = ChannelRuntimeManager(
        config=config,
        inbound_handler=gateway.handle_event,
        clear_conversation_handler=gateway.reset,
        agent_available=lambda: gateway.available,
    )
    await channel_manager.start()

    async def run_scan_prompt(prompt: str, session_key: str) -> str:
        return await gateway.ask(prompt, session_key, source="scan")

    scheduler = ScanScheduler(
        config=config.scan,
        runner=run_scan_prompt,
        notifier=telegram,
        available=lambda: gateway.available,
    )
    await scheduler.start()

    app.state.config = config
    app.state.conversations = conversations
    app.state.reasoning = reasoning
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    app.state.gateway = gateway
    app.state.channel_manager = channel_manager
    app.state.scheduler = scheduler

    logger.info(
        "apollo.ready",
        tools=len(registry),
        telegram=config.telegram.bot_configured,
        slack_bot=config.slack.bot_configured,
        slack_webhook=bool(config.slack.webhook_url),
        elasticsearch=config.elastic.store_configured,
        kibana=config.elastic.kibana_configured,
        github=config.github.configured,
        scan=scheduler.running,
    )

    yield

    logger.info("apollo.shutting_down")
    await scheduler.stop()
    await channel_manager.stop()
    logger.info("apollo.stopped")


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title="Apollo Action Gateway",
        version=__version__,
        description="MCP tool server and chat bridge for the Apollo SRE agent.",
        lifespan=lifespan,
    )

    from apollo.api.routes.health import router as health_router
    from apollo.api.routes.mcp import router as mcp_router

    app.include_router(health_router, tags=["health"])
    app.include_router(mcp_router, tags=["mcp"])

    return app


app = create_app()


def main() -> None:
    """Run the server directly."""
    config = get_config()
    setup_logging(level=config.log_level, fmt=config.log_format)
    uvicorn.run(
        "apollo.main:app",
        host=config.host,
        port=config.port,
        log_level="warning",
    )


if __name__ == "__main__":
    main()
