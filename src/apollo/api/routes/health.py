"""Health check endpoint."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request

from apollo import __version__
from apollo.mcp.dispatcher import SERVER_NAME

router = APIRouter()

_start_time = time.time()


def _flag(configured: bool) -> str:
    return "connected" if configured else "not configured"


@router.get("/health")
async def health(request: Request) -> dict:
    """Liveness plus which integrations are configured."""
    state = request.app.state
    config = state.config
    channel_manager = getattr(state, "channel_manager", None)

    channels = [s.as_dict() for s in channel_manager.statuses()] if channel_manager else []

    return {
        "status": "ok",
        "server": SERVER_NAME,
        "version": __version__,
        "uptime_seconds": round(time.time() - _start_time, 1),
        "tools": len(state.registry),
        "telegram": _flag(config.telegram.bot_configured),
        "slack": _flag(bool(config.slack.webhook_url.strip() or config.slack.bot_configured)),
        "elasticsearch": _flag(config.elastic.store_configured),
        "kibana": _flag(config.elastic.kibana_configured),
        "github": _flag(config.github.configured),
        "active_conversations": len(state.conversations),
        "reasoning": state.reasoning.stats,
        "scan": {
            "enabled": config.scan.enabled,
            "interval_seconds": config.scan.interval_s,
        },
        "channels": channels,
    }
