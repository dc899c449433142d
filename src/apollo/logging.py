"""structlog setup shared by the server, channel tasks and the CLI."""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers that log every request/frame at INFO.
NOISY_LOGGERS = (
    "uvicorn.access",
    "httpcore",
    "httpx",
    "slack_bolt",
    "slack_sdk",
    "aiohttp.access",
)


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(level: str = "INFO", fmt: str = "json", **context: str) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Keyword ``context`` (e.g. ``version="1.0.0"``) is bound to every event
    emitted afterwards, including events from background tasks.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(fmt),
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.contextvars.clear_contextvars()
    if context:
        structlog.contextvars.bind_contextvars(**context)
