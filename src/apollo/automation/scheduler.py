"""Recurring autonomous production scan."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from apollo.config import ScanConfig
from apollo.integrations.telegram import TelegramNotifier
from apollo.text import to_telegram_html

logger = structlog.get_logger()

SCAN_CHANNEL = "scheduled-scan"
ALERT_HEADER = "\U0001F6E1 <b>Apollo Scheduled Scan</b>\n\n"
ALERT_BODY_CHARS = 3800

# Loose on purpose to match how the agent phrases an all-clear. "UNHEALTHY"
# contains "healthy" and therefore reads as healthy.
HEALTHY_REPLY = re.compile(r"all.*normal|no.*anomal|healthy|no.*issue", re.IGNORECASE)

PromptRunner = Callable[[str, str], Awaitable[str]]


def is_healthy_reply(reply: str) -> bool:
    return HEALTHY_REPLY.search(reply or "") is not None


@dataclass
class ScanCycle:
    started_at: str
    prompt: str
    healthy: bool = False
    alerted: bool = False
    reply: str = ""
    error: str | None = None


class ScanScheduler:
    """Runs the scan prompt on an interval and alerts only on unhealthy replies."""

    def __init__(
        self,
        *,
        config: ScanConfig,
        runner: PromptRunner,
        notifier: TelegramNotifier,
        available: Callable[[], bool] | None = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.notifier = notifier
        self.available = available or (lambda: True)
        self.last_cycle: ScanCycle | None = None
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        if not self.config.enabled or not self.available():
            logger.info(
                "scan.disabled",
                enabled=self.config.enabled,
                reasoning_configured=self.available(),
            )
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="apollo-scan-scheduler")
        logger.info(
            "scan.scheduled",
            interval_s=self.config.interval_s,
            initial_delay_s=self.config.initial_delay_s,
        )

    async def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _loop(self) -> None:
        await asyncio.sleep(self.config.initial_delay_s)
        loop = asyncio.get_running_loop()
        while self._running:
            started = loop.time()
            try:
                await self.run_once()
            except Exception as e:
                logger.error("scan.loop_error", error=str(e), error_type=type(e).__name__)
            # Fixed cadence measured from cycle start.
            await asyncio.sleep(max(0.0, self.config.interval_s - (loop.time() - started)))

    async def run_once(self) -> ScanCycle:
        """One scan: ask, classify, alert when unhealthy. Never raises."""
        cycle = ScanCycle(started_at=datetime.now(UTC).isoformat(), prompt=self.config.prompt)
        self.last_cycle = cycle
        logger.info("scan.started", started_at=cycle.started_at)

        try:
            cycle.reply = await self.runner(self.config.prompt, SCAN_CHANNEL)
            cycle.healthy = is_healthy_reply(cycle.reply)
            body = "" if cycle.healthy else to_telegram_html(cycle.reply)[:ALERT_BODY_CHARS]
        except Exception as e:
            cycle.error = str(e)
            logger.error("scan.failed", error=str(e))
            return cycle

        if not cycle.healthy and self.notifier.configured:
            try:
                await self.notifier.send(ALERT_HEADER + body)
                cycle.alerted = True
            except Exception as e:
                cycle.error = str(e)
                logger.warning("scan.alert_failed", error=str(e))

        logger.info("scan.completed", issues_found=not cycle.healthy, alerted=cycle.alerted)
        return cycle
