"""Best-effort notification fan-out with per-channel outcomes."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger()


@dataclass
class EffectOutcome:
    name: str
    attempted: bool
    delivered: bool
    error: str | None = None


class NotificationFanout:
    """Runs independent secondary effects after a tool's primary effect.

    A failed effect is logged and recorded; it never fails the invocation.
    """

    def __init__(self, tool: str) -> None:
        self.tool = tool
        self.outcomes: list[EffectOutcome] = []

    async def attempt(
        self,
        name: str,
        configured: bool,
        send: Callable[[], Awaitable[Any]],
    ) -> EffectOutcome:
        if not configured:
            outcome = EffectOutcome(name=name, attempted=False, delivered=False)
        else:
            try:
                await send()
                outcome = EffectOutcome(name=name, attempted=True, delivered=True)
            except Exception as e:
                logger.warning(
                    "tools.notification_failed",
                    tool=self.tool,
                    channel=name,
                    error=str(e),
                )
                outcome = EffectOutcome(name=name, attempted=True, delivered=False, error=str(e))
        self.outcomes.append(outcome)
        return outcome

    def summary(self) -> dict[str, bool]:
        return {o.name: o.delivered for o in self.outcomes}

    def errors(self) -> dict[str, str]:
        return {o.name: o.error for o in self.outcomes if o.error}

    def apply(self, result: dict[str, Any]) -> dict[str, Any]:
        """Attach ``notifications`` (and any errors) to a tool result."""
        result["notifications"] = self.summary()
        errors = self.errors()
        if errors:
            result["notification_errors"] = errors
        return result
