"""Chat channel contracts shared by the Telegram and Slack adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class ChannelInboundEvent:
    """One chat message, normalized before it reaches the gateway.

    ``session_key`` is the channel identity the reasoning engine's
    conversation is kept under (``telegram:<chat>``, ``slack-<channel>``,
    ``slack-dm-<user>``).
    """

    channel: str
    session_key: str
    sender_id: str
    peer_id: str
    text: str
    message_id: str | None = None
    thread_id: str | None = None
    received_at: str = field(default_factory=now_iso)


@dataclass
class ChannelStatus:
    """Live view of an adapter, reported on ``/health``."""

    channel: str
    mode: str
    running: bool = False
    enabled: bool = False
    last_error: str | None = None
    last_inbound_at: str | None = None
    last_outbound_at: str | None = None

    def record_inbound(self) -> None:
        self.last_inbound_at = now_iso()

    def record_outbound(self) -> None:
        self.last_outbound_at = now_iso()

    def record_error(self, error: BaseException | str) -> None:
        self.last_error = str(error) or type(error).__name__

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


InboundHandler = Callable[[ChannelInboundEvent], Awaitable[str]]
ClearConversationHandler = Callable[[str], Awaitable[bool]]
AvailabilityCheck = Callable[[], bool]


class ChannelProvider(ABC):
    """A chat platform adapter owned by ``ChannelRuntimeManager``."""

    _status: ChannelStatus

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether credentials are present and the channel is switched on."""
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    def status(self) -> ChannelStatus:
        return self._status
