"""Channel identity → upstream conversation id mapping."""

from __future__ import annotations

import threading


class ConversationStore:
    """Process-scoped map from channel identity to the engine's conversation id.

    Owned by the gateway and injected wherever turns are taken. Each channel's
    turns run serially, so the lock only guards the dict itself.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, channel: str) -> str | None:
        with self._lock:
            return self._sessions.get(channel)

    def set(self, channel: str, conversation_id: str) -> None:
        with self._lock:
            self._sessions[channel] = conversation_id

    def delete(self, channel: str) -> bool:
        """Forget the session for ``channel``; returns whether one existed."""
        with self._lock:
            return self._sessions.pop(channel, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def channels(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, channel: object) -> bool:
        with self._lock:
            return channel in self._sessions
