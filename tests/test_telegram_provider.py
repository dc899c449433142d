from __future__ import annotations

from typing import Any

import pytest

from apollo.channels.base import ChannelInboundEvent
from apollo.channels.commands import NEW_THREAD_MESSAGE, START_MESSAGE
from apollo.channels.telegram.provider import (
    ACK_MESSAGE,
    UNAVAILABLE_MESSAGE,
    TelegramChannelProvider,
)
from apollo.config import TelegramChannelConfig

API_BASE = "https://api.telegram.org/botTOKEN"


class _FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "ok", payload: Any = None) -> None:
        self.status_code = status_code
        self.text = text
        self._payload = payload

    def json(self) -> Any:
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")


class _FakeClient:
    def __init__(self, updates: list[dict[str, Any]] | None = None) -> None:
        self.updates = updates or []
        self.messages: list[str] = []
        self.offsets: list[int] = []

    async def get(self, _url: str, params: dict[str, Any]) -> _FakeResponse:
        self.offsets.append(params["offset"])
        return _FakeResponse(payload={"ok": True, "result": self.updates})

    async def post(self, _url: str, json: dict[str, Any]) -> _FakeResponse:
        text = json.get("text")
        if isinstance(text, str):
            self.messages.append(text)
        return _FakeResponse()


def _update(update_id: int, text: str, chat_id: int = 123) -> dict[str, Any]:
    return {
        "update_id": update_id,
        "message": {
            "message_id": update_id,
            "chat": {"id": chat_id, "type": "private"},
            "from": {"id": 7, "first_name": "Ada"},
            "text": text,
        },
    }


def _provider(inbound_handler=None, **kwargs: Any) -> TelegramChannelProvider:
    async def default_handler(_event: ChannelInboundEvent) -> str:
        return "ok"

    return TelegramChannelProvider(
        config=TelegramChannelConfig(enabled=True, bot_token="TOKEN", chat_id="123"),
        inbound_handler=inbound_handler or default_handler,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_start_command_sends_help_without_reasoning() -> None:
    events: list[ChannelInboundEvent] = []

    async def handler(event: ChannelInboundEvent) -> str:
        events.append(event)
        return "unused"

    client = _FakeClient()
    await _provider(handler)._process_update(client, API_BASE, _update(1, "/start"))

    assert client.messages == [START_MESSAGE]
    assert events == []


@pytest.mark.asyncio
async def test_newthread_clears_the_chat_session() -> None:
    cleared: list[str] = []

    async def clear(session_key: str) -> bool:
        cleared.append(session_key)
        return True

    client = _FakeClient()
    provider = _provider(clear_conversation_handler=clear)
    await provider._process_update(client, API_BASE, _update(2, "/newthread@apollo_bot", chat_id=-99))

    assert cleared == ["telegram:-99"]
    assert client.messages == [NEW_THREAD_MESSAGE]


@pytest.mark.asyncio
async def test_message_acknowledged_then_answered_in_html() -> None:
    events: list[ChannelInboundEvent] = []

    async def handler(event: ChannelInboundEvent) -> str:
        events.append(event)
        return "checkout-api is **degraded**"

    client = _FakeClient()
    await _provider(handler)._process_update(client, API_BASE, _update(3, "/status"))

    assert client.messages[0] == ACK_MESSAGE
    assert client.messages[1] == "checkout-api is <b>degraded</b>"
    [event] = events
    assert event.channel == "telegram"
    assert event.session_key == "telegram:123"
    assert event.text == "/status"
    assert event.sender_id == "7"


@pytest.mark.asyncio
async def test_long_reply_is_split() -> None:
    async def handler(_event: ChannelInboundEvent) -> str:
        return "\n\n".join(f"paragraph {i} " + "x" * 900 for i in range(10))

    client = _FakeClient()
    await _provider(handler)._process_update(client, API_BASE, _update(4, "scan"))

    chunks = client.messages[1:]
    assert len(chunks) > 1
    assert all(len(chunk) <= 4000 for chunk in chunks)


@pytest.mark.asyncio
async def test_handler_error_is_reported_to_chat() -> None:
    async def handler(_event: ChannelInboundEvent) -> str:
        raise RuntimeError("Apollo API (500): <oops>")

    client = _FakeClient()
    provider = _provider(handler)
    await provider._process_update(client, API_BASE, _update(5, "hello"))

    assert client.messages[-1] == (
        "❌ <b>Error:</b> Apollo API (500): &lt;oops&gt;\n\nTry /newthread to start fresh."
    )
    assert provider.status().last_error == "Apollo API (500): <oops>"


@pytest.mark.asyncio
async def test_unavailable_reasoning_skips_ack() -> None:
    client = _FakeClient()
    provider = _provider(agent_available=lambda: False)
    await provider._process_update(client, API_BASE, _update(6, "hello"))

    assert client.messages == [UNAVAILABLE_MESSAGE]


@pytest.mark.asyncio
async def test_cursor_advances_past_failing_updates() -> None:
    seen: list[str] = []

    async def handler(event: ChannelInboundEvent) -> str:
        seen.append(event.text)
        return "done"

    class _ExplodingClient(_FakeClient):
        failures = 1

        async def post(self, url: str, json: dict[str, Any]) -> _FakeResponse:
            if self.failures:
                self.failures -= 1
                raise ConnectionError("network down")
            return await super().post(url, json)

    client = _ExplodingClient([_update(10, "first"), _update(11, "second")])
    provider = _provider(handler)

    handled = await provider.poll_once(client, API_BASE)

    assert handled == 2
    assert provider.last_update_id == 11
    assert seen == ["second"]
    assert provider.status().last_error == "network down"

    client.updates = []
    await provider.poll_once(client, API_BASE)
    assert client.offsets == [1, 12]


@pytest.mark.asyncio
async def test_non_text_updates_are_ignored() -> None:
    client = _FakeClient()
    provider = _provider()
    await provider._process_update(client, API_BASE, {"update_id": 8, "edited_message": {}})
    await provider._process_update(
        client,
        API_BASE,
        {"update_id": 9, "message": {"chat": {"id": 1}, "sticker": {"file_id": "x"}}},
    )

    assert client.messages == []


def test_disabled_without_token() -> None:
    async def handler(_event: ChannelInboundEvent) -> str:
        return ""

    provider = TelegramChannelProvider(
        config=TelegramChannelConfig(enabled=True, bot_token=""),
        inbound_handler=handler,
    )

    assert provider.enabled is False
    assert provider.status().enabled is False
