from __future__ import annotations

from typing import Any

import pytest

from apollo.channels.base import ChannelInboundEvent
from apollo.channels.slack.provider import (
    ACK_MESSAGE,
    GREETING,
    SlackChannelProvider,
    is_ignored,
    strip_mentions,
)
from apollo.config import SlackChannelConfig


class _Say:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, **kwargs: Any) -> None:
        self.calls.append(kwargs)

    @property
    def texts(self) -> list[str]:
        return [call["text"] for call in self.calls]


def _provider(reply: str | Exception = "ok") -> tuple[SlackChannelProvider, list[ChannelInboundEvent]]:
    events: list[ChannelInboundEvent] = []

    async def handler(event: ChannelInboundEvent) -> str:
        events.append(event)
        if isinstance(reply, Exception):
            raise reply
        return reply

    provider = SlackChannelProvider(
        config=SlackChannelConfig(enabled=True, bot_token="xoxb-1", app_token="xapp-1"),
        inbound_handler=handler,
    )
    return provider, events


def test_mention_tokens_are_stripped() -> None:
    assert strip_mentions("<@U123ABC> what's up <@U999>?") == "what's up ?"
    assert strip_mentions("<@U123ABC>") == ""


def test_bot_and_subtype_events_are_ignored() -> None:
    assert is_ignored({"bot_id": "B1", "text": "hi"})
    assert is_ignored({"subtype": "message_changed"})
    assert not is_ignored({"user": "U1", "text": "hi"})


@pytest.mark.asyncio
async def test_mention_replies_in_thread_with_mrkdwn() -> None:
    provider, events = _provider("checkout-api is **degraded**")
    say = _Say()

    await provider.handle_mention(
        {"text": "<@UAPOLLO> status of checkout?", "channel": "C42", "user": "U7", "ts": "171.5"},
        say,
    )

    assert say.texts == [ACK_MESSAGE, "checkout-api is *degraded*"]
    assert all(call["thread_ts"] == "171.5" for call in say.calls)
    [event] = events
    assert event.session_key == "slack-C42"
    assert event.text == "status of checkout?"


@pytest.mark.asyncio
async def test_empty_mention_gets_greeting() -> None:
    provider, events = _provider()
    say = _Say()

    await provider.handle_mention({"text": "<@UAPOLLO>", "channel": "C42", "ts": "1.0"}, say)

    assert say.texts == [GREETING]
    assert events == []


@pytest.mark.asyncio
async def test_direct_messages_only_from_im_channels() -> None:
    provider, events = _provider("hello back")
    say = _Say()

    await provider.handle_direct_message({"channel_type": "channel", "text": "hi", "user": "U1"}, say)
    await provider.handle_direct_message(
        {"channel_type": "im", "text": "hi", "user": "U1", "bot_id": "B1"}, say
    )
    assert say.calls == []

    await provider.handle_direct_message(
        {"channel_type": "im", "text": "hi", "user": "U1", "channel": "D1"}, say
    )
    assert say.texts == [ACK_MESSAGE, "hello back"]
    assert say.calls[0]["thread_ts"] is None
    assert events[0].session_key == "slack-dm-U1"


@pytest.mark.asyncio
async def test_handler_error_is_reported_in_thread() -> None:
    provider, _events = _provider(RuntimeError("Apollo API (502): bad gateway"))
    say = _Say()

    await provider.handle_mention({"text": "<@UAPOLLO> scan", "channel": "C1", "ts": "9.9"}, say)

    assert say.texts[-1] == ":x: Error: Apollo API (502): bad gateway"
    assert provider.status().last_error == "Apollo API (502): bad gateway"


def test_disabled_without_app_token() -> None:
    async def handler(_event: ChannelInboundEvent) -> str:
        return ""

    provider = SlackChannelProvider(
        config=SlackChannelConfig(enabled=True, bot_token="xoxb-1", app_token=""),
        inbound_handler=handler,
    )

    assert provider.enabled is False
