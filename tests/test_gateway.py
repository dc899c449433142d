from __future__ import annotations

import json

import httpx
import pytest

from apollo.agent import ConversationStore, ReasoningClient, ReasoningError
from apollo.channels.base import ChannelInboundEvent
from apollo.channels.commands import COMMAND_PROMPTS, expand_command, parse_command
from apollo.config import ElasticConfig
from apollo.gateway import ConversationGateway


def test_parse_command() -> None:
    assert parse_command("/status") == "/status"
    assert parse_command("  /Status@apollo_bot ") == "/status"
    assert parse_command("/status now") is None
    assert parse_command("status") is None


def test_expand_command() -> None:
    assert expand_command("/investigate") == COMMAND_PROMPTS["/investigate"]
    assert expand_command("/unknown") == "/unknown"
    assert expand_command("what broke?") == "what broke?"


def _gateway(prompts: list[str], *, kibana_url: str = "https://kb.example") -> tuple[ConversationGateway, ConversationStore]:
    def upstream(request: httpx.Request) -> httpx.Response:
        prompts.append(json.loads(request.content)["input"])
        return httpx.Response(
            200,
            json={"conversation_id": "conv-9", "response": {"message": "done"}},
        )

    store = ConversationStore()
    reasoning = ReasoningClient(
        ElasticConfig(kibana_url=kibana_url, api_key="key"),
        store,
        transport=httpx.MockTransport(upstream),
    )
    return ConversationGateway(reasoning=reasoning), store


@pytest.mark.asyncio
async def test_inbound_event_expands_shortcuts_per_session() -> None:
    prompts: list[str] = []
    gateway, store = _gateway(prompts)

    reply = await gateway.handle_event(
        ChannelInboundEvent(
            channel="slack",
            session_key="slack-C1",
            sender_id="U1",
            peer_id="C1",
            text="/escalate",
        )
    )

    assert reply == "done"
    assert prompts == [COMMAND_PROMPTS["/escalate"]]
    assert store.get("slack-C1") == "conv-9"

    assert await gateway.reset("slack-C1") is True
    assert await gateway.reset("slack-C1") is False


@pytest.mark.asyncio
async def test_unconfigured_reasoning_raises() -> None:
    gateway, _store = _gateway([], kibana_url="")

    assert gateway.available is False
    with pytest.raises(ReasoningError):
        await gateway.ask("hello", "telegram:1")
