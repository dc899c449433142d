from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from apollo.agent import ConversationStore, ReasoningClient
from apollo.config import ApolloConfig
from apollo.main import create_app
from apollo.mcp import McpDispatcher
from apollo.tools import build_registry


@pytest.fixture
def make_client(make_context):
    def factory(api_key: str = "") -> TestClient:
        app = create_app()
        ctx = make_context()
        registry = build_registry(ctx)
        conversations = ConversationStore()
        conversations.set("telegram:1", "conv-1")
        app.state.config = ApolloConfig(api_key=api_key)
        app.state.conversations = conversations
        app.state.reasoning = ReasoningClient(app.state.config.elastic, conversations)
        app.state.registry = registry
        app.state.dispatcher = McpDispatcher(registry, "test")
        # No context manager: the lifespan (channels, scheduler) stays off.
        return TestClient(app)

    return factory


def test_health(make_client) -> None:
    resp = make_client().get("/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["server"] == "apollo-actions"
    assert data["tools"] == 16
    assert data["active_conversations"] == 1
    assert data["channels"] == []
    assert set(data) >= {"telegram", "slack", "elasticsearch", "kibana", "github", "scan"}


def test_mcp_round_trip(make_client) -> None:
    resp = make_client().post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"})

    assert resp.status_code == 200
    assert len(resp.json()["result"]["tools"]) == 16


def test_mcp_parse_error(make_client) -> None:
    resp = make_client().post(
        "/mcp",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json() == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}


def test_mcp_notification_is_accepted_without_body(make_client) -> None:
    resp = make_client().post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})

    assert resp.status_code == 202
    assert resp.content == b""


def test_mcp_api_key(make_client) -> None:
    client = make_client(api_key="s3cret")
    body = {"jsonrpc": "2.0", "id": 1, "method": "ping"}

    assert client.post("/mcp", json=body).status_code == 401
    assert client.post("/mcp", json=body, headers={"X-API-Key": "nope"}).status_code == 403
    ok = client.post("/mcp", json=body, headers={"X-API-Key": "s3cret"})
    assert ok.status_code == 200
    assert ok.json()["result"] == {}
    # Health stays public.
    assert client.get("/health").status_code == 200
