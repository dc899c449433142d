from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from apollo.agent import ConversationStore, ReasoningClient
from apollo.config import ElasticConfig, GitHubConfig, TelegramChannelConfig
from apollo.integrations import ElasticClient, GitHubClient, SlackWebhookNotifier, TelegramNotifier
from apollo.tools import ToolContext

ES_URL = "https://es.example"
KIBANA_URL = "https://kb.example"
SLACK_WEBHOOK = "https://hooks.slack.example/services/T/B/X"


class FakeHttp:
    """Records outbound requests and answers from a table of URL fragments."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: list[tuple[str, Callable[[httpx.Request], httpx.Response]]] = []

    def route(self, fragment: str, response: httpx.Response | Callable[[httpx.Request], httpx.Response]) -> None:
        handler = response if callable(response) else (lambda _request, r=response: r)
        self.routes.insert(0, (fragment, handler))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        for fragment, handler in self.routes:
            if fragment in url:
                return handler(request)
        return httpx.Response(200, json={})

    def sent_to(self, fragment: str) -> list[dict]:
        return [
            json.loads(req.content) if req.content else {}
            for req in self.requests
            if fragment in str(req.url)
        ]


@pytest.fixture
def http() -> FakeHttp:
    fake = FakeHttp()
    fake.route(f"{ES_URL}/", httpx.Response(201, json={"_id": "doc-1", "result": "created"}))
    fake.route("/_query", httpx.Response(200, json={"columns": [], "values": []}))
    fake.route("api.telegram.org", httpx.Response(200, json={"ok": True, "result": {}}))
    fake.route("hooks.slack.example", httpx.Response(200, text="ok"))
    return fake


@pytest.fixture
def make_context(http: FakeHttp) -> Callable[..., ToolContext]:
    def factory(
        *,
        elastic: bool = True,
        kibana: bool = True,
        telegram: bool = True,
        slack: bool = True,
        github: bool = True,
    ) -> ToolContext:
        transport = httpx.MockTransport(http)
        elastic_config = ElasticConfig(
            url=ES_URL if elastic else "",
            api_key="es-key" if elastic or kibana else "",
            kibana_url=KIBANA_URL if kibana else "",
        )
        return ToolContext(
            elastic=ElasticClient(elastic_config, transport=transport),
            telegram=TelegramNotifier(
                TelegramChannelConfig(bot_token="TOKEN" if telegram else "", chat_id="42"),
                transport=transport,
            ),
            slack=SlackWebhookNotifier(SLACK_WEBHOOK if slack else "", transport=transport),
            github=GitHubClient(
                GitHubConfig(token="gh-token", repo="acme/shop") if github else GitHubConfig(token="", repo=""),
                transport=transport,
            ),
            reasoning=ReasoningClient(elastic_config, ConversationStore(), transport=transport),
        )

    return factory
