from __future__ import annotations

import json

import httpx
import pytest
import typer
from typer.testing import CliRunner

from apollo import __version__
from apollo.cli import main as cli

runner = CliRunner()


def test_parse_arguments_keeps_json_types() -> None:
    arguments = cli.parse_arguments(
        ["service=checkout-api", "limit=5", "is_customer_facing=true", "labels=[\"a\",\"b\"]"],
        raw_json='{"severity": "P1", "limit": 1}',
    )

    assert arguments == {
        "severity": "P1",
        "service": "checkout-api",
        "limit": 5,
        "is_customer_facing": True,
        "labels": ["a", "b"],
    }


def test_parse_arguments_rejects_bad_pairs() -> None:
    with pytest.raises(typer.BadParameter):
        cli.parse_arguments(["no-equals-sign"])
    with pytest.raises(typer.BadParameter):
        cli.parse_arguments([], raw_json="[1, 2]")


def test_version() -> None:
    result = runner.invoke(cli.app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_call_prints_tool_result(monkeypatch) -> None:
    sent: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        text = json.dumps({"success": False, "error": "Unknown tool: nope"})
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "result": {"content": [{"type": "text", "text": text}], "isError": True},
            },
        )

    monkeypatch.setattr(
        cli,
        "_get_client",
        lambda base_url, api_key: httpx.Client(
            base_url=base_url, transport=httpx.MockTransport(handler)
        ),
    )

    result = runner.invoke(cli.app, ["call", "nope", "service=cart"])

    assert result.exit_code == 1
    assert "Unknown tool: nope" in result.output
    assert sent[0]["method"] == "tools/call"
    assert sent[0]["params"] == {"name": "nope", "arguments": {"service": "cart"}}
