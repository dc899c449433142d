"""Apollo CLI: talk to a running action gateway."""

from __future__ import annotations

import itertools
import json
from typing import Any

import httpx
import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

app = typer.Typer(
    name="apollo",
    help="Apollo action gateway",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()

DEFAULT_URL = "http://localhost:3001"

_request_ids = itertools.count(1)


def _get_client(base_url: str, api_key: str | None) -> httpx.Client:
    headers = {}
    if api_key:
        headers["X-API-Key"] = api_key
    # ask_apollo can wait on the reasoning engine for minutes
    return httpx.Client(base_url=base_url, headers=headers, timeout=200.0)


def parse_arguments(pairs: list[str], raw_json: str = "") -> dict[str, Any]:
    """Build tool arguments from ``key=value`` pairs and/or a JSON object.

    Values that parse as JSON (numbers, booleans, lists) keep their type;
    anything else is a plain string.
    """
    arguments: dict[str, Any] = {}
    if raw_json:
        loaded = json.loads(raw_json)
        if not isinstance(loaded, dict):
            raise typer.BadParameter("--json must be a JSON object")
        arguments.update(loaded)

    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {pair!r}")
        try:
            arguments[key.strip()] = json.loads(value)
        except json.JSONDecodeError:
            arguments[key.strip()] = value
    return arguments


def _rpc(client: httpx.Client, base_url: str, method: str, params: dict | None = None) -> dict:
    payload: dict[str, Any] = {"jsonrpc": "2.0", "id": next(_request_ids), "method": method}
    if params is not None:
        payload["params"] = params
    try:
        resp = client.post("/mcp", json=payload)
        resp.raise_for_status()
    except httpx.ConnectError:
        console.print(f"[red]✗[/red] Apollo is not running at {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Error {e.response.status_code}:[/red] {e.response.text}")
        raise typer.Exit(1)

    data = resp.json()
    if "error" in data:
        error = data["error"]
        console.print(f"[red]RPC error {error.get('code')}:[/red] {error.get('message')}")
        raise typer.Exit(1)
    return data.get("result") or {}


def _tool_result(result: dict) -> dict:
    content = result.get("content") or []
    text = content[0].get("text", "{}") if content else "{}"
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return {"text": text}


@app.command()
def status(
    base_url: str = typer.Option(DEFAULT_URL, "--url", "-u", envvar="APOLLO_URL"),
    api_key: str = typer.Option("", "--api-key", "-k", envvar="APOLLO_API_KEY"),
) -> None:
    """Show gateway health and configured integrations."""
    client = _get_client(base_url, api_key or None)

    try:
        resp = client.get("/health")
        resp.raise_for_status()
    except httpx.ConnectError:
        console.print(f"[red]✗[/red] Apollo is not running at {base_url}")
        raise typer.Exit(1)

    data = resp.json()

    table = Table(title="\U0001F6E1 Apollo Status", show_header=False, border_style="blue")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Status", f"[green]{data['status']}[/green]")
    table.add_row("Version", data.get("version", "?"))
    table.add_row("Uptime", f"{data.get('uptime_seconds', 0)}s")
    table.add_row("Tools", str(data.get("tools", 0)))
    for key in ("telegram", "slack", "elasticsearch", "kibana", "github"):
        value = data.get(key, "?")
        color = "green" if value == "connected" else "dim"
        table.add_row(key.capitalize(), f"[{color}]{value}[/{color}]")
    table.add_row("Conversations", str(data.get("active_conversations", 0)))

    scan = data.get("scan") or {}
    if scan:
        hours = float(scan.get("interval_seconds", 0)) / 3600
        table.add_row("Scan", f"every {hours:g}h" if scan.get("enabled") else "disabled")

    for channel in data.get("channels", []):
        state = "[green]running[/green]" if channel.get("running") else "[dim]stopped[/dim]"
        if channel.get("last_error"):
            state += f" [red]({channel['last_error'][:60]})[/red]"
        table.add_row(f"Channel: {channel['channel']}", state)

    console.print()
    console.print(table)
    console.print()


@app.command()
def tools(
    base_url: str = typer.Option(DEFAULT_URL, "--url", "-u", envvar="APOLLO_URL"),
    api_key: str = typer.Option("", "--api-key", "-k", envvar="APOLLO_API_KEY"),
) -> None:
    """List the tools the gateway exposes over MCP."""
    client = _get_client(base_url, api_key or None)
    result = _rpc(client, base_url, "tools/list")

    table = Table(title="Tools", border_style="blue")
    table.add_column("Name", style="cyan")
    table.add_column("Required")
    table.add_column("Description", max_width=70)
    for tool in result.get("tools", []):
        required = ", ".join(tool.get("inputSchema", {}).get("required", []))
        table.add_row(tool["name"], required or "-", tool.get("description", ""))

    console.print()
    console.print(table)
    console.print()


@app.command()
def call(
    name: str = typer.Argument(..., help="Tool name"),
    args: list[str] = typer.Argument(None, help="Arguments as key=value"),
    raw_json: str = typer.Option("", "--json", "-j", help="Arguments as a JSON object"),
    base_url: str = typer.Option(DEFAULT_URL, "--url", "-u", envvar="APOLLO_URL"),
    api_key: str = typer.Option("", "--api-key", "-k", envvar="APOLLO_API_KEY"),
) -> None:
    """Invoke one tool and print its result."""
    arguments = parse_arguments(args or [], raw_json)
    client = _get_client(base_url, api_key or None)
    result = _rpc(client, base_url, "tools/call", {"name": name, "arguments": arguments})

    console.print_json(json.dumps(_tool_result(result), default=str))
    if result.get("isError"):
        raise typer.Exit(1)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question or instruction for Apollo"),
    base_url: str = typer.Option(DEFAULT_URL, "--url", "-u", envvar="APOLLO_URL"),
    api_key: str = typer.Option("", "--api-key", "-k", envvar="APOLLO_API_KEY"),
) -> None:
    """Ask the Apollo agent a question through the gateway."""
    client = _get_client(base_url, api_key or None)
    with console.status("Apollo is investigating..."):
        result = _rpc(
            client, base_url, "tools/call", {"name": "ask_apollo", "arguments": {"question": question}}
        )

    data = _tool_result(result)
    if result.get("isError"):
        console.print(f"[red]Error:[/red] {data.get('error', 'unknown error')}")
        raise typer.Exit(1)

    console.print()
    console.print(Markdown(str(data.get("response", ""))))
    console.print()


@app.command()
def serve(
    host: str = typer.Option("", "--host", help="Override APOLLO_HOST"),
    port: int = typer.Option(0, "--port", help="Override APOLLO_PORT"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Start the gateway server."""
    import uvicorn

    from apollo.config import get_config

    config = get_config()
    console.print(Panel("\U0001F6E1 Starting Apollo action gateway...", border_style="blue"))
    uvicorn.run(
        "apollo.main:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
    )


@app.command()
def version() -> None:
    """Show Apollo version."""
    from apollo import __version__

    console.print(f"\U0001F6E1 Apollo v{__version__}")
