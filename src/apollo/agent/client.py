"""Kibana Agent Builder client with per-channel conversation continuity."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Literal

import httpx
import structlog

from apollo.agent.sessions import ConversationStore
from apollo.config import ElasticConfig

logger = structlog.get_logger()

INTRO_REPLY = (
    "Hi! I'm Apollo, your AI SRE agent. Ask me anything about your production services, "
    "for example:\n"
    "• \"What's the error rate on checkout-api?\"\n"
    "• \"Run a full production scan\"\n"
    "• \"Search past incidents for payment timeouts\""
)

DEFAULT_REPLY = "Investigation complete."

OutcomeKind = Literal["ok", "stale_session", "error"]


class ReasoningError(Exception):
    """The reasoning engine could not produce a reply."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class ConverseOutcome:
    """Result of one converse attempt."""

    kind: OutcomeKind
    reply: str = ""
    conversation_id: str | None = None
    tool_calls: int = 0
    elapsed_ms: float | None = None
    status_code: int | None = None
    detail: str = ""

    def render(self) -> str:
        """Reply text with the tool/timing summary line when available."""
        if self.elapsed_ms is None:
            return self.reply
        return f"{self.reply}\n\n{self.tool_calls} tools | {self.elapsed_ms / 1000:.0f}s"


class ReasoningClient:
    """Sends prompts to the hosted agent, reusing one conversation per channel."""

    def __init__(
        self,
        config: ElasticConfig,
        store: ConversationStore,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self._transport = transport
        self.request_count = 0
        self.retry_count = 0

    @property
    def configured(self) -> bool:
        return self.config.kibana_configured

    async def converse(self, prompt: str, channel: str) -> str:
        """Send ``prompt`` within ``channel``'s conversation and return the reply."""
        text = (prompt or "").strip()
        if not text:
            return INTRO_REPLY

        session_id = self.store.get(channel)
        outcome = await self._attempt(text, session_id)

        if outcome.kind == "stale_session":
            logger.info("agent.session.stale", channel=channel, conversation_id=session_id)
            self.store.delete(channel)
            self.retry_count += 1
            outcome = await self._attempt(text, None)

        if outcome.kind != "ok":
            raise ReasoningError(
                f"Apollo API ({outcome.status_code}): {outcome.detail[:200]}"
                if outcome.status_code is not None
                else f"Apollo API: {outcome.detail[:200]}",
                status_code=outcome.status_code,
                body=outcome.detail[:200],
            )

        if outcome.conversation_id:
            self.store.set(channel, outcome.conversation_id)
        return outcome.render()

    def reset(self, channel: str) -> bool:
        """Start a fresh conversation for ``channel`` on its next turn."""
        return self.store.delete(channel)

    async def _attempt(self, text: str, session_id: str | None) -> ConverseOutcome:
        body: dict[str, Any] = {"agent_id": self.config.agent_id, "input": text}
        if session_id:
            body["conversation_id"] = session_id

        headers = {
            "Authorization": f"ApiKey {self.config.api_key}",
            "kbn-xsrf": "true",
            "Content-Type": "application/json",
        }

        self.request_count += 1
        request_id = self.request_count
        start = time.monotonic()
        logger.info(
            "agent.request",
            request_id=request_id,
            resumed=bool(session_id),
            input_length=len(text),
        )

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.converse_timeout_s, connect=10.0),
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    f"{self.config.kibana_url}/api/agent_builder/converse",
                    json=body,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error("agent.transport_error", request_id=request_id, error=str(e))
            return ConverseOutcome(kind="error", detail=f"{type(e).__name__}: {e}")

        if resp.status_code >= 400:
            detail = resp.text
            stale = bool(session_id) and "not found" in detail.lower()
            logger.warning(
                "agent.error",
                request_id=request_id,
                status_code=resp.status_code,
                stale_session=stale,
                body=detail[:300],
            )
            return ConverseOutcome(
                kind="stale_session" if stale else "error",
                status_code=resp.status_code,
                detail=detail,
            )

        try:
            data = resp.json()
        except ValueError:
            return ConverseOutcome(
                kind="error",
                status_code=resp.status_code,
                detail=f"invalid JSON response: {resp.text[:200]}",
            )
        if not isinstance(data, dict):
            return ConverseOutcome(
                kind="error",
                status_code=resp.status_code,
                detail=f"unexpected response body: {resp.text[:200]}",
            )

        steps = data.get("steps")
        if not isinstance(steps, list):
            steps = []
        tool_calls = sum(1 for step in steps if isinstance(step, dict) and step.get("type") == "tool_call")
        elapsed = data.get("time_to_last_token")
        response = data.get("response")
        message = response.get("message") if isinstance(response, dict) else response
        reply = message if isinstance(message, str) and message else DEFAULT_REPLY
        conversation_id = data.get("conversation_id")

        logger.info(
            "agent.response",
            request_id=request_id,
            tool_calls=tool_calls,
            duration=f"{time.monotonic() - start:.2f}s",
        )
        return ConverseOutcome(
            kind="ok",
            reply=reply,
            conversation_id=str(conversation_id) if conversation_id else None,
            tool_calls=tool_calls,
            elapsed_ms=float(elapsed) if isinstance(elapsed, (int, float)) and elapsed else None,
            status_code=resp.status_code,
        )

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "request_count": self.request_count,
            "stale_session_retries": self.retry_count,
            "active_conversations": len(self.store),
        }
