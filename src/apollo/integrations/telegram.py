"""Telegram Bot API send helpers."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from apollo.config import TelegramChannelConfig
from apollo.integrations.errors import DeliveryError, NotConfiguredError
from apollo.text.formatting import strip_tags

logger = structlog.get_logger()

TELEGRAM_MAX_CHARS = 4096


def truncate_for_telegram(text: str) -> str:
    if len(text) > TELEGRAM_MAX_CHARS:
        return text[: TELEGRAM_MAX_CHARS - 6] + "\n..."
    return text


def bot_api_base(config: TelegramChannelConfig) -> str:
    return f"{config.api_base.rstrip('/')}/bot{config.bot_token.strip()}"


async def post_message(
    client: Any,
    api_base: str,
    chat_id: int | str,
    text: str,
    **extra: Any,
) -> Any:
    """POST sendMessage in HTML mode, retrying once as plain text.

    Telegram rejects the whole message when the HTML does not parse
    ("can't parse entities"); the retry drops the tags.
    """
    safe_text = truncate_for_telegram(text)
    payload: dict[str, Any] = {
        "chat_id": chat_id,
        "text": safe_text,
        "parse_mode": "HTML",
        "disable_web_page_preview": False,
        **extra,
    }
    resp = await client.post(f"{api_base}/sendMessage", json=payload)
    if resp.status_code >= 400 and "can't parse entities" in resp.text:
        logger.info("telegram.send.plain_fallback", chat_id=str(chat_id))
        plain = {k: v for k, v in payload.items() if k != "parse_mode"}
        plain["text"] = strip_tags(safe_text)
        resp = await client.post(f"{api_base}/sendMessage", json=plain)
    return resp


class TelegramNotifier:
    """Sends alerts to the configured team chat."""

    def __init__(
        self,
        config: TelegramChannelConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.config.bot_configured and self.config.chat_id.strip())

    async def send(self, text: str, *, chat_id: int | str | None = None) -> None:
        """Deliver ``text`` (Telegram HTML) or raise ``DeliveryError``."""
        target = chat_id if chat_id is not None else self.config.chat_id.strip()
        if not self.config.bot_configured or not target:
            raise NotConfiguredError("Telegram not configured")

        async with httpx.AsyncClient(timeout=httpx.Timeout(15.0), transport=self._transport) as client:
            resp = await post_message(client, bot_api_base(self.config), target, text)
        if resp.status_code >= 400:
            logger.warning("telegram.send_failed", status_code=resp.status_code, body=resp.text[:300])
            raise DeliveryError(
                f"Telegram: {resp.text[:300]}",
                status_code=resp.status_code,
                body=resp.text[:300],
            )
