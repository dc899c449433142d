"""Telegram channel provider (long-poll)."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from apollo.channels.base import (
    AvailabilityCheck,
    ChannelInboundEvent,
    ChannelProvider,
    ChannelStatus,
    ClearConversationHandler,
    InboundHandler,
)
from apollo.channels.commands import NEW_THREAD_MESSAGE, START_MESSAGE, parse_command
from apollo.config import TelegramChannelConfig
from apollo.integrations.telegram import bot_api_base, post_message
from apollo.text import escape_html, split_message, to_telegram_html

logger = structlog.get_logger()

ACK_MESSAGE = "\U0001F50D <i>Working on it...</i>"
UNAVAILABLE_MESSAGE = "Apollo is running but Kibana is not configured. Use the Kibana UI."


def error_message(error: Exception) -> str:
    return f"❌ <b>Error:</b> {escape_html(str(error))}\n\nTry /newthread to start fresh."


class TelegramChannelProvider(ChannelProvider):
    def __init__(
        self,
        *,
        config: TelegramChannelConfig,
        inbound_handler: InboundHandler,
        clear_conversation_handler: ClearConversationHandler | None = None,
        agent_available: AvailabilityCheck | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.inbound_handler = inbound_handler
        self.clear_conversation_handler = clear_conversation_handler
        self.agent_available = agent_available or (lambda: True)
        self._transport = transport

        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

        self._last_update_id = 0
        self._status = ChannelStatus(
            channel="telegram",
            mode="polling",
            running=False,
            enabled=self.enabled,
        )

    @property
    def name(self) -> str:
        return "telegram"

    @property
    def enabled(self) -> bool:
        return bool(self.config.enabled and self.config.bot_configured)

    @property
    def last_update_id(self) -> int:
        return self._last_update_id

    async def start(self) -> None:
        if not self.enabled:
            return
        self._stop_event.clear()
        self._status.running = True
        self._task = asyncio.create_task(self._poll_loop(), name="channel-telegram-poll")

    async def stop(self) -> None:
        self._stop_event.set()
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._status.running = False

    async def _poll_loop(self) -> None:
        api_base = bot_api_base(self.config)
        timeout = httpx.Timeout(
            connect=10.0,
            read=self.config.poll_timeout_s + 10.0,
            write=10.0,
            pool=10.0,
        )

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            while not self._stop_event.is_set():
                try:
                    await self.poll_once(client, api_base)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.warning("channels.telegram.poll_error", error=str(e))
                    self._status.record_error(e)
                await asyncio.sleep(self.config.poll_interval_s)

    async def poll_once(self, client: Any, api_base: str) -> int:
        """Fetch one batch of updates and handle each; returns the batch size."""
        updates = await self._get_updates(client, api_base)
        for update in updates:
            update_id = update.get("update_id")
            # Advance first: a message that fails is not redelivered.
            if isinstance(update_id, int):
                self._last_update_id = max(self._last_update_id, update_id)
            try:
                await self._process_update(client, api_base, update)
            except Exception as e:
                logger.error(
                    "channels.telegram.update_failed",
                    update_id=update_id,
                    error=str(e),
                )
                self._status.record_error(e)
        return len(updates)

    async def _get_updates(self, client: Any, api_base: str) -> list[dict[str, Any]]:
        resp = await client.get(
            f"{api_base}/getUpdates",
            params={
                "offset": self._last_update_id + 1,
                "timeout": self.config.poll_timeout_s,
            },
        )
        resp.raise_for_status()
        payload = resp.json()
        if not payload.get("ok"):
            raise RuntimeError(f"Telegram getUpdates failed: {payload}")

        result = payload.get("result", [])
        if not isinstance(result, list):
            return []
        return [item for item in result if isinstance(item, dict)]

    async def _process_update(self, client: Any, api_base: str, update: dict[str, Any]) -> None:
        message = update.get("message")
        if not isinstance(message, dict):
            return
        text = (message.get("text") or "").strip()
        chat_id = (message.get("chat") or {}).get("id")
        if not text or chat_id is None:
            return

        sender = message.get("from") or {}
        session_key = f"telegram:{chat_id}"
        logger.info(
            "channels.telegram.message",
            chat_id=str(chat_id),
            sender=sender.get("first_name") or "User",
            length=len(text),
        )
        self._status.record_inbound()

        command = parse_command(text)
        if command == "/start":
            await self._send(client, api_base, chat_id, START_MESSAGE)
            return
        if command == "/newthread":
            if self.clear_conversation_handler is not None:
                await self.clear_conversation_handler(session_key)
            await self._send(client, api_base, chat_id, NEW_THREAD_MESSAGE)
            return

        if not self.agent_available():
            await self._send(client, api_base, chat_id, UNAVAILABLE_MESSAGE)
            return

        await self._send(client, api_base, chat_id, ACK_MESSAGE)

        inbound = ChannelInboundEvent(
            channel="telegram",
            session_key=session_key,
            sender_id=str(sender.get("id") or ""),
            peer_id=str(chat_id),
            text=text,
            message_id=(
                str(message.get("message_id"))
                if message.get("message_id") is not None
                else None
            ),
        )
        try:
            reply = await self.inbound_handler(inbound)
        except Exception as e:
            logger.warning("channels.telegram.reply_failed", chat_id=str(chat_id), error=str(e))
            self._status.record_error(e)
            await self._send(client, api_base, chat_id, error_message(e))
            return

        for chunk in split_message(to_telegram_html(reply), self.config.max_message_chars):
            await self._send(client, api_base, chat_id, chunk)

    async def _send(self, client: Any, api_base: str, chat_id: int | str, text: str) -> bool:
        resp = await post_message(client, api_base, chat_id, text)
        if resp.status_code >= 400:
            logger.warning(
                "channels.telegram.send_failed",
                status_code=resp.status_code,
                body=resp.text[:300],
            )
            return False
        self._status.record_outbound()
        return True

