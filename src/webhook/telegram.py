"""Telegram Bot API transport client.

One method per outbound action. Media is always relayed by the platform's
file_id; nothing is downloaded or re-uploaded. Every call returns a
:class:`SendResult` instead of raising on HTTP-level failures.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from src.config import DEFAULT_API_BASE
from src.webhook.models import SendResult

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_BACKOFF_CAP_SECONDS = 30

# Raised before the request reached the Bot API, so a retry cannot duplicate
# a message. Read-side failures may follow a delivered send and are final.
_NOT_SENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


class TelegramClient:
    """Thin async wrapper over the Bot API send endpoints."""

    def __init__(self, bot_token: str, api_base: str = DEFAULT_API_BASE) -> None:
        self._bot_token = bot_token
        self._api_base = api_base.rstrip("/")

    def _url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._bot_token}/{method}"

    async def send_message(
        self,
        chat_id: int | str,
        text: str,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = None,
    ) -> SendResult:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return await self._call("sendMessage", payload)

    async def send_photo(
        self, chat_id: int | str, file_id: str, caption: str | None = None,
    ) -> SendResult:
        return await self._send_media("sendPhoto", "photo", chat_id, file_id, caption)

    async def send_video(
        self, chat_id: int | str, file_id: str, caption: str | None = None,
    ) -> SendResult:
        return await self._send_media("sendVideo", "video", chat_id, file_id, caption)

    async def send_document(
        self, chat_id: int | str, file_id: str, caption: str | None = None,
    ) -> SendResult:
        return await self._send_media("sendDocument", "document", chat_id, file_id, caption)

    async def send_voice(
        self, chat_id: int | str, file_id: str, caption: str | None = None,
    ) -> SendResult:
        return await self._send_media("sendVoice", "voice", chat_id, file_id, caption)

    async def send_sticker(self, chat_id: int | str, file_id: str) -> SendResult:
        """Stickers cannot carry a caption on this platform."""
        return await self._send_media("sendSticker", "sticker", chat_id, file_id, None)

    async def set_webhook(
        self, url: str, drop_pending_updates: bool = False,
    ) -> SendResult:
        return await self._call("setWebhook", {
            "url": url,
            "drop_pending_updates": drop_pending_updates,
            "allowed_updates": ["message"],
        })

    async def delete_webhook(self, drop_pending_updates: bool = False) -> SendResult:
        return await self._call(
            "deleteWebhook", {"drop_pending_updates": drop_pending_updates},
        )

    async def get_webhook_info(self) -> SendResult:
        return await self._call("getWebhookInfo", {})

    async def _send_media(
        self,
        method: str,
        field: str,
        chat_id: int | str,
        file_id: str,
        caption: str | None,
    ) -> SendResult:
        payload: dict[str, Any] = {"chat_id": chat_id, field: file_id}
        if caption:
            payload["caption"] = caption
        return await self._call(method, payload)

    async def _call(self, method: str, payload: dict[str, Any]) -> SendResult:
        """POST ``payload`` to ``method``.

        Retries on 429/5xx and on errors raised before the request was sent,
        with exponential backoff capped at 30s, at most 3 retries. Any other
        transport error ends the call with a failed result.
        """
        result = SendResult(ok=False, status_code=0)

        async with httpx.AsyncClient(verify=True) as client:
            for attempt in range(_MAX_RETRIES + 1):
                try:
                    resp = await client.post(self._url(method), json=payload)
                except httpx.TransportError as exc:
                    result = SendResult(
                        ok=False, status_code=0, description=f"{type(exc).__name__}: {exc}",
                    )
                    if not isinstance(exc, _NOT_SENT_ERRORS):
                        break
                else:
                    result = self._to_result(resp)
                    if result.ok or not self._should_retry(resp.status_code):
                        break
                if attempt < _MAX_RETRIES:
                    delay = min(2 ** attempt, _BACKOFF_CAP_SECONDS)
                    await asyncio.sleep(delay)

        if not result.ok:
            logger.warning(
                "Bot API %s to chat %s failed: status=%s %s",
                method, payload.get("chat_id"), result.status_code, result.description,
            )
        return result

    @staticmethod
    def _to_result(resp: httpx.Response) -> SendResult:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        sent = body.get("result")
        message_id = sent.get("message_id") if isinstance(sent, dict) else None
        description = body.get("description")
        return SendResult(
            ok=resp.status_code < 400,
            status_code=resp.status_code,
            message_id=message_id if isinstance(message_id, int) else None,
            description=description if isinstance(description, str) else None,
            body=body,
        )

    @staticmethod
    def _should_retry(status_code: int) -> bool:
        """Only retry on 429 (rate limit) or 5xx (server error)."""
        return status_code == 429 or status_code >= 500
