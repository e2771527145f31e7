"""Operator relay: routes user messages to the operator and replies back.

Dispatch order for one update (first match wins):
1. No message                      -> ignore
2. ``/start``                      -> welcome the sender
3. Shared contact                  -> notify operator, acknowledge sender
4. Operator replying to a message  -> route reply to the original sender
5. Operator, not a reply           -> ignore
6. Anyone else                     -> forward to operator, confirm to sender

All sends for one update are awaited in order.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from src.models import AuditEvent, AuditEventType
from src.webhook.banner import (
    CAPTION_LIMIT,
    TEXT_LIMIT,
    attach_banner,
    build_banner,
    extract_sender_id,
)
from src.webhook.correlation import ReplyCorrelationMap
from src.webhook.models import Message, PayloadKind, SendResult, Update

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger
    from src.config import RelaySettings
    from src.webhook.telegram import TelegramClient

logger = logging.getLogger(__name__)

START_COMMAND = "/start"

WELCOME_TEXT = "👋 Welcome! Send me any message, and I'll forward it to the admin."
SHARE_CONTACT_BUTTON = "📱 Share contact"
CONTACT_REGISTERED_TEXT = "✅ Thank you! Your contact has been registered."
DELIVERED_TEXT = "✅ Your message has been delivered."
NOT_DELIVERED_TEXT = "⚠️ Your message could not be delivered. Please try again later."
STICKER_NOTE = "[Sticker received]"
UNSUPPORTED_NOTE = "[Unsupported message type received]"

USER_NOT_FOUND_TEXT = "❌ Could not find user ID in the original message."
REPLY_UNSUPPORTED_TEXT = "❌ This message type cannot be relayed."
REPLY_FAILED_TEXT = "❌ Could not deliver the reply to the user."
REPLY_SENT_TEXT = {
    PayloadKind.TEXT: "✅ Reply sent to user.",
    PayloadKind.PHOTO: "✅ Photo sent to user.",
    PayloadKind.VIDEO: "✅ Video sent to user.",
    PayloadKind.DOCUMENT: "✅ Document sent to user.",
    PayloadKind.VOICE: "✅ Voice message sent to user.",
    PayloadKind.STICKER: "✅ Sticker sent to user.",
}


class RelayAction(str, Enum):
    IGNORE = "ignore"
    START = "start"
    CONTACT = "contact"
    OPERATOR_REPLY = "operator_reply"
    OPERATOR_IGNORED = "operator_ignored"
    FORWARD = "forward"


def classify(update: Update, operator_id: int | str) -> RelayAction:
    """Pick the single action for ``update``; depends on nothing else."""
    message = update.message
    if message is None or message.from_user is None or message.chat is None:
        return RelayAction.IGNORE
    if message.text == START_COMMAND:
        return RelayAction.START
    if message.kind is PayloadKind.CONTACT:
        return RelayAction.CONTACT

    is_operator = str(message.from_user.id) == str(operator_id)
    if is_operator and message.reply_to_message is not None:
        return RelayAction.OPERATOR_REPLY
    if is_operator:
        return RelayAction.OPERATOR_IGNORED
    return RelayAction.FORWARD


class OperatorRelay:
    """Relays messages between users and the single configured operator."""

    def __init__(
        self,
        settings: RelaySettings,
        client: TelegramClient,
        correlation: ReplyCorrelationMap | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        if correlation is None:
            correlation = ReplyCorrelationMap(
                ttl_seconds=settings.reply_map_ttl_seconds,
                max_entries=settings.reply_map_max_entries,
            )
        self._correlation = correlation
        self._audit = audit_logger

    @property
    def operator_id(self) -> str:
        return self._settings.admin_id

    async def handle_update(self, update: Update) -> None:
        action = classify(update, self.operator_id)
        logger.debug("Update %s classified as %s", update.update_id, action.value)
        message = update.message

        if action is RelayAction.START:
            await self._send_welcome(message)
        elif action is RelayAction.CONTACT:
            await self._register_contact(message)
        elif action is RelayAction.OPERATOR_REPLY:
            await self.route_operator_reply(message)
        elif action is RelayAction.FORWARD:
            result = await self.forward_to_operator(message)
            text = DELIVERED_TEXT if result.ok else NOT_DELIVERED_TEXT
            await self._client.send_message(message.chat.id, text)

    async def _send_welcome(self, message: Message) -> None:
        markup = None
        if self._settings.request_contact:
            markup = {
                "keyboard": [[{"text": SHARE_CONTACT_BUTTON, "request_contact": True}]],
                "resize_keyboard": True,
                "one_time_keyboard": True,
            }
        await self._client.send_message(message.chat.id, WELCOME_TEXT, reply_markup=markup)

    async def _register_contact(self, message: Message) -> None:
        contact = message.contact
        sender = message.from_user
        name = f"{contact.first_name or ''} {contact.last_name or ''}".strip() or sender.full_name
        notice = (
            "📇 Contact shared\n"
            f"👤 Name: {name}\n"
            f"📞 Phone: {contact.phone_number}\n"
            f"🆔 ID: {sender.id}\n"
        )
        result = await self._client.send_message(self.operator_id, notice)
        self._record(result, sender.id, AuditEventType.CONTACT_SHARED, "contact")
        await self._client.send_message(
            message.chat.id,
            CONTACT_REGISTERED_TEXT,
            reply_markup={"remove_keyboard": True},
        )

    async def forward_to_operator(self, message: Message) -> SendResult:
        """Relay ``message`` to the operator chat behind an identification banner."""
        sender = message.from_user
        banner = build_banner(sender)
        caption = attach_banner(banner, message.caption or "", CAPTION_LIMIT)
        operator = self.operator_id
        kind = message.kind

        if kind is PayloadKind.TEXT:
            result = await self._client.send_message(
                operator, attach_banner(banner, message.text, TEXT_LIMIT),
            )
        elif kind is PayloadKind.PHOTO:
            result = await self._client.send_photo(
                operator, message.largest_photo.file_id, caption,
            )
        elif kind is PayloadKind.VIDEO:
            result = await self._client.send_video(operator, message.video.file_id, caption)
        elif kind is PayloadKind.DOCUMENT:
            result = await self._client.send_document(
                operator, message.document.file_id, caption,
            )
        elif kind is PayloadKind.VOICE:
            result = await self._client.send_voice(operator, message.voice.file_id, banner)
        elif kind is PayloadKind.STICKER:
            note = await self._client.send_message(operator, banner + STICKER_NOTE)
            self._correlation.remember(note.message_id if note.ok else None, sender.id)
            result = await self._client.send_sticker(operator, message.sticker.file_id)
        else:
            result = await self._client.send_message(operator, banner + UNSUPPORTED_NOTE)

        self._record(result, sender.id, AuditEventType.UPDATE_FORWARDED, kind.value)
        return result

    async def route_operator_reply(self, message: Message) -> None:
        """Send the operator's reply to whoever the replied-to message came from."""
        original = message.reply_to_message
        target = self._correlation.lookup(original.message_id)
        if target is None:
            target = extract_sender_id(original.text_or_caption)

        if target is None:
            logger.info("No sender ID in message replied to by operator")
            self._audit_event(
                AuditEventType.CORRELATION_FAILURE, "reply", "failure",
                details={"reply_to_message_id": original.message_id},
            )
            await self._client.send_message(self.operator_id, USER_NOT_FOUND_TEXT)
            return

        kind = message.kind
        caption = message.caption or ""
        if kind is PayloadKind.TEXT:
            result = await self._client.send_message(target, message.text)
        elif kind is PayloadKind.PHOTO:
            result = await self._client.send_photo(target, message.largest_photo.file_id, caption)
        elif kind is PayloadKind.VIDEO:
            result = await self._client.send_video(target, message.video.file_id, caption)
        elif kind is PayloadKind.DOCUMENT:
            result = await self._client.send_document(target, message.document.file_id, caption)
        elif kind is PayloadKind.VOICE:
            result = await self._client.send_voice(target, message.voice.file_id, caption)
        elif kind is PayloadKind.STICKER:
            result = await self._client.send_sticker(target, message.sticker.file_id)
        else:
            await self._client.send_message(self.operator_id, REPLY_UNSUPPORTED_TEXT)
            return

        if result.ok:
            self._audit_event(
                AuditEventType.REPLY_ROUTED, kind.value, "success", user_id=target,
            )
            await self._client.send_message(self.operator_id, REPLY_SENT_TEXT[kind])
        else:
            self._audit_event(
                AuditEventType.TRANSPORT_FAILURE, f"reply_{kind.value}", "failure",
                user_id=target,
                details={"status_code": result.status_code, "description": result.description},
            )
            await self._client.send_message(self.operator_id, REPLY_FAILED_TEXT)

    def _record(
        self, result: SendResult, sender_id: int, event_type: AuditEventType, action: str,
    ) -> None:
        if result.ok:
            self._correlation.remember(result.message_id, sender_id)
            self._audit_event(event_type, action, "success", user_id=str(sender_id))
            return
        self._audit_event(
            AuditEventType.TRANSPORT_FAILURE, action, "failure",
            user_id=str(sender_id),
            details={"status_code": result.status_code, "description": result.description},
        )

    def _audit_event(
        self,
        event_type: AuditEventType,
        action: str,
        result: str,
        user_id: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=event_type,
                user_id=user_id,
                action=action,
                result=result,
                details=details,
            ))
