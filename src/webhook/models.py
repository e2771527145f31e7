"""Data models for Telegram updates and outbound send results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PayloadKind(str, Enum):
    """Closed set of message payload kinds the relay understands."""

    TEXT = "text"
    PHOTO = "photo"
    VIDEO = "video"
    DOCUMENT = "document"
    VOICE = "voice"
    STICKER = "sticker"
    CONTACT = "contact"
    UNSUPPORTED = "unsupported"


class TelegramUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class TelegramChat(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int


class FileRef(BaseModel):
    """Any media object; only the platform-issued file_id is relayed."""

    model_config = ConfigDict(frozen=True)

    file_id: str


class PhotoSize(FileRef):
    width: int | None = None
    height: int | None = None


class Contact(BaseModel):
    model_config = ConfigDict(frozen=True)

    phone_number: str
    first_name: str | None = None
    last_name: str | None = None
    user_id: int | None = None


class Message(BaseModel):
    """Subset of a Telegram message required by the relay."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message_id: int | None = None
    from_user: TelegramUser | None = Field(default=None, alias="from")
    chat: TelegramChat | None = None
    text: str | None = None
    caption: str | None = None
    photo: list[PhotoSize] | None = None
    video: FileRef | None = None
    document: FileRef | None = None
    voice: FileRef | None = None
    sticker: FileRef | None = None
    contact: Contact | None = None
    reply_to_message: Message | None = None

    @cached_property
    def kind(self) -> PayloadKind:
        """Payload kind, resolved once; earlier kinds win when several are set."""
        if self.text is not None:
            return PayloadKind.TEXT
        if self.photo:
            return PayloadKind.PHOTO
        if self.video is not None:
            return PayloadKind.VIDEO
        if self.document is not None:
            return PayloadKind.DOCUMENT
        if self.voice is not None:
            return PayloadKind.VOICE
        if self.sticker is not None:
            return PayloadKind.STICKER
        if self.contact is not None:
            return PayloadKind.CONTACT
        return PayloadKind.UNSUPPORTED

    @property
    def largest_photo(self) -> PhotoSize | None:
        # Telegram orders photo sizes from smallest to largest.
        return self.photo[-1] if self.photo else None

    @property
    def text_or_caption(self) -> str:
        return self.text or self.caption or ""


class Update(BaseModel):
    """Top-level Telegram update."""

    model_config = ConfigDict(frozen=True)

    update_id: int | None = None
    message: Message | None = None


@dataclass
class SendResult:
    """Outcome of one outbound Bot API call."""

    ok: bool
    status_code: int
    message_id: int | None = None
    description: str | None = None
    body: dict[str, Any] = field(default_factory=dict)
