"""Shared test fixtures for the operator relay."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.config import RelaySettings
from src.webhook.models import SendResult
from src.webhook.telegram import TelegramClient

OPERATOR_ID = 999
USER_ID = 111


@pytest.fixture
def settings() -> RelaySettings:
    return RelaySettings(bot_token="123:ABC", admin_id=str(OPERATOR_ID))


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def mock_client() -> MagicMock:
    """TelegramClient double whose sends succeed with increasing message IDs."""
    client = MagicMock(spec=TelegramClient)
    counter = {"next": 500}

    async def _ok(*args: Any, **kwargs: Any) -> SendResult:
        counter["next"] += 1
        return SendResult(ok=True, status_code=200, message_id=counter["next"])

    for name in (
        "send_message", "send_photo", "send_video", "send_document",
        "send_voice", "send_sticker",
    ):
        setattr(client, name, AsyncMock(side_effect=_ok))
    return client


# --- Factory functions for test data ---


def make_user(**kwargs: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {"id": USER_ID, "first_name": "Bob", "username": "bob"}
    defaults.update(kwargs)
    return defaults


def make_message(**kwargs: Any) -> dict[str, Any]:
    """Raw Telegram message dict; pass ``from_`` to override the sender."""
    sender = kwargs.pop("from_", None) or make_user()
    defaults: dict[str, Any] = {
        "message_id": 1,
        "from": sender,
        "chat": {"id": sender["id"]},
    }
    defaults.update(kwargs)
    return defaults


def make_update(update_id: int | None = 1, **kwargs: Any) -> dict[str, Any]:
    update: dict[str, Any] = {"message": make_message(**kwargs)}
    if update_id is not None:
        update["update_id"] = update_id
    return update


def make_operator_reply(reply_to: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
    return make_message(
        from_={"id": OPERATOR_ID, "first_name": "Op"},
        reply_to_message=reply_to,
        **kwargs,
    )
