"""Tests for relay settings loading."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.config import DEFAULT_API_BASE, RelaySettings, configure_logging


def test_from_env_reads_required_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BOT_TOKEN", "123:ABC")
    monkeypatch.setenv("ADMIN_ID", " 999 ")
    settings = RelaySettings.from_env()
    assert settings.bot_token == "123:ABC"
    assert settings.admin_id == "999"
    assert settings.is_configured is True


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "BOT_TOKEN", "ADMIN_ID", "REQUEST_CONTACT", "TELEGRAM_API_BASE", "DEDUP_MAX_ENTRIES",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = RelaySettings.from_env()
    assert settings.is_configured is False
    assert settings.request_contact is False
    assert settings.api_base == DEFAULT_API_BASE
    assert settings.dedup_ttl_seconds == 3600
    assert settings.dedup_max_entries == 100_000


@pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
def test_request_contact_truthy(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("REQUEST_CONTACT", value)
    assert RelaySettings.from_env().request_contact is True


def test_numeric_admin_id_coerced_to_string() -> None:
    settings = RelaySettings(bot_token="t", admin_id=999)  # type: ignore[arg-type]
    assert settings.admin_id == "999"


def test_missing_token_not_configured() -> None:
    assert RelaySettings(admin_id="999").is_configured is False
    assert RelaySettings(bot_token="t").is_configured is False


def test_settings_are_immutable() -> None:
    settings = RelaySettings(bot_token="t", admin_id="1")
    with pytest.raises(ValidationError):
        settings.admin_id = "2"  # type: ignore[misc]


def test_negative_ttl_rejected() -> None:
    with pytest.raises(ValidationError):
        RelaySettings(dedup_ttl_seconds=-1)


def test_configure_logging_accepts_level_name() -> None:
    with patch("src.config.logging.basicConfig") as basic_config:
        configure_logging("debug")
    assert basic_config.call_args.kwargs["level"] == logging.DEBUG


def test_configure_logging_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    with patch("src.config.logging.basicConfig") as basic_config:
        configure_logging()
    assert basic_config.call_args.kwargs["level"] == logging.WARNING


def test_dedup_max_entries_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEDUP_MAX_ENTRIES", "50")
    assert RelaySettings.from_env().dedup_max_entries == 50
