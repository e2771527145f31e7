"""Tests for the relay CLI."""

from __future__ import annotations

import json
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from src.server.cli import cli
from src.webhook.models import SendResult


def _mock_client_cls(result: SendResult) -> MagicMock:
    instance = MagicMock()
    instance.set_webhook = AsyncMock(return_value=result)
    instance.delete_webhook = AsyncMock(return_value=result)
    instance.get_webhook_info = AsyncMock(return_value=result)
    return MagicMock(return_value=instance)


def test_set_webhook_command() -> None:
    result = SendResult(ok=True, status_code=200, body={"ok": True, "result": True})
    client_cls = _mock_client_cls(result)
    with patch("src.server.cli.TelegramClient", client_cls):
        out = CliRunner().invoke(cli, [
            "--token", "123:ABC", "set-webhook", "https://relay.example.com/", "--drop-pending",
        ])
    assert out.exit_code == 0
    client_cls.assert_called_once_with("123:ABC", "https://api.telegram.org")
    client_cls.return_value.set_webhook.assert_awaited_once_with(
        "https://relay.example.com/", drop_pending_updates=True,
    )
    assert json.loads(out.output)["ok"] is True


def test_webhook_info_prints_body() -> None:
    body = {"ok": True, "result": {"url": "https://relay.example.com/", "pending_update_count": 0}}
    client_cls = _mock_client_cls(SendResult(ok=True, status_code=200, body=body))
    with patch("src.server.cli.TelegramClient", client_cls):
        out = CliRunner().invoke(cli, ["--token", "t", "webhook-info"])
    assert out.exit_code == 0
    assert json.loads(out.output)["result"]["url"] == "https://relay.example.com/"


def test_failed_call_exits_nonzero() -> None:
    failed = SendResult(
        ok=False, status_code=401, description="Unauthorized",
        body={"ok": False, "description": "Unauthorized"},
    )
    with patch("src.server.cli.TelegramClient", _mock_client_cls(failed)):
        out = CliRunner().invoke(cli, ["--token", "bad", "delete-webhook"])
    assert out.exit_code == 1
    assert "Unauthorized" in out.output


def test_token_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BOT_TOKEN", raising=False)
    out = CliRunner().invoke(cli, ["webhook-info"])
    assert out.exit_code == 2
    assert "bot token is required" in out.output


def test_token_read_from_env() -> None:
    client_cls = _mock_client_cls(SendResult(ok=True, status_code=200, body={"ok": True}))
    with patch("src.server.cli.TelegramClient", client_cls):
        out = CliRunner().invoke(cli, ["webhook-info"], env={"BOT_TOKEN": "env-token"})
    assert out.exit_code == 0
    assert client_cls.call_args[0][0] == "env-token"


def test_serve_runs_uvicorn_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TELEGRAM_API_BASE", raising=False)
    with patch("src.server.cli.uvicorn.run") as run:
        out = CliRunner().invoke(cli, ["serve", "--port", "9000"])
    assert out.exit_code == 0
    run.assert_called_once_with(
        "src.server.app:create_app_from_env", factory=True, host="0.0.0.0", port=9000,
    )


def test_serve_exports_group_options(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BOT_TOKEN", raising=False)
    monkeypatch.delenv("TELEGRAM_API_BASE", raising=False)
    seen: dict[str, str | None] = {}

    def _run(*args: object, **kwargs: object) -> None:
        seen["token"] = os.environ.get("BOT_TOKEN")
        seen["api_base"] = os.environ.get("TELEGRAM_API_BASE")

    with patch("src.server.cli.uvicorn.run", side_effect=_run):
        out = CliRunner().invoke(cli, [
            "--token", "123:ABC", "--api-base", "http://localhost:8081", "serve",
        ])
    assert out.exit_code == 0
    assert seen == {"token": "123:ABC", "api_base": "http://localhost:8081"}


def test_serve_leaves_unset_options_alone(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BOT_TOKEN", raising=False)
    monkeypatch.delenv("TELEGRAM_API_BASE", raising=False)
    with patch("src.server.cli.uvicorn.run"):
        out = CliRunner().invoke(cli, ["serve"])
    assert out.exit_code == 0
    assert "BOT_TOKEN" not in os.environ
    assert "TELEGRAM_API_BASE" not in os.environ
