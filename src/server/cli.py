"""Click CLI for running the relay and managing its webhook registration."""

from __future__ import annotations

import asyncio
import json
import os
import sys

import click
import uvicorn

from src.config import DEFAULT_API_BASE
from src.webhook.models import SendResult
from src.webhook.telegram import TelegramClient


@click.group()
@click.option("--token", envvar="BOT_TOKEN", default="", help="Bot token (env: BOT_TOKEN).")
@click.option(
    "--api-base", envvar="TELEGRAM_API_BASE", default=DEFAULT_API_BASE,
    help="Bot API base URL.",
)
@click.pass_context
def cli(ctx: click.Context, token: str, api_base: str) -> None:
    """Operator relay bot CLI."""
    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    ctx.obj["api_base"] = api_base


def _client(ctx: click.Context) -> TelegramClient:
    token = ctx.obj["token"]
    if not token:
        raise click.UsageError("A bot token is required (--token or BOT_TOKEN).")
    return TelegramClient(token, ctx.obj["api_base"])


def _report(result: SendResult) -> None:
    click.echo(json.dumps(result.body or {"ok": result.ok}, indent=2, ensure_ascii=False))
    if not result.ok:
        click.echo(f"Bot API call failed: {result.description or result.status_code}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address.")
@click.option("--port", default=8080, type=int, help="Bind port.")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Run the webhook server (ADMIN_ID and the rest are read from the environment)."""
    # create_app_from_env reads only the environment.
    if ctx.obj["token"]:
        os.environ["BOT_TOKEN"] = ctx.obj["token"]
    if ctx.obj["api_base"] != DEFAULT_API_BASE:
        os.environ["TELEGRAM_API_BASE"] = ctx.obj["api_base"]
    uvicorn.run("src.server.app:create_app_from_env", factory=True, host=host, port=port)


@cli.command("set-webhook")
@click.argument("url")
@click.option("--drop-pending", is_flag=True, help="Discard updates queued before now.")
@click.pass_context
def set_webhook(ctx: click.Context, url: str, drop_pending: bool) -> None:
    """Point the bot's webhook at URL."""
    result = asyncio.run(_client(ctx).set_webhook(url, drop_pending_updates=drop_pending))
    _report(result)


@cli.command("delete-webhook")
@click.option("--drop-pending", is_flag=True, help="Discard queued updates.")
@click.pass_context
def delete_webhook(ctx: click.Context, drop_pending: bool) -> None:
    """Remove the bot's webhook."""
    result = asyncio.run(_client(ctx).delete_webhook(drop_pending_updates=drop_pending))
    _report(result)


@cli.command("webhook-info")
@click.pass_context
def webhook_info(ctx: click.Context) -> None:
    """Show the bot's current webhook registration."""
    _report(asyncio.run(_client(ctx).get_webhook_info()))
