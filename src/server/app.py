"""FastAPI webhook application for the operator relay."""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from src.audit.logger import AuditLogger
from src.config import RelaySettings, configure_logging
from src.models import AuditEvent, AuditEventType
from src.webhook.models import Update
from src.webhook.relay import OperatorRelay
from src.webhook.replay_protection import ReplayProtection
from src.webhook.telegram import TelegramClient

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "Telegram Bot is running!"
MISSING_CONFIG_TEXT = "Missing BOT_TOKEN or ADMIN_ID"
PROCESSING_ERROR_TEXT = "Error processing update"
METHOD_NOT_ALLOWED_TEXT = "Method not allowed"

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    configure_logging()
    settings = RelaySettings.from_env()
    audit_log = os.environ.get("AUDIT_LOG_PATH")
    audit_logger = AuditLogger.from_env(audit_log) if audit_log else None
    return create_app(settings, audit_logger)


def create_app(
    settings: RelaySettings,
    audit_logger: AuditLogger | None = None,
    client: TelegramClient | None = None,
) -> FastAPI:
    """Create the webhook app; the relay is only built when fully configured."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    relay: OperatorRelay | None = None
    if settings.is_configured:
        relay = OperatorRelay(
            settings,
            client or TelegramClient(settings.bot_token, settings.api_base),
            audit_logger=audit_logger,
        )
    else:
        logger.error("BOT_TOKEN or ADMIN_ID is not set; every request will fail")
    replay = ReplayProtection(
        ttl_seconds=settings.dedup_ttl_seconds,
        max_entries=settings.dedup_max_entries,
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.api_route("/", methods=_ALL_METHODS)
    async def webhook(request: Request) -> Response:
        if relay is None:
            return PlainTextResponse(MISSING_CONFIG_TEXT, status_code=500)
        if request.method == "GET":
            return PlainTextResponse(LIVENESS_TEXT)
        if request.method != "POST":
            return PlainTextResponse(METHOD_NOT_ALLOWED_TEXT, status_code=405)

        try:
            update = Update.model_validate_json(await request.body())
        except ValidationError:
            logger.exception("Rejected malformed update payload")
            _audit(audit_logger, AuditEventType.PROCESSING_ERROR, "parse", None)
            return PlainTextResponse(PROCESSING_ERROR_TEXT, status_code=500)

        if not replay.check_update(update.update_id):
            logger.info("Skipping redelivered update %s", update.update_id)
            _audit(audit_logger, AuditEventType.DUPLICATE_UPDATE, "dedup", update.update_id)
            return PlainTextResponse("OK")

        try:
            await relay.handle_update(update)
        except Exception:
            logger.exception("Failed to process update %s", update.update_id)
            replay.forget(update.update_id)
            _audit(audit_logger, AuditEventType.PROCESSING_ERROR, "handle", update.update_id)
            return PlainTextResponse(PROCESSING_ERROR_TEXT, status_code=500)

        return PlainTextResponse("OK")

    return app


def _audit(
    audit_logger: AuditLogger | None,
    event_type: AuditEventType,
    action: str,
    update_id: int | None,
) -> None:
    if audit_logger:
        audit_logger.log(AuditEvent(
            event_type=event_type,
            update_id=update_id,
            action=action,
            result="skipped" if event_type is AuditEventType.DUPLICATE_UPDATE else "failure",
        ))
