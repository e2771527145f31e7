"""Relay configuration read once from the hosting environment."""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_API_BASE = "https://api.telegram.org"


class RelaySettings(BaseModel):
    """Immutable relay settings passed explicitly to the app and the relay."""

    model_config = ConfigDict(frozen=True)

    bot_token: str = ""
    admin_id: str = ""
    request_contact: bool = False
    api_base: str = DEFAULT_API_BASE
    dedup_ttl_seconds: int = Field(default=3600, ge=0)
    dedup_max_entries: int = Field(default=100_000, ge=1)
    reply_map_ttl_seconds: int = Field(default=604_800, ge=0)
    reply_map_max_entries: int = Field(default=10_000, ge=1)

    @field_validator("bot_token", "admin_id", mode="before")
    @classmethod
    def _to_stripped_str(cls, value: object) -> str:
        # Operator IDs may arrive as ints from code or as strings from env;
        # they are always compared as strings.
        if value is None:
            return ""
        return str(value).strip()

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.admin_id)

    @classmethod
    def from_env(cls) -> RelaySettings:
        """Build settings from environment variables."""
        return cls(
            bot_token=os.environ.get("BOT_TOKEN", ""),
            admin_id=os.environ.get("ADMIN_ID", ""),
            request_contact=os.environ.get("REQUEST_CONTACT", "").strip().lower() in _TRUTHY,
            api_base=os.environ.get("TELEGRAM_API_BASE", DEFAULT_API_BASE),
            dedup_ttl_seconds=int(os.environ.get("DEDUP_TTL_SECONDS", "3600")),
            dedup_max_entries=int(os.environ.get("DEDUP_MAX_ENTRIES", "100000")),
            reply_map_ttl_seconds=int(os.environ.get("REPLY_MAP_TTL_SECONDS", "604800")),
            reply_map_max_entries=int(os.environ.get("REPLY_MAP_MAX_ENTRIES", "10000")),
        )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging; level defaults to LOG_LEVEL or INFO."""
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
