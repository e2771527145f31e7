"""Identification banner attached to every message forwarded to the operator.

The banner is the only text channel that carries the original sender's ID,
so its ``🆔 ID: <digits>`` line must stay stable for :func:`extract_sender_id`.
"""

from __future__ import annotations

import re

from src.webhook.models import TelegramUser

NO_USERNAME = "No username"
SEPARATOR = "─" * 30

# Bot API limits, counted in UTF-16 code units.
TEXT_LIMIT = 4096
CAPTION_LIMIT = 1024
TRUNCATION_MARK = "…"

# Anchored banner line first; the loose form covers banners whose emoji was
# stripped by a client when the operator copied or edited the text.
_BANNER_ID_LINE = re.compile(r"^🆔 ID: (\d+)\s*$", re.MULTILINE)
_LOOSE_ID = re.compile(r"\bID: (\d+)")


def build_banner(user: TelegramUser) -> str:
    """Render the banner for ``user``; always ends with a newline."""
    return (
        f"👤 From: {user.full_name}\n"
        f"🆔 ID: {user.id}\n"
        f"👨‍💼 Username: @{user.username or NO_USERNAME}\n"
        f"{SEPARATOR}\n"
    )


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def attach_banner(banner: str, content: str, limit: int) -> str:
    """Prefix ``content`` with ``banner`` without exceeding ``limit``.

    The banner is never shortened; overlong content is cut and marked
    with an ellipsis.
    """
    text = banner + content
    if _utf16_len(text) <= limit:
        return text
    budget = max(limit - _utf16_len(banner) - _utf16_len(TRUNCATION_MARK), 0)
    # A cut through a surrogate pair leaves a lone high surrogate; drop it.
    kept = content.encode("utf-16-le")[: budget * 2].decode("utf-16-le", errors="ignore")
    return banner + kept + TRUNCATION_MARK


def extract_sender_id(text: str) -> str | None:
    """Return the sender ID digits embedded in ``text``, or None."""
    match = _BANNER_ID_LINE.search(text) or _LOOSE_ID.search(text)
    return match.group(1) if match else None
