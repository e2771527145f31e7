"""Short-lived in-memory map from forwarded message IDs to original senders.

When the operator replies to a forwarded message, the replied-to message's
``message_id`` identifies the sender directly, so banner text edits do not
break routing. Entries expire after a TTL and the map is bounded; on a miss
the relay falls back to parsing the banner.
"""

from __future__ import annotations

import time
from collections import OrderedDict


class ReplyCorrelationMap:
    """Bounded TTL mapping of operator-chat message_id -> sender ID."""

    def __init__(self, ttl_seconds: int = 604_800, max_entries: int = 10_000) -> None:
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._entries: OrderedDict[int, tuple[str, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def remember(self, message_id: int | None, sender_id: int | str) -> None:
        if message_id is None:
            return
        self._entries[message_id] = (str(sender_id), time.monotonic() + self._ttl_seconds)
        self._entries.move_to_end(message_id)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def lookup(self, message_id: int | None) -> str | None:
        """Return the sender ID for ``message_id`` if known and not expired."""
        if message_id is None:
            return None
        self._prune()
        entry = self._entries.get(message_id)
        return entry[0] if entry else None

    def _prune(self) -> None:
        now = time.monotonic()
        expired = [mid for mid, (_, expires_at) in self._entries.items() if expires_at <= now]
        for mid in expired:
            del self._entries[mid]
