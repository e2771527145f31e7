"""Duplicate-delivery guard for Telegram webhook updates.

Telegram redelivers an update when the webhook does not answer 2xx in time.
Processed ``update_id``s are remembered in memory for a short window and
redeliveries inside it are skipped. Updates without an ``update_id`` are
never treated as duplicates.
"""

from __future__ import annotations

import time
from collections import OrderedDict


class ReplayProtection:
    """Remembers up to ``max_entries`` recent update IDs for ``ttl_seconds``."""

    def __init__(self, ttl_seconds: int = 3600, max_entries: int = 100_000) -> None:
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        # Insertion order equals expiry order because the TTL is fixed.
        self._seen: OrderedDict[int, float] = OrderedDict()

    def __len__(self) -> int:
        return len(self._seen)

    def check_update(self, update_id: int | None) -> bool:
        """Return True if the update is new, and mark it as seen."""
        if update_id is None:
            return True
        now = time.monotonic()
        self._prune(now)

        if update_id in self._seen:
            return False
        self._seen[update_id] = now + self._ttl_seconds
        while len(self._seen) > self._max_entries:
            self._seen.popitem(last=False)
        return True

    def forget(self, update_id: int | None) -> None:
        """Drop ``update_id`` so a redelivery after a failure is processed again."""
        if update_id is not None:
            self._seen.pop(update_id, None)

    def _prune(self, now: float) -> None:
        while self._seen:
            oldest_expiry = next(iter(self._seen.values()))
            if oldest_expiry > now:
                break
            self._seen.popitem(last=False)
