"""
REGIME WATCH - In-Process TTL Memo Table

Small key/value store with per-entry expiry. Owned by whichever
service computes the values, so that service can name and delete
every key derived from parameters it mutates.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class TTLCache:
    """
    Key/value store with per-entry TTL.

    Not thread-safe on its own; the owning service serializes access.
    """

    def __init__(
        self,
        default_ttl: float = 4 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self._misses += 1
            return None
        self._hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (now + ttl, value)

    def has(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry[0]

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> list[str]:
        """Delete every key starting with prefix. Returns the deleted keys."""
        doomed = sorted(k for k in self._entries if k.startswith(prefix))
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug(f"Cache cleared {len(doomed)} keys with prefix '{prefix}'")
        return doomed

    def keys(self) -> list[str]:
        now = self._clock()
        return sorted(k for k, (expires_at, _) in self._entries.items() if now < expires_at)

    def flush(self) -> None:
        self._entries.clear()

    def stats(self) -> dict:
        return {"keys": len(self.keys()), "hits": self._hits, "misses": self._misses}

    def __len__(self) -> int:
        """Stored entries, expired ones not yet purged included."""
        return len(self._entries)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Cache purged {len(expired)} expired keys")
