import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from infrastructure.cache.base import CacheStore


@dataclass(frozen=True)
class CacheEntry:
    value: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryCacheStore(CacheStore):
    """Process-local TTL store.

    With ``max_entries`` set, a full store first drops expired entries and then
    the oldest written one. Neither get nor set awaits, so concurrent tasks on
    the same event loop never observe a half-applied write.
    """

    def __init__(self, max_entries: int | None = None, clock: Callable[[], float] = time.monotonic):
        if max_entries is not None and max_entries < 1:
            raise ValueError('max_entries must be positive')
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set(self, key: str, value: str, ttl: timedelta) -> None:
        now = self._clock()
        # Re-insert so overwritten keys count as newest for eviction
        self._entries.pop(key, None)
        if self.max_entries is not None and len(self._entries) >= self.max_entries:
            self._evict(now)
        self._entries[key] = CacheEntry(value=value, expires_at=now + ttl.total_seconds())

    def _evict(self, now: float) -> None:
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        while len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def __len__(self) -> int:
        return len(self._entries)
