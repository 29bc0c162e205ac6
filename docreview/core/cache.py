"""Time-expiring object cache with deduplicated, bounded downloads.

Keys are semantic: ``file-<id>`` holds raw object bytes, ``<kind>-index``
holds a listing.  Entries are replaced whole and expire purely on TTL; they
are not versioned against the store's ``modifiedTime``, so an external change
can stay invisible for up to one TTL window.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_IN_FLIGHT = 5
SWEEP_FACTOR = 1.1


def file_key(file_id: str) -> str:
    return f"file-{file_id}"


def index_key(kind: str) -> str:
    return f"{kind}-index"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class ObjectCache:
    """Expiring key/value map shared by every request of the process.

    ``load`` is the only way downloads should reach the store: a hit returns
    immediately, concurrent misses for one key share a single in-flight
    future, and gated misses pass through a semaphore of ``max_in_flight``
    slots.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._max_in_flight = max_in_flight
        self._gate = asyncio.Semaphore(max_in_flight)

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def max_in_flight(self) -> int:
        return self._max_in_flight

    @property
    def check_period(self) -> float:
        return self._ttl * SWEEP_FACTOR

    # ------------------------------------------------------------------
    # map operations
    # ------------------------------------------------------------------
    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            # only drop the entry we looked at, a newer one may have replaced it
            if self._entries.get(key) is entry:
                del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, *, ttl_seconds: float | None = None) -> None:
        if value is None:
            raise ValueError("cannot cache None")
        ttl = self._ttl if ttl_seconds is None else float(ttl_seconds)
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)

    def invalidate(self, prefix: str = "") -> int:
        """Delete every entry whose key starts with ``prefix``; ``""`` clears all.

        Loads already in flight for a matching key are detached: their callers
        still get the value, but it is not written back into the cache.
        """

        for key in [key for key in self._pending if key.startswith(prefix)]:
            del self._pending[key]
        if not prefix:
            removed = len(self._entries)
            self._entries = {}
            return removed
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            self._entries.pop(key, None)
        return len(doomed)

    def sweep(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def keys(self) -> list[str]:
        now = self._clock()
        return [key for key, entry in self._entries.items() if entry.expires_at > now]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        return len(self.keys())

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------
    def in_flight(self) -> int:
        return len(self._pending)

    async def load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        *,
        gated: bool = True,
    ) -> Any:
        """Return the cached value for ``key`` or fill it with ``loader``.

        Failures are not cached; every caller waiting on the same key sees the
        same exception.
        """

        value = self.get(key)
        if value is not None:
            return value

        pending = self._pending.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            if gated:
                async with self._gate:
                    value = await loader()
            else:
                value = await loader()
            if self._pending.get(key) is future:
                self.set(key, value)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # waiters still receive it; this only silences the unretrieved warning
            future.exception()
            raise
        else:
            future.set_result(value)
            return value
        finally:
            if self._pending.get(key) is future:
                del self._pending[key]

    async def run_sweeper(self) -> None:
        """Evict expired entries every ``check_period`` seconds until cancelled."""

        while True:
            await asyncio.sleep(self.check_period)
            removed = self.sweep()
            if removed:
                LOGGER.debug("Cache sweep evicted %d entries", removed)


__all__ = [
    "CacheEntry",
    "DEFAULT_MAX_IN_FLIGHT",
    "DEFAULT_TTL_SECONDS",
    "ObjectCache",
    "file_key",
    "index_key",
]
