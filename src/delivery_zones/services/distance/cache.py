"""Time-bounded memoization of raw provider distances."""

from __future__ import annotations

import logging
import time
from typing import Callable

from ...models.domain import Location
from .base import DistanceProvider, format_location

logger = logging.getLogger(__name__)


def _normalize(location: Location) -> str:
    return " ".join(format_location(location).lower().split())


class CachedDistanceProvider(DistanceProvider):
    """Wrap a provider and reuse its answers for ``ttl_seconds``.

    Only successful lookups are stored; a failure is always retried upstream
    on the next call. Distances are cached raw, exactly as returned.
    """

    def __init__(
        self,
        inner: DistanceProvider,
        ttl_seconds: float,
        *,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.inner = inner
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[tuple[str, str], tuple[float, float]] = {}

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"cached-{self.inner.name}"

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    async def distance(self, origin: Location, destination: Location) -> float:
        key = (_normalize(origin), _normalize(destination))
        now = self._clock()
        cached = self._entries.get(key)
        if cached is not None and cached[0] > now:
            logger.debug(f"Distance cache hit for {key[0]} -> {key[1]}")
            return cached[1]

        value = await self.inner.distance(origin, destination)

        now = self._clock()
        if len(self._entries) >= self.max_entries:
            self._evict_expired(now)
            if len(self._entries) >= self.max_entries:
                # dicts keep insertion order: drop the oldest entry
                self._entries.pop(next(iter(self._entries)))
        self._entries[key] = (now + self.ttl_seconds, value)
        return value

    async def aclose(self) -> None:
        await self.inner.aclose()
