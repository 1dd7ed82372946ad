"""In-memory registry giving each checkout session its own resolver."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Callable

from ..distance.base import DistanceProvider
from .resolver import DeliveryFeeResolver

logger = logging.getLogger(__name__)


class ResolverSessions:
    """Least-recently-used map of session id to ``DeliveryFeeResolver``.

    All resolvers share one provider (and therefore its HTTP client and
    distance cache) but never a memo.
    """

    def __init__(self, provider_factory: Callable[[], DistanceProvider], max_sessions: int) -> None:
        self._provider_factory = provider_factory
        self._provider: DistanceProvider | None = None
        self.max_sessions = max_sessions
        self._resolvers: OrderedDict[str, DeliveryFeeResolver] = OrderedDict()

    @property
    def provider(self) -> DistanceProvider:
        if self._provider is None:
            self._provider = self._provider_factory()
        return self._provider

    def __len__(self) -> int:
        return len(self._resolvers)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._resolvers

    def get(self, session_id: str) -> DeliveryFeeResolver:
        resolver = self._resolvers.get(session_id)
        if resolver is not None:
            self._resolvers.move_to_end(session_id)
            return resolver

        resolver = DeliveryFeeResolver(self.provider)
        self._resolvers[session_id] = resolver
        if len(self._resolvers) > self.max_sessions:
            evicted, _ = self._resolvers.popitem(last=False)
            logger.debug(f"Evicted resolver session {evicted}")
        return resolver

    def discard(self, session_id: str) -> bool:
        return self._resolvers.pop(session_id, None) is not None

    async def aclose(self) -> None:
        self._resolvers.clear()
        if self._provider is not None:
            await self._provider.aclose()
            self._provider = None
