"""Service layer wiring request schemas to the resolver."""

from __future__ import annotations

import logging
import math
from functools import lru_cache

from ...config import settings
from ...errors import DeliveryZoneError, InvalidParametersError, ProviderError
from ...models.domain import MAX_DISTANCE_KM, ResolutionResult, parse_location
from ...schemas.delivery import DeliveryQuoteRequest, ZoneMatchRequest, to_location
from ..distance.dispatcher import get_provider
from .resolver import quote_for_distance, round_distance
from .sessions import ResolverSessions

logger = logging.getLogger(__name__)


@lru_cache()
def get_sessions() -> ResolverSessions:
    """Process-wide session registry; each session still owns its own resolver."""
    return ResolverSessions(get_provider, settings.max_sessions)


async def quote_delivery(payload: DeliveryQuoteRequest) -> ResolutionResult:
    resolver = get_sessions().get(payload.session_id)
    zones = None if payload.zones is None else [zone.to_domain() for zone in payload.zones]
    return await resolver.resolve(
        to_location(payload.origin),
        to_location(payload.destination),
        zones,
        payload.tolerance_km,
    )


def end_session(session_id: str) -> bool:
    return get_sessions().discard(session_id)


def match_zones(payload: ZoneMatchRequest) -> ResolutionResult:
    zones = [zone.to_domain() for zone in payload.zones]
    return quote_for_distance(payload.distance_km, zones, payload.tolerance_km)


async def measure_distance(origin: str, destination: str) -> tuple[str, float]:
    """Ask the configured provider directly, bypassing any session memo."""
    if not origin.strip() or not destination.strip():
        raise InvalidParametersError("Origin and destination are required.")
    provider = get_sessions().provider
    try:
        raw = await provider.distance(parse_location(origin), parse_location(destination))
    except DeliveryZoneError:
        raise
    except Exception as exc:
        raise ProviderError(f"Distance lookup failed: {exc}") from exc
    if not isinstance(raw, (int, float)) or not math.isfinite(raw) or not 0 <= raw <= MAX_DISTANCE_KM:
        raise ProviderError(f"Distance provider returned an unusable value: {raw!r}")
    distance = round_distance(raw)
    logger.info(f"Measured {distance} km between '{origin}' and '{destination}' via {provider.name}")
    return provider.name, distance
