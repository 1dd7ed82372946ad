"""Delivery fee resolution: distance lookup, zone matching and result stability.

One ``DeliveryFeeResolver`` belongs to one calculation session (a checkout
form, typically). It remembers the last destination it resolved so that
re-submitting an unchanged address neither calls the distance provider again
nor risks a different verdict because of upstream jitter.

Calls may race while the user edits an address. A lookup that completes after
a newer destination was requested is returned flagged ``stale`` and never
touches the memo.
"""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Sequence

from ...config import settings
from ...errors import DeliveryZoneError, InvalidParametersError, ProviderError
from ...models.domain import (
    MAX_DISTANCE_KM,
    Coordinates,
    DeliveryZone,
    Location,
    ResolutionMemo,
    ResolutionResult,
    location_key,
)
from ..distance.base import DistanceProvider
from ..zoning import find_matching_zones, select_best

DEFAULT_ZONE_ID = "default"

logger = logging.getLogger(__name__)


def round_distance(distance_km: float) -> float:
    """Round half-up to two decimals, the precision every comparison uses."""
    try:
        return float(Decimal(repr(distance_km)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # Infinite or too many digits to hold at two decimals.
        return float(distance_km)


def default_zone() -> DeliveryZone:
    return DeliveryZone(
        id=DEFAULT_ZONE_ID,
        min_distance=0.0,
        max_distance=settings.default_zone_max_distance_km,
        fee=settings.default_zone_fee,
        estimated_time=settings.default_zone_estimated_time,
        active=True,
    )


def effective_zones(zones: Sequence[DeliveryZone]) -> tuple[DeliveryZone, ...]:
    """Zones to match against; a restaurant without zones gets the fallback band."""
    if not zones:
        return (default_zone(),)
    return tuple(zones)


def quote_for_distance(
    distance_km: float,
    zones: Sequence[DeliveryZone],
    tolerance_km: float | None = None,
) -> ResolutionResult:
    """Match an already measured distance against ``zones``."""
    tolerance = settings.default_tolerance_km if tolerance_km is None else tolerance_km
    distance = round_distance(distance_km)
    matches = find_matching_zones(distance, effective_zones(zones), tolerance)
    zone = select_best(matches)
    if zone is None:
        return ResolutionResult(deliverable=False, distance_km=distance, matches=tuple(matches))
    return ResolutionResult(
        deliverable=True,
        fee=zone.fee,
        estimated_time=zone.estimated_time,
        zone=zone,
        distance_km=distance,
        matches=tuple(matches),
    )


def _validate_location(location: object, label: str) -> Location:
    if isinstance(location, Coordinates):
        if not (math.isfinite(location.lat) and math.isfinite(location.lng)):
            raise InvalidParametersError(f"{label} coordinates must be finite numbers.")
        return location
    if isinstance(location, str) and location.strip():
        return location
    raise InvalidParametersError(f"{label} is required.")


def _validate_zones(zones: object) -> Sequence[DeliveryZone]:
    if zones is None or isinstance(zones, (str, bytes)) or not isinstance(zones, (list, tuple)):
        raise InvalidParametersError("zones must be a list of delivery zones.")
    for zone in zones:
        if not isinstance(zone, DeliveryZone):
            raise InvalidParametersError(f"Invalid delivery zone entry: {zone!r}")
    return zones


def _validate_tolerance(tolerance_km: object) -> float:
    if tolerance_km is None:
        return settings.default_tolerance_km
    if isinstance(tolerance_km, bool) or not isinstance(tolerance_km, (int, float)):
        raise InvalidParametersError("tolerance_km must be a number.")
    if not math.isfinite(tolerance_km) or tolerance_km < 0:
        raise InvalidParametersError("tolerance_km must be a finite, non-negative number.")
    return float(tolerance_km)


class DeliveryFeeResolver:
    """Resolve destinations to delivery fees for a single session."""

    def __init__(self, provider: DistanceProvider) -> None:
        self.provider = provider
        self.memo = ResolutionMemo()
        self._latest_requested: Optional[str] = None

    def reset(self) -> None:
        """Forget the memoized verdict, e.g. after the zone set changed."""
        self.memo.clear()
        self._latest_requested = None

    async def resolve(
        self,
        origin: Location,
        destination: Location,
        zones: Sequence[DeliveryZone],
        tolerance_km: float | None = None,
    ) -> ResolutionResult:
        origin = _validate_location(origin, "origin")
        destination = _validate_location(destination, "destination")
        zones = _validate_zones(zones)
        tolerance = _validate_tolerance(tolerance_km)

        address = location_key(destination)
        self._latest_requested = address

        memoized = self.memo.lookup(address)
        if memoized is not None:
            logger.debug(f"Reusing {self.memo.last_outcome.value} verdict for '{address}'")
            return memoized

        try:
            raw_distance = await self.provider.distance(origin, destination)
        except DeliveryZoneError as exc:
            self._record_failure(address, exc)
            raise
        except Exception as exc:
            error = ProviderError(f"Distance lookup failed: {exc}")
            self._record_failure(address, error)
            raise error from exc

        if (
            not isinstance(raw_distance, (int, float))
            or not math.isfinite(raw_distance)
            or not 0 <= raw_distance <= MAX_DISTANCE_KM
        ):
            error = ProviderError(f"Distance provider returned an unusable value: {raw_distance!r}")
            self._record_failure(address, error)
            raise error

        result = quote_for_distance(raw_distance, zones, tolerance)

        if self._latest_requested != address:
            logger.warning(
                f"Discarding stale resolution for '{address}'; latest request is '{self._latest_requested}'"
            )
            return ResolutionResult(
                deliverable=result.deliverable,
                fee=result.fee,
                estimated_time=result.estimated_time,
                zone=result.zone,
                distance_km=result.distance_km,
                matches=result.matches,
                stale=True,
            )

        self.memo.remember(address, result)
        if result.deliverable:
            logger.info(
                f"Resolved '{address}' at {result.distance_km} km to zone {result.zone.id} (fee {result.fee})"
            )
        else:
            logger.info(f"'{address}' at {result.distance_km} km is outside the delivery area")
        return result

    def _record_failure(self, address: str, error: DeliveryZoneError) -> None:
        logger.warning(f"Distance lookup for '{address}' failed ({error.kind.value}): {error}")
        if self._latest_requested == address:
            self.memo.forget_outcome(address)
