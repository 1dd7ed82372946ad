"""Classification of a single delivery zone against a measured distance."""

from __future__ import annotations

from typing import Iterable

from ...models.domain import DeliveryZone, ZoneClassification, ZoneMatch

# Width of the on-edge band. Independent of the caller's tolerance.
BOUNDARY_EPSILON_KM = 0.05

_UNMATCHED = ZoneClassification()


def classify(distance: float, zone: DeliveryZone, tolerance_km: float) -> ZoneClassification:
    """Classify ``distance`` against ``zone``.

    Inactive zones are invisible: every flag is false regardless of distance.
    """
    if not zone.active:
        return _UNMATCHED

    is_exactly_in_zone = zone.min_distance <= distance <= zone.max_distance
    is_on_boundary = (
        abs(distance - zone.min_distance) < BOUNDARY_EPSILON_KM
        or abs(distance - zone.max_distance) < BOUNDARY_EPSILON_KM
    )
    is_in_zone_with_tolerance = (
        zone.min_distance - tolerance_km <= distance <= zone.max_distance + tolerance_km
    )
    return ZoneClassification(
        is_exactly_in_zone=is_exactly_in_zone,
        is_on_boundary=is_on_boundary,
        is_in_zone_with_tolerance=is_in_zone_with_tolerance,
    )


def find_matching_zones(
    distance: float, zones: Iterable[DeliveryZone], tolerance_km: float
) -> list[ZoneMatch]:
    """Return every zone for which at least one classification flag holds."""
    matches: list[ZoneMatch] = []
    for zone in zones:
        classification = classify(distance, zone, tolerance_km)
        if classification.matches:
            matches.append(ZoneMatch(zone=zone, classification=classification))
    return matches
