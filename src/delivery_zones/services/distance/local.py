"""Local great-circle distance computation, no network involved."""

from __future__ import annotations

import logging
import math

from ...models.domain import Coordinates, Location
from .base import DistanceProvider, require_coordinates

EARTH_RADIUS_KM = 6371.0

# WGS-84 ellipsoid
WGS84_A_KM = 6378.137
WGS84_B_KM = 6356.752314245
WGS84_F = 1 / 298.257223563

APPROXIMATION_LIMIT_KM = 10.0
HAVERSINE_LIMIT_KM = 100.0

logger = logging.getLogger(__name__)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def equirectangular_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Flat-earth approximation, good enough for a few kilometers."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    x = math.radians(lon2 - lon1) * math.cos((phi1 + phi2) / 2)
    y = phi2 - phi1
    return math.sqrt(x * x + y * y) * EARTH_RADIUS_KM


def vincenty_km(
    lat1: float, lon1: float, lat2: float, lon2: float, *, max_iterations: int = 100
) -> float | None:
    """Inverse Vincenty on the WGS-84 ellipsoid.

    Returns ``None`` when the iteration does not converge (nearly antipodal
    points).
    """
    a, b, f = WGS84_A_KM, WGS84_B_KM, WGS84_F
    big_l = math.radians(lon2 - lon1)
    u1 = math.atan((1 - f) * math.tan(math.radians(lat1)))
    u2 = math.atan((1 - f) * math.tan(math.radians(lat2)))
    sin_u1, cos_u1 = math.sin(u1), math.cos(u1)
    sin_u2, cos_u2 = math.sin(u2), math.cos(u2)

    lam = big_l
    for _ in range(max_iterations):
        sin_lam, cos_lam = math.sin(lam), math.cos(lam)
        sin_sigma = math.sqrt(
            (cos_u2 * sin_lam) ** 2 + (cos_u1 * sin_u2 - sin_u1 * cos_u2 * cos_lam) ** 2
        )
        if sin_sigma == 0:
            return 0.0
        cos_sigma = sin_u1 * sin_u2 + cos_u1 * cos_u2 * cos_lam
        sigma = math.atan2(sin_sigma, cos_sigma)
        sin_alpha = cos_u1 * cos_u2 * sin_lam / sin_sigma
        cos_sq_alpha = 1 - sin_alpha**2
        # equatorial line
        cos_2sigma_m = cos_sigma - 2 * sin_u1 * sin_u2 / cos_sq_alpha if cos_sq_alpha else 0.0
        c = f / 16 * cos_sq_alpha * (4 + f * (4 - 3 * cos_sq_alpha))
        lam_prev = lam
        lam = big_l + (1 - c) * f * sin_alpha * (
            sigma + c * sin_sigma * (cos_2sigma_m + c * cos_sigma * (-1 + 2 * cos_2sigma_m**2))
        )
        if abs(lam - lam_prev) <= 1e-12:
            break
    else:
        return None

    u_sq = cos_sq_alpha * (a * a - b * b) / (b * b)
    big_a = 1 + u_sq / 16384 * (4096 + u_sq * (-768 + u_sq * (320 - 175 * u_sq)))
    big_b = u_sq / 1024 * (256 + u_sq * (-128 + u_sq * (74 - 47 * u_sq)))
    delta_sigma = big_b * sin_sigma * (
        cos_2sigma_m
        + big_b
        / 4
        * (
            cos_sigma * (-1 + 2 * cos_2sigma_m**2)
            - big_b / 6 * cos_2sigma_m * (-3 + 4 * sin_sigma**2) * (-3 + 4 * cos_2sigma_m**2)
        )
    )
    return b * big_a * (sigma - delta_sigma)


def optimal_distance_km(origin: Coordinates, destination: Coordinates) -> float:
    """Pick the cheapest formula that stays accurate for the magnitude at hand."""
    approx = equirectangular_km(origin.lat, origin.lng, destination.lat, destination.lng)
    if approx < APPROXIMATION_LIMIT_KM:
        return approx
    if approx < HAVERSINE_LIMIT_KM:
        return haversine_km(origin.lat, origin.lng, destination.lat, destination.lng)
    ellipsoidal = vincenty_km(origin.lat, origin.lng, destination.lat, destination.lng)
    if ellipsoidal is None:
        logger.debug(f"Vincenty did not converge for {origin} -> {destination}, using haversine")
        return haversine_km(origin.lat, origin.lng, destination.lat, destination.lng)
    return ellipsoidal


class HaversineDistanceProvider(DistanceProvider):
    """Straight-line distance between two coordinates."""

    name = "haversine"

    async def distance(self, origin: Location, destination: Location) -> float:
        start = require_coordinates(origin, self.name)
        end = require_coordinates(destination, self.name)
        return optimal_distance_km(start, end)
