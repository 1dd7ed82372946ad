"""Base classes for distance provider implementations."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from ...errors import InvalidParametersError
from ...models.domain import Coordinates, Location


class DistanceProvider(ABC):
    """Contract for upstream distance lookups.

    Implementations return raw kilometers; rounding belongs to the caller.
    Failures must be raised as ``InvalidParametersError``,
    ``AddressNotFoundError`` or ``ProviderError``.
    """

    name: str = "abstract"

    @abstractmethod
    async def distance(self, origin: Location, destination: Location) -> float:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


def format_location(location: Location) -> str:
    if isinstance(location, Coordinates):
        return f"{location.lat},{location.lng}"
    return location.strip()


def require_coordinates(location: Location, provider: str) -> Coordinates:
    """Reject free-form addresses for providers that only understand points."""
    if not isinstance(location, Coordinates):
        raise InvalidParametersError(
            f"The {provider} distance provider needs coordinates, got address '{location}'."
        )
    if not (math.isfinite(location.lat) and math.isfinite(location.lng)):
        raise InvalidParametersError(f"Coordinates must be finite numbers: {location}")
    if not (-90.0 <= location.lat <= 90.0 and -180.0 <= location.lng <= 180.0):
        raise InvalidParametersError(f"Coordinates out of range: {location}")
    return location
