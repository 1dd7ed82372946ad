"""Domain models for delivery zones and resolution outcomes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class Coordinates:
    """A WGS-84 point."""

    lat: float
    lng: float


Location = Union[str, Coordinates]

# Longer than any route on Earth; anything above is an upstream fault.
MAX_DISTANCE_KM = 50_000.0


_COORDINATE_PAIR = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")


def parse_location(text: str) -> Location:
    """Turn a ``"lat,lng"`` string into coordinates; anything else stays an address."""
    match = _COORDINATE_PAIR.match(text)
    if match is None:
        return text
    lat, lng = float(match.group(1)), float(match.group(2))
    if -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0:
        return Coordinates(lat=lat, lng=lng)
    return text


def location_key(location: Location) -> str:
    """Canonical string used to compare locations across calls."""
    if isinstance(location, Coordinates):
        return f"{location.lat},{location.lng}"
    return location.strip()


@dataclass(frozen=True, slots=True)
class DeliveryZone:
    """One fee/time band of a restaurant's delivery area.

    ``min_distance < max_distance`` is expected but not enforced; zones come
    from restaurant administration and may overlap or be inverted.
    """

    id: str
    min_distance: float
    max_distance: float
    fee: float
    estimated_time: str = ""
    active: bool = True


class MatchTier(IntEnum):
    """How certainly a distance falls inside a zone. Higher wins."""

    NONE = 0
    TOLERANCE = 1
    BOUNDARY = 2
    EXACT = 3


@dataclass(frozen=True, slots=True)
class ZoneClassification:
    is_exactly_in_zone: bool = False
    is_on_boundary: bool = False
    is_in_zone_with_tolerance: bool = False

    @property
    def tier(self) -> MatchTier:
        if self.is_exactly_in_zone:
            return MatchTier.EXACT
        if self.is_on_boundary:
            return MatchTier.BOUNDARY
        if self.is_in_zone_with_tolerance:
            return MatchTier.TOLERANCE
        return MatchTier.NONE

    @property
    def matches(self) -> bool:
        return self.tier is not MatchTier.NONE


@dataclass(frozen=True, slots=True)
class ZoneMatch:
    zone: DeliveryZone
    classification: ZoneClassification


class ErrorKind(str, Enum):
    INVALID_PARAMETERS = "invalid_parameters"
    ADDRESS_NOT_FOUND = "address_not_found"
    PROVIDER_ERROR = "provider_error"


class Outcome(str, Enum):
    """Verdict recorded for the last resolved destination."""

    UNKNOWN = "unknown"
    DELIVERABLE = "deliverable"
    OUT_OF_RANGE = "out_of_range"


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome of resolving one destination against a zone set.

    ``deliverable=False`` with a distance and no ``error_kind`` is the normal
    "outside the delivery area" answer.
    """

    deliverable: bool
    fee: Optional[float] = None
    estimated_time: Optional[str] = None
    zone: Optional[DeliveryZone] = None
    distance_km: Optional[float] = None
    error_kind: Optional[ErrorKind] = None
    matches: tuple[ZoneMatch, ...] = ()
    stale: bool = False

    @property
    def outcome(self) -> Outcome:
        if self.error_kind is not None or self.distance_km is None:
            return Outcome.UNKNOWN
        return Outcome.DELIVERABLE if self.deliverable else Outcome.OUT_OF_RANGE

    @classmethod
    def for_error(cls, kind: ErrorKind) -> "ResolutionResult":
        return cls(deliverable=False, error_kind=kind)


@dataclass(slots=True)
class ResolutionMemo:
    """Single-slot record of the last resolved destination for one session."""

    last_address: Optional[str] = None
    last_outcome: Outcome = Outcome.UNKNOWN
    last_result: Optional[ResolutionResult] = field(default=None)

    def remember(self, address: str, result: ResolutionResult) -> None:
        self.last_address = address
        self.last_outcome = result.outcome
        self.last_result = result

    def forget_outcome(self, address: str) -> None:
        self.last_address = address
        self.last_outcome = Outcome.UNKNOWN
        self.last_result = None

    def lookup(self, address: str) -> Optional[ResolutionResult]:
        if address != self.last_address or self.last_outcome is Outcome.UNKNOWN:
            return None
        return self.last_result

    def clear(self) -> None:
        self.last_address = None
        self.last_outcome = Outcome.UNKNOWN
        self.last_result = None
