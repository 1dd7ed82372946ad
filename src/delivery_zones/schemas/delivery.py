"""Pydantic request/response models for delivery endpoints."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..models.domain import (
    MAX_DISTANCE_KM,
    Coordinates,
    DeliveryZone,
    ErrorKind,
    Location,
    ResolutionResult,
    ZoneMatch,
    parse_location,
)


class CoordinatesModel(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    def to_domain(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


LocationModel = Union[CoordinatesModel, str]


def to_location(value: Optional[LocationModel]) -> Optional[Location]:
    if isinstance(value, CoordinatesModel):
        return value.to_domain()
    if isinstance(value, str):
        return parse_location(value)
    return value


class DeliveryZoneModel(BaseModel):
    id: str
    min_distance: float = Field(..., description="Lower edge of the band in kilometers.")
    max_distance: float = Field(..., description="Upper edge of the band in kilometers.")
    fee: float = Field(..., ge=0.0)
    estimated_time: str = Field(default="", description="Display string, e.g. '30-45 min'.")
    active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    def to_domain(self) -> DeliveryZone:
        return DeliveryZone(
            id=self.id,
            min_distance=self.min_distance,
            max_distance=self.max_distance,
            fee=self.fee,
            estimated_time=self.estimated_time,
            active=self.active,
        )

    @classmethod
    def from_domain(cls, zone: DeliveryZone) -> "DeliveryZoneModel":
        return cls(
            id=zone.id,
            min_distance=zone.min_distance,
            max_distance=zone.max_distance,
            fee=zone.fee,
            estimated_time=zone.estimated_time,
            active=zone.active,
        )


class DeliveryQuoteRequest(BaseModel):
    session_id: str = Field(..., min_length=1, description="Identifies one checkout flow.")
    origin: Optional[LocationModel] = Field(default=None, description="Restaurant address or coordinates.")
    destination: Optional[LocationModel] = Field(default=None, description="Customer address or coordinates.")
    zones: Optional[List[DeliveryZoneModel]] = Field(
        default=None,
        description="Restaurant delivery zones; an empty list selects the fallback zone.",
    )
    tolerance_km: Optional[float] = Field(default=None, description="Edge margin; defaults to the configured value.")


class ZoneMatchModel(BaseModel):
    zone: DeliveryZoneModel
    tier: str
    is_exactly_in_zone: bool
    is_on_boundary: bool
    is_in_zone_with_tolerance: bool

    @classmethod
    def from_domain(cls, match: ZoneMatch) -> "ZoneMatchModel":
        classification = match.classification
        return cls(
            zone=DeliveryZoneModel.from_domain(match.zone),
            tier=classification.tier.name.lower(),
            is_exactly_in_zone=classification.is_exactly_in_zone,
            is_on_boundary=classification.is_on_boundary,
            is_in_zone_with_tolerance=classification.is_in_zone_with_tolerance,
        )


class ResolutionResponse(BaseModel):
    deliverable: bool
    fee: Optional[float] = None
    estimated_time: Optional[str] = None
    zone: Optional[DeliveryZoneModel] = None
    distance_km: Optional[float] = None
    error_kind: Optional[ErrorKind] = None
    stale: bool = False
    matches: List[ZoneMatchModel] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ResolutionResult) -> "ResolutionResponse":
        return cls(
            deliverable=result.deliverable,
            fee=result.fee,
            estimated_time=result.estimated_time,
            zone=DeliveryZoneModel.from_domain(result.zone) if result.zone else None,
            distance_km=result.distance_km,
            error_kind=result.error_kind,
            stale=result.stale,
            matches=[ZoneMatchModel.from_domain(match) for match in result.matches],
        )


class ZoneMatchRequest(BaseModel):
    distance_km: float = Field(..., ge=0.0, le=MAX_DISTANCE_KM, allow_inf_nan=False)
    zones: List[DeliveryZoneModel] = Field(default_factory=list)
    tolerance_km: Optional[float] = Field(default=None, ge=0.0)


class DistanceResponse(BaseModel):
    origin: str
    destination: str
    distance_km: float
    provider: str
