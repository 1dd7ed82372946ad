"""API routes for delivery fee resolution."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from ...errors import ERROR_STATUS_CODES, DeliveryZoneError
from ...models.domain import ResolutionResult
from ...schemas.delivery import (
    DeliveryQuoteRequest,
    DistanceResponse,
    ResolutionResponse,
    ZoneMatchRequest,
)
from ...services.delivery import service as delivery_service

router = APIRouter(tags=["delivery"])


def _http_error(exc: DeliveryZoneError) -> HTTPException:
    body = ResolutionResponse.from_result(ResolutionResult.for_error(exc.kind)).model_dump(mode="json")
    body["message"] = exc.message
    return HTTPException(status_code=ERROR_STATUS_CODES[exc.kind], detail=body)


@router.post("/delivery/quote", response_model=ResolutionResponse, status_code=status.HTTP_200_OK)
async def quote_delivery(payload: DeliveryQuoteRequest) -> ResolutionResponse:
    """Resolve the fee for a destination within a checkout session.

    An address outside every zone is a normal answer (``deliverable=false``),
    not an error.
    """
    try:
        result = await delivery_service.quote_delivery(payload)
    except DeliveryZoneError as exc:
        raise _http_error(exc) from exc
    return ResolutionResponse.from_result(result)


@router.delete("/delivery/sessions/{session_id}", status_code=status.HTTP_200_OK)
def end_session(session_id: str) -> dict:
    removed = delivery_service.end_session(session_id)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown session '{session_id}'")
    return {"session_id": session_id, "removed": True}


@router.post("/delivery/zones/match", response_model=ResolutionResponse, status_code=status.HTTP_200_OK)
def match_zones(payload: ZoneMatchRequest) -> ResolutionResponse:
    """Classify every zone against a known distance, without any provider call."""
    return ResolutionResponse.from_result(delivery_service.match_zones(payload))


@router.get("/distance", response_model=DistanceResponse, status_code=status.HTTP_200_OK)
async def calculate_distance(
    origin: str = Query(default="", description="Restaurant address or 'lat,lng'."),
    destination: str = Query(default="", description="Customer address or 'lat,lng'."),
) -> DistanceResponse:
    try:
        provider_name, distance = await delivery_service.measure_distance(origin, destination)
    except DeliveryZoneError as exc:
        raise _http_error(exc) from exc
    return DistanceResponse(
        origin=origin,
        destination=destination,
        distance_km=distance,
        provider=provider_name,
    )
