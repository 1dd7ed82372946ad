"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/distance", status_code=status.HTTP_200_OK)
async def health_distance() -> dict:
    """Report whether the configured distance provider is usable."""
    provider = settings.distance_provider
    match provider:
        case "osrm":
            from ...services.distance.osrm import check_health

            if not settings.osrm_base_url:
                return {"service": provider, "healthy": False, "error": "OSRM base URL is not configured."}
            return {"service": provider, "healthy": await check_health()}
        case "google":
            if not settings.google_maps_api_key:
                return {"service": provider, "healthy": False, "error": "Google Maps API key is not configured."}
            return {"service": provider, "healthy": True}
        case _:
            return {"service": provider, "healthy": True}
