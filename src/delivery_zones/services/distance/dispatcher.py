"""Factory for distance providers based on configuration."""

from __future__ import annotations

from typing import Any

from ...config import settings
from .base import DistanceProvider
from .cache import CachedDistanceProvider
from .google import GoogleDistanceMatrixProvider
from .local import HaversineDistanceProvider
from .osrm import OSRMDistanceProvider


def get_provider(name: str | None = None, *, cached: bool | None = None, **kwargs: Any) -> DistanceProvider:
    method = name or settings.distance_provider
    provider: DistanceProvider
    match method:
        case "google":
            provider = GoogleDistanceMatrixProvider(**kwargs)
        case "osrm":
            provider = OSRMDistanceProvider(**kwargs)
        case "haversine":
            provider = HaversineDistanceProvider()
        case _:
            raise ValueError(f"Unknown distance provider '{method}'.")

    use_cache = settings.distance_cache_enabled if cached is None else cached
    if use_cache and settings.distance_cache_ttl_seconds > 0:
        return CachedDistanceProvider(provider, settings.distance_cache_ttl_seconds)
    return provider
