"""Distance provider implementations."""

from .base import DistanceProvider
from .cache import CachedDistanceProvider
from .dispatcher import get_provider
from .google import GoogleDistanceMatrixProvider
from .local import HaversineDistanceProvider
from .osrm import OSRMDistanceProvider

__all__ = [
    "CachedDistanceProvider",
    "DistanceProvider",
    "GoogleDistanceMatrixProvider",
    "HaversineDistanceProvider",
    "OSRMDistanceProvider",
    "get_provider",
]
