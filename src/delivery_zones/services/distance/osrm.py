"""HTTP client for road distances from an OSRM service."""

from __future__ import annotations

import logging

import httpx

from ...config import settings
from ...errors import AddressNotFoundError, ProviderError
from ...models.domain import Location
from .base import DistanceProvider, require_coordinates

# OSRM codes meaning one of the points could not be snapped to the road network.
_UNROUTABLE_CODES = {"NoRoute", "NoSegment"}

logger = logging.getLogger(__name__)


class OSRMDistanceProvider(DistanceProvider):
    name = "osrm"

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=5.0))
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def distance(self, origin: Location, destination: Location) -> float:
        """Road distance in kilometers along the fastest OSRM route."""
        start = require_coordinates(origin, self.name)
        end = require_coordinates(destination, self.name)

        # OSRM expects "lon,lat;lon,lat"
        coordinate_str = f"{start.lng},{start.lat};{end.lng},{end.lat}"
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"
        params = {"overview": "false", "steps": "false"}

        try:
            response = await self._get_client().get(url, params=params)
            data = response.json()
        except httpx.TimeoutException as exc:
            raise ProviderError(f"OSRM route request timed out: {exc}") from exc
        except (httpx.ConnectError, httpx.NetworkError) as exc:
            raise ProviderError(f"Failed to connect to OSRM service at {self.base_url}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"OSRM route request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(
                f"OSRM answered HTTP {response.status_code} with a non-JSON body"
            ) from exc

        code = data.get("code") if isinstance(data, dict) else None
        if code in _UNROUTABLE_CODES:
            logger.info(f"OSRM could not route {start} -> {end}: {code}")
            raise AddressNotFoundError(f"{end.lat},{end.lng}", data.get("message") or code)
        if code != "Ok" or response.is_error:
            message = data.get("message", "Unknown OSRM route error") if isinstance(data, dict) else "Unknown OSRM route error"
            raise ProviderError(f"OSRM route request failed ({response.status_code}): {message}")

        try:
            meters = float(data["routes"][0]["distance"])
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ProviderError("OSRM response missing route distance.") from exc
        return meters / 1000


async def check_health(base_url: str | None = None, profile: str | None = None) -> bool:
    """Check OSRM service health by routing between two fixed points.

    Public OSRM endpoints may not have a /health endpoint.
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    test_coords = "13.388860,52.517037;13.385983,52.496891"
    url = f"{base.rstrip('/')}/route/v1/{profile or settings.osrm_profile}/{test_coords}"
    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.get(url, params={"overview": "false"})
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError):
        return False
    return data.get("code") == "Ok"
