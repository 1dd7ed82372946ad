"""Distance lookups through the Google Distance Matrix API."""

from __future__ import annotations

import logging

import httpx

from ...config import settings
from ...errors import AddressNotFoundError, InvalidParametersError, ProviderError
from ...models.domain import Location
from .base import DistanceProvider, format_location

# Element/top-level statuses that mean "one of the places does not exist".
_NOT_FOUND_STATUSES = {"NOT_FOUND", "ZERO_RESULTS"}

logger = logging.getLogger(__name__)


class GoogleDistanceMatrixProvider(DistanceProvider):
    """Driving distance between two addresses or coordinates."""

    name = "google"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.base_url = base_url or settings.google_distance_matrix_url
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
        origin_text = format_location(origin)
        destination_text = format_location(destination)
        if not origin_text or not destination_text:
            raise InvalidParametersError("Origin and destination are required.")

        params = {
            "origins": origin_text,
            "destinations": destination_text,
            "key": self.api_key,
        }
        try:
            response = await self._get_client().get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise ProviderError(f"Distance Matrix request timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"Distance Matrix answered HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Distance Matrix request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("Distance Matrix returned a non-JSON body") from exc

        return _parse_distance_matrix(data, origin_text, destination_text)


def _parse_distance_matrix(data: object, origin: str, destination: str) -> float:
    """Extract kilometers from a Distance Matrix payload."""
    if not isinstance(data, dict):
        raise ProviderError("Distance Matrix returned an unexpected payload")

    status = data.get("status")
    if status == "INVALID_REQUEST":
        raise InvalidParametersError(data.get("error_message") or "Distance Matrix rejected the request.")
    if status in _NOT_FOUND_STATUSES:
        raise AddressNotFoundError(destination, status)
    if status != "OK":
        details = data.get("error_message")
        raise ProviderError(f"Distance Matrix status {status}" + (f": {details}" if details else ""))

    try:
        element = data["rows"][0]["elements"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError("Distance Matrix response has no elements") from exc

    element_status = element.get("status") if isinstance(element, dict) else None
    if element_status in _NOT_FOUND_STATUSES:
        logger.info(f"No route between '{origin}' and '{destination}': {element_status}")
        raise AddressNotFoundError(destination, element_status)
    if element_status != "OK":
        raise ProviderError(f"Distance Matrix element status {element_status}")

    try:
        meters = float(element["distance"]["value"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError("Distance Matrix element has no distance value") from exc
    if meters < 0:
        raise ProviderError(f"Distance Matrix returned a negative distance: {meters}")
    return meters / 1000
