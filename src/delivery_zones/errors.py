"""Error taxonomy shared by distance providers, the resolver and the API."""

from __future__ import annotations

from .models.domain import ErrorKind


class DeliveryZoneError(Exception):
    """Base class for classified resolution failures."""

    kind: ErrorKind = ErrorKind.PROVIDER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidParametersError(DeliveryZoneError):
    """Origin, destination, zones or tolerance are absent or malformed."""

    kind = ErrorKind.INVALID_PARAMETERS


class AddressNotFoundError(DeliveryZoneError):
    """The upstream could not resolve one of the two locations."""

    kind = ErrorKind.ADDRESS_NOT_FOUND

    def __init__(self, address: str, details: str | None = None) -> None:
        message = f"Address not found: {address}"
        if details:
            message = f"{message} ({details})"
        super().__init__(message)
        self.address = address


class ProviderError(DeliveryZoneError):
    """The upstream distance service failed or answered with something unusable."""

    kind = ErrorKind.PROVIDER_ERROR


ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_PARAMETERS: 400,
    ErrorKind.ADDRESS_NOT_FOUND: 404,
    ErrorKind.PROVIDER_ERROR: 502,
}
