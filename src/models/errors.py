"""Error taxonomy shared by the token lifecycle, transfer and domain layers."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    ACQUISITION_FAILED = "AcquisitionFailed"
    REFRESH_FAILED = "RefreshFailed"
    TRANSPORT_FAILURE = "TransportFailure"
    REMOTE_REJECTED = "RemoteRejected"
    MALFORMED_RESPONSE = "MalformedResponse"
    UNSUPPORTED_VARIANT = "UnsupportedVariant"
    IO_FAILURE = "IoFailure"

    @property
    def http_status(self) -> int:
        """Status the outward-facing layer reports for this category."""
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorCategory.UNAUTHENTICATED: 401,
    ErrorCategory.ACQUISITION_FAILED: 502,
    ErrorCategory.REFRESH_FAILED: 401,
    ErrorCategory.TRANSPORT_FAILURE: 504,
    ErrorCategory.REMOTE_REJECTED: 502,
    ErrorCategory.MALFORMED_RESPONSE: 502,
    ErrorCategory.UNSUPPORTED_VARIANT: 501,
    ErrorCategory.IO_FAILURE: 500,
}


class PSNError(RuntimeError):
    """Base class for every failure surfaced by the PSN facade.

    :param message: Human readable diagnostic
    :param status_code: Remote status code when a response was received
    :param body: Raw (or decoded) remote response body, kept for diagnostics
    """

    category: ErrorCategory = ErrorCategory.TRANSPORT_FAILURE

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class AuthenticationError(PSNError):
    """Raised when no usable access token can be produced."""

    category = ErrorCategory.UNAUTHENTICATED


class UnauthenticatedError(AuthenticationError):
    category = ErrorCategory.UNAUTHENTICATED


class AcquisitionFailedError(AuthenticationError):
    category = ErrorCategory.ACQUISITION_FAILED


class RefreshFailedError(AuthenticationError):
    category = ErrorCategory.REFRESH_FAILED


class TransportError(PSNError):
    category = ErrorCategory.TRANSPORT_FAILURE


class RemoteRejectedError(PSNError):
    category = ErrorCategory.REMOTE_REJECTED


class MalformedResponseError(PSNError):
    category = ErrorCategory.MALFORMED_RESPONSE


class UnsupportedVariantError(PSNError):
    category = ErrorCategory.UNSUPPORTED_VARIANT


class StorageError(PSNError):
    """Persistence or local file access failed."""

    category = ErrorCategory.IO_FAILURE


__all__ = [
    "ErrorCategory",
    "PSNError",
    "AuthenticationError",
    "UnauthenticatedError",
    "AcquisitionFailedError",
    "RefreshFailedError",
    "TransportError",
    "RemoteRejectedError",
    "MalformedResponseError",
    "UnsupportedVariantError",
    "StorageError",
]
