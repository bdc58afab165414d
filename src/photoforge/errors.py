"""Domain-specific exceptions for the transformation pipeline."""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Failure classifications reported in ``TransformResult``."""

    INVALID_INPUT = "invalid_input"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    AUTH_ERROR = "auth_error"
    RATE_LIMITED = "rate_limited"
    PROVIDER_FAILURE = "provider_failure"
    TIMEOUT = "timeout"
    DOWNLOAD_FAILURE = "download_failure"


class TransformError(Exception):
    """Base class for pipeline errors carrying an ``ErrorKind``."""

    kind: ErrorKind = ErrorKind.PROVIDER_FAILURE


class InvalidInputError(TransformError):
    """Raised when request data is malformed or missing before any network call."""

    kind = ErrorKind.INVALID_INPUT


class UnsupportedOperationError(TransformError):
    """Raised when the operation is not registered in the router."""

    kind = ErrorKind.UNSUPPORTED_OPERATION


class AuthError(TransformError):
    """Raised when a provider credential is missing or rejected."""

    kind = ErrorKind.AUTH_ERROR


class RateLimitedError(TransformError):
    """Raised when a provider throttles the caller."""

    kind = ErrorKind.RATE_LIMITED


class ProviderFailureError(TransformError):
    """Raised when a provider reports failure or returns an unexpected shape."""

    kind = ErrorKind.PROVIDER_FAILURE

    def __init__(self, message: str, *, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient


class JobTimeoutError(TransformError):
    """Raised when the poll budget is exhausted without a usable result."""

    kind = ErrorKind.TIMEOUT


class DownloadFailureError(TransformError):
    """Raised when the result artifact could not be stored locally."""

    kind = ErrorKind.DOWNLOAD_FAILURE


__all__ = [
    "ErrorKind",
    "TransformError",
    "InvalidInputError",
    "UnsupportedOperationError",
    "AuthError",
    "RateLimitedError",
    "ProviderFailureError",
    "JobTimeoutError",
    "DownloadFailureError",
]
