"""
gqlcache - Core Error Types

Defines the exception hierarchy for the GraphQL operation cache and gateway.
All exceptions inherit from GqlCacheError for consistent error handling.

Cache-store errors (CacheError and subclasses) are raised by the store
backends and converted into tagged outcomes by the operation cache; they
never reach gateway callers. Backend errors are authoritative failures and
always propagate.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes attached to GraphQL error extensions."""

    # Input validation errors
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"

    # Backend errors
    BACKEND_ERROR = "BACKEND_ERROR"
    BACKEND_TIMEOUT = "BACKEND_TIMEOUT"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"

    # Cache errors
    CACHE_FAILURE = "CACHE_FAILURE"

    # Configuration
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class GqlCacheError(Exception):
    """Base exception for all gqlcache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(GqlCacheError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class ValidationError(GqlCacheError):
    """Raised when caller input is invalid (empty user id, bad JSON body)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=400)


class CacheError(GqlCacheError):
    """Base exception for cache-store errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class CacheOperationError(CacheError):
    """Raised when a single cache-store command fails."""

    pass


class BackendError(GqlCacheError):
    """Base exception for failures of the authoritative GraphQL backend."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=502)


class BackendUnavailableError(BackendError):
    """Raised when the backend cannot be reached or returns garbage."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"GraphQL backend unavailable: {reason}", {"url": url, "reason": reason})


class BackendTimeoutError(BackendError):
    """Raised when a backend call times out."""

    def __init__(self, url: str, timeout: float):
        super().__init__(f"GraphQL backend timed out after {timeout}s", {"url": url, "timeout": timeout})
        self.status_code = 504


class GraphQLResponseError(BackendError):
    """
    Raised when the backend answered but the response must not be cached.

    Carries the backend payload and status so the gateway can hand the
    response to the client unchanged.
    """

    def __init__(self, payload: Any, status_code: int):
        errors = payload.get("errors") if isinstance(payload, dict) else None
        super().__init__(
            "GraphQL backend returned an error response",
            {"status": status_code, "errors": errors},
        )
        self.payload = payload
        self.status_code = status_code


def make_error_response(
    error_code: ErrorCode,
    message: str,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a GraphQL-shaped error payload.

    Example:
        >>> make_error_response(ErrorCode.INVALID_JSON, "Invalid JSON")
        {'errors': [{'message': 'Invalid JSON', 'extensions': {'code': 'INVALID_JSON'}}]}
    """
    extensions: dict[str, Any] = {"code": error_code.value}
    if context:
        extensions["details"] = context
    return {"errors": [{"message": message, "extensions": extensions}]}


def extract_error_code(error: Exception) -> ErrorCode:
    """Map an exception onto its ErrorCode."""
    if isinstance(error, BackendTimeoutError):
        return ErrorCode.BACKEND_TIMEOUT

    if isinstance(error, BackendUnavailableError):
        return ErrorCode.BACKEND_UNAVAILABLE

    if isinstance(error, BackendError):
        return ErrorCode.BACKEND_ERROR

    if isinstance(error, ValidationError):
        return ErrorCode.INVALID_INPUT

    if isinstance(error, CacheError):
        return ErrorCode.CACHE_FAILURE

    if isinstance(error, ConfigurationError):
        return ErrorCode.CONFIGURATION_ERROR

    return ErrorCode.INTERNAL_ERROR
