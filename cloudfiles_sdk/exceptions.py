"""
Custom exceptions for CloudFiles SDK.

This module defines the exception classes raised by the SDK. Validation
and configuration problems are raised before any request is sent; API
errors carry the status code and body exactly as the server returned them.
"""

from typing import Any, Dict, Optional


class CloudFilesError(Exception):
    """Base exception for all CloudFiles SDK errors."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self):
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ValidationError(CloudFilesError):
    """Raised when a required argument is missing or blank."""

    def __init__(self, message: str = "Validation failed", field: str = None, **kwargs):
        super().__init__(message, error_code="VALIDATION_ERROR", **kwargs)
        self.field = field


class ConfigurationError(CloudFilesError):
    """Raised when SDK configuration is invalid."""

    def __init__(self, message: str = "Invalid configuration", config_key: str = None, **kwargs):
        super().__init__(message, error_code="CONFIG_ERROR", **kwargs)
        self.config_key = config_key


class NetworkError(CloudFilesError):
    """Raised when the transport fails before a response arrives."""

    def __init__(self, message: str = "Network operation failed", **kwargs):
        super().__init__(message, error_code="NETWORK_ERROR", **kwargs)


class RequestTimeoutError(CloudFilesError):
    """Raised when a single request round trip times out."""

    def __init__(self, message: str = "Request timed out", timeout_seconds: float = None, **kwargs):
        super().__init__(message, error_code="TIMEOUT_ERROR", **kwargs)
        self.timeout_seconds = timeout_seconds


class ApiError(CloudFilesError):
    """Raised when the server answers with a terminal error status."""

    default_message = "API request failed"
    default_code = "API_ERROR"

    def __init__(
        self,
        message: str = None,
        status_code: int = None,
        body: Any = None,
        request_id: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("error_code", self.default_code)
        super().__init__(message or self.default_message, **kwargs)
        self.status_code = status_code
        self.body = body
        self.request_id = request_id

    @classmethod
    def from_response(cls, response) -> "ApiError":
        """Build the matching error for an ``ApiResponse`` with an error status."""
        status_code = response.status_code
        error_cls = _STATUS_ERRORS.get(status_code)
        if error_cls is None:
            error_cls = ServerError if status_code >= 500 else ApiError

        message = _error_message(response.error) or f"{error_cls.default_message} (HTTP {status_code})"
        kwargs: Dict[str, Any] = {}
        if error_cls is RateLimitError:
            kwargs["retry_after"] = _parse_retry_after(response.headers.get("Retry-After"))

        return error_cls(
            message,
            status_code=status_code,
            body=response.error,
            request_id=response.request_id,
            **kwargs,
        )


class AuthenticationError(ApiError):
    """Raised when the access token is missing, invalid or expired."""

    default_message = "Authentication failed"
    default_code = "AUTH_ERROR"


class AuthorizationError(ApiError):
    """Raised when the user lacks permission for an operation."""

    default_message = "Operation not authorized"
    default_code = "AUTHZ_ERROR"


class NotFoundError(ApiError):
    """Raised when the requested item does not exist."""

    default_message = "Item not found"
    default_code = "NOT_FOUND"


class ConflictError(ApiError):
    """Raised when an item with the same name already exists."""

    default_message = "Item conflict"
    default_code = "CONFLICT"


class PreconditionFailedError(ApiError):
    """Raised when an If-Match etag no longer matches the item."""

    default_message = "Precondition failed"
    default_code = "PRECONDITION_FAILED"


class RateLimitError(ApiError):
    """Raised when API rate limit is exceeded."""

    default_message = "Rate limit exceeded"
    default_code = "RATE_LIMIT"

    def __init__(self, message: str = None, retry_after: int = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(ApiError):
    """Raised when server returns a 5xx error."""

    default_message = "Server error"
    default_code = "SERVER_ERROR"


_STATUS_ERRORS = {
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
    412: PreconditionFailedError,
    429: RateLimitError,
}


def _error_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        return body.get("message") or body.get("code")
    if isinstance(body, str) and body.strip():
        return body.strip()
    return None


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
