"""
Shared error handling for the cache proxy.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


INTERNAL_ERROR_MESSAGE = "Internal Server Error"


class ErrorDetail(BaseModel):
    """Code and message carried by an error envelope."""

    code: Any
    message: str


class ErrorResponse(BaseModel):
    """Standard error response format."""

    status: str = "error"
    error: ErrorDetail


def http_status_for(code: Any) -> int:
    """Map an upstream error code onto an HTTP status.

    Codes in the 400-599 range are used verbatim, anything else becomes 500.
    """
    if isinstance(code, bool):
        return 500
    if isinstance(code, str) and code.strip().isdigit():
        code = int(code.strip())
    elif isinstance(code, float) and code.is_integer():
        code = int(code)
    if isinstance(code, int) and 400 <= code <= 599:
        return code
    return 500


class ProxyException(Exception):
    """Base exception for proxy services."""

    status_code = 500

    def __init__(self, code: Any, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=ErrorDetail(code=self.code, message=self.message))


class ValidationError(ProxyException):
    """Rejected request parameter."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(400, message, details)


class UpstreamError(ProxyException):
    """Failure reported by the upstream provider."""

    def __init__(self, code: Any, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)
        self.status_code = http_status_for(code)


class CacheError(ProxyException):
    """Cache read or write failure. Never surfaced to callers."""

    def __init__(self, key: str, message: str = "Cache error", details: Optional[Dict[str, Any]] = None):
        super().__init__(500, message, {"key": key, **(details or {})})
        self.key = key


class ExternalServiceError(ProxyException):
    """Transport failure talking to an external service."""

    status_code = 502

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__(502, f"{service}: {message}", details)


class InternalError(ProxyException):
    """Unhandled fault."""

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE, details: Optional[Dict[str, Any]] = None):
        super().__init__(500, message, details)
