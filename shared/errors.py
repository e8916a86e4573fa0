"""
Shared error handling for the Countries Gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class GatewayError(Exception):
    """Base exception for gateway services."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthenticationError(GatewayError):
    """Missing, malformed or mismatched credentials."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class ValidationError(GatewayError):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class RateLimitError(GatewayError):
    """Rate limiting errors."""

    status_code = 429

    def __init__(self,
                 message: str = "Too many requests from this client, please try again later.",
                 retry_after: int = 0,
                 details: Optional[Dict[str, Any]] = None):
        self.retry_after = retry_after
        super().__init__("RATE_LIMIT_ERROR", message, details)


class CountryNotFoundError(GatewayError):
    """The upstream provider answered, but no country matched."""

    status_code = 404

    def __init__(self, name: str, message: str = "Country not found"):
        self.name = name
        super().__init__("NOT_FOUND", message, {"name": name})


class UpstreamError(GatewayError):
    """The upstream provider responded with an error status."""

    status_code = 502

    def __init__(self, service: str, upstream_status: int, message: str = "Upstream service error",
                 details: Optional[Dict[str, Any]] = None):
        self.service = service
        self.upstream_status = upstream_status
        payload = {"upstream_status": upstream_status}
        payload.update(details or {})
        super().__init__("UPSTREAM_ERROR", f"{service}: {message}", payload)


class UpstreamUnavailableError(GatewayError):
    """No response was received from the upstream provider."""

    status_code = 503

    def __init__(self, service: str, message: str = "Upstream service did not respond",
                 details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("SERVICE_UNAVAILABLE", f"{service}: {message}", details)
