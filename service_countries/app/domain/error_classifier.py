"""
Maps pipeline failures onto HTTP statuses and JSON bodies.
"""

import traceback
from dataclasses import dataclass, field
from typing import Any, Dict

from shared.errors import (
    ErrorResponse,
    GatewayError,
    RateLimitError,
    UpstreamError,
)
from shared.logging import get_logger, request_id_var

from .models import RouteKind


@dataclass(frozen=True)
class ClassifiedError:
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


class ErrorClassifier:
    """Normalizes exceptions into the gateway error taxonomy.

    ``debug`` enables internal details (exception message and traceback) on
    unexpected failures; it must stay off outside development.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.logger = get_logger("countries.error_classifier")

    def classify(self, exc: BaseException, route: RouteKind) -> ClassifiedError:
        if isinstance(exc, UpstreamError):
            return self._classify_upstream(exc, route)

        if isinstance(exc, GatewayError):
            headers: Dict[str, str] = {}
            if isinstance(exc, RateLimitError):
                headers["Retry-After"] = str(exc.retry_after)
            return ClassifiedError(exc.status_code, exc.to_response().model_dump(), headers)

        self.logger.error(
            "Unexpected pipeline failure",
            route=route.value,
            error=str(exc),
            exc_info=exc
        )
        details: Dict[str, Any] = {}
        if self.debug:
            details = {
                "error": str(exc),
                "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__),
            }
        response = ErrorResponse(
            request_id=request_id_var.get(),
            code="INTERNAL_ERROR",
            message="Internal server error",
            details=details,
        )
        return ClassifiedError(500, response.model_dump())

    def _classify_upstream(self, exc: UpstreamError, route: RouteKind) -> ClassifiedError:
        status = exc.upstream_status
        if status < 400 or status > 599:
            status = exc.status_code

        body = exc.to_response()
        if route is RouteKind.DETAIL and status < 500:
            # The provider's 4xx on a name lookup means nothing matched.
            status = 404
            body.code = "NOT_FOUND"
            body.message = "Country not found"

        return ClassifiedError(status, body.model_dump())
