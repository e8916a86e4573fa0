"""
Domain logic for the Countries gateway.

Holds the request pipeline and the pieces it orchestrates that are not
transport adapters: the auth guard, response shaping and error
classification.
"""

from .auth_guard import AuthGuard
from .error_classifier import ClassifiedError, ErrorClassifier
from .models import COUNTRY_FIELDS, CountryRecord, PageResult, RouteKind
from .pipeline import PipelineResult, RequestContext, RequestPipeline
from .shaping import ResponseShaper

__all__ = [
    "AuthGuard",
    "ClassifiedError",
    "ErrorClassifier",
    "COUNTRY_FIELDS",
    "CountryRecord",
    "PageResult",
    "RouteKind",
    "PipelineResult",
    "RequestContext",
    "RequestPipeline",
    "ResponseShaper",
]
