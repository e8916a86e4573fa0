"""
Countries gateway service.
"""

from typing import Callable, Optional
import time

import httpx
from fastapi import Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.logging import set_client_context

from .adapters.countries_client import CountriesClient
from .caching.cache_store import CacheStore
from .ratelimit.fixed_window import FixedWindowRateLimiter
from .domain.auth_guard import AuthGuard
from .domain.error_classifier import ErrorClassifier
from .domain.models import RouteKind
from .domain.pipeline import PipelineResult, RequestContext, RequestPipeline
from .domain.shaping import ResponseShaper


SERVICE_NAME = "countries"


class CountriesGatewayService(BaseService):
    """Gateway in front of the REST Countries API."""

    def __init__(self,
                 config: Optional[ServiceConfig] = None,
                 *,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(SERVICE_NAME, config or get_config(SERVICE_NAME))

        self.cache = CacheStore(max_entries=self.config.cache_max_entries, clock=clock)
        self.rate_limiter = FixedWindowRateLimiter(
            max_requests=self.config.rate_limit_max_requests,
            window_seconds=self.config.rate_limit_window_seconds,
            clock=clock,
        )
        self.auth_guard = AuthGuard(self.config.auth_token)
        self.countries_client = CountriesClient(
            self.config.upstream_base_url,
            timeout=self.config.upstream_timeout_seconds,
            listing_fields=self.config.listing_field_list,
            transport=transport,
            metrics=self.metrics,
        )
        self.pipeline = RequestPipeline(
            rate_limiter=self.rate_limiter,
            auth_guard=self.auth_guard,
            cache=self.cache,
            client=self.countries_client,
            shaper=ResponseShaper(),
            classifier=ErrorClassifier(debug=self.config.is_development),
            metrics=self.metrics,
            listing_ttl=self.config.listing_cache_ttl,
            detail_ttl=self.config.detail_cache_ttl,
            require_auth=self.config.require_auth,
            single_flight=self.config.cache_single_flight,
        )

        self.available_endpoints = [
            "GET /api/countries",
            "GET /api/countries/:name",
            "GET /api/health",
        ]

        self._setup_countries_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.countries_service = self

    def _setup_countries_routes(self):
        """Set up country routes."""

        @self.app.get("/api/countries")
        async def list_countries(request: Request):
            """Paginated, searchable country listing."""
            context = self._build_context(request, RouteKind.LISTING)
            return self._to_response(await self.pipeline.handle(context))

        @self.app.get("/api/countries/{name}")
        async def get_country(request: Request, name: str):
            """Details for one country, optionally reduced to ``fields``."""
            context = self._build_context(request, RouteKind.DETAIL, name=name)
            return self._to_response(await self.pipeline.handle(context))

    def _build_context(self, request: Request, route: RouteKind, **path_params: str) -> RequestContext:
        identity = self._get_client_ip(request)
        set_client_context(identity)
        return RequestContext(
            route=route,
            method=request.method,
            path=request.url.path,
            identity=identity,
            authorization=request.headers.get("Authorization"),
            query_params=dict(request.query_params),
            path_params=path_params,
        )

    @staticmethod
    def _to_response(result: PipelineResult) -> Response:
        return Response(
            content=result.body,
            status_code=result.status_code,
            headers=result.headers,
            media_type="application/json",
        )

    def _get_client_ip(self, request: Request) -> str:
        """Extract the caller IP.

        Forwarding headers are client-controlled; they are honored only behind
        a trusted proxy (``trust_proxy``).
        """
        if not self.config.trust_proxy:
            return request.client.host if request.client else "unknown"

        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip
        if request.client:
            return request.client.host
        return "unknown"


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = CountriesGatewayService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = CountriesGatewayService()
    service.run()
