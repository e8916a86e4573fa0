"""
Request processing pipeline for the Countries gateway.

Each request walks an explicit list of named stages::

    rate_limit -> authenticate -> parse -> cache_lookup -> fetch

A stage returns ``None`` to continue or a ``PipelineResult`` to answer the
request right away. Rejections and failures are raised as exceptions and
turned into responses by the ``ErrorClassifier``. Only the ``fetch`` stage
suspends; there is no retry on top of the upstream client's own fallback.
"""

import asyncio
import inspect
import json
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from shared.errors import AuthenticationError, RateLimitError, ValidationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..adapters.countries_client import CountriesClient
from ..caching.cache_store import CacheStore, make_cache_key
from ..ratelimit.fixed_window import FixedWindowRateLimiter, RateLimitDecision
from .auth_guard import AuthGuard
from .error_classifier import ErrorClassifier
from .models import DetailQuery, ListingQuery, RouteKind
from .shaping import ResponseShaper


CACHE_HIT = "HIT"
CACHE_MISS = "MISS"


@dataclass
class RequestContext:
    """Per-request state carried through the pipeline."""

    route: RouteKind
    method: str
    path: str
    identity: str
    authorization: Optional[str] = None
    query_params: Dict[str, str] = field(default_factory=dict)
    path_params: Dict[str, str] = field(default_factory=dict)
    started_at: float = field(default_factory=time.perf_counter)
    query: Optional[BaseModel] = None
    cache_key: Optional[str] = None
    rate_limit: Optional[RateLimitDecision] = None


@dataclass
class PipelineResult:
    status_code: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)


StageResult = Optional[PipelineResult]
Stage = Callable[[RequestContext], Union[StageResult, Awaitable[StageResult]]]


def render_json(payload: Any) -> bytes:
    """Serialize a payload the way every response body is serialized."""
    return json.dumps(payload, ensure_ascii=False, allow_nan=False, separators=(",", ":")).encode("utf-8")


class RequestPipeline:
    """Orchestrates rate limiting, auth, caching, fetching and shaping."""

    def __init__(self,
                 *,
                 rate_limiter: FixedWindowRateLimiter,
                 auth_guard: AuthGuard,
                 cache: CacheStore,
                 client: CountriesClient,
                 shaper: ResponseShaper,
                 classifier: ErrorClassifier,
                 metrics: Optional[MetricsCollector] = None,
                 listing_ttl: int = 300,
                 detail_ttl: int = 600,
                 require_auth: bool = True,
                 single_flight: bool = True):
        self.rate_limiter = rate_limiter
        self.auth_guard = auth_guard
        self.cache = cache
        self.client = client
        self.shaper = shaper
        self.classifier = classifier
        self.metrics = metrics
        self.ttls = {RouteKind.LISTING: listing_ttl, RouteKind.DETAIL: detail_ttl}
        self.require_auth = require_auth
        self.single_flight = single_flight
        self.logger = get_logger("countries.pipeline")

        self._inflight: Dict[str, "asyncio.Future[bytes]"] = {}
        self.stages: List[Tuple[str, Stage]] = [
            ("rate_limit", self._check_rate_limit),
            ("authenticate", self._authenticate),
            ("parse", self._parse_query),
            ("cache_lookup", self._lookup_cache),
            ("fetch", self._fetch),
        ]

    async def handle(self, context: RequestContext) -> PipelineResult:
        """Run ``context`` through every stage until one produces a result."""
        stage_name = None
        try:
            for stage_name, stage in self.stages:
                outcome = stage(context)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
                if outcome is not None:
                    result = outcome
                    break
            else:
                raise RuntimeError("pipeline finished without producing a response")
        except Exception as exc:
            classified = self.classifier.classify(exc, context.route)
            result = PipelineResult(
                status_code=classified.status_code,
                body=render_json(classified.body),
                headers=dict(classified.headers),
            )

        self._apply_rate_limit_headers(context, result)
        self.logger.debug(
            "Pipeline finished",
            route=context.route.value,
            stage=stage_name,
            status_code=result.status_code,
            duration_ms=round((time.perf_counter() - context.started_at) * 1000, 2)
        )
        return result

    def _check_rate_limit(self, context: RequestContext) -> StageResult:
        decision = self.rate_limiter.check(context.identity)
        context.rate_limit = decision
        if not decision.allowed:
            self._record_rejection("rate_limit")
            raise RateLimitError(
                retry_after=decision.retry_after_seconds,
                details={"limit": decision.limit, "retry_after_seconds": decision.retry_after_seconds}
            )
        return None

    def _authenticate(self, context: RequestContext) -> StageResult:
        if context.route is not RouteKind.DETAIL or not self.require_auth:
            return None
        if not self.auth_guard.validate(context.authorization):
            self._record_rejection("unauthorized")
            self.logger.warning("Request rejected by auth guard", path=context.path)
            raise AuthenticationError()
        return None

    def _parse_query(self, context: RequestContext) -> StageResult:
        raw = {name: value for name, value in context.query_params.items() if value != ""}
        try:
            if context.route is RouteKind.LISTING:
                query: BaseModel = ListingQuery.model_validate({
                    "page": raw.get("page", 1),
                    "limit": raw.get("limit", 20),
                    "search": raw.get("search", ""),
                })
                key_path = context.path
            else:
                query = DetailQuery.model_validate({
                    "name": context.path_params.get("name", ""),
                    "selected_fields": raw.get("fields"),
                })
                key_path = f"/api/countries/{query.name.lower()}"
        except PydanticValidationError as exc:
            self._record_rejection("invalid_query")
            raise ValidationError(
                "Invalid query parameters",
                details={
                    "errors": [
                        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                        for error in exc.errors()
                    ]
                }
            ) from exc

        context.query = query
        context.cache_key = make_cache_key(context.method, key_path, query.cache_params())
        return None

    def _lookup_cache(self, context: RequestContext) -> StageResult:
        body = self.cache.get(context.cache_key)
        if self.metrics:
            self.metrics.record_cache_lookup(context.route.value, body is not None)
        if body is None:
            return None
        self.logger.debug("Cache hit", key=context.cache_key)
        return PipelineResult(status_code=200, body=body, headers={"X-Cache": CACHE_HIT})

    async def _fetch(self, context: RequestContext) -> StageResult:
        key = context.cache_key
        if not self.single_flight:
            body = await self._load(context)
        else:
            pending = self._inflight.get(key)
            if pending is not None:
                self.logger.debug("Joining in-flight upstream fetch", key=key)
                body = await asyncio.shield(pending)
            else:
                task = asyncio.ensure_future(self._load(context))
                self._inflight[key] = task
                task.add_done_callback(lambda done: self._release(key, done))
                body = await asyncio.shield(task)
        return PipelineResult(status_code=200, body=body, headers={"X-Cache": CACHE_MISS})

    def _release(self, key: str, task: "asyncio.Future[bytes]") -> None:
        self._inflight.pop(key, None)
        # Every waiter may have been cancelled; consume the outcome here.
        if not task.cancelled():
            task.exception()

    async def _load(self, context: RequestContext) -> bytes:
        """Fetch from upstream, shape, serialize and write through to the cache."""
        if context.route is RouteKind.LISTING:
            countries = await self.client.fetch_all()
            payload = self.shaper.shape_listing(countries, context.query)
        else:
            countries = await self.client.fetch_by_name(context.query.name)
            payload = self.shaper.shape_detail(countries, context.query)

        body = render_json(payload)
        self.cache.put(context.cache_key, body, self.ttls[context.route])
        return body

    def _apply_rate_limit_headers(self, context: RequestContext, result: PipelineResult) -> None:
        decision = context.rate_limit
        if decision is None:
            return
        result.headers["X-RateLimit-Limit"] = str(decision.limit)
        result.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        result.headers["X-RateLimit-Reset"] = str(decision.retry_after_seconds)

    def _record_rejection(self, reason: str) -> None:
        if self.metrics:
            self.metrics.record_rejection(reason)
