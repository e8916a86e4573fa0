"""
REST Countries client for the gateway.
"""

from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote
import time

import httpx

from shared.logging import get_logger
from shared.errors import CountryNotFoundError, UpstreamError, UpstreamUnavailableError
from shared.metrics import MetricsCollector


SERVICE_NAME = "countries_api"

# Statuses meaning "no exact match" on a fullText lookup.
FALLBACK_STATUSES = frozenset({400, 404})

MAX_DETAIL_LENGTH = 500


class CountriesClient:
    """Client for the upstream REST Countries provider.

    ``fetch_by_name`` asks for an exact full-text match first and retries once
    with the relaxed substring search only when the provider rejects the exact
    query with 400 or 404. Timeouts, network errors and every other status
    propagate immediately.
    """

    def __init__(self,
                 base_url: str,
                 *,
                 timeout: float = 10.0,
                 listing_fields: Optional[Sequence[str]] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.listing_fields = list(listing_fields or [])
        self.transport = transport
        self.metrics = metrics
        self.logger = get_logger("countries.upstream_client")

    async def fetch_all(self) -> List[Dict[str, Any]]:
        """Fetch the full country dataset in one request."""
        params = {"fields": ",".join(self.listing_fields)} if self.listing_fields else None
        return await self._get_countries("fetch_all", "/all", params)

    async def fetch_by_name(self, name: str) -> List[Dict[str, Any]]:
        """Fetch countries matching ``name``, exact match first."""
        path = f"/name/{quote(name, safe='')}"

        try:
            countries = await self._get_countries("fetch_by_name", path, {"fullText": "true"})
        except UpstreamError as exc:
            if exc.upstream_status not in FALLBACK_STATUSES:
                raise
            self.logger.info(
                "Full-text lookup rejected, retrying with substring match",
                name=name,
                upstream_status=exc.upstream_status
            )
            countries = await self._get_countries("fetch_by_name_fallback", path, None)

        if not countries:
            self.logger.info("No country matched", name=name)
            raise CountryNotFoundError(name)

        return countries

    async def _get_countries(self, operation: str, path: str,
                             params: Optional[Dict[str, str]]) -> List[Dict[str, Any]]:
        """Execute one GET and map every failure onto the gateway taxonomy."""
        url = f"{self.base_url}{path}"
        start = time.perf_counter()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=params)
        except httpx.RequestError as exc:
            self._record(operation, "unavailable")
            self.logger.error(
                "Countries API did not respond",
                url=url,
                error=str(exc),
                error_type=type(exc).__name__
            )
            raise UpstreamUnavailableError(
                service=SERVICE_NAME,
                message="The countries API did not respond",
                details={"reason": type(exc).__name__}
            ) from exc

        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        if response.status_code >= 400:
            self._record(operation, f"http_{response.status_code}")
            self.logger.warning(
                "Countries API returned an error",
                url=url,
                params=params,
                status_code=response.status_code,
                duration_ms=duration_ms
            )
            raise UpstreamError(
                service=SERVICE_NAME,
                upstream_status=response.status_code,
                message="External API error",
                details={"upstream_details": self._error_details(response)}
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, list):
            self._record(operation, "invalid_payload")
            self.logger.error("Countries API returned an unexpected payload", url=url, status_code=response.status_code)
            raise UpstreamError(
                service=SERVICE_NAME,
                upstream_status=502,
                message="Unexpected payload from external API",
                details={"upstream_details": response.text[:MAX_DETAIL_LENGTH]}
            )

        self._record(operation, "success")
        self.logger.debug("Countries retrieved", url=url, count=len(payload), duration_ms=duration_ms)
        return payload

    @staticmethod
    def _error_details(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text[:MAX_DETAIL_LENGTH]

    def _record(self, operation: str, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_upstream_request(operation, outcome)
