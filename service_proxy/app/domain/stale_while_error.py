"""
Stale-while-error cache-aside orchestration.

Per request:

    read cache
      fresh hit          -> serve cached payload, no upstream call
      miss or stale      -> call upstream
        Success          -> persist (best effort), serve payload
        Failure          -> serve stale entry if one exists, else propagate
      unexpected error   -> serve any entry already read, else 500

The API only returns an error when upstream is failing AND no cached value
exists for that exact key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from shared.errors import InternalError, UpstreamError
from shared.logging import get_logger, set_cache_key

from service_proxy.app.adapters.upstream_client import Failure, Success, UpstreamClient, UpstreamResult
from service_proxy.app.caching.keys import derive_cache_key
from service_proxy.app.caching.store import CacheLookup, CacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


PRIMARY_NAMESPACE = "resource"
FILTERS_NAMESPACE = "filters"


class CacheOutcome(str, Enum):
    """Which path produced the response."""

    HIT = "hit"
    MISS = "miss"
    STALE = "stale"
    ERROR = "error"


@dataclass
class ProxyResponse:
    """Status, JSON body and serving path for one request."""

    status_code: int
    body: Any
    outcome: CacheOutcome
    cache_key: str
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.headers.setdefault("X-Cache", self.outcome.value.upper())


class StaleWhileErrorOrchestrator:
    """Decides between cached, fresh, stale and error responses."""

    def __init__(
        self,
        store: CacheStore,
        upstream: UpstreamClient,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.upstream = upstream
        self.metrics = metrics
        self.logger = get_logger("proxy.orchestrator")

    async def get_primary(self, identifier: str, page: Optional[int], delay: Optional[int] = None) -> ProxyResponse:
        """Serve primary data; ``delay`` reaches upstream but never the key."""
        key = derive_cache_key(PRIMARY_NAMESPACE, identifier, {"page": page})
        return await self.serve(
            key,
            lambda: self.upstream.fetch_primary(identifier, page, delay),
            namespace=PRIMARY_NAMESPACE,
        )

    async def get_filters(self, identifier: str) -> ProxyResponse:
        """Serve filter facets; the key carries no parameter suffix."""
        key = derive_cache_key(FILTERS_NAMESPACE, identifier)
        return await self.serve(
            key,
            lambda: self.upstream.fetch_filters(identifier),
            namespace=FILTERS_NAMESPACE,
        )

    async def serve(
        self,
        key: str,
        fetch: Callable[[], Awaitable[UpstreamResult]],
        *,
        namespace: str,
    ) -> ProxyResponse:
        """Run the cache-aside protocol for ``key``."""
        set_cache_key(key)
        lookup: Optional[CacheLookup] = None

        try:
            lookup = await self.store.read(key)
            if lookup.exists and not lookup.is_stale:
                return self._finish(namespace, ProxyResponse(200, lookup.payload, CacheOutcome.HIT, key))

            result = await fetch()

            if isinstance(result, Success):
                self._count_upstream(namespace, "success")
                await self.store.write(key, result.payload)
                return self._finish(namespace, ProxyResponse(200, result.payload, CacheOutcome.MISS, key))

            self._count_upstream(namespace, "failure")
            if lookup.exists:
                self.logger.warning(
                    "Upstream failed, serving stale entry",
                    key=key,
                    code=result.code,
                    message=result.message,
                    written_at=lookup.written_at,
                )
                return self._finish(namespace, ProxyResponse(200, lookup.payload, CacheOutcome.STALE, key))

            return self._finish(namespace, self._failure_response(key, result))

        except Exception as exc:
            if lookup is not None:
                self._count_upstream(namespace, "exception")
            if lookup is not None and lookup.exists:
                self.logger.warning("Request failed, serving cached entry", key=key, error=str(exc))
                return self._finish(namespace, ProxyResponse(200, lookup.payload, CacheOutcome.STALE, key))

            self.logger.error("Request failed with no cached fallback", key=key, error=str(exc), exc_info=True)
            return self._finish(
                namespace,
                ProxyResponse(500, InternalError().to_response().model_dump(), CacheOutcome.ERROR, key),
            )

    @staticmethod
    def _failure_response(key: str, failure: Failure) -> ProxyResponse:
        """Propagate an upstream failure verbatim, with the status mapped onto HTTP."""
        error = UpstreamError(failure.code, failure.message)
        return ProxyResponse(error.status_code, error.to_response().model_dump(), CacheOutcome.ERROR, key)

    def _count_upstream(self, namespace: str, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_requests_total", namespace=namespace, result=result)

    def _finish(self, namespace: str, response: ProxyResponse) -> ProxyResponse:
        if self.metrics:
            self.metrics.increment_counter("cache_lookups_total", namespace=namespace, outcome=response.outcome.value)
        return response
