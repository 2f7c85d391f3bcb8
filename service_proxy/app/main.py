"""
Cache proxy service.
"""

import os
from typing import Any, Callable, Dict, Optional

from fastapi import Query
from fastapi.responses import JSONResponse, RedirectResponse

from shared.base_service import BaseService
from shared.config import ProxyConfig, get_config

from service_proxy.app.adapters.upstream_client import ProviderClient, UpstreamClient
from service_proxy.app.caching.factory import create_cache_store
from service_proxy.app.caching.store import CacheStore
from service_proxy.app.domain.params import parse_delay, parse_page
from service_proxy.app.domain.stale_while_error import ProxyResponse, StaleWhileErrorOrchestrator


class ProxyService(BaseService):
    """Read-through cache proxy in front of the content provider."""

    def __init__(
        self,
        config: Optional[ProxyConfig] = None,
        *,
        upstream: Optional[UpstreamClient] = None,
        store: Optional[CacheStore] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__("proxy", config)

        self.upstream = upstream or ProviderClient(
            self.config.upstream_url,
            timeout=self.config.upstream_timeout_seconds,
            failure_threshold=self.config.upstream_failure_threshold,
            recovery_timeout=self.config.upstream_recovery_timeout,
        )
        self.store = store or create_cache_store(self.config, metrics=self.metrics, clock=clock)
        self.orchestrator = StaleWhileErrorOrchestrator(self.store, self.upstream, metrics=self.metrics)

        self.logger.info(
            "Cache proxy configured",
            environment="serverless" if self.config.serverless else "local",
            cache_backend=self.store.backend,
            cache_dir=str(self.config.resolved_cache_dir()),
            ttl_seconds=self.config.cache_ttl_seconds,
            eviction=self.store.eviction.name,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            close = getattr(self.upstream, "close", None)
            if close is not None:
                await close()
            await self.store.close()

        self._setup_proxy_routes()

        self.app.state.proxy_service = self

    def _setup_proxy_routes(self):
        """Set up proxy routes."""

        @self.app.get("/", include_in_schema=False)
        async def root():
            """Redirect to the API documentation."""
            return RedirectResponse(url="/docs")

        @self.app.get("/resource/{identifier}")
        async def get_resource(
            identifier: str,
            page: Optional[str] = Query(None, description="Page number, 'null' or empty for none"),
            delay: Optional[str] = Query(None, description="Upstream throttling hint in milliseconds"),
        ):
            """Primary data for an identifier."""
            page_num = parse_page(page)
            delay_ms = parse_delay(delay)
            result = await self.orchestrator.get_primary(identifier, page_num, delay_ms)
            return self._render(result)

        @self.app.get("/resource/{identifier}/filters")
        async def get_resource_filters(identifier: str):
            """Filter facets for an identifier."""
            result = await self.orchestrator.get_filters(identifier)
            return self._render(result)

        @self.app.get("/debug-info", include_in_schema=False)
        async def debug_info():
            """Runtime locations, for checking deployments."""
            return {
                "cwd": os.getcwd(),
                "cache_dir": str(self.config.resolved_cache_dir()),
                "cache_backend": self.store.backend,
                "serverless": self.config.serverless,
            }

    @staticmethod
    def _render(result: ProxyResponse) -> JSONResponse:
        return JSONResponse(status_code=result.status_code, content=result.body, headers=result.headers)

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Report cache backend reachability and upstream breaker state."""
        dependencies: Dict[str, Any] = {
            "cache": self.store.backend,
            "cache_reachable": await self.store.ping(),
        }
        breaker = getattr(self.upstream, "circuit_breaker", None)
        if breaker is not None:
            dependencies["upstream"] = breaker.get_state()["state"]
        return dependencies


def create_app(config: Optional[ProxyConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = ProxyService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = ProxyService(get_config())
    service.run()
