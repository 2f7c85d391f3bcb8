"""
Upstream content provider client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Union
from urllib.parse import quote

import httpx

from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException
from shared.errors import ExternalServiceError, http_status_for
from shared.logging import get_logger


@dataclass(frozen=True)
class Success:
    """Upstream returned a payload."""

    payload: Any


@dataclass(frozen=True)
class Failure:
    """Upstream reported an error."""

    code: Any
    message: str


UpstreamResult = Union[Success, Failure]


class UpstreamClient(Protocol):
    """Operations the orchestrator needs from the content provider."""

    async def fetch_primary(self, identifier: str, page: Optional[int], delay: Optional[int]) -> UpstreamResult: ...

    async def fetch_filters(self, identifier: str) -> UpstreamResult: ...


class _ServerSideFailure(Exception):
    """Carries a 5xx result through the circuit breaker so it counts as a failure."""

    def __init__(self, result: Failure):
        super().__init__(result.message)
        self.result = result


class ProviderClient:
    """HTTP client for the upstream content provider.

    Provider responses use the ``{"status": "success", ...}`` /
    ``{"status": "error", "error": {"code", "message"}}`` envelope. Error
    envelopes and non-2xx statuses become ``Failure``; transport errors raise
    ``ExternalServiceError``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.logger = get_logger("proxy.upstream")
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            name="upstream",
        )
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def fetch_primary(self, identifier: str, page: Optional[int], delay: Optional[int]) -> UpstreamResult:
        """Fetch the identifier's primary data, optionally one page of it."""
        params: Dict[str, Any] = {}
        if page is not None:
            params["page"] = page
        if delay is not None:
            params["delay"] = delay
        return await self._fetch(f"/author/{quote(identifier, safe='')}", params)

    async def fetch_filters(self, identifier: str) -> UpstreamResult:
        """Fetch the filter facets available for the identifier."""
        return await self._fetch(f"/author/{quote(identifier, safe='')}/filters", {})

    async def close(self) -> None:
        await self._client.aclose()

    async def _fetch(self, path: str, params: Dict[str, Any]) -> UpstreamResult:
        """Execute the request with circuit breaker + error handling."""

        async def _request() -> UpstreamResult:
            response = await self._client.get(path, params=params)
            result = self._to_result(response)
            if isinstance(result, Failure) and http_status_for(result.code) >= 500:
                raise _ServerSideFailure(result)
            return result

        try:
            result = await self.circuit_breaker.call(_request)
        except _ServerSideFailure as failure:
            result = failure.result
        except CircuitBreakerOpenException:
            self.logger.warning("Upstream circuit open, skipping call", path=path)
            return Failure(503, "Upstream temporarily unavailable")
        except httpx.HTTPError as exc:
            self.logger.error("Upstream request failed", path=path, params=params, error=str(exc))
            raise ExternalServiceError(
                service="upstream",
                message=str(exc) or type(exc).__name__,
                details={"path": path, "params": params},
            ) from exc

        if isinstance(result, Failure):
            self.logger.warning("Upstream reported failure", path=path, code=result.code, message=result.message)
        else:
            self.logger.debug("Upstream payload retrieved", path=path, params=params)
        return result

    @staticmethod
    def _to_result(response: httpx.Response) -> UpstreamResult:
        """Convert a provider response into an UpstreamResult."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("status") == "error":
            error = body.get("error")
            if not isinstance(error, dict):
                error = {}
            code = error.get("code", response.status_code if response.is_error else 500)
            return Failure(code, str(error.get("message") or "Upstream error"))

        if response.is_success:
            if body is None:
                return Failure(502, "Malformed upstream response")
            return Success(body)

        return Failure(response.status_code, response.reason_phrase or "Upstream error")
