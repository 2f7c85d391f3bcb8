"""
Fakes shared by the proxy tests.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from service_proxy.app.adapters.upstream_client import Failure, Success, UpstreamResult


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> float:
        self.current += seconds
        return self.current


Outcome = Union[UpstreamResult, BaseException]


class StubUpstream:
    """Upstream collaborator returning scripted outcomes and counting calls.

    Each outcome is used once; the last one repeats. Exceptions are raised
    instead of returned.
    """

    def __init__(self, *outcomes: Outcome):
        self.outcomes: List[Outcome] = list(outcomes) or [Success(Payloads.primary())]
        self.primary_calls: List[Tuple[str, Optional[int], Optional[int]]] = []
        self.filter_calls: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.primary_calls) + len(self.filter_calls)

    def respond_with(self, *outcomes: Outcome) -> None:
        self.outcomes = list(outcomes)

    async def fetch_primary(self, identifier: str, page: Optional[int], delay: Optional[int]) -> UpstreamResult:
        self.primary_calls.append((identifier, page, delay))
        return self._next()

    async def fetch_filters(self, identifier: str) -> UpstreamResult:
        self.filter_calls.append(identifier)
        return self._next()

    def _next(self) -> UpstreamResult:
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class Payloads:
    """Factory for upstream payloads."""

    @staticmethod
    def primary(version: int = 1, page: Optional[int] = None) -> Dict[str, Any]:
        return {
            "status": "success",
            "data": {
                "authorId": 4521,
                "username": "example-author",
                "page": page,
                "poems": [
                    {"id": 100 + version, "title": f"Poem v{version}"},
                ],
            },
        }

    @staticmethod
    def filters() -> Dict[str, Any]:
        return {
            "status": "success",
            "data": {
                "rubrics": [{"id": 1, "name": "Lyrics", "count": 12}],
                "dates": [{"year": 2023, "month": 5, "count": 3}],
            },
        }

    @staticmethod
    def failure(code: Any = 503, message: str = "down") -> Failure:
        return Failure(code, message)
