"""
Shared utilities for the cache proxy.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and the JSON error envelope
- circuit_breaker: Resilient upstream call protection
- base_service: FastAPI app skeleton with health, metrics and error handlers

Any cross-cutting logic should live here to avoid import cycles. Do not
import from service_* packages into shared/.
"""
