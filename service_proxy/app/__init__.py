"""
Cache proxy service package.

The proxy fronts a slow, unreliable content provider, serving JSON from a
TTL cache and falling back to stale entries whenever upstream fails.

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.adapters: HTTP client for the upstream provider.
- app.caching: Cache key derivation, stores and eviction policies.
- app.domain: Parameter validation and the stale-while-error orchestrator.
"""
