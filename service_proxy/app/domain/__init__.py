"""
Proxy domain logic.

- params: query parameter validation gate.
- stale_while_error: cache-aside orchestration with stale fallback.
"""
