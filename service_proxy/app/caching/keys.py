"""
Cache key derivation.
"""

import re
from typing import Any, Mapping, Optional

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")

KEY_PREFIX = "_cache_"


def sanitize_identifier(identifier: Any) -> str:
    """Replace every character outside [A-Za-z0-9_-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", str(identifier))


def derive_cache_key(namespace: str, identifier: Any, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build the cache key for a resource request.

    Parameters are rendered in sorted key order so that two requests with the
    same values map to the same key whatever order they arrived in. A
    parameter present with a None value renders as ``_{name}_null``; a
    parameter that is not present at all contributes nothing.
    """
    parts = [KEY_PREFIX, namespace, "_", sanitize_identifier(identifier)]
    for name in sorted(params or {}):
        value = params[name]
        parts.append(f"_{name}_{'null' if value is None else value}")
    return "".join(parts)
