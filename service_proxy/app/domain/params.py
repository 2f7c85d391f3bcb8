"""
Query parameter parsing for resource routes.

Parsing runs before any cache or upstream work; a rejected value never
reaches the orchestrator.
"""

from typing import Optional

from shared.errors import ValidationError

_NO_PAGE = ("null", "")


def _parse_non_negative(raw: str) -> Optional[int]:
    text = raw.strip()
    if text.isascii() and text.isdigit():
        return int(text)
    return None


def parse_page(raw: Optional[str]) -> Optional[int]:
    """Return the requested page, or None when no page was specified.

    ``"null"`` and the empty string are accepted as "no page".
    """
    if raw is None or raw in _NO_PAGE:
        return None
    page = _parse_non_negative(raw)
    if page is None:
        raise ValidationError("Invalid page parameter.", {"page": raw})
    return page


def parse_delay(raw: Optional[str]) -> Optional[int]:
    """Return the throttling hint passed through to upstream, if any."""
    if raw is None:
        return None
    delay = _parse_non_negative(raw)
    if delay is None:
        raise ValidationError("Invalid delay parameter.", {"delay": raw})
    return delay
