"""Shared web infrastructure: slowapi rate limiter.

Neutral module with no imports from web.*, safe for all web modules to import.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

_API_RATE_LIMIT = "60/minute"  # default; overridden by configure_rate_limit()


def configure_rate_limit(value: str):
    """Set the per-client API rate limit from config."""
    global _API_RATE_LIMIT
    _API_RATE_LIMIT = value


def api_rate_limit() -> str:
    """Current rate limit string, read by slowapi on every request."""
    return _API_RATE_LIMIT
