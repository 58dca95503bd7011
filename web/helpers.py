"""Shared constants and helpers used by the video routers."""

import re

from utils import to_int

MAX_LIMIT = 100
ID_LOOKUP_LIMIT = 30  # page size used to resolve positional ids
SORT_OPTIONS = ("newest", "popular", "best")
MAX_SEARCH_LENGTH = 200
MAX_COUNTRY_LENGTH = 8
MAX_INT_DIGITS = 18

_LEADING_INT_RE = re.compile(r"\s*\+?([0-9]+)")


def parse_positive_int(raw, default: int) -> int:
    """Lenient query parsing on the leading digits ("12abc" -> 12, "2.5" -> 2).

    Anything without a positive leading integer gives *default*.
    """
    match = _LEADING_INT_RE.match(str(raw))
    if not match:
        return default
    digits = match.group(1)
    if len(digits) > MAX_INT_DIGITS:
        return default
    value = int(digits)
    return value if value > 0 else default


def parse_video_id(raw: str) -> int | None:
    """Positional video id from the path, or None if it isn't a positive integer."""
    raw = (raw or "").strip()
    if not (raw.isascii() and raw.isdigit()) or len(raw) > MAX_INT_DIGITS:
        return None
    value = int(raw)
    return value if value > 0 else None


def pagination_stub(page: int, limit: int, total: int = 0) -> dict:
    return {"page": page, "limit": limit, "pages": 1, "total": total}


def empty_listing(page: int, limit: int, error: str | None = None) -> dict:
    """Success-shaped listing body used whenever upstream gives us nothing.

    The list view never sees a 5xx: failures are reported in ``error``.
    """
    body = {"videos": [], "pagination": pagination_stub(page, limit)}
    if error:
        body["error"] = error
    return body


def filter_by_search(pairs: list[tuple[dict, dict]], query: str) -> list[tuple[dict, dict]]:
    """Keep (record, video) pairs whose title or author contains *query*."""
    needle = query.strip().lower()
    if not needle:
        return pairs
    return [
        (record, video) for record, video in pairs
        if needle in video["title"].lower() or needle in video["author"].lower()
    ]


def sort_pairs(pairs: list[tuple[dict, dict]], sort: str) -> list[tuple[dict, dict]]:
    """Reorder one page of (record, video) pairs. Unknown sort keys keep upstream order."""
    if sort == "newest":
        # ISO-8601 UTC strings sort chronologically; undated videos go last
        return sorted(pairs, key=lambda p: p[1]["createdAt"] or "", reverse=True)
    if sort == "popular":
        return sorted(pairs, key=lambda p: to_int(p[0].get("Views") if isinstance(p[0], dict) else 0),
                      reverse=True)
    if sort == "best":
        return sorted(pairs, key=lambda p: p[1]["rating"], reverse=True)
    return pairs
