"""Map upstream movie records onto the VideoRecord shape served to the client.

Everything here is pure: the output depends only on the record and its
position (page, limit, index). Missing or malformed fields degrade one at a
time to a fixed fallback; nothing in this module raises for JSON input.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Optional

from utils import normalize_timestamp, round_half_up, to_float, to_int

_1080_KEYS = ("1080p", "1080")
_720_KEYS = ("720p", "720")
_480_KEYS = ("480p", "480")
_4K_KEYS = ("2160p", "4k", "2160")

_BYTES_PER_MB = 1024 * 1024
MAX_ESTIMATED_MINUTES = 120
RATING_FLOOR = 85
RATING_WITHOUT_VIEWS = 95
PLACEHOLDER_DURATION = "0:00"


class QualityFlags(NamedTuple):
    has_1080: bool
    has_720: bool
    has_480: bool
    is_4k: bool

    @property
    def is_hd(self) -> bool:
        # 4K takes precedence: never "HD and 4K" at once
        return (self.has_1080 or self.has_720) and not self.is_4k


def _videos_of(record: dict) -> list:
    videos = record.get("Videos")
    return videos if isinstance(videos, list) else []


def _first_url(qualities: dict[str, str], keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        url = qualities.get(key)
        if url:
            return url
    return None


def collect_qualities(videos) -> dict[str, str]:
    """Build a lower-cased quality -> URL map from the upstream Videos array.

    Entries lacking either Quality or Url are skipped. A later entry with
    the same (case-folded) quality overwrites an earlier one.
    """
    qualities: dict[str, str] = {}
    if not isinstance(videos, list):
        return qualities
    for entry in videos:
        if not isinstance(entry, dict):
            continue
        quality = entry.get("Quality")
        url = entry.get("Url")
        if not quality or not url or not isinstance(url, str):
            continue
        qualities[str(quality).strip().lower()] = url
    return qualities


def detect_quality_flags(qualities: dict[str, str]) -> QualityFlags:
    """Presence of a key, not its value, drives the flags."""
    return QualityFlags(
        has_1080=any(k in qualities for k in _1080_KEYS),
        has_720=any(k in qualities for k in _720_KEYS),
        has_480=any(k in qualities for k in _480_KEYS),
        is_4k=any(k in qualities for k in _4K_KEYS),
    )


def pick_preview_url(qualities: dict[str, str], videos) -> Optional[str]:
    """Preview source for hover playback: 720p, 1080p, 480p, then the first raw entry."""
    for keys in (_720_KEYS, _1080_KEYS, _480_KEYS):
        url = _first_url(qualities, keys)
        if url:
            return url
    if isinstance(videos, list) and videos and isinstance(videos[0], dict):
        url = videos[0].get("Url")
        if url and isinstance(url, str):
            return url
    return None


def format_views(count) -> str:
    """Format view count: 250, 2.5K, 2.5M (always one decimal above 1000)."""
    count = to_int(count)
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def compute_rating(likes, views) -> int:
    """Display heuristic: like/view percentage floored at 85, 95 with no views.

    Not a scoring algorithm.
    """
    views = to_float(views)
    if views <= 0:
        return RATING_WITHOUT_VIEWS
    ratio = to_float(likes) / views * 100
    if not math.isfinite(ratio):
        return RATING_FLOOR
    return max(round_half_up(ratio), RATING_FLOOR)


def format_duration(seconds) -> str:
    """Format seconds as '5:23' or '1:02:15'; falsy input gives the '0:00' placeholder."""
    if not seconds:
        return PLACEHOLDER_DURATION
    seconds = int(seconds)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _megabytes_per_minute(flags: QualityFlags) -> float:
    if flags.is_4k:
        return 3
    if flags.has_1080:
        return 1.5
    if flags.has_720:
        return 1
    return 0.5


def _known_file_size(videos) -> float:
    if not isinstance(videos, list):
        return 0.0
    for entry in videos:
        if isinstance(entry, dict):
            size = to_float(entry.get("FileSize"))
            if size > 0:
                return size
    return 0.0


def estimate_duration(videos, flags: QualityFlags) -> str:
    """Guess a running time from the first known file size.

    Rough bitrates: 4K ~3 MB/min, 1080p ~1.5, 720p ~1, anything else ~0.5.
    The estimate is at least one minute and capped at 120 minutes. Without a
    file size the '0:00' placeholder is returned and the client overwrites it
    once the real video metadata loads.
    """
    size_bytes = _known_file_size(videos)
    if size_bytes <= 0:
        return PLACEHOLDER_DURATION
    minutes = (size_bytes / _BYTES_PER_MB) / _megabytes_per_minute(flags)
    total_seconds = int(minutes * 60)
    total_seconds = min(max(total_seconds, 60), MAX_ESTIMATED_MINUTES * 60)
    return format_duration(total_seconds)


def resolve_author(record: dict, page: int, limit: int, index: int) -> str:
    """Subcategory name, then director, then a synthesized 'ChannelN'."""
    sub = record.get("SubCategory")
    if isinstance(sub, dict):
        name = sub.get("Name")
        if name and isinstance(name, str):
            return name
    director = record.get("Director")
    if director and isinstance(director, str):
        return director
    return f"Channel{positional_id(page, limit, index)}"


def positional_id(page: int, limit: int, index: int) -> int:
    """Id derived from list position; shifts whenever upstream paging changes."""
    return (page - 1) * limit + index + 1


def _text(value, default: str) -> str:
    if value and isinstance(value, str):
        return value
    return default


def map_movie(record, index: int, page: int, limit: int) -> dict:
    """Translate one upstream movie record into a VideoRecord dict.

    ``id`` is positional; the upstream ``_id`` is kept as ``_apiId`` for
    reference and is never used for lookup.
    """
    if not isinstance(record, dict):
        record = {}
    videos = _videos_of(record)
    qualities = collect_qualities(videos)
    flags = detect_quality_flags(qualities)

    created_at = normalize_timestamp(record.get("createdAt"))
    if created_at is None:
        created_at = normalize_timestamp(record.get("ReleaseDate"))

    return {
        "id": positional_id(page, limit, index),
        "title": _text(record.get("Title"), "Untitled"),
        "thumbnail": _text(record.get("Thumbnail"), "") or _text(record.get("Poster"), ""),
        "previewVideo": pick_preview_url(qualities, videos),
        "duration": estimate_duration(videos, flags),
        "views": format_views(record.get("Views")),
        "author": resolve_author(record, page, limit, index),
        "isHd": flags.is_hd,
        "is4k": flags.is_4k,
        "isVr": False,
        "rating": compute_rating(record.get("Likes"), record.get("Views")),
        "createdAt": created_at,
        "videoQualities": qualities,
        "slug": _text(record.get("Slug"), "") or None,
        "_apiId": record.get("_id"),
    }


def map_movies(records: list, page: int, limit: int) -> list[dict]:
    """Map a page of upstream records, keeping upstream order for the ids."""
    return [map_movie(record, index, page, limit) for index, record in enumerate(records)]
