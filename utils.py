"""Shared utilities for TubeGate."""

import logging
import math
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def to_float(value, default: float = 0.0) -> float:
    """Coerce an upstream JSON value to a finite float.

    Accepts ints, floats and numeric strings (thousands separators allowed).
    Booleans, None, containers and non-finite values give *default*.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip().replace(",", ""))
        except ValueError:
            return default
    else:
        return default
    if not math.isfinite(result):
        return default
    return result


def to_int(value, default: int = 0) -> int:
    """Coerce an upstream JSON value to an int, truncating fractions."""
    result = to_float(value, float(default))
    return int(result)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (2.5 -> 3), unlike round()."""
    return math.floor(value + 0.5)


def normalize_timestamp(value) -> str | None:
    """Normalize an upstream date to ISO-8601 UTC with milliseconds.

    Accepts ISO strings (with or without 'Z' / offset, date-only too) and
    epoch milliseconds. Naive values are treated as UTC. Returns None when
    the value is missing or cannot be parsed.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    dt = None
    if isinstance(value, (int, float)):
        try:
            dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            logger.debug("Unparsable upstream timestamp %r", value)
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        dt = dt.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        logger.debug("Upstream timestamp %r out of range", value)
        return None
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
