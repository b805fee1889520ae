"""Offset/limit windowing shared by the follow store and service."""
import math
from typing import NamedTuple, Optional

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

DEFAULT_RECENT_LIMIT = 10
MAX_RECENT_LIMIT = 50


class Window(NamedTuple):
    offset: int
    limit: int


def clamp_offset(offset: Optional[int]) -> int:
    """Offsets below zero (or missing) start at the first row."""
    return max(0, offset or 0)


def clamp_limit(
    limit: Optional[int],
    default: int = DEFAULT_PAGE_SIZE,
    maximum: int = MAX_PAGE_SIZE,
) -> int:
    """Missing or zero limits fall back to ``default``; the result is kept in [1, maximum]."""
    return max(1, min(maximum, limit or default))


def clamp_recent_limit(limit) -> int:
    """Floor ``limit`` and keep it in [1, MAX_RECENT_LIMIT].

    Numeric strings are accepted. Anything that is not a finite number
    gets the default.
    """
    try:
        value = float(limit)
    except (TypeError, ValueError):
        return DEFAULT_RECENT_LIMIT
    if not math.isfinite(value):
        return DEFAULT_RECENT_LIMIT
    return max(1, min(MAX_RECENT_LIMIT, math.floor(value)))


def window(offset: Optional[int] = None, limit: Optional[int] = None) -> Window:
    return Window(clamp_offset(offset), clamp_limit(limit))


def has_more(offset: int, limit: int, total_count: int) -> bool:
    return offset + limit < total_count
