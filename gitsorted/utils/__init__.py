"""Utility modules for shared functionality."""

from .constants import (
    BOOTSTRAP_WATERMARK,
    DEFAULT_COMMENT_TEMPLATE,
    DEFAULT_NOTIFICATION_TEMPLATE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TICK_INTERVAL,
)
from .timestamps import parse_timestamp, utc_now

__all__ = [
    "BOOTSTRAP_WATERMARK",
    "DEFAULT_COMMENT_TEMPLATE",
    "DEFAULT_NOTIFICATION_TEMPLATE",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_TICK_INTERVAL",
    "parse_timestamp",
    "utc_now",
]
