"""
Helper Functions

This module contains utility functions used throughout the application.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlsplit

from dateutil import parser as dtparser

# strftime equivalent of the access log timestamp, e.g. 09/May/2018:16:00:39 +0000
CLF_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


def utcnow() -> datetime:
    """Timezone-aware current time, the default clock of every component"""
    return datetime.now(timezone.utc)


def parse_clf_ts(x: Any) -> Optional[datetime]:
    """
    Parse a Common Log Format timestamp into an aware UTC datetime.
    The colon between date and time is swapped for a space so that
    dateutil can read the remainder, offset included.
    """
    if not x:
        return None
    text = str(x).strip()
    if text.count("/") != 2 or ":" not in text:
        return None
    try:
        dt = dtparser.parse(text.replace(":", " ", 1))
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_clf_ts(dt: datetime) -> str:
    """Format a datetime the same way the access log does"""
    return dt.strftime(CLF_TIME_FORMAT)


def safe_int(x: Any) -> Optional[int]:
    """Safely convert to int"""
    try:
        return int(x) if x is not None else None
    except (TypeError, ValueError):
        return None


def site_of(path: str) -> str:
    """First segment of a request path: /foo/bar -> /foo"""
    segments = [s for s in urlsplit(path or "").path.split("/") if s]
    return "/" + segments[0] if segments else "/"
