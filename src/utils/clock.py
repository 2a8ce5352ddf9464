"""UTC timestamp helpers.

Timestamps are stored as ISO-8601 strings with fixed microsecond precision
so that lexical order matches chronological order.
"""

from datetime import datetime

import pytz


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def to_iso(value: datetime) -> str:
    return value.astimezone(pytz.utc).isoformat(timespec="microseconds")


def utc_now_iso() -> str:
    return to_iso(utc_now())


def parse_iso(value: str) -> datetime:
    """Parse a stored timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = pytz.utc.localize(parsed)
    return parsed
