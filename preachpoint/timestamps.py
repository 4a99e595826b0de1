"""ISO 8601 timestamp formatting shared by the health check and the sermon pipeline."""

from datetime import datetime, timezone
from typing import Optional


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """
    Format a UTC time as ISO 8601 with millisecond precision and a 'Z' suffix,
    e.g. '2024-01-15T12:00:00.000Z'.
    """
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
