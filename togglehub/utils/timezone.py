"""
Timezone Utilities.

Golden Rules:
1. Database: Always store UTC
2. API: Return ISO 8601 with Z suffix (UTC), millisecond precision
3. Metrics are bucketed by the UTC hour they started in
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

# UTC constant
UTC = timezone.utc


# ============================================================
# CORE FUNCTIONS
# ============================================================

def utc_now() -> datetime:
    """
    Get current time in UTC (timezone-aware).

    Always use this instead of datetime.utcnow() which returns
    naive datetime.
    """
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """
    Convert datetime to UTC.

    Naive datetimes are assumed to be UTC.
    SQLite hands stored values back naive, so every read path goes
    through here.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def start_of_hour(dt: datetime) -> datetime:
    """Truncate to the start of the UTC hour."""
    return to_utc(dt).replace(minute=0, second=0, microsecond=0)


def hours_ago(hours: int, now: Optional[datetime] = None) -> datetime:
    """Point in time `hours` before now (UTC)."""
    return (now or utc_now()) - timedelta(hours=hours)


# ============================================================
# ISO 8601 (API FORMAT)
# ============================================================

def to_iso8601(dt: datetime) -> str:
    """
    Format as ISO 8601 with millisecond precision and Z suffix.

    Matches what JavaScript's Date.toISOString() produces, which is
    what SDKs compare against.

    Usage:
        iso = to_iso8601(record.timestamp)
        # "2024-01-15T14:00:00.000Z"
    """
    utc_dt = to_utc(dt)
    return utc_dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc_dt.microsecond // 1000:03d}Z"


def from_iso8601(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to UTC datetime.

    Handles:
    - "2024-01-15T14:30:00Z"
    - "2024-01-15T14:30:00.123Z"
    - "2024-01-15T09:30:00-05:00"
    """
    if iso_string.endswith("Z"):
        iso_string = iso_string[:-1] + "+00:00"
    dt = datetime.fromisoformat(iso_string)
    return to_utc(dt)
