"""Utility functions."""

from togglehub.utils.timezone import (
    UTC,
    utc_now,
    to_utc,
    start_of_hour,
    hours_ago,
    to_iso8601,
    from_iso8601,
)

__all__ = [
    "UTC",
    "utc_now",
    "to_utc",
    "start_of_hour",
    "hours_ago",
    "to_iso8601",
    "from_iso8601",
]
