"""
Timezone and calendar bucketing utilities.

The metrics engine never assumes a timezone of its own.  Callers build
a date-bucketing function here for the timezone their user trades in
and pass it to the engine, which only calls it on entry timestamps.
"""

from __future__ import annotations

from typing import Any, Callable, Optional
import pandas as pd


DateBucketFn = Callable[[pd.Timestamp], Any]


def to_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """Parse a journal timestamp into a UTC-aware `pandas.Timestamp`.

    ``None``, empty strings and NaN/NaT values give ``None``.  Naive
    values are assumed to be in UTC.
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    if not isinstance(value, pd.Timestamp) and pd.isna(value):
        return None
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        return None
    return to_timezone(ts, "UTC")


def to_timezone(ts: pd.Timestamp, tz_name: str) -> pd.Timestamp:
    """Convert a `pandas.Timestamp` to the specified timezone.

    If the timestamp is naive, it is assumed to be in UTC before
    conversion.  If it already has a timezone, it will be converted.
    """
    if not isinstance(ts, pd.Timestamp):
        ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert(tz_name)


def make_date_bucket(tz_name: str = "UTC") -> DateBucketFn:
    """Return a function mapping a timestamp to its ``YYYY-MM-DD`` date in `tz_name`.

    A trade entered at 23:30 UTC on a Monday falls on Tuesday for a
    trader in Asia/Tokyo; the returned function keys it accordingly.
    """

    def bucket(ts: pd.Timestamp) -> str:
        return to_timezone(ts, tz_name).strftime("%Y-%m-%d")

    return bucket


def minutes_between(start: Optional[pd.Timestamp], end: Optional[pd.Timestamp]) -> Optional[float]:
    """Fractional minutes from `start` to `end`, or ``None`` if either is missing."""
    if start is None or end is None:
        return None
    delta = to_timezone(end, "UTC") - to_timezone(start, "UTC")
    return delta.total_seconds() / 60.0
