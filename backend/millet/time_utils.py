from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def months_ago(months: int, now: Optional[datetime] = None) -> datetime:
    """
    First instant of the calendar month `months - 1` months before `now`.

    months_ago(6) in mid-October returns May 1st, so a six-month window
    covers May..October inclusive.
    """
    now = now or utcnow()
    year, month = now.year, now.month - (months - 1)
    while month <= 0:
        month += 12
        year -= 1
    return datetime(year, month, 1)


def month_key(dt: datetime) -> str:
    return dt.strftime("%Y-%m")


def token_expiry(hours: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) + timedelta(hours=hours)
