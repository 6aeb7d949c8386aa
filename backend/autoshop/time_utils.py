from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" and "YYYY-MM-DDTHH:MM" (naive) are interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


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


def shop_today(tz_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date in the shop's timezone. `now` is UTC-naive when given."""
    now = now or utcnow()
    return now.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name)).date()


def _local_midnight_utc(day: date, tz: ZoneInfo) -> datetime:
    local = datetime.combine(day, time.min, tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def shop_day_range(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """
    UTC-naive [start, end) bounds of a shop-local calendar day.

    Half-open, so DST days of 23 or 25 hours are covered exactly.
    """
    tz = ZoneInfo(tz_name)
    return _local_midnight_utc(day, tz), _local_midnight_utc(day + timedelta(days=1), tz)


def shop_month_range(year: int, month: int, tz_name: str) -> tuple[datetime, datetime]:
    """UTC-naive [start, end) bounds of a shop-local calendar month."""
    tz = ZoneInfo(tz_name)
    first = date(year, month, 1)
    if month == 12:
        next_first = date(year + 1, 1, 1)
    else:
        next_first = date(year, month + 1, 1)
    return _local_midnight_utc(first, tz), _local_midnight_utc(next_first, tz)


def months_back(day: date, count: int) -> list[tuple[int, int]]:
    """The `count` (year, month) pairs ending with the month of `day`, oldest first."""
    pairs = []
    year, month = day.year, day.month
    for _ in range(count):
        pairs.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(pairs))
