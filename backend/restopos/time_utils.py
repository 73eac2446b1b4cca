from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


PERIODS = ("day", "week", "month", "year")


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        return dt

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse "YYYY-MM-DD" (or a full ISO datetime) into a date."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    if "T" in s or " " in s:
        parsed = parse_iso_datetime(s)
        return parsed.date() if parsed else None
    return date.fromisoformat(s)


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


def period_bounds(period: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Return the [start, end) window for a reporting period containing `now`.

    - day: midnight to midnight
    - week: Monday 00:00 to the next Monday
    - month: first of the month to the first of the next month
    - year: January 1st to the next January 1st

    Raises ValueError for an unknown period.
    """
    now = now or utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "day":
        start = midnight
        end = start + timedelta(days=1)
    elif period == "week":
        start = midnight - timedelta(days=midnight.weekday())
        end = start + timedelta(days=7)
    elif period == "month":
        start = midnight.replace(day=1)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
    elif period == "year":
        start = midnight.replace(month=1, day=1)
        end = start.replace(year=start.year + 1)
    else:
        raise ValueError(f"Unknown period: {period}")

    return start, end


def previous_period_bounds(period: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Window immediately preceding period_bounds(period, now)."""
    start, _ = period_bounds(period, now)
    return period_bounds(period, start - timedelta(microseconds=1))


def format_receipt_datetime(dt: Optional[datetime]) -> str:
    """Receipt date stamp: dd/mm/YYYY HH:MM."""
    if dt is None:
        return ""
    return dt.strftime("%d/%m/%Y %H:%M")
