from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def get_zone(name: str | None) -> ZoneInfo:
    return ZoneInfo(name or "UTC")


def now_local(tz: ZoneInfo | None = None) -> datetime:
    """Current time in the reference timezone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(tz or timezone.utc)


def localize(value: datetime, tz: ZoneInfo) -> datetime:
    """Return ``value`` as an aware datetime in ``tz``.

    Naive values are taken to already be wall-clock time in ``tz``.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def calendar_day(value: datetime, tz: ZoneInfo) -> date:
    return localize(value, tz).date()


def days_between(start: date, end: date) -> int:
    return (end - start).days


def hours_between(earlier: datetime, later: datetime, tz: ZoneInfo) -> float:
    return (localize(later, tz) - localize(earlier, tz)).total_seconds() / 3600


def day_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def parse_iso_datetime(value: str, tz: ZoneInfo) -> datetime:
    """Parse an ISO date or datetime; naive values are wall-clock time in ``tz``."""
    value = (value or "").strip()
    if len(value) == 10:
        parsed = datetime.combine(parse_iso_date(value), datetime.max.time().replace(microsecond=0))
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return localize(parsed, tz)
