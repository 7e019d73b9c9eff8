# obtracker/timeutils.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta

# Display sentinel for stats whose reference instant is missing
UNKNOWN = "--"


def parse_dt(s: str | None):
    """Parse ISO8601 date/time; accept 'Z' as UTC."""
    if not s:
        return None
    try:
        s = s.replace("Z", "+00:00")
        return datetime.fromisoformat(s)
    except ValueError as e:
        raise ValueError(f"Invalid datetime: {s}") from e


def coerce_dt(value) -> datetime | None:
    """Lenient variant of parse_dt: absent or unparseable input gives None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        return parse_dt(str(value))
    except ValueError:
        return None


def on_clock_of(t: datetime, now: datetime) -> datetime:
    """Express t on the same (naive or aware) clock as now."""
    if now.tzinfo is None and t.tzinfo is not None:
        return t.astimezone().replace(tzinfo=None)
    if now.tzinfo is not None and t.tzinfo is None:
        return t.replace(tzinfo=now.tzinfo)
    if now.tzinfo is not None:
        return t.astimezone(now.tzinfo)
    return t


def _calendar_days_between(t: datetime, now: datetime) -> int:
    t = on_clock_of(t, now)
    return max(0, (now.date() - t.date()).days)


def midnights_since(t, now: datetime):
    """Midnights crossed since t (admission), or UNKNOWN when t is missing."""
    t = coerce_dt(t)
    if t is None:
        return UNKNOWN
    return _calendar_days_between(t, now)


def hours_since(t, now: datetime):
    """Hours elapsed since t to one decimal, or UNKNOWN when t is missing."""
    t = coerce_dt(t)
    if t is None:
        return UNKNOWN
    elapsed = (now - on_clock_of(t, now)).total_seconds() / 3600
    return round(max(0.0, elapsed), 1)


def post_op_days(t, now: datetime) -> int | None:
    """Post-op day count for a procedure at t; None means not applicable."""
    t = coerce_dt(t)
    if t is None:
        return None
    return _calendar_days_between(t, now)


def next_morning(t: datetime, hour: int = 6) -> datetime:
    """hour:00 on the calendar day after t."""
    return datetime.combine(t.date() + timedelta(days=1), time(hour), tzinfo=t.tzinfo)


def to_local_input(d: datetime) -> str:
    """Minute precision form used for stored instants, e.g. 2024-01-01T08:00."""
    return d.strftime("%Y-%m-%dT%H:%M")


def to_local_date(d: datetime | date) -> str:
    return d.strftime("%Y-%m-%d")


def truncate_to_minute(d: datetime) -> datetime:
    return d.replace(second=0, microsecond=0)


def format_time(value) -> str:
    d = coerce_dt(value)
    if d is None:
        return ""
    return f"{d:%b} {d.day}, {d:%H:%M}"
