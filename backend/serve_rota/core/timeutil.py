"""
Time helpers. Instants are stored and compared in UTC; calendar facts (dates,
weekdays, time-of-day) are read in settings.schedule_timezone.
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from serve_rota.config import settings


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.schedule_timezone)


def as_utc(dt: datetime) -> datetime:
    """SQLite returns naive datetimes; treat naive as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime) -> datetime:
    return as_utc(dt).astimezone(local_zone())


def local_instant(day: date, at: time) -> datetime:
    """Local calendar date + local time-of-day -> UTC instant."""
    return datetime.combine(day, at, tzinfo=local_zone()).astimezone(timezone.utc)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a local calendar day as UTC instants."""
    return local_instant(day, time.min), local_instant(day + timedelta(days=1), time.min)


def dates_touched(start: datetime, end: datetime) -> list[date]:
    """Local dates covered by [start, end). An end exactly at midnight does not touch the next day."""
    first = to_local(start).date()
    last = to_local(as_utc(end) - timedelta(microseconds=1)).date()
    out = []
    d = first
    while d <= last:
        out.append(d)
        d += timedelta(days=1)
    return out


def parse_hhmm(value: str) -> time:
    """Parse HH:MM (24h). Raises ValueError on anything else."""
    parts = (value or "").strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Expected HH:MM, got {value!r}")
    return time(int(parts[0]), int(parts[1]))
