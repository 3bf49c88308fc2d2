"""
Splitting absolute intervals into per-day segments.

Instants are normalized to UTC; day boundaries are local midnights in the
reference clock.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

from core.config import TIME_ZONE
from models.events import DaySegment, Event


def get_reference_tz(tz: tzinfo | str | None = None) -> tzinfo:
    """Resolve the reference clock, defaulting to the configured TIME_ZONE."""
    if tz is None:
        return ZoneInfo(TIME_ZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def as_instant(value: datetime | date, tz: tzinfo) -> datetime:
    """
    Convert a datetime (or all-day date) to an aware UTC instant.

    Naive values and bare dates are read as local time in tz.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc)


def local_midnight(day: date, tz: tzinfo) -> datetime:
    """UTC instant of 00:00 local time on the given day."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def split_by_days(start: datetime, end: datetime, tz: tzinfo) -> list[tuple[date, datetime, datetime]]:
    """
    Split [start, end) into one (date, seg_start, seg_end) piece per local day.

    Zero-length or inverted intervals yield nothing.
    """
    start = as_instant(start, tz)
    end = as_instant(end, tz)
    pieces = []
    cursor = start
    while cursor < end:
        day = cursor.astimezone(tz).date()
        day_end = local_midnight(day + timedelta(days=1), tz)
        seg_end = min(day_end, end)
        pieces.append((day, cursor, seg_end))
        cursor = seg_end
    return pieces


def segment_event(event: Event, tz: tzinfo) -> list[DaySegment]:
    """Per-day segments of one concrete event."""
    return [
        DaySegment(date=day, start=seg_start, end=seg_end, event=event)
        for day, seg_start, seg_end in split_by_days(event.start, event.end, tz)
    ]
