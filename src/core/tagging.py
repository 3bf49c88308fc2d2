"""
Event tagging and record construction.

Tags are derived from the event title once, when the record is built.
"""

import re
from datetime import date, datetime, timedelta, tzinfo

from core.config import DEFAULT_EVENT_MINUTES, FREE_OVERRIDE_PATTERN, URGENT_MARKER
from core.segments import as_instant, get_reference_tz
from models.events import Event, RecurringEvent, Source

_FREE_OVERRIDE_RE = re.compile(FREE_OVERRIDE_PATTERN, re.IGNORECASE)


def is_urgent(summary: str | None) -> bool:
    """Check if the title marks the event as urgent ('!')."""
    return bool(summary) and URGENT_MARKER in summary


def is_free_override(summary: str | None) -> bool:
    """Check if the title marks the event as manually freed time."""
    return bool(summary) and _FREE_OVERRIDE_RE.search(summary) is not None


def build_event(
    source: Source,
    summary: str | None,
    start: datetime | date,
    end: datetime | date | None = None,
    all_day: bool = False,
    tz: tzinfo | None = None,
) -> Event:
    """
    Build a tagged concrete event.

    A missing end falls back to the default event duration. An end before
    the start is clamped to the start so that end >= start always holds.
    """
    tz = get_reference_tz(tz)
    summary = summary or ""
    start_dt = as_instant(start, tz)
    if end is None:
        end_dt = start_dt + timedelta(minutes=DEFAULT_EVENT_MINUTES)
    else:
        end_dt = max(as_instant(end, tz), start_dt)
    return Event(
        source_id=source.id,
        source_name=source.name,
        summary=summary,
        start=start_dt,
        end=end_dt,
        all_day=all_day,
        is_urgent=is_urgent(summary),
        is_free_override=is_free_override(summary),
    )


def build_recurring_event(
    source: Source,
    summary: str | None,
    rule: str,
    dtstart: datetime | date,
    duration: timedelta | None = None,
    all_day: bool = False,
) -> RecurringEvent:
    """Build a tagged recurring definition. dtstart is kept as given."""
    summary = summary or ""
    if not isinstance(dtstart, datetime):
        dtstart = datetime.combine(dtstart, datetime.min.time())
        all_day = True
    return RecurringEvent(
        source_id=source.id,
        source_name=source.name,
        summary=summary,
        rule=rule,
        dtstart=dtstart,
        duration=duration,
        all_day=all_day,
        is_urgent=is_urgent(summary),
        is_free_override=is_free_override(summary),
    )
