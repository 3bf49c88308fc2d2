"""
Calendar loading from ICS documents.

Turns VEVENTs into tagged Event / RecurringEvent records. Documents are
parsed as-is; nothing is repaired or validated.
"""

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Iterable

from icalendar import Calendar

from core.segments import get_reference_tz
from core.tagging import build_event, build_recurring_event
from models.events import Event, QueryRange, RecurringEvent, Source

logger = logging.getLogger(__name__)


class CalendarParseError(Exception):
    """Raised when a calendar document cannot be read at all."""


def load_calendar_file(
    path: Path, source_id: str | None = None, tz: tzinfo | None = None
) -> tuple[Source, list[Event | RecurringEvent]]:
    """
    Read one .ics file as a calendar source.

    Returns:
        Tuple of (source, events); the source is named after the file
    """
    try:
        text = path.read_bytes()
    except OSError as e:
        raise CalendarParseError(f"Cannot read {path}: {e}") from e

    source = Source(id=source_id or path.name, name=path.name)
    return source, parse_ics_text(text, source, tz)


def load_calendar_files(
    paths: Iterable[Path], tz: tzinfo | None = None
) -> tuple[list[Source], list[Event | RecurringEvent]]:
    """Load several .ics files, giving each source a unique id."""
    sources: list[Source] = []
    events: list[Event | RecurringEvent] = []
    taken: set[str] = set()

    for path in paths:
        source_id = unique_source_id(path.name, taken)
        source, parsed = load_calendar_file(path, source_id, tz)
        sources.append(source)
        events.extend(parsed)

    return sources, events


def unique_source_id(name: str, taken: set[str]) -> str:
    """Return name, or name-2, name-3... if already taken. Records the result."""
    candidate = name
    suffix = 2
    while candidate in taken:
        candidate = f"{name}-{suffix}"
        suffix += 1
    taken.add(candidate)
    return candidate


def parse_ics_text(
    text: str | bytes, source: Source, tz: tzinfo | None = None
) -> list[Event | RecurringEvent]:
    """
    Parse an ICS document into event records for one source.

    VEVENTs that cannot be interpreted are skipped with a warning.

    Raises:
        CalendarParseError: if the document itself cannot be parsed
    """
    tz = get_reference_tz(tz)
    try:
        calendar = Calendar.from_ical(text)
    except ValueError as e:
        raise CalendarParseError(f"Invalid calendar document for {source.name}: {e}") from e

    events: list[Event | RecurringEvent] = []
    for component in calendar.walk("VEVENT"):
        try:
            events.append(parse_vevent(component, source, tz))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(
                "Failed vevent %r in %s: %s", str(component.get("SUMMARY", "?")), source.name, e
            )

    logger.debug("Parsed %d events from %s", len(events), source.name)
    return events


def parse_vevent(component, source: Source, tz: tzinfo) -> Event | RecurringEvent:
    """Convert one VEVENT component into an Event or RecurringEvent."""
    summary = str(component.get("SUMMARY", ""))
    dtstart_prop = component.get("DTSTART")
    if dtstart_prop is None:
        raise ValueError("VEVENT has no DTSTART")

    start = dtstart_prop.dt
    all_day = not isinstance(start, datetime)
    duration = _event_duration(component, start, all_day)

    if component.get("RRULE") is not None or component.get("RDATE") is not None:
        return build_recurring_event(
            source,
            summary,
            rule=_rule_text(component, start),
            dtstart=start,
            duration=duration,
            all_day=all_day,
        )

    end = start + duration if duration is not None else None
    return build_event(source, summary, start, end, all_day=all_day, tz=tz)


def _event_duration(component, start: date | datetime, all_day: bool) -> timedelta | None:
    """DTEND - DTSTART, else DURATION, else one day for all-day events."""
    dtend_prop = component.get("DTEND")
    if dtend_prop is not None:
        end = dtend_prop.dt
        if isinstance(start, datetime) and not isinstance(end, datetime):
            end = datetime.combine(end, datetime.min.time(), tzinfo=start.tzinfo)
        return end - start

    duration_prop = component.get("DURATION")
    if duration_prop is not None:
        return duration_prop.dt

    if all_day:
        return timedelta(days=1)
    return None


def _rule_text(component, start: date | datetime) -> str:
    """Collect RRULE, RDATE and EXDATE properties as rrulestr input."""
    lines = []
    for rrule in _as_list(component.get("RRULE")):
        lines.append("RRULE:" + rrule.to_ical().decode("utf-8"))
    for name in ("RDATE", "EXDATE"):
        for prop in _as_list(component.get(name)):
            values = [_format_rule_date(item.dt, start) for item in prop.dts]
            if values:
                lines.append(f"{name}:" + ",".join(values))
    return "\n".join(lines)


def _format_rule_date(value: date | datetime, start: date | datetime) -> str:
    """Format an RDATE/EXDATE value so it compares cleanly with DTSTART."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    anchored = isinstance(start, datetime) and start.tzinfo is not None
    if anchored:
        if value.tzinfo is None:
            value = value.replace(tzinfo=start.tzinfo)
        return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return value.replace(tzinfo=None).strftime("%Y%m%dT%H%M%S")


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def fit_query_range(events: Iterable[Event | RecurringEvent], tz: tzinfo | None = None) -> QueryRange | None:
    """
    Whole-day range spanning every concrete event, or None if there are none.

    Recurring definitions are ignored since they may be unbounded.
    """
    tz = get_reference_tz(tz)
    bounds = [
        instant
        for event in events
        if isinstance(event, Event)
        for instant in (event.start, event.end)
    ]
    if not bounds:
        return None
    first = min(bounds).astimezone(tz).date()
    last = max(bounds).astimezone(tz).date()
    return QueryRange.from_dates(first, last, tz)
