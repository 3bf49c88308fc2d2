"""
Recurrence expansion against a bounded query range.
"""

import logging
from datetime import timedelta, tzinfo
from typing import Iterable, Iterator

from dateutil.rrule import rrulestr

from core.config import DEFAULT_EVENT_MINUTES, MAX_RECURRENCE_OCCURRENCES
from core.segments import as_instant, get_reference_tz
from models.events import Event, ExpansionFailure, QueryRange, RecurringEvent

logger = logging.getLogger(__name__)


class RecurrenceError(Exception):
    """Raised when a recurrence rule cannot be built or iterated."""


def build_rule(definition: RecurringEvent):
    """Parse the definition's rule text into an iterable rule set."""
    try:
        return rrulestr(definition.rule, dtstart=definition.dtstart, forceset=True)
    except (ValueError, TypeError, AttributeError, KeyError) as e:
        raise RecurrenceError(f"Invalid recurrence rule {definition.rule!r}: {e}") from e


def expand_recurrence(
    definition: RecurringEvent,
    query_range: QueryRange,
    max_occurrences: int = MAX_RECURRENCE_OCCURRENCES,
    tz: tzinfo | None = None,
) -> Iterator[Event]:
    """
    Yield the concrete occurrences of a recurring definition within a range.

    Occurrences ending before the range are skipped; the first occurrence
    starting after the range ends the iteration. At most max_occurrences
    occurrences are evaluated, so unbounded rules always terminate, and
    anything past the cap is silently dropped.

    Raises:
        RecurrenceError: if the rule cannot be parsed or iterated
    """
    tz = get_reference_tz(tz)
    rule = build_rule(definition)
    range_start = as_instant(query_range.start, tz)
    range_end = as_instant(query_range.end, tz)
    duration = definition.duration
    if duration is None:
        duration = timedelta(minutes=DEFAULT_EVENT_MINUTES)

    evaluated = 0
    try:
        for occurrence in rule:
            evaluated += 1
            if evaluated > max_occurrences:
                logger.debug(
                    "Occurrence cap (%d) reached for %r", max_occurrences, definition.summary
                )
                return
            start = as_instant(occurrence, tz)
            end = as_instant(occurrence + duration, tz)
            if end < range_start:
                continue
            if start > range_end:
                return
            yield Event(
                source_id=definition.source_id,
                source_name=definition.source_name,
                summary=definition.summary,
                start=start,
                end=end,
                all_day=definition.all_day,
                is_urgent=definition.is_urgent,
                is_free_override=definition.is_free_override,
            )
    except (ValueError, TypeError, OverflowError) as e:
        raise RecurrenceError(f"Cannot iterate recurrence rule {definition.rule!r}: {e}") from e


def expand_events(
    events: Iterable[Event | RecurringEvent],
    query_range: QueryRange,
    max_occurrences: int = MAX_RECURRENCE_OCCURRENCES,
    tz: tzinfo | None = None,
) -> tuple[list[Event], list[ExpansionFailure]]:
    """
    Flatten a mix of concrete and recurring events into concrete events.

    Concrete events outside the range are dropped. A recurring definition
    that fails contributes nothing and is reported as a failure; the rest
    of the list is still expanded.
    """
    tz = get_reference_tz(tz)
    range_start = as_instant(query_range.start, tz)
    range_end = as_instant(query_range.end, tz)
    expanded: list[Event] = []
    failures: list[ExpansionFailure] = []

    for event in events:
        if isinstance(event, RecurringEvent):
            try:
                occurrences = list(expand_recurrence(event, query_range, max_occurrences, tz))
            except RecurrenceError as e:
                logger.warning("Skipping recurring event %r (%s): %s", event.summary, event.source_id, e)
                failures.append(
                    ExpansionFailure(source_id=event.source_id, summary=event.summary, reason=str(e))
                )
                continue
            expanded.extend(occurrences)
        elif not (as_instant(event.end, tz) < range_start or as_instant(event.start, tz) > range_end):
            expanded.append(event)

    return expanded, failures
