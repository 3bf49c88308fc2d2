"""
Per-day free/busy aggregation for a group of calendars.

Everything here is a pure function of its inputs: the statistics map is
rebuilt from scratch on every call.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Iterable

from core.config import FREE_OVERRIDE_SCOPE, MAX_RECURRENCE_OCCURRENCES, OVERLAY_SOURCE_NAMES
from core.intervals import (
    clip_intervals,
    invert_intervals,
    merge_intervals,
    minutes_between,
    subtract_intervals,
    total_minutes,
)
from core.recurrence import expand_events
from core.segments import as_instant, get_reference_tz, segment_event
from models.events import (
    AvailabilityResult,
    DaySegment,
    DayStat,
    Event,
    Interval,
    OverlayItem,
    PersonStat,
    QueryRange,
    RecurringEvent,
    Source,
    TitleItem,
    WorkWindow,
)

logger = logging.getLogger(__name__)


class OverrideScope(str, Enum):
    """Where a free-override event cuts busy time."""

    GROUP = "group"    # own source, and the group view for everyone
    SOURCE = "source"  # own source only


def default_override_scope() -> OverrideScope:
    """Override scope from configuration, falling back to GROUP."""
    try:
        return OverrideScope(FREE_OVERRIDE_SCOPE)
    except ValueError:
        logger.warning("Unknown FREE_OVERRIDE_SCOPE %r, using 'group'", FREE_OVERRIDE_SCOPE)
        return OverrideScope.GROUP


def overlay_ids_for(sources: Iterable[Source], names: Iterable[str] = OVERLAY_SOURCE_NAMES) -> set[str]:
    """Ids of the sources whose display name marks them as overlay-only."""
    wanted = {name.lower() for name in names}
    return {source.id for source in sources if source.name.lower() in wanted}


def _ratio(free: int, total: int) -> float:
    return free / total if total else 0.0


def _clamp_minutes(minutes: int, total: int) -> int:
    return max(0, min(total, minutes))


def _person_stat(
    source_id: str,
    source_name: str,
    merged_busy: list[Interval],
    window: Interval,
    total: int,
) -> PersonStat:
    busy = _clamp_minutes(total_minutes(merged_busy), total)
    free = total - busy
    return PersonStat(
        source_id=source_id,
        source_name=source_name,
        busy_minutes=busy,
        free_minutes=free,
        free_ratio=_ratio(free, total),
        merged_busy=tuple(merged_busy),
        free_blocks=tuple(invert_intervals(merged_busy, window[0], window[1])),
    )


def _window_segments(
    buckets: dict[date, list[DaySegment]], day: date, window_end_local: datetime
) -> list[DaySegment]:
    """Segments of every calendar day the work window touches."""
    last = window_end_local.date()
    days = [day + timedelta(days=i) for i in range(max(0, (last - day).days) + 1)]
    return [segment for d in days for segment in buckets.get(d, [])]


def _compute_day(
    day: date,
    buckets: dict[date, list[DaySegment]],
    sources: list[Source],
    active_ids: set[str] | None,
    overlay_ids: set[str],
    work_window: WorkWindow,
    override_scope: OverrideScope,
    tz: tzinfo,
) -> DayStat:
    """Build the statistics for one calendar date."""
    ws_local, we_local = work_window.bounds(day, tz)
    ws, we = as_instant(ws_local, tz), as_instant(we_local, tz)
    total = minutes_between(ws, we)

    names: dict[str, str] = {}
    busy_by_source: dict[str, list[Interval]] = defaultdict(list)
    cuts_by_source: dict[str, list[Interval]] = defaultdict(list)
    overlay_names: dict[str, str] = {}
    overlay_busy: dict[str, list[Interval]] = defaultdict(list)
    overlay_cuts: dict[str, list[Interval]] = defaultdict(list)
    titles: list[TitleItem] = []

    for segment in _window_segments(buckets, day, we_local):
        event = segment.event
        clipped = clip_intervals([(segment.start, segment.end)], ws, we)
        # Segments of the next day only matter inside an overnight window
        if segment.date != day and not clipped:
            continue

        for start, end in clipped:
            titles.append(
                TitleItem(
                    source_id=event.source_id,
                    source_name=event.source_name,
                    summary=event.summary,
                    start=start,
                    end=end,
                    all_day=event.all_day,
                    is_urgent=event.is_urgent,
                    is_free_override=event.is_free_override,
                )
            )

        if event.source_id in overlay_ids:
            overlay_names.setdefault(event.source_id, event.source_name)
            if event.is_free_override:
                overlay_cuts[event.source_id].extend(clipped)
            else:
                overlay_busy[event.source_id].extend(clipped)
            continue

        names.setdefault(event.source_id, event.source_name)
        if event.is_free_override:
            cuts_by_source[event.source_id].extend(clipped)
        else:
            busy_by_source[event.source_id].extend(clipped)

    # Per source
    window = (ws, we)
    merged_by_source: dict[str, list[Interval]] = {}
    per_person: list[PersonStat] = []
    for source_id, source_name in names.items():
        merged = subtract_intervals(
            merge_intervals(busy_by_source[source_id]),
            merge_intervals(cuts_by_source[source_id]),
        )
        merged_by_source[source_id] = merged
        per_person.append(_person_stat(source_id, source_name, merged, window, total))

    # Listed sources with nothing that day are fully free
    for source in sources:
        if source.id in names or source.id in overlay_ids:
            continue
        if active_ids is not None and source.id not in active_ids:
            continue
        per_person.append(_person_stat(source.id, source.name, [], window, total))

    per_person.sort(key=lambda p: (p.source_name.casefold(), p.source_id))

    # Group union
    if override_scope == OverrideScope.SOURCE:
        group_busy = merge_intervals(
            interval for merged in merged_by_source.values() for interval in merged
        )
    else:
        group_busy = subtract_intervals(
            merge_intervals(iv for ivs in busy_by_source.values() for iv in ivs),
            merge_intervals(iv for ivs in cuts_by_source.values() for iv in ivs),
        )
    busy = _clamp_minutes(total_minutes(group_busy), total)
    free = total - busy

    overlay_items = []
    for source_id, source_name in overlay_names.items():
        merged = subtract_intervals(
            merge_intervals(overlay_busy[source_id]),
            merge_intervals(overlay_cuts[source_id]),
        )
        overlay_items.append(
            OverlayItem(
                source_id=source_id,
                source_name=source_name,
                merged_busy=tuple(merged),
                busy_minutes=_clamp_minutes(total_minutes(merged), total),
            )
        )
    overlay_items.sort(key=lambda o: (o.source_name.casefold(), o.source_id))

    titles.sort(key=lambda t: (t.start, t.end, t.source_name, t.summary))

    return DayStat(
        date=day,
        work_start=ws,
        work_end=we,
        total_minutes=total,
        busy_minutes=busy,
        free_minutes=free,
        free_ratio=_ratio(free, total),
        merged_busy=tuple(group_busy),
        per_person=tuple(per_person),
        titles=tuple(titles),
        has_urgent=any(t.is_urgent for t in titles),
        overlay_items=tuple(overlay_items),
    )


def expansion_range(query_range: QueryRange, work_window: WorkWindow, tz: tzinfo) -> QueryRange:
    """
    Range events must be expanded over to fill every day's work window.

    The last day's window can end after the range does (overnight windows
    run into the next morning).
    """
    last_day = query_range.days(tz)[-1]
    _, window_end = work_window.bounds(last_day, tz)
    if window_end <= query_range.end:
        return query_range
    return QueryRange(start=query_range.start, end=window_end)


def compute_day_stats(
    events: Iterable[Event],
    sources: Iterable[Source],
    active_ids: Iterable[str] | None,
    query_range: QueryRange,
    work_window: WorkWindow,
    *,
    overlay_source_ids: Iterable[str] = (),
    override_scope: OverrideScope = OverrideScope.GROUP,
    tz: tzinfo | str | None = None,
) -> dict[str, DayStat]:
    """
    Compute the per-day statistics map for already expanded events.

    Args:
        events: Concrete events (recurrences already expanded)
        sources: Known calendars; active ones without events get fully-free entries
        active_ids: Selected source ids, or None for every source
        query_range: Inclusive range, iterated one local day at a time
        work_window: Hours measured each day
        overlay_source_ids: Sources kept out of the group union but still shown
        override_scope: Whether free overrides also free the group view
        tz: Reference clock for local midnight (defaults to TIME_ZONE)

    Returns:
        Dict of ISO date -> DayStat in chronological order
    """
    tz = get_reference_tz(tz)
    sources = list(sources)
    active = None if active_ids is None else set(active_ids)
    overlay_ids = set(overlay_source_ids)

    buckets: dict[date, list[DaySegment]] = defaultdict(list)
    for event in events:
        if active is not None and event.source_id not in active:
            continue
        for segment in segment_event(event, tz):
            buckets[segment.date].append(segment)

    return {
        day.isoformat(): _compute_day(
            day, buckets, sources, active, overlay_ids, work_window, override_scope, tz
        )
        for day in query_range.days(tz)
    }


def compute_availability(
    raw_events: Iterable[Event | RecurringEvent],
    sources: Iterable[Source],
    query_range: QueryRange,
    work_window: WorkWindow,
    *,
    active_ids: Iterable[str] | None = None,
    overlay_source_ids: Iterable[str] | None = None,
    override_scope: OverrideScope | None = None,
    tz: tzinfo | str | None = None,
    max_occurrences: int = MAX_RECURRENCE_OCCURRENCES,
) -> AvailabilityResult:
    """
    Expand recurring events, then aggregate the whole range.

    Overlay sources and the override scope default to the configured
    OVERLAY_SOURCE_NAMES and FREE_OVERRIDE_SCOPE.
    """
    tz = get_reference_tz(tz)
    sources = list(sources)
    if overlay_source_ids is None:
        overlay_source_ids = overlay_ids_for(sources)
    if override_scope is None:
        override_scope = default_override_scope()

    events, failures = expand_events(
        raw_events, expansion_range(query_range, work_window, tz), max_occurrences, tz
    )
    day_stats = compute_day_stats(
        events,
        sources,
        active_ids,
        query_range,
        work_window,
        overlay_source_ids=overlay_source_ids,
        override_scope=override_scope,
        tz=tz,
    )
    logger.info(
        "Computed %d days from %d events (%d recurring definitions could not be expanded)",
        len(day_stats),
        len(events),
        len(failures),
    )
    return AvailabilityResult(day_stats=day_stats, events=events, failures=failures)
