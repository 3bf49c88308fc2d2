"""
Data models for calendar sources, events and availability statistics.

Events are tagged once when they are built (see core.tagging) and are
immutable afterwards. All statistics objects are plain outputs of one
computation pass.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo

Interval = tuple[datetime, datetime]


@dataclass(frozen=True)
class Source:
    """A named calendar the events come from."""
    id: str
    name: str


@dataclass(frozen=True)
class Event:
    """Concrete calendar occurrence."""
    source_id: str
    source_name: str
    summary: str
    start: datetime
    end: datetime
    all_day: bool = False
    is_urgent: bool = False
    is_free_override: bool = False


@dataclass(frozen=True)
class RecurringEvent:
    """Recurring definition, not yet expanded against a query range."""
    source_id: str
    source_name: str
    summary: str
    rule: str
    dtstart: datetime
    duration: timedelta | None = None
    all_day: bool = False
    is_urgent: bool = False
    is_free_override: bool = False


@dataclass(frozen=True)
class WorkWindow:
    """
    Hours of each day that are measured.

    end_hour may be lower than start_hour for an overnight window that ends
    on the next calendar day. end_hour == 24 means the next midnight.
    """
    start_hour: int = 9
    end_hour: int = 17

    def __post_init__(self):
        if not 0 <= self.start_hour <= 23:
            raise ValueError(f"start_hour must be between 0 and 23, got {self.start_hour}")
        if not 0 <= self.end_hour <= 24:
            raise ValueError(f"end_hour must be between 0 and 24, got {self.end_hour}")

    @property
    def span_hours(self) -> int:
        if self.end_hour == 24:
            return 24 - self.start_hour
        return ((self.end_hour - self.start_hour) + 24) % 24

    @property
    def is_overnight(self) -> bool:
        return self.end_hour < self.start_hour

    def bounds(self, day: date, tz: tzinfo) -> tuple[datetime, datetime]:
        """Local [start, end) of the window on the given day."""
        start = datetime.combine(day, time(self.start_hour), tzinfo=tz)
        if self.span_hours == 0:
            return start, start
        end_day = day
        end_hour = self.end_hour
        if self.end_hour == 24:
            end_day, end_hour = day + timedelta(days=1), 0
        elif self.is_overnight:
            end_day = day + timedelta(days=1)
        return start, datetime.combine(end_day, time(end_hour), tzinfo=tz)


@dataclass(frozen=True)
class QueryRange:
    """Inclusive [start, end] window the statistics are computed for."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError("Query range end is before its start")

    @classmethod
    def from_dates(cls, date_from: date, date_to: date, tz: tzinfo) -> "QueryRange":
        """Whole local days from date_from 00:00:00 to date_to 23:59:59."""
        return cls(
            start=datetime.combine(date_from, time.min, tzinfo=tz),
            end=datetime.combine(date_to, time(23, 59, 59), tzinfo=tz),
        )

    def days(self, tz: tzinfo) -> list[date]:
        """Local calendar dates covered by the range, in order."""
        first = self.start.astimezone(tz).date()
        last = self.end.astimezone(tz).date()
        return [first + timedelta(days=i) for i in range((last - first).days + 1)]


@dataclass(frozen=True)
class DaySegment:
    """Part of an event that falls on one local calendar day."""
    date: date
    start: datetime
    end: datetime
    event: Event


@dataclass(frozen=True)
class TitleItem:
    """Event segment shown for a day, clipped to the work window."""
    source_id: str
    source_name: str
    summary: str
    start: datetime
    end: datetime
    all_day: bool
    is_urgent: bool
    is_free_override: bool


@dataclass(frozen=True)
class PersonStat:
    """Free/busy breakdown for one source on one day."""
    source_id: str
    source_name: str
    busy_minutes: int
    free_minutes: int
    free_ratio: float
    merged_busy: tuple[Interval, ...] = ()
    free_blocks: tuple[Interval, ...] = ()


@dataclass(frozen=True)
class OverlayItem:
    """Busy blocks of a source kept out of the group union."""
    source_id: str
    source_name: str
    merged_busy: tuple[Interval, ...]
    busy_minutes: int


@dataclass(frozen=True)
class DayStat:
    """Availability statistics for one calendar date."""
    date: date
    work_start: datetime
    work_end: datetime
    total_minutes: int
    busy_minutes: int
    free_minutes: int
    free_ratio: float
    merged_busy: tuple[Interval, ...] = ()
    per_person: tuple[PersonStat, ...] = ()
    titles: tuple[TitleItem, ...] = ()
    has_urgent: bool = False
    overlay_items: tuple[OverlayItem, ...] = ()


@dataclass(frozen=True)
class ExpansionFailure:
    """Recurring definition that contributed no occurrences."""
    source_id: str
    summary: str
    reason: str


@dataclass
class AvailabilityResult:
    """Per-day statistics plus the advisory details of one computation pass."""
    day_stats: dict[str, DayStat]
    events: list[Event] = field(default_factory=list)
    failures: list[ExpansionFailure] = field(default_factory=list)

    @property
    def event_count(self) -> int:
        return len(self.events)
