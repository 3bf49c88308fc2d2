"""
Tests for loading calendars from ICS documents.
"""

from datetime import date, timedelta

import pytest

from conftest import UTC, at
from core.availability import compute_availability
from models.events import Event, QueryRange, RecurringEvent, Source, WorkWindow
from services.calendar import (
    CalendarParseError,
    fit_query_range,
    load_calendar_file,
    load_calendar_files,
    parse_ics_text,
    unique_source_id,
)

ALL_DAY_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Sample C//EN
BEGIN:VEVENT
UID:c1
DTSTART;VALUE=DATE:20251017
DTEND;VALUE=DATE:20251018
SUMMARY:Offsite
END:VEVENT
BEGIN:VEVENT
UID:c2
DTSTART:20251020T100000Z
DURATION:PT45M
SUMMARY:Interview
END:VEVENT
BEGIN:VEVENT
UID:c3
SUMMARY:No start
END:VEVENT
END:VCALENDAR
"""


class TestParse:
    def test_concrete_events(self, sample_ics):
        source = Source("a", "a.ics")
        events = parse_ics_text(sample_ics, source, UTC)
        assert [(e.summary, e.start, e.end) for e in events] == [
            ("A Overlap 1", at(15, 15), at(15, 16)),
            ("A Morning!", at(20, 9), at(20, 11)),
        ]
        assert events[1].is_urgent
        assert all(e.source_id == "a" for e in events)

    def test_recurring_and_missing_end(self, recurring_ics):
        events = parse_ics_text(recurring_ics, Source("b", "b.ics"), UTC)
        recurring = [e for e in events if isinstance(e, RecurringEvent)]
        concrete = [e for e in events if isinstance(e, Event)]

        assert len(recurring) == 1
        assert "FREQ=WEEKLY" in recurring[0].rule
        assert "EXDATE:20251013T090000Z" in recurring[0].rule
        assert recurring[0].duration == timedelta(minutes=30)

        no_end = next(e for e in concrete if e.summary == "No end given")
        assert no_end.end - no_end.start == timedelta(minutes=30)

    def test_all_day_duration_and_broken_vevent(self):
        events = parse_ics_text(ALL_DAY_ICS, Source("c", "c.ics"), UTC)
        assert [e.summary for e in events] == ["Offsite", "Interview"]
        offsite, interview = events
        assert offsite.all_day
        assert (offsite.start, offsite.end) == (at(17, 0), at(18, 0))
        assert interview.end == at(20, 10, 45)

    def test_not_a_calendar(self):
        with pytest.raises(CalendarParseError):
            parse_ics_text("this is not a calendar", Source("x", "x.ics"), UTC)

    def test_recurring_expands_without_excluded_date(self, recurring_ics):
        source = Source("b", "b.ics")
        events = parse_ics_text(recurring_ics, source, UTC)
        query = QueryRange.from_dates(date(2025, 10, 6), date(2025, 10, 20), UTC)
        result = compute_availability(
            events, [source], query, WorkWindow(9, 17), overlay_source_ids=(), tz=UTC
        )
        assert result.failures == []
        assert result.day_stats["2025-10-06"].busy_minutes == 30
        assert result.day_stats["2025-10-13"].busy_minutes == 0
        assert result.day_stats["2025-10-20"].busy_minutes == 30


class TestLoadFiles:
    def test_load_file(self, tmp_path, sample_ics):
        path = tmp_path / "alice.ics"
        path.write_text(sample_ics)
        source, events = load_calendar_file(path, tz=UTC)
        assert source == Source("alice.ics", "alice.ics")
        assert len(events) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(CalendarParseError):
            load_calendar_file(tmp_path / "missing.ics", tz=UTC)

    def test_duplicate_names_get_unique_ids(self, tmp_path, sample_ics):
        (tmp_path / "one").mkdir()
        (tmp_path / "two").mkdir()
        first = tmp_path / "one" / "team.ics"
        second = tmp_path / "two" / "team.ics"
        first.write_text(sample_ics)
        second.write_text(sample_ics)

        sources, events = load_calendar_files([first, second], tz=UTC)
        assert [s.id for s in sources] == ["team.ics", "team.ics-2"]
        assert {e.source_id for e in events} == {"team.ics", "team.ics-2"}

    def test_unique_source_id(self):
        taken = {"a", "a-2"}
        assert unique_source_id("a", taken) == "a-3"
        assert "a-3" in taken
        assert unique_source_id("b", taken) == "b"


class TestFitQueryRange:
    def test_fits_concrete_events(self, sample_ics, recurring_ics):
        events = parse_ics_text(sample_ics, Source("a", "a.ics"), UTC)
        events += parse_ics_text(recurring_ics, Source("b", "b.ics"), UTC)
        query = fit_query_range(events, UTC)
        assert query.days(UTC)[0] == date(2025, 10, 15)
        assert query.days(UTC)[-1] == date(2025, 10, 20)

    def test_nothing_to_fit(self):
        assert fit_query_range([], UTC) is None
