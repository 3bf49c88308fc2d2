"""
Tests for title tagging and event construction.
"""

from datetime import date, timedelta

import pytest

from conftest import UTC, at
from core.tagging import build_event, is_free_override, is_urgent


@pytest.mark.parametrize(
    "summary,expected",
    [("Deadline!", True), ("!!", True), ("Deadline", False), ("", False), (None, False)],
)
def test_is_urgent(summary, expected):
    assert is_urgent(summary) is expected


@pytest.mark.parametrize(
    "summary,expected",
    [
        ("Free", True),
        ("FREE", True),
        ("free - hold for focus", True),
        ("Busy, then free.", True),
        ("Freedom day", False),
        ("Carefree lunch", False),
        ("", False),
        (None, False),
    ],
)
def test_is_free_override(summary, expected):
    assert is_free_override(summary) is expected


class TestBuildEvent:
    def test_tags_set_once(self, source_a):
        event = build_event(source_a, "Free to talk!", at(15, 9), at(15, 10), tz=UTC)
        assert event.is_urgent
        assert event.is_free_override
        assert event.source_id == "a"
        assert event.source_name == "alice.ics"

    def test_missing_end_gets_default_duration(self, source_a):
        event = build_event(source_a, "Quick", at(15, 9), tz=UTC)
        assert event.end - event.start == timedelta(minutes=30)

    def test_end_before_start_is_clamped(self, source_a):
        event = build_event(source_a, "Odd", at(15, 10), at(15, 9), tz=UTC)
        assert event.end == event.start

    def test_missing_summary_is_empty(self, source_a):
        event = build_event(source_a, None, at(15, 9), at(15, 10), tz=UTC)
        assert event.summary == ""
        assert not event.is_urgent

    def test_all_day_dates(self, source_a):
        event = build_event(source_a, "Holiday", date(2025, 10, 15), date(2025, 10, 16), all_day=True, tz=UTC)
        assert (event.start, event.end) == (at(15, 0), at(16, 0))
        assert event.all_day
