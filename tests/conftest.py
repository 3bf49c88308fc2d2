"""
Pytest configuration and shared fixtures.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
# Add tests to path for fixture helpers
sys.path.insert(0, str(Path(__file__).parent))

from core.tagging import build_event  # noqa: E402
from models.events import Source  # noqa: E402

UTC = timezone.utc


def at(day: int, hour: int, minute: int = 0, month: int = 10, year: int = 2025) -> datetime:
    """UTC instant on a day of (by default) October 2025."""
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def utc():
    return UTC


@pytest.fixture
def source_a():
    return Source(id="a", name="alice.ics")


@pytest.fixture
def source_b():
    return Source(id="b", name="bob.ics")


@pytest.fixture
def make_event():
    """Factory building tagged UTC events: make_event(source, summary, start, end)."""
    def _make(source, summary, start, end=None, all_day=False):
        return build_event(source, summary, start, end, all_day=all_day, tz=UTC)
    return _make


@pytest.fixture
def sample_ics():
    """Two-event calendar similar to the bundled sample."""
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Sample A//EN
BEGIN:VEVENT
UID:a1
DTSTART:20251015T150000Z
DTEND:20251015T160000Z
SUMMARY:A Overlap 1
END:VEVENT
BEGIN:VEVENT
UID:a2
DTSTART:20251020T090000Z
DTEND:20251020T110000Z
SUMMARY:A Morning!
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def recurring_ics():
    """Weekly Monday standup with one excluded date, plus single events."""
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Sample B//EN
BEGIN:VEVENT
UID:b1
DTSTART:20251006T090000Z
DTEND:20251006T093000Z
RRULE:FREQ=WEEKLY;BYDAY=MO
EXDATE:20251013T090000Z
SUMMARY:Standup
END:VEVENT
BEGIN:VEVENT
UID:b2
DTSTART:20251015T153000Z
DTEND:20251015T170000Z
SUMMARY:B Overlap 2
END:VEVENT
BEGIN:VEVENT
UID:b3
DTSTART:20251016T120000Z
SUMMARY:No end given
END:VEVENT
END:VCALENDAR
"""
