"""
Tests for day segmentation.
"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from conftest import UTC, at
from core.segments import as_instant, get_reference_tz, local_midnight, segment_event, split_by_days


class TestSplitByDays:
    def test_single_day_interval(self):
        pieces = split_by_days(at(15, 9), at(15, 10), UTC)
        assert pieces == [(date(2025, 10, 15), at(15, 9), at(15, 10))]

    def test_crossing_midnight_gives_two_segments(self):
        pieces = split_by_days(at(15, 23), at(16, 1), UTC)
        assert pieces == [
            (date(2025, 10, 15), at(15, 23), at(16, 0)),
            (date(2025, 10, 16), at(16, 0), at(16, 1)),
        ]

    def test_ending_exactly_at_midnight_stays_on_one_day(self):
        pieces = split_by_days(at(15, 20), at(16, 0), UTC)
        assert [p[0] for p in pieces] == [date(2025, 10, 15)]

    def test_multi_day_event(self):
        pieces = split_by_days(at(15, 12), at(18, 6), UTC)
        assert [p[0] for p in pieces] == [
            date(2025, 10, 15),
            date(2025, 10, 16),
            date(2025, 10, 17),
            date(2025, 10, 18),
        ]

    def test_zero_length_and_inverted_give_nothing(self):
        assert split_by_days(at(15, 9), at(15, 9), UTC) == []
        assert split_by_days(at(15, 10), at(15, 9), UTC) == []

    def test_segment_durations_add_up(self):
        start = at(1, 7, 13)
        for hours in (1, 5, 17, 24, 49, 100):
            end = start + timedelta(hours=hours, minutes=11)
            pieces = split_by_days(start, end, UTC)
            assert sum((e - s for _, s, e in pieces), timedelta()) == end - start
            assert pieces[0][1] == start
            assert pieces[-1][2] == end
            for (_, _, e1), (_, s2, _) in zip(pieces, pieces[1:]):
                assert e1 == s2

    def test_local_midnight_in_other_zone(self):
        berlin = ZoneInfo("Europe/Berlin")
        # 21:30Z-23:30Z is 23:30-01:30 in Berlin (CEST, UTC+2)
        pieces = split_by_days(at(15, 21, 30), at(15, 23, 30), berlin)
        assert [p[0] for p in pieces] == [date(2025, 10, 15), date(2025, 10, 16)]
        assert pieces[0][2] == at(15, 22)

    def test_dst_change_day_is_23_hours(self):
        berlin = ZoneInfo("Europe/Berlin")
        start = local_midnight(date(2026, 3, 29), berlin)
        end = local_midnight(date(2026, 3, 30), berlin)
        pieces = split_by_days(start, end, berlin)
        assert len(pieces) == 1
        assert pieces[0][2] - pieces[0][1] == timedelta(hours=23)


class TestSegmentEvent:
    def test_segments_keep_event(self, source_a, make_event):
        event = make_event(source_a, "Late call", at(15, 23), at(16, 1))
        segments = segment_event(event, UTC)
        assert len(segments) == 2
        assert all(s.event is event for s in segments)
        assert segments[1].date == date(2025, 10, 16)

    def test_zero_length_event_has_no_segments(self, source_a, make_event):
        event = make_event(source_a, "Blip", at(15, 9), at(15, 9))
        assert segment_event(event, UTC) == []


class TestInstants:
    def test_naive_values_are_local(self):
        berlin = ZoneInfo("Europe/Berlin")
        assert as_instant(datetime(2025, 10, 15, 9), berlin) == at(15, 7)

    def test_dates_are_local_midnight(self):
        assert as_instant(date(2025, 10, 15), UTC) == at(15, 0)

    def test_aware_values_convert_to_utc(self):
        ny = ZoneInfo("America/New_York")
        value = datetime(2025, 10, 15, 9, tzinfo=ny)
        assert as_instant(value, UTC) == at(15, 13)

    def test_reference_tz_from_name(self):
        assert get_reference_tz("Europe/Berlin") == ZoneInfo("Europe/Berlin")
        assert get_reference_tz(UTC) is UTC
