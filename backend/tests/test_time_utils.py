# Overview: Pytest coverage for UTC timestamp parsing and serialization.

"""
Time Helper Tests
"""

from datetime import datetime, timedelta, timezone

from stockdesk.time_utils import parse_iso_datetime, to_utc_z


class TestToUtcZ:

    def test_whole_seconds(self):
        assert to_utc_z(datetime(2026, 3, 1, 10, 0, 0)) == "2026-03-01T10:00:00Z"

    def test_keeps_microseconds(self):
        assert to_utc_z(datetime(2026, 3, 1, 10, 0, 0, 250000)) == "2026-03-01T10:00:00.250000Z"

    def test_same_second_values_stay_ordered(self):
        first = datetime(2026, 3, 1, 10, 0, 0, 100)
        second = datetime(2026, 3, 1, 10, 0, 0, 200)

        assert to_utc_z(first) != to_utc_z(second)
        assert to_utc_z(first) < to_utc_z(second)

    def test_aware_value_converted(self):
        aware = datetime(2026, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert to_utc_z(aware) == "2026-03-01T10:00:00Z"

    def test_none(self):
        assert to_utc_z(None) is None


class TestParseIsoDatetime:

    def test_z_suffix(self):
        assert parse_iso_datetime("2026-03-01T10:00:00Z") == datetime(2026, 3, 1, 10, 0, 0)

    def test_offset_normalized_to_utc(self):
        assert parse_iso_datetime("2026-03-01T12:00:00+02:00") == datetime(2026, 3, 1, 10, 0, 0)

    def test_blank(self):
        assert parse_iso_datetime("  ") is None
