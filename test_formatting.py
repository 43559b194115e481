"""
Date display helpers
====================
Run:  pytest test_formatting.py -v
"""
import time
from datetime import datetime, timedelta, timezone

import pytest

from incident_dashboard.client.formatting import format_date, relative_time

NOW = datetime(2026, 1, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def utc(monkeypatch):
    monkeypatch.setenv("TZ", "UTC")
    if hasattr(time, "tzset"):
        time.tzset()
    yield
    monkeypatch.undo()
    if hasattr(time, "tzset"):
        time.tzset()


class TestFormatDate:
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert format_date(value) == "-"

    def test_unparseable_is_echoed(self):
        assert format_date("kemarin sore") == "kemarin sore"

    def test_local_rendering(self, utc):
        assert format_date("2026-01-19T17:30:00+07:00") == "19 Jan 2026, 10:30"

    def test_naive_treated_as_utc(self, utc):
        assert format_date("2026-03-05T08:07:00") == "5 Mar 2026, 08:07"


class TestRelativeTime:
    @pytest.mark.parametrize("delta, expected", [
        (timedelta(seconds=10), "Just now"),
        (timedelta(minutes=5), "5m ago"),
        (timedelta(hours=3, minutes=59), "3h ago"),
        (timedelta(days=2), "2d ago"),
    ])
    def test_buckets(self, delta, expected):
        assert relative_time((NOW - delta).isoformat(), now=NOW) == expected

    def test_older_than_a_week_shows_date(self, utc):
        assert relative_time("2026-01-01T09:15:00+00:00", now=NOW) == "1 Jan 2026, 09:15"

    def test_empty(self):
        assert relative_time(None, now=NOW) == "-"
