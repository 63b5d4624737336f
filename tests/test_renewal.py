"""Tests for days-until-renewal arithmetic."""

import time
from datetime import date, datetime, timedelta, timezone

import pytest

from renewal import (
    DASHBOARD_WINDOW,
    REMINDER_WINDOW,
    calendar_day,
    days_until_renewal,
    within_window,
)


class TestDaysUntilRenewal:

    def test_same_day_is_zero(self, today):
        assert days_until_renewal(today, today) == 0

    def test_tomorrow_is_one(self, today):
        assert days_until_renewal(today + timedelta(days=1), today) == 1

    def test_yesterday_is_minus_one(self, today):
        assert days_until_renewal(today - timedelta(days=1), today) == -1

    def test_time_of_day_is_ignored(self):
        today = datetime(2026, 10, 19, 23, 59)
        assert days_until_renewal(datetime(2026, 10, 19, 0, 1), today) == 0
        assert days_until_renewal(datetime(2026, 10, 20, 0, 0), today) == 1

    def test_iso_strings(self):
        assert days_until_renewal("2026-10-26", "2026-10-19") == 7

    def test_across_month_and_year(self):
        assert days_until_renewal(date(2027, 1, 2), date(2026, 12, 30)) == 3


class TestCalendarDay:

    def test_date_passes_through(self, today):
        assert calendar_day(today) == today

    def test_naive_datetime_truncated(self):
        assert calendar_day(datetime(2026, 10, 19, 18, 30)) == date(2026, 10, 19)


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
class TestLocalTimezone:

    @pytest.fixture(autouse=True)
    def new_york(self, monkeypatch):
        monkeypatch.setenv("TZ", "America/New_York")
        time.tzset()
        yield
        monkeypatch.undo()
        time.tzset()

    def test_aware_datetime_uses_local_day(self):
        # 02:00 UTC on the 20th is still the evening of the 19th in New York
        assert calendar_day(datetime(2026, 10, 20, 2, 0, tzinfo=timezone.utc)) == date(2026, 10, 19)

    def test_days_until_across_utc_midnight(self):
        renewal = datetime(2026, 10, 20, 2, 0, tzinfo=timezone.utc)
        assert days_until_renewal(renewal, date(2026, 10, 19)) == 0

    def test_aware_iso_string(self):
        assert days_until_renewal("2026-10-21T03:00:00+00:00", "2026-10-19") == 1


class TestWindows:

    def test_dashboard_window_includes_due_day(self):
        assert within_window(0, *DASHBOARD_WINDOW)
        assert within_window(7, *DASHBOARD_WINDOW)
        assert not within_window(8, *DASHBOARD_WINDOW)

    def test_reminder_window_excludes_due_day(self):
        assert not within_window(0, *REMINDER_WINDOW)
        assert within_window(1, *REMINDER_WINDOW)
        assert within_window(7, *REMINDER_WINDOW)
        assert not within_window(-1, *REMINDER_WINDOW)
