"""Tests for period window calculation."""

from datetime import datetime, timedelta, timezone

import pytest

from models.channel_history import StatsPeriod
from services.stats_periods import PeriodWindow, period_window, previous_period_start
from conftest import utc


@pytest.mark.parametrize("day", range(11, 18))
def test_weekly_window_starts_on_sunday(day):
    """Every day of Sun 11 - Sat 17 Oct 2026 falls in the same week."""
    window = period_window(StatsPeriod.WEEKLY, utc(2026, 10, day, 15, 30))

    assert window.start == utc(2026, 10, 11)
    assert window.end == utc(2026, 10, 17, 23, 59, 59, 999999)
    assert window.start.weekday() == 6


def test_weekly_window_spans_seven_days():
    window = period_window("weekly", utc(2026, 10, 14, 12))

    assert window.end - window.start == timedelta(days=7) - timedelta(microseconds=1)


def test_weekly_window_monday_start():
    window = period_window(StatsPeriod.WEEKLY, utc(2026, 10, 11, 9), week_start="monday")

    # Sunday belongs to the week that started the previous Monday
    assert window.start == utc(2026, 10, 5)
    assert window.end == utc(2026, 10, 11, 23, 59, 59, 999999)


def test_weekly_window_crosses_month_boundary():
    window = period_window(StatsPeriod.WEEKLY, utc(2026, 11, 2))

    assert window.start == utc(2026, 11, 1)
    assert period_window(StatsPeriod.WEEKLY, utc(2026, 10, 31)).start == utc(2026, 10, 25)


def test_monthly_window_is_calendar_month():
    window = period_window(StatsPeriod.MONTHLY, utc(2026, 10, 14, 12))

    assert window == PeriodWindow(utc(2026, 10, 1), utc(2026, 10, 31, 23, 59, 59, 999999))


@pytest.mark.parametrize(
    "year,month,days",
    [(2026, 2, 28), (2028, 2, 29), (2026, 4, 30), (2026, 12, 31)],
)
def test_monthly_window_length_matches_days_in_month(year, month, days):
    window = period_window(StatsPeriod.MONTHLY, utc(year, month, 10))

    assert window.start == utc(year, month, 1)
    assert window.end.day == days
    assert (window.end - window.start).days == days - 1


def test_window_keeps_anchor_timezone():
    tz = timezone(timedelta(hours=-5))
    window = period_window(StatsPeriod.WEEKLY, datetime(2026, 10, 14, 22, tzinfo=tz))

    assert window.start.tzinfo is tz
    assert window.start == datetime(2026, 10, 11, tzinfo=tz)


def test_window_contains_is_inclusive():
    window = period_window(StatsPeriod.WEEKLY, utc(2026, 10, 14))

    assert window.contains(window.start)
    assert window.contains(window.end)
    assert not window.contains(window.start - timedelta(microseconds=1))
    assert not window.contains(window.end + timedelta(microseconds=1))


def test_previous_weekly_start():
    assert previous_period_start(StatsPeriod.WEEKLY, utc(2026, 10, 14)) == utc(2026, 10, 4)
    assert previous_period_start(StatsPeriod.WEEKLY, utc(2026, 10, 11)) == utc(2026, 10, 4)


def test_previous_monthly_start_handles_short_months():
    # 31 March minus one month must land in February, not 3 March
    assert previous_period_start(StatsPeriod.MONTHLY, utc(2026, 3, 31)) == utc(2026, 2, 1)
    assert previous_period_start(StatsPeriod.MONTHLY, utc(2026, 1, 15)) == utc(2025, 12, 1)


def test_previous_start_equals_start_of_preceding_window():
    anchor = utc(2026, 10, 14)
    for period in StatsPeriod:
        current = period_window(period, anchor)
        preceding = period_window(period, current.start - timedelta(microseconds=1))

        assert previous_period_start(period, anchor) == preceding.start


def test_unknown_period_rejected():
    with pytest.raises(ValueError):
        period_window("daily", utc(2026, 10, 14))
