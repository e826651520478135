"""Period window calculation for statistics roll-ups.

Pure functions: given a period type and an anchor datetime, compute the
inclusive ``[start, end]`` window the anchor falls in, and the start of the
window immediately before it. Windows keep the anchor's tzinfo.
"""

import calendar
from datetime import datetime, timedelta
from typing import Callable, NamedTuple

from models.channel_history import StatsPeriod

# datetime.weekday() index of the first day of a week
WEEK_START_DAYS = {
    "monday": 0,
    "sunday": 6,
}


class PeriodWindow(NamedTuple):
    """Inclusive window boundaries."""
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def _weekly_window(anchor: datetime, week_start: str) -> PeriodWindow:
    offset = (anchor.weekday() - WEEK_START_DAYS[week_start]) % 7
    start = _start_of_day(anchor - timedelta(days=offset))
    return PeriodWindow(start, _end_of_day(start + timedelta(days=6)))


def _monthly_window(anchor: datetime, week_start: str) -> PeriodWindow:
    last_day = calendar.monthrange(anchor.year, anchor.month)[1]
    return PeriodWindow(
        _start_of_day(anchor.replace(day=1)),
        _end_of_day(anchor.replace(day=last_day)),
    )


def _weekly_previous_anchor(anchor: datetime) -> datetime:
    return anchor - timedelta(days=7)


def _monthly_previous_anchor(anchor: datetime) -> datetime:
    # Any day of the previous month works; the first one always exists.
    return anchor.replace(day=1) - timedelta(days=1)


class PeriodStrategy(NamedTuple):
    window: Callable[[datetime, str], PeriodWindow]
    previous_anchor: Callable[[datetime], datetime]


STRATEGIES: dict[StatsPeriod, PeriodStrategy] = {
    StatsPeriod.WEEKLY: PeriodStrategy(_weekly_window, _weekly_previous_anchor),
    StatsPeriod.MONTHLY: PeriodStrategy(_monthly_window, _monthly_previous_anchor),
}


def period_window(
    period: StatsPeriod | str,
    anchor: datetime,
    week_start: str = "sunday",
) -> PeriodWindow:
    """Return the window of ``period`` containing ``anchor``.

    Weekly windows start at 00:00 on the most recent ``week_start`` day and end
    six days later at 23:59:59.999999. Monthly windows cover the calendar month.
    """
    return STRATEGIES[StatsPeriod(period)].window(anchor, week_start)


def previous_period_start(
    period: StatsPeriod | str,
    anchor: datetime,
    week_start: str = "sunday",
) -> datetime:
    """Start of the window immediately preceding the one containing ``anchor``.

    Recomputed from a shifted anchor (seven days back, or one calendar month
    back), not looked up from stored history.
    """
    strategy = STRATEGIES[StatsPeriod(period)]
    return strategy.window(strategy.previous_anchor(anchor), week_start).start
