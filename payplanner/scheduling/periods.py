"""
Period Locator

Works out which calendar date starts a pay period and where it ends.

KNOWN INCONSISTENCY: weekly and bi-weekly periods are anchored to the
pay info start date (so they start on the anchor's weekday), while
monthly periods always start on the 1st and ignore the anchor's
day-of-month entirely. Semi-monthly periods are always 1st-15th and
16th-end of month. Existing stored periods were keyed this way, so the
asymmetry is kept as-is.
"""

import calendar
from datetime import date, timedelta
from typing import Union

from payplanner.models.dates import DateLike, to_calendar_date
from payplanner.models.enums import NavigationDirection, PayFrequency
from payplanner.models.finance import PayInfo
from payplanner.scheduling.recurrence import add_months


_ANCHORED_STEP_DAYS = {
    PayFrequency.WEEKLY: 7,
    PayFrequency.BI_WEEKLY: 14,
}


def last_day_of_month(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def locate_current_period_start(pay_info: PayInfo, today: DateLike) -> date:
    """
    Find the start date of the period that contains `today`.

    Weekly/bi-weekly: count whole steps elapsed since the anchor (floor
    division, so dates before the anchor count negative steps), project
    that many steps forward, and step back once if the projection lands
    after today.
    Monthly: the 1st of today's month.
    Semi-monthly: the 1st if today is on or before the 15th, else the 16th.
    """
    today = to_calendar_date(today)
    frequency = PayFrequency(pay_info.pay_frequency)

    if frequency in _ANCHORED_STEP_DAYS:
        step = _ANCHORED_STEP_DAYS[frequency]
        anchor = pay_info.start_date
        steps_elapsed = (today - anchor).days // step
        start = anchor + timedelta(days=steps_elapsed * step)
        if start > today:
            start = anchor + timedelta(days=(steps_elapsed - 1) * step)
        return start

    if frequency == PayFrequency.MONTHLY:
        return today.replace(day=1)

    # Semi-monthly
    return today.replace(day=1 if today.day <= 15 else 16)


def compute_period_end(
    period_start: DateLike,
    frequency: Union[PayFrequency, str],
) -> date:
    """
    Last day (inclusive) of the period beginning at `period_start`.

    bi-weekly: start + 13 days; weekly: start + 6 days;
    monthly: last day of the start's month;
    semi-monthly: the 15th when the start is on days 1-15, else month end.
    """
    start = to_calendar_date(period_start)
    frequency = PayFrequency(frequency)

    if frequency == PayFrequency.BI_WEEKLY:
        return start + timedelta(days=13)
    if frequency == PayFrequency.WEEKLY:
        return start + timedelta(days=6)
    if frequency == PayFrequency.MONTHLY:
        return last_day_of_month(start)
    if start.day <= 15:
        return start.replace(day=15)
    return last_day_of_month(start)


def shift_period(
    current_start: DateLike,
    frequency: Union[PayFrequency, str],
    direction: Union[NavigationDirection, str],
) -> date:
    """
    Move one period forward or backward from `current_start`.

    Semi-monthly is asymmetric around the mid-month boundary:
        next from days 1-15      -> the 16th of the same month
        next from days 16+       -> the 1st of the following month
        previous from days 16+   -> the 15th of the same month
        previous from days 1-15  -> the 16th of the previous month
    """
    start = to_calendar_date(current_start)
    frequency = PayFrequency(frequency)
    forward = NavigationDirection(direction) == NavigationDirection.NEXT

    if frequency in _ANCHORED_STEP_DAYS:
        step = _ANCHORED_STEP_DAYS[frequency]
        return start + timedelta(days=step if forward else -step)

    if frequency == PayFrequency.MONTHLY:
        return add_months(start, 1 if forward else -1)

    if forward:
        if start.day <= 15:
            return start.replace(day=16)
        return add_months(start.replace(day=1), 1)
    if start.day > 15:
        return start.replace(day=15)
    return add_months(start.replace(day=1), -1).replace(day=16)


def format_period_range(start: DateLike, end: DateLike) -> str:
    """Human-readable range, e.g. 'Jan 15 - Jan 28, 2024'."""
    start = to_calendar_date(start)
    end = to_calendar_date(end)
    return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"
