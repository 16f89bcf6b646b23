"""
Date/Recurrence Calculator

Pure functions: no storage, no clock, no state. Callers pass the
reference date explicitly.

DESIGN DECISION: Monthly stepping uses rollover month arithmetic, not
clamping. Adding one month to Jan 31 asks for "Feb 31", which rolls
forward into March (Mar 2 in a leap year, Mar 3 otherwise). The stepped
date then keeps its new day-of-month, so a Jan 31 series drifts to the
2nd/3rd. Stored next-due dates were produced this way, and recomputing
them with clamping would move existing expenses between periods.
"""

from datetime import date, timedelta
from typing import Callable, Union

from payplanner.models.dates import DateLike, to_calendar_date
from payplanner.models.enums import ExpenseFrequency


def add_months(value: date, months: int) -> date:
    """
    Add calendar months with day overflow rolling into the next month.

    add_months(date(2024, 1, 31), 1) == date(2024, 3, 2)
    add_months(date(2023, 1, 31), 1) == date(2023, 3, 3)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1) + timedelta(days=value.day - 1)


# Every step must move strictly forward or next_occurrence never terminates
_STEPS: dict[ExpenseFrequency, Callable[[date], date]] = {
    ExpenseFrequency.MONTHLY: lambda d: add_months(d, 1),
    ExpenseFrequency.BI_WEEKLY: lambda d: d + timedelta(days=14),
    ExpenseFrequency.EVERY_30_DAYS: lambda d: d + timedelta(days=30),
}


def next_occurrence(
    origin: DateLike,
    frequency: Union[ExpenseFrequency, str],
    reference: DateLike,
) -> date:
    """
    Smallest date >= reference reachable from origin by whole steps.

    The bound is inclusive: an occurrence on the reference day itself
    counts. If origin is already on or after the reference no stepping
    happens and origin is returned unchanged, so the result is not always
    strictly in the future.

    One-time expenses always return origin, whatever the reference.
    """
    origin = to_calendar_date(origin)
    reference = to_calendar_date(reference)
    frequency = ExpenseFrequency(frequency)

    if frequency == ExpenseFrequency.ONE_TIME:
        return origin

    step = _STEPS[frequency]
    current = origin
    while current < reference:
        current = step(current)
    return current
