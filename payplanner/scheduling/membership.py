"""
Period Membership Filter

Decides whether a master expense belongs in a given pay period.

All comparisons are between calendar dates (see models.dates); nothing
here ever compares timestamps.
"""

from datetime import date

from payplanner.models.dates import DateLike, to_calendar_date
from payplanner.models.enums import ExpenseFrequency
from payplanner.models.finance import MasterExpense, PayPeriod
from payplanner.scheduling.recurrence import next_occurrence


def due_date_for_period(expense: MasterExpense, period_start: DateLike) -> date:
    """
    The occurrence of `expense` on or after `period_start`.

    Stepping begins from the master's cached next due date when there is
    one, falling back to the origin due date. One-time expenses return
    that starting date unchanged.
    """
    origin = expense.next_due_date or expense.due_date
    if expense.frequency == ExpenseFrequency.ONE_TIME:
        return origin
    return next_occurrence(origin, expense.frequency, period_start)


def is_expense_in_period(expense: MasterExpense, period: PayPeriod) -> bool:
    """
    True when the expense falls inside [period.start_date, period.end_date].

    One-time: the raw due date is tested.
    Recurring: the next occurrence relative to the period start is tested.
    """
    start = to_calendar_date(period.start_date)
    end = to_calendar_date(period.end_date)

    if expense.frequency == ExpenseFrequency.ONE_TIME:
        return start <= to_calendar_date(expense.due_date) <= end

    return start <= due_date_for_period(expense, start) <= end
