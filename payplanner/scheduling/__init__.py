"""Pay period scheduling: recurrence, period boundaries and membership."""

from payplanner.scheduling.membership import due_date_for_period, is_expense_in_period
from payplanner.scheduling.periods import (
    compute_period_end,
    format_period_range,
    last_day_of_month,
    locate_current_period_start,
    shift_period,
)
from payplanner.scheduling.recurrence import add_months, next_occurrence

__all__ = [
    "add_months",
    "compute_period_end",
    "due_date_for_period",
    "format_period_range",
    "is_expense_in_period",
    "last_day_of_month",
    "locate_current_period_start",
    "next_occurrence",
    "shift_period",
]
