"""
Tests for recurrence, period location and period membership.
"""

import pytest
from datetime import date
from decimal import Decimal

from payplanner.models import ExpenseFrequency, ExpenseType, PayFrequency, PayInfo, PayPeriod
from payplanner.scheduling import (
    add_months,
    compute_period_end,
    due_date_for_period,
    format_period_range,
    is_expense_in_period,
    last_day_of_month,
    locate_current_period_start,
    next_occurrence,
    shift_period,
)

from tests.conftest import make_expense


def pay_info(frequency, start_date=date(2024, 1, 1)):
    return PayInfo(take_home_pay=Decimal("1000"), pay_frequency=frequency, start_date=start_date)


def period(start, end):
    return PayPeriod(id=start.isoformat(), start_date=start, end_date=end, year=start.year)


class TestAddMonths:
    """Month arithmetic rolls day overflow into the following month."""

    def test_ordinary_month(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)

    def test_overflow_leap_year(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 3, 2)

    def test_overflow_common_year(self):
        assert add_months(date(2023, 1, 31), 1) == date(2023, 3, 3)

    def test_year_boundaries(self):
        assert add_months(date(2024, 12, 10), 1) == date(2025, 1, 10)
        assert add_months(date(2024, 1, 10), -1) == date(2023, 12, 10)


class TestNextOccurrence:
    """Tests for next_occurrence."""

    @pytest.mark.parametrize("frequency", ["monthly", "bi-weekly", "every 30 days"])
    def test_reference_equal_to_origin_is_an_occurrence(self, frequency):
        assert next_occurrence(date(2024, 1, 10), frequency, date(2024, 1, 10)) == date(2024, 1, 10)

    def test_one_time_ignores_reference(self):
        origin = date(2024, 1, 10)
        assert next_occurrence(origin, ExpenseFrequency.ONE_TIME, date(2025, 6, 1)) == origin
        assert next_occurrence(origin, ExpenseFrequency.ONE_TIME, date(2020, 1, 1)) == origin

    def test_origin_in_future_returned_unchanged(self):
        assert next_occurrence(date(2024, 5, 1), "monthly", date(2024, 1, 1)) == date(2024, 5, 1)

    def test_bi_weekly_steps(self):
        assert next_occurrence(date(2024, 1, 5), "bi-weekly", date(2024, 1, 20)) == date(2024, 2, 2)

    def test_every_30_days_steps(self):
        assert next_occurrence(date(2024, 1, 1), "every 30 days", date(2024, 2, 1)) == date(2024, 3, 1)

    def test_monthly_from_month_end_rolls_over(self):
        """Jan 31 + 1 month lands on Mar 2 in 2024, which is already past Mar 1."""
        assert next_occurrence(date(2024, 1, 31), "monthly", date(2024, 3, 1)) == date(2024, 3, 2)

    def test_accepts_iso_timestamps(self):
        assert next_occurrence("2024-01-05T00:00:00.000Z", "bi-weekly", "2024-01-19T23:00:00Z") == date(2024, 1, 19)


class TestLocateCurrentPeriodStart:
    """Tests for locating the period containing today."""

    def test_bi_weekly_scenario(self):
        """19 days after a Jan 1 anchor is one whole period in."""
        start = locate_current_period_start(pay_info("bi-weekly"), date(2024, 1, 20))
        assert start == date(2024, 1, 15)
        assert compute_period_end(start, "bi-weekly") == date(2024, 1, 28)

    def test_bi_weekly_on_boundary(self):
        assert locate_current_period_start(pay_info("bi-weekly"), date(2024, 1, 15)) == date(2024, 1, 15)

    def test_weekly(self):
        start = locate_current_period_start(pay_info("weekly"), date(2024, 1, 20))
        assert start == date(2024, 1, 15)
        assert compute_period_end(start, "weekly") == date(2024, 1, 21)

    def test_today_before_anchor(self):
        """Floor division counts negative steps; the period still contains today."""
        start = locate_current_period_start(pay_info("bi-weekly"), date(2023, 12, 25))
        assert start == date(2023, 12, 18)
        assert start <= date(2023, 12, 25) <= compute_period_end(start, "bi-weekly")

    def test_monthly_scenario(self):
        start = locate_current_period_start(pay_info("monthly"), date(2024, 3, 10))
        assert start == date(2024, 3, 1)
        assert compute_period_end(start, "monthly") == date(2024, 3, 31)

    def test_monthly_ignores_anchor_day(self):
        """Known inconsistency: monthly periods start on the 1st whatever the anchor's day."""
        info = pay_info("monthly", start_date=date(2024, 1, 20))
        assert locate_current_period_start(info, date(2024, 3, 25)) == date(2024, 3, 1)

    def test_semi_monthly_scenario(self):
        start = locate_current_period_start(pay_info("semi-monthly"), date(2024, 3, 20))
        assert start == date(2024, 3, 16)
        assert compute_period_end(start, "semi-monthly") == date(2024, 3, 31)
        assert shift_period(start, "semi-monthly", "next") == date(2024, 4, 1)

    def test_semi_monthly_first_half(self):
        start = locate_current_period_start(pay_info("semi-monthly"), date(2024, 3, 15))
        assert start == date(2024, 3, 1)
        assert compute_period_end(start, "semi-monthly") == date(2024, 3, 15)


class TestComputePeriodEnd:
    """Tests for compute_period_end."""

    def test_monthly_february_leap(self):
        assert compute_period_end(date(2024, 2, 1), PayFrequency.MONTHLY) == date(2024, 2, 29)

    def test_semi_monthly_second_half_february(self):
        assert compute_period_end(date(2023, 2, 16), PayFrequency.SEMI_MONTHLY) == date(2023, 2, 28)

    def test_last_day_of_month(self):
        assert last_day_of_month(date(2024, 4, 10)) == date(2024, 4, 30)


class TestShiftPeriod:
    """Tests for one-step navigation."""

    def test_bi_weekly(self):
        assert shift_period(date(2024, 1, 15), "bi-weekly", "next") == date(2024, 1, 29)
        assert shift_period(date(2024, 1, 15), "bi-weekly", "previous") == date(2024, 1, 1)

    def test_weekly(self):
        assert shift_period(date(2024, 1, 15), "weekly", "previous") == date(2024, 1, 8)

    def test_monthly(self):
        assert shift_period(date(2024, 1, 1), "monthly", "previous") == date(2023, 12, 1)
        assert shift_period(date(2024, 12, 1), "monthly", "next") == date(2025, 1, 1)

    def test_semi_monthly_forward(self):
        assert shift_period(date(2024, 3, 1), "semi-monthly", "next") == date(2024, 3, 16)
        assert shift_period(date(2024, 12, 16), "semi-monthly", "next") == date(2025, 1, 1)

    def test_semi_monthly_back_from_first_half(self):
        assert shift_period(date(2024, 3, 1), "semi-monthly", "previous") == date(2024, 2, 16)
        assert shift_period(date(2024, 1, 1), "semi-monthly", "previous") == date(2023, 12, 16)

    def test_semi_monthly_back_from_second_half_lands_on_the_15th(self):
        """Asymmetric: previous from the 16th gives the 15th, not the 1st."""
        assert shift_period(date(2024, 3, 16), "semi-monthly", "previous") == date(2024, 3, 15)


class TestFormatPeriodRange:

    def test_format(self):
        assert format_period_range(date(2024, 1, 15), date(2024, 1, 28)) == "Jan 15 - Jan 28, 2024"

    def test_format_across_years(self):
        assert format_period_range("2023-12-25", "2024-01-07") == "Dec 25 - Jan 7, 2024"


class TestMembership:
    """Tests for is_expense_in_period and due_date_for_period."""

    def test_recurring_expense_in_period(self):
        expense = make_expense(due_date=date(2023, 12, 20), frequency="monthly")
        assert is_expense_in_period(expense, period(date(2024, 1, 15), date(2024, 1, 28)))

    def test_recurring_expense_outside_period(self):
        expense = make_expense(due_date=date(2023, 12, 5), frequency="monthly")
        assert not is_expense_in_period(expense, period(date(2024, 1, 15), date(2024, 1, 28)))

    def test_period_boundaries_inclusive(self):
        jan = period(date(2024, 1, 15), date(2024, 1, 28))
        assert is_expense_in_period(make_expense(due_date=date(2024, 1, 15)), jan)
        assert is_expense_in_period(make_expense(due_date=date(2024, 1, 28)), jan)

    def test_one_time_uses_raw_due_date(self):
        expense = make_expense(
            name="Concert", amount="-80", due_date=date(2024, 1, 18), frequency="one-time"
        )
        assert is_expense_in_period(expense, period(date(2024, 1, 15), date(2024, 1, 28)))
        assert not is_expense_in_period(expense, period(date(2024, 1, 29), date(2024, 2, 11)))

    def test_cached_next_due_date_takes_precedence(self):
        """Stepping starts from the cached next due date, so earlier periods miss it."""
        expense = make_expense(
            due_date=date(2023, 11, 20), frequency="monthly", next_due_date=date(2024, 2, 20)
        )
        assert due_date_for_period(expense, date(2024, 1, 15)) == date(2024, 2, 20)
        assert not is_expense_in_period(expense, period(date(2024, 1, 15), date(2024, 1, 28)))

    def test_deposit_bi_weekly(self):
        paycheck = make_expense(
            name="Paycheck", amount="2500", expense_type=ExpenseType.DEPOSIT,
            due_date=date(2024, 1, 5), frequency="bi-weekly",
        )
        assert due_date_for_period(paycheck, date(2024, 1, 15)) == date(2024, 1, 19)

    def test_stable_under_rederivation(self):
        expense = make_expense(due_date=date(2023, 12, 20))
        jan = period(date(2024, 1, 15), date(2024, 1, 28))
        assert is_expense_in_period(expense, jan) == is_expense_in_period(expense, jan)
