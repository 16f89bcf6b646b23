"""
Tests for balance aggregation helpers.
"""

from decimal import Decimal

from payplanner.models import ExpenseType
from payplanner.queries import (
    accounts_for_expense,
    contrast_color,
    current_balance,
    expenses_for_account,
    find_by_composite_id,
)
from payplanner.periods import build_account_copy, build_expense_copy
from payplanner.models import PayPeriod

from tests.conftest import make_account, make_expense


class TestCurrentBalance:
    """Tests for current_balance."""

    def test_no_expenses_returns_starting_balance(self):
        account = make_account(starting_balance="100")
        assert current_balance(account, []) == Decimal("100")

    def test_signed_amounts_are_added(self):
        """100 - 50 + 20 = 70."""
        rent = make_expense("e1", amount="-50")
        refund = make_expense("e2", name="Refund", amount="20", expense_type=ExpenseType.DEPOSIT)
        account = make_account(starting_balance="100", expense_ids=["e1", "e2"])

        assert current_balance(account, [rent, refund]) == Decimal("70")

    def test_unassigned_and_dangling_ids_ignored(self):
        rent = make_expense("e1", amount="-50")
        other = make_expense("e2", amount="-999")
        account = make_account(starting_balance="100", expense_ids=["e1", "deleted"])

        assert current_balance(account, [rent, other]) == Decimal("50")

    def test_expense_on_two_accounts_counts_for_each(self):
        rent = make_expense("e1", amount="-50")
        checking = make_account("a1", starting_balance="100", expense_ids=["e1"])
        savings = make_account("a2", name="Savings", starting_balance="10", expense_ids=["e1"])

        assert current_balance(checking, [rent]) == Decimal("50")
        assert current_balance(savings, [rent]) == Decimal("-40")
        assert accounts_for_expense("e1", [checking, savings]) == [checking, savings]


class TestLookups:
    """Tests for the list helpers."""

    def test_expenses_for_account_keeps_assignment_order(self):
        first = make_expense("e1")
        second = make_expense("e2", name="Phone", amount="-40")
        account = make_account(expense_ids=["e2", "e1"])

        assert expenses_for_account(account, [first, second]) == [second, first]

    def test_accounts_for_unassigned_expense(self):
        assert accounts_for_expense("e1", [make_account()]) == []

    def test_find_by_composite_id(self):
        period = PayPeriod(id="2024-01-15", start_date="2024-01-15", end_date="2024-01-28", year=2024)
        expense = build_expense_copy(period, make_expense("e1")).model_copy(update={"id": "pe1"})
        account = build_account_copy(period, make_account("a1"), [])

        assert find_by_composite_id([expense], "2024-01-15-e1") is expense
        assert find_by_composite_id([account], "2024-01-15-a1") is account
        assert find_by_composite_id([expense], "2024-01-15-missing") is None


class TestContrastColor:

    def test_dark_background_gets_white_text(self):
        assert contrast_color("#000000") == "#FFFFFF"
        assert contrast_color("#1f3a93") == "#FFFFFF"

    def test_light_background_gets_black_text(self):
        assert contrast_color("#FFFFFF") == "#000000"
        assert contrast_color("ffeb3b") == "#000000"
