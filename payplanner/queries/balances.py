"""
Balance Aggregation

DESIGN DECISION: Balances are computed, never stored as a source of
truth. An account's balance is its starting balance plus the signed
amounts of every expense assigned to it. Withdrawals are stored negative
and deposits positive, so aggregation is a straight sum with no sign
flipping here.

These functions work for master accounts and period-scoped copies alike:
both carry `starting_balance` and `expense_ids`, and both kinds of
expense carry `id` and `amount`.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence, TypeVar, Union

from payplanner.models.finance import (
    MasterBankAccount,
    MasterExpense,
    PayPeriodBankAccount,
    PayPeriodExpense,
)


AccountT = TypeVar("AccountT", MasterBankAccount, PayPeriodBankAccount)
ExpenseT = TypeVar("ExpenseT", MasterExpense, PayPeriodExpense)


def expenses_for_account(
    account: Union[MasterBankAccount, PayPeriodBankAccount],
    expenses: Iterable[ExpenseT],
) -> list[ExpenseT]:
    """
    Expenses assigned to `account`, in the account's assignment order.

    Ids that no longer resolve to an expense are skipped.
    """
    by_id = {expense.id: expense for expense in expenses}
    return [by_id[expense_id] for expense_id in account.expense_ids if expense_id in by_id]


def current_balance(
    account: Union[MasterBankAccount, PayPeriodBankAccount],
    expenses: Iterable[Union[MasterExpense, PayPeriodExpense]],
) -> Decimal:
    """starting_balance + sum of the signed amounts assigned to the account."""
    assigned = expenses_for_account(account, expenses)
    return account.starting_balance + sum(
        (expense.amount for expense in assigned),
        Decimal("0"),
    )


def accounts_for_expense(
    expense_id: str,
    accounts: Iterable[AccountT],
) -> list[AccountT]:
    """
    Every account an expense is assigned to.

    No exclusivity is enforced, so this may return several accounts.
    """
    return [account for account in accounts if expense_id in account.expense_ids]


def find_by_composite_id(
    records: Sequence[Union[PayPeriodBankAccount, PayPeriodExpense]],
    composite_id: str,
) -> Optional[Union[PayPeriodBankAccount, PayPeriodExpense]]:
    for record in records:
        if record.composite_id == composite_id:
            return record
    return None


def contrast_color(hex_color: str) -> str:
    """
    Black or white text colour for an account colour swatch.

    Uses perceived luminance (0.299 R + 0.587 G + 0.114 B) / 255.
    """
    color = hex_color.lstrip("#")
    red = int(color[0:2], 16)
    green = int(color[2:4], 16)
    blue = int(color[4:6], 16)

    luminance = (0.299 * red + 0.587 * green + 0.114 * blue) / 255
    return "#000000" if luminance > 0.5 else "#FFFFFF"
