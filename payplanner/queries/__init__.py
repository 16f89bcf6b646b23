"""Balance and assignment queries over master and period-scoped records."""

from payplanner.queries.balances import (
    accounts_for_expense,
    contrast_color,
    current_balance,
    expenses_for_account,
    find_by_composite_id,
)

__all__ = [
    "accounts_for_expense",
    "contrast_color",
    "current_balance",
    "expenses_for_account",
    "find_by_composite_id",
]
