"""
Enumerations shared by the pay period engine.

Values are the exact strings written to the document store, so they
must never change once records exist.
"""

from enum import Enum


class PayFrequency(str, Enum):
    """How often the user is paid. Drives period boundaries."""
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    SEMI_MONTHLY = "semi-monthly"


class ExpenseFrequency(str, Enum):
    """How often an expense recurs."""
    MONTHLY = "monthly"
    BI_WEEKLY = "bi-weekly"
    EVERY_30_DAYS = "every 30 days"
    ONE_TIME = "one-time"


class ExpenseType(str, Enum):
    """
    Direction of money flow.

    The sign of the stored amount must agree with this tag:
    withdrawals are negative, deposits positive.
    """
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"


class NavigationDirection(str, Enum):
    """Direction for moving between pay periods."""
    NEXT = "next"
    PREVIOUS = "previous"
