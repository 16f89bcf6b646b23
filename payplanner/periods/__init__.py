"""Pay period persistence: lazy creation, materialization and synchronization."""

from payplanner.periods.repository import (
    PayPeriodRepository,
    PeriodSnapshot,
    build_account_copy,
    build_expense_copy,
)
from payplanner.periods.synchronizer import MasterDataSynchronizer

__all__ = [
    "MasterDataSynchronizer",
    "PayPeriodRepository",
    "PeriodSnapshot",
    "build_account_copy",
    "build_expense_copy",
]
