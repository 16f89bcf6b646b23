"""
Core Data Models for the Pay Period Engine

Two families of records live here:

1. MASTER DATA - the user's recurring templates (bank accounts, expenses)
   and the singleton pay info record. These are the source of truth.
2. PERIOD-SCOPED COPIES - per-period projections of master records.
   Each copy carries a composite id "{periodId}-{masterId}" so repeated
   synchronization can tell whether a master record is already
   represented in a period.

DESIGN DECISION: Edits to period copies never write back to master
records. Master records are templates; period copies are disposable.

All date fields go through CalendarDate so that timestamps read back
from storage are reduced to plain calendar dates.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

from payplanner.models.dates import CalendarDate
from payplanner.models.enums import ExpenseFrequency, ExpenseType, PayFrequency


PAY_INFO_DOCUMENT_ID = "main"
DEFAULT_ACCOUNT_COLOR = "#000000"


def utcnow() -> datetime:
    """Timezone-aware creation timestamp."""
    return datetime.now(timezone.utc)


def make_composite_id(period_id: str, master_id: str) -> str:
    """Deterministic key linking a period copy to its master record."""
    return f"{period_id}-{master_id}"


def _check_amount_sign(amount: Decimal, expense_type: ExpenseType) -> None:
    if expense_type == ExpenseType.WITHDRAWAL and amount > 0:
        raise ValueError("Withdrawal amounts must be zero or negative")
    if expense_type == ExpenseType.DEPOSIT and amount < 0:
        raise ValueError("Deposit amounts must be zero or positive")


class StoredModel(BaseModel):
    """
    Base for anything persisted in the document store.

    The document id is NOT part of the stored fields; the store hands it
    back alongside the data, so `to_record()` excludes it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Document id assigned by the store"
    )

    def to_record(self) -> dict[str, Any]:
        """Fields to write to the document store (JSON-safe, no id)."""
        return self.model_dump(mode="json", exclude={"id"})

    @classmethod
    def from_record(cls, record: dict[str, Any]):
        """Rebuild a model from a store record (which includes its id)."""
        return cls.model_validate(record)


# =============================================================================
# MASTER DATA
# =============================================================================

class PayInfo(StoredModel):
    """
    The user's pay schedule. One per user, stored under a fixed id.

    CRITICAL: start_date is the anchor for every weekly/bi-weekly period
    boundary. It must not change once periods have been materialized.
    """

    id: Optional[str] = PAY_INFO_DOCUMENT_ID
    user_uid: Optional[str] = None
    take_home_pay: Decimal = Field(
        ...,
        ge=0,
        description="Net pay per paycheck"
    )
    pay_frequency: PayFrequency
    start_date: CalendarDate = Field(
        ...,
        description="First-ever period start (anchor date)"
    )
    created_at: datetime = Field(default_factory=utcnow)


class MasterExpense(StoredModel):
    """
    A recurring or one-time obligation.

    next_due_date is a cached derived field. It is recomputed on create and
    whenever due_date or frequency is written, always relative to "today".
    """

    user_uid: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(
        ...,
        description="Signed amount: negative withdrawal, positive deposit"
    )
    type: ExpenseType
    due_date: CalendarDate = Field(
        ...,
        description="Origin due date the recurrence is counted from"
    )
    frequency: ExpenseFrequency
    next_due_date: Optional[CalendarDate] = None
    is_paid: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_amount_sign(self) -> 'MasterExpense':
        """Amount sign must agree with the withdrawal/deposit tag."""
        _check_amount_sign(self.amount, self.type)
        return self


class MasterBankAccount(StoredModel):
    """
    A bank account template.

    expense_ids is a set in spirit: membership means "this expense draws
    against this account". An expense may sit on several accounts.
    """

    user_uid: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    starting_balance: Decimal = Decimal("0")
    color: str = DEFAULT_ACCOUNT_COLOR
    expense_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# PAY PERIODS
# =============================================================================

class PayPeriod(StoredModel):
    """
    One pay period, identified by its ISO start date.

    Periods are looked up by exact start date, never by range containment.
    Only visited start dates ever exist in storage.
    """

    user_uid: Optional[str] = None
    pay_info_id: Optional[str] = None
    start_date: CalendarDate
    end_date: CalendarDate
    year: int
    is_active: bool = True
    is_materialized: bool = Field(
        default=False,
        description="Set once period copies have been populated from master data"
    )
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_dates(self) -> 'PayPeriod':
        """End date cannot precede start date."""
        if self.end_date < self.start_date:
            raise ValueError("Period end cannot be before period start")
        return self

    @property
    def key(self) -> str:
        """Storage key for this period (ISO start date)."""
        return self.start_date.isoformat()


class PayPeriodBankAccount(StoredModel):
    """Period-scoped copy of a master bank account."""

    pay_period_id: str
    master_bank_account_id: str
    composite_id: str
    name: str
    color: str = DEFAULT_ACCOUNT_COLOR
    starting_balance: Decimal = Decimal("0")
    current_balance: Decimal = Decimal("0")
    expense_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class PayPeriodExpense(StoredModel):
    """
    Period-scoped copy of a master expense.

    next_due_date here is the occurrence that falls in this period, not the
    master's cached value. is_paid is independent of the master's flag.
    """

    pay_period_id: str
    master_expense_id: str
    composite_id: str
    name: str
    amount: Decimal
    type: ExpenseType
    next_due_date: CalendarDate
    frequency: ExpenseFrequency
    is_paid: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_amount_sign(self) -> 'PayPeriodExpense':
        _check_amount_sign(self.amount, self.type)
        return self


class SyncResult(BaseModel):
    """Outcome of one master-to-period synchronization run."""

    success: bool
    periods_checked: int = Field(default=0, ge=0)
    accounts_created: int = Field(default=0, ge=0)
    expenses_created: int = Field(default=0, ge=0)
    error_message: Optional[str] = None

    @property
    def records_created(self) -> int:
        return self.accounts_created + self.expenses_created
