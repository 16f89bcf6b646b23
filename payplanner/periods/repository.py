"""
Period Repository

Finds or creates pay periods and materializes their period-scoped copies
of master accounts and expenses.

DESIGN DECISION: A period carries an explicit `is_materialized` flag
instead of treating "no copies yet" as "never populated". A period whose
user legitimately has zero accounts is still materialized. Population
runs only while the flag is false; once set, this path never repairs
partial state (the synchronizer does that).

Writes happen one document at a time, in master-list order. Expense
copies are written before account copies so each account copy can list
the ids of the period expenses its master assignments map to.

Error policy: low-level reads/writes raise StorageError. The operations
a caller drives (find_or_create_period, ensure_materialized,
open_period, navigate, reset_period) catch it at their boundary, log and
audit it, and return None.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, Field

from payplanner.audit import AuditLogger
from payplanner.models.audit import AuditEventBuilder
from payplanner.models.dates import DateLike, to_calendar_date
from payplanner.models.enums import NavigationDirection
from payplanner.models.finance import (
    MasterBankAccount,
    MasterExpense,
    PayInfo,
    PayPeriod,
    PayPeriodBankAccount,
    PayPeriodExpense,
    make_composite_id,
)
from payplanner.scheduling import (
    compute_period_end,
    due_date_for_period,
    is_expense_in_period,
    shift_period,
)
from payplanner.services.storage import DocumentStore, StorageError, UserCollections


logger = structlog.get_logger(__name__)


class PeriodSnapshot(BaseModel):
    """A period together with its current period-scoped copies."""

    period: PayPeriod
    accounts: list[PayPeriodBankAccount] = Field(default_factory=list)
    expenses: list[PayPeriodExpense] = Field(default_factory=list)


# =============================================================================
# COPY BUILDERS
# =============================================================================

def build_expense_copy(period: PayPeriod, master: MasterExpense) -> PayPeriodExpense:
    """Project a master expense onto a period (no id yet)."""
    return PayPeriodExpense(
        pay_period_id=period.id,
        master_expense_id=master.id,
        composite_id=make_composite_id(period.id, master.id),
        name=master.name,
        amount=master.amount,
        type=master.type,
        next_due_date=due_date_for_period(master, period.start_date),
        frequency=master.frequency,
        is_paid=False,
    )


def build_account_copy(
    period: PayPeriod,
    master: MasterBankAccount,
    period_expenses: Iterable[PayPeriodExpense],
) -> PayPeriodBankAccount:
    """
    Project a master account onto a period (no id yet).

    Master expense assignments are translated to the ids of the matching
    period expense copies. Assignments to expenses that have no copy in
    this period are dropped.
    """
    by_master_id = {expense.master_expense_id: expense for expense in period_expenses}
    assigned = [by_master_id[mid] for mid in master.expense_ids if mid in by_master_id]

    return PayPeriodBankAccount(
        pay_period_id=period.id,
        master_bank_account_id=master.id,
        composite_id=make_composite_id(period.id, master.id),
        name=master.name,
        color=master.color,
        starting_balance=master.starting_balance,
        current_balance=master.starting_balance + sum(
            (expense.amount for expense in assigned), Decimal("0")
        ),
        expense_ids=[expense.id for expense in assigned],
    )


class PayPeriodRepository:
    """
    Storage-backed access to one user's pay periods and period copies.
    """

    def __init__(
        self,
        store: DocumentStore,
        collections: UserCollections,
        user_uid: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
        audit_collection: Optional[str] = None,
    ):
        self._store = store
        self._paths = collections
        self._user_uid = user_uid
        self._audit_logger = audit_logger
        self._audit_collection = audit_collection

    async def _audit(self, event) -> None:
        if self._audit_logger:
            await self._audit_logger.log(event, self._audit_collection)

    async def _report_failure(self, operation: str, error: Exception, entity_id: Optional[str] = None) -> None:
        logger.error(operation + "_failed", error=str(error), period_id=entity_id)
        if self._audit_logger:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(error),
                entity_id=entity_id,
                collection_path=self._audit_collection,
            )

    # -------------------------------------------------------------------------
    # Reads (raise StorageError)
    # -------------------------------------------------------------------------

    async def get_period(self, start_date: DateLike) -> Optional[PayPeriod]:
        """Look a period up by its exact start date."""
        key = to_calendar_date(start_date).isoformat()
        record = await self._store.get(self._paths.pay_periods, key)
        return PayPeriod.from_record(record) if record else None

    async def list_periods(self) -> list[PayPeriod]:
        """Every stored period, oldest first."""
        records = await self._store.list_all(self._paths.pay_periods)
        periods = [PayPeriod.from_record(record) for record in records]
        return sorted(periods, key=lambda p: p.start_date)

    async def list_period_accounts(self, period_id: str) -> list[PayPeriodBankAccount]:
        records = await self._store.list_all(self._paths.pay_period_bank_accounts)
        return [
            PayPeriodBankAccount.from_record(record)
            for record in records
            if record.get("pay_period_id") == period_id
        ]

    async def list_period_expenses(self, period_id: str) -> list[PayPeriodExpense]:
        records = await self._store.list_all(self._paths.pay_period_expenses)
        return [
            PayPeriodExpense.from_record(record)
            for record in records
            if record.get("pay_period_id") == period_id
        ]

    async def has_materialized_periods(self) -> bool:
        return any(period.is_materialized for period in await self.list_periods())

    # -------------------------------------------------------------------------
    # Copy creation (raise StorageError)
    # -------------------------------------------------------------------------

    async def create_expense_copies(
        self,
        period: PayPeriod,
        master_expenses: Sequence[MasterExpense],
        existing: Sequence[PayPeriodExpense] = (),
    ) -> list[PayPeriodExpense]:
        """
        Create a copy for every master expense that belongs in the period
        and is not already represented there.
        """
        represented = {expense.master_expense_id for expense in existing}
        created = []

        for master in master_expenses:
            if master.id in represented or not is_expense_in_period(master, period):
                continue
            copy = build_expense_copy(period, master)
            document_id = await self._store.create(
                self._paths.pay_period_expenses, copy.to_record()
            )
            created.append(copy.model_copy(update={"id": document_id}))
            represented.add(master.id)

        return created

    async def create_account_copies(
        self,
        period: PayPeriod,
        master_accounts: Sequence[MasterBankAccount],
        period_expenses: Sequence[PayPeriodExpense],
        existing: Sequence[PayPeriodBankAccount] = (),
    ) -> list[PayPeriodBankAccount]:
        """Create a copy for every master account not already represented."""
        represented = {account.master_bank_account_id for account in existing}
        created = []

        for master in master_accounts:
            if master.id in represented:
                continue
            copy = build_account_copy(period, master, period_expenses)
            document_id = await self._store.create(
                self._paths.pay_period_bank_accounts, copy.to_record()
            )
            created.append(copy.model_copy(update={"id": document_id}))
            represented.add(master.id)

        return created

    # -------------------------------------------------------------------------
    # Period-copy edits (raise StorageError)
    # -------------------------------------------------------------------------

    async def update_period_account(self, account_id: str, fields: dict) -> None:
        await self._store.update(self._paths.pay_period_bank_accounts, account_id, fields)

    async def update_period_expense(self, expense_id: str, fields: dict) -> None:
        await self._store.update(self._paths.pay_period_expenses, expense_id, fields)

    async def delete_period_account(self, account_id: str) -> None:
        await self._store.delete(self._paths.pay_period_bank_accounts, account_id)

    async def delete_period_expense(self, expense_id: str) -> None:
        await self._store.delete(self._paths.pay_period_expenses, expense_id)

    # -------------------------------------------------------------------------
    # Operations (catch StorageError, return None on failure)
    # -------------------------------------------------------------------------

    async def find_or_create_period(
        self,
        start_date: DateLike,
        pay_info: PayInfo,
    ) -> Optional[PayPeriod]:
        """
        Return the period starting on `start_date`, creating it if absent.

        A new period's end date comes from the pay frequency. It starts
        unmaterialized.
        """
        start = to_calendar_date(start_date)
        try:
            existing = await self.get_period(start)
            if existing:
                return existing

            period = PayPeriod(
                id=start.isoformat(),
                user_uid=self._user_uid,
                pay_info_id=pay_info.id,
                start_date=start,
                end_date=compute_period_end(start, pay_info.pay_frequency),
                year=start.year,
            )
            await self._store.set(self._paths.pay_periods, period.id, period.to_record())
        except StorageError as e:
            await self._report_failure("find_or_create_period", e, start.isoformat())
            return None

        logger.info("pay_period_created", period_id=period.id, end_date=period.end_date.isoformat())
        await self._audit(AuditEventBuilder.pay_period_created(period.id, period.end_date.isoformat()))
        return period

    async def ensure_materialized(
        self,
        period: PayPeriod,
        master_accounts: Sequence[MasterBankAccount],
        master_expenses: Sequence[MasterExpense],
    ) -> Optional[PayPeriod]:
        """
        Populate a period from master data if it has never been populated.

        Every master account gets a copy; every master expense passing the
        membership filter gets a copy. Masters already represented by a
        copy (e.g. from an interrupted earlier attempt) are skipped.
        Returns the period with its flag set, or None on failure.
        """
        if period.is_materialized:
            return period

        try:
            existing_expenses = await self.list_period_expenses(period.id)
            existing_accounts = await self.list_period_accounts(period.id)

            new_expenses = await self.create_expense_copies(
                period, master_expenses, existing_expenses
            )
            new_accounts = await self.create_account_copies(
                period,
                master_accounts,
                [*existing_expenses, *new_expenses],
                existing_accounts,
            )
            await self._store.update(
                self._paths.pay_periods, period.id, {"is_materialized": True}
            )
        except StorageError as e:
            await self._report_failure("ensure_materialized", e, period.id)
            return None

        logger.info(
            "pay_period_materialized",
            period_id=period.id,
            accounts_created=len(new_accounts),
            expenses_created=len(new_expenses),
        )
        await self._audit(AuditEventBuilder.pay_period_materialized(
            period.id, len(new_accounts), len(new_expenses)
        ))
        return period.model_copy(update={"is_materialized": True})

    async def open_period(
        self,
        start_date: DateLike,
        pay_info: PayInfo,
        master_accounts: Sequence[MasterBankAccount],
        master_expenses: Sequence[MasterExpense],
    ) -> Optional[PeriodSnapshot]:
        """find_or_create_period + ensure_materialized, then load the copies."""
        period = await self.find_or_create_period(start_date, pay_info)
        if period is None:
            return None

        period = await self.ensure_materialized(period, master_accounts, master_expenses)
        if period is None:
            return None

        try:
            accounts = await self.list_period_accounts(period.id)
            expenses = await self.list_period_expenses(period.id)
        except StorageError as e:
            await self._report_failure("open_period", e, period.id)
            return None

        return PeriodSnapshot(period=period, accounts=accounts, expenses=expenses)

    async def navigate(
        self,
        current: PayPeriod,
        pay_info: PayInfo,
        direction: Union[NavigationDirection, str],
        master_accounts: Sequence[MasterBankAccount],
        master_expenses: Sequence[MasterExpense],
    ) -> Optional[PeriodSnapshot]:
        """Open the period one step before or after `current`."""
        target = shift_period(current.start_date, pay_info.pay_frequency, direction)
        return await self.open_period(target, pay_info, master_accounts, master_expenses)

    async def reset_period(
        self,
        period: PayPeriod,
        pay_info: PayInfo,
        master_accounts: Sequence[MasterBankAccount],
        master_expenses: Sequence[MasterExpense],
    ) -> Optional[PeriodSnapshot]:
        """
        Delete the period and all of its copies, then rebuild it from
        current master data.
        """
        try:
            accounts = await self.list_period_accounts(period.id)
            expenses = await self.list_period_expenses(period.id)
            for account in accounts:
                await self.delete_period_account(account.id)
            for expense in expenses:
                await self.delete_period_expense(expense.id)
            await self._store.delete(self._paths.pay_periods, period.id)
        except StorageError as e:
            await self._report_failure("reset_period", e, period.id)
            return None

        records_deleted = len(accounts) + len(expenses)
        logger.warning("pay_period_reset", period_id=period.id, records_deleted=records_deleted)
        await self._audit(AuditEventBuilder.pay_period_reset(period.id, records_deleted))

        return await self.open_period(period.start_date, pay_info, master_accounts, master_expenses)
