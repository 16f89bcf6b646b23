"""
Master-to-Period Synchronizer

Brings already-materialized periods up to date after master records are
added.

DESIGN DECISION: Membership is keyed by master-id presence, not by
counts. A master record that already has a copy in a period is never
copied again, so running the synchronizer twice with no master change in
between creates nothing on the second run.

Only materialized periods are visited. A period that has never been
populated picks up every master record when it is first opened.
"""

from typing import Optional, Sequence
from uuid import UUID

import structlog

from payplanner.audit import AuditLogger, create_correlation_id
from payplanner.models.audit import AuditEventBuilder
from payplanner.models.finance import (
    MasterBankAccount,
    MasterExpense,
    PayPeriod,
    PayPeriodBankAccount,
    PayPeriodExpense,
    SyncResult,
)
from payplanner.periods.repository import PayPeriodRepository
from payplanner.services.storage import StorageError


logger = structlog.get_logger(__name__)


class MasterDataSynchronizer:
    """Creates missing period copies across every materialized period."""

    def __init__(
        self,
        repository: PayPeriodRepository,
        audit_logger: Optional[AuditLogger] = None,
        audit_collection: Optional[str] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger
        self._audit_collection = audit_collection

    async def sync_period_expenses(
        self,
        period: PayPeriod,
        master_expenses: Sequence[MasterExpense],
    ) -> tuple[list[PayPeriodExpense], list[PayPeriodExpense]]:
        """
        Copy master expenses missing from `period` into it.

        Returns (existing copies, newly created copies). Raises StorageError.
        """
        existing = await self._repository.list_period_expenses(period.id)
        created = await self._repository.create_expense_copies(period, master_expenses, existing)
        return existing, created

    async def sync_period_accounts(
        self,
        period: PayPeriod,
        master_accounts: Sequence[MasterBankAccount],
        period_expenses: Sequence[PayPeriodExpense],
    ) -> list[PayPeriodBankAccount]:
        """Copy master accounts missing from `period` into it. Raises StorageError."""
        existing = await self._repository.list_period_accounts(period.id)
        return await self._repository.create_account_copies(
            period, master_accounts, period_expenses, existing
        )

    async def propagate_new_master_data(
        self,
        master_accounts: Sequence[MasterBankAccount],
        master_expenses: Sequence[MasterExpense],
        correlation_id: Optional[UUID] = None,
    ) -> SyncResult:
        """
        Run one synchronization pass over every materialized period.

        Periods are visited oldest first and writes happen one at a time.
        A storage failure stops the pass; copies already written stay.
        """
        correlation_id = correlation_id or create_correlation_id()
        periods_checked = 0
        accounts_created = 0
        expenses_created = 0

        try:
            periods = [p for p in await self._repository.list_periods() if p.is_materialized]

            for period in periods:
                existing, new_expenses = await self.sync_period_expenses(period, master_expenses)
                new_accounts = await self.sync_period_accounts(
                    period, master_accounts, [*existing, *new_expenses]
                )
                periods_checked += 1
                expenses_created += len(new_expenses)
                accounts_created += len(new_accounts)

        except StorageError as e:
            logger.error(
                "master_data_sync_failed",
                error=str(e),
                periods_checked=periods_checked,
                correlation_id=str(correlation_id),
            )
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="propagate_new_master_data",
                    error_message=str(e),
                    correlation_id=correlation_id,
                    collection_path=self._audit_collection,
                )
            return SyncResult(
                success=False,
                periods_checked=periods_checked,
                accounts_created=accounts_created,
                expenses_created=expenses_created,
                error_message=str(e),
            )

        logger.info(
            "master_data_synced",
            periods_checked=periods_checked,
            accounts_created=accounts_created,
            expenses_created=expenses_created,
        )
        if self._audit_logger:
            await self._audit_logger.log(
                AuditEventBuilder.master_data_synced(
                    periods_checked, accounts_created, expenses_created, correlation_id
                ),
                self._audit_collection,
            )

        return SyncResult(
            success=True,
            periods_checked=periods_checked,
            accounts_created=accounts_created,
            expenses_created=expenses_created,
        )
