"""
Main Orchestrator for the Pay Planner

PayPlannerStore is the surface a front end drives. It owns the AppState
snapshot and defines the end-to-end flows for:
1. Session (sign up / sign in / federated sign in / sign out)
2. Master data (bank accounts, expenses, pay info)
3. Pay periods (open current, navigate, reset, synchronize)
4. Period copies (assign expenses, mark paid, delete)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The in-memory snapshot changes only after the storage write succeeded
- Failures are caught here, logged and audited; callers get False/None
- Missing preconditions (no user, no pay info, no current period) are
  logged no-ops, never exceptions

Every state mutation goes through update_state(), which announces the
changed field names on the StateEventBus.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Union

import structlog
from pydantic import ValidationError

from payplanner.audit import AuditLogger, configure_logging, create_correlation_id
from payplanner.config import Settings, get_settings
from payplanner.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from payplanner.models.dates import DateLike
from payplanner.models.enums import (
    ExpenseFrequency,
    ExpenseType,
    NavigationDirection,
    PayFrequency,
)
from payplanner.models.finance import (
    PAY_INFO_DOCUMENT_ID,
    MasterBankAccount,
    MasterExpense,
    PayInfo,
    PayPeriod,
    PayPeriodBankAccount,
    PayPeriodExpense,
)
from payplanner.periods import MasterDataSynchronizer, PayPeriodRepository, PeriodSnapshot
from payplanner.queries import (
    accounts_for_expense,
    current_balance,
    expenses_for_account,
    find_by_composite_id,
)
from payplanner.scheduling import (
    format_period_range,
    locate_current_period_start,
    next_occurrence,
)
from payplanner.services.auth import (
    DEFAULT_AUTH_ERROR_MESSAGE,
    FEDERATED_SIGN_IN_FAILED_MESSAGE,
    SILENT_FEDERATED_CODES,
    AuthError,
    AuthProvider,
    Identity,
    InMemoryAuthProvider,
    Unsubscribe,
    describe_auth_error,
)
from payplanner.services.storage import (
    DocumentStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    StorageError,
    UserCollections,
)
from payplanner.state import STATE_CHANGED, AppState, StateEventBus


logger = structlog.get_logger(__name__)

Clock = Callable[[], date]

NO_PERIOD_SELECTED = "No Period Selected"

# Fields whose write invalidates a master expense's cached next_due_date
_NEXT_DUE_DATE_SOURCES = frozenset({"due_date", "frequency"})


class PayPlannerStore:
    """
    Application state plus every operation the front end can call.

    One instance serves one session. The signed-in user's uid scopes
    every collection path.
    """

    def __init__(
        self,
        auth_provider: AuthProvider,
        document_store: DocumentStore,
        root_collection: str = "userData",
        audit_logger: Optional[AuditLogger] = None,
        persist_audit_events: bool = False,
        unknown_auth_error_message: str = DEFAULT_AUTH_ERROR_MESSAGE,
        clock: Clock = date.today,
        event_bus: Optional[StateEventBus] = None,
    ):
        self._auth = auth_provider
        self._store = document_store
        self._root_collection = root_collection
        self._audit_logger = audit_logger or AuditLogger(document_store)
        self._persist_audit_events = persist_audit_events
        self._unknown_auth_error_message = unknown_auth_error_message
        self._clock = clock

        self.state = AppState()
        self.events = event_bus or StateEventBus()

        self._auth_unsubscribe: Optional[Unsubscribe] = None
        self._pending_load = False

    # =========================================================================
    # STATE
    # =========================================================================

    def update_state(self, **fields) -> None:
        """Apply field changes to the snapshot and announce them."""
        for name, value in fields.items():
            setattr(self.state, name, value)
        self.events.publish(STATE_CHANGED, {"fields": sorted(fields)})

    def subscribe(self, handler) -> Callable[[], None]:
        """Register a state-change handler; returns an unsubscribe callable."""
        self.events.subscribe(STATE_CHANGED, handler)
        return lambda: self.events.unsubscribe(STATE_CHANGED, handler)

    def today(self) -> date:
        return self._clock()

    # -------------------------------------------------------------------------
    # Setters for UI-transient state
    # -------------------------------------------------------------------------

    def set_username(self, username: str) -> None:
        self.update_state(username=username)

    def set_password(self, password: str) -> None:
        self.update_state(password=password)

    def set_confirm_password(self, confirm_password: str) -> None:
        self.update_state(confirm_password=confirm_password)

    def set_new_bank_account_form_open(self, is_open: bool) -> None:
        self.update_state(new_bank_account_form_open=is_open)

    def set_new_expense_form_open(self, is_open: bool) -> None:
        self.update_state(new_expense_form_open=is_open)

    def set_selected_bank_account(self, account: Optional[MasterBankAccount]) -> None:
        self.update_state(selected_bank_account=account)

    def set_selected_expense(self, expense: Optional[MasterExpense]) -> None:
        self.update_state(selected_expense=expense)

    def set_selected_pay_period_bank_account(self, account: Optional[PayPeriodBankAccount]) -> None:
        self.update_state(selected_pay_period_bank_account=account)

    def set_selected_pay_period_expense(self, expense: Optional[PayPeriodExpense]) -> None:
        self.update_state(selected_pay_period_expense=expense)

    def set_current_pay_period(self, period: Optional[PayPeriod]) -> None:
        self.update_state(current_pay_period=period)

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _paths(self) -> Optional[UserCollections]:
        if self.state.user is None:
            return None
        return UserCollections(self._root_collection, self.state.user.uid)

    def _require_user(self, operation: str) -> Optional[UserCollections]:
        paths = self._paths()
        if paths is None:
            logger.warning("no_authenticated_user", operation=operation)
        return paths

    def _audit_collection(self) -> Optional[str]:
        paths = self._paths()
        if paths is None or not self._persist_audit_events:
            return None
        return paths.audit_log

    def _repository(self, paths: UserCollections) -> PayPeriodRepository:
        return PayPeriodRepository(
            self._store,
            paths,
            user_uid=self.state.user.uid,
            audit_logger=self._audit_logger,
            audit_collection=self._audit_collection(),
        )

    async def _audit(self, event: AuditEvent) -> None:
        await self._audit_logger.log(event, self._audit_collection())

    async def _storage_failed(
        self,
        operation: str,
        error: Exception,
        entity_id: Optional[str] = None,
    ) -> None:
        logger.error(operation + "_failed", error=str(error), entity_id=entity_id)
        await self._audit_logger.log_storage_error(
            operation=operation,
            error_message=str(error),
            entity_id=entity_id,
            collection_path=self._audit_collection(),
        )

    @staticmethod
    def _editable_fields(model: type, fields: dict, record_id: str) -> dict:
        """Keep only the model's own fields; the document id is never rewritten."""
        editable = {
            name: value for name, value in fields.items()
            if name in model.model_fields and name != "id"
        }
        ignored = sorted(set(fields) - set(editable))
        if ignored:
            logger.debug("update_fields_ignored", record_id=record_id, fields=ignored)
        return editable

    def _with_next_due_date(self, expense: MasterExpense) -> MasterExpense:
        next_due = next_occurrence(expense.due_date, expense.frequency, self.today())
        return expense.model_copy(update={"next_due_date": next_due})

    # =========================================================================
    # SESSION
    # =========================================================================

    async def init(self) -> None:
        """
        Start following the auth provider's session.

        The provider reports the current session immediately, so a
        restored session loads its data before this returns.
        """
        self._auth_unsubscribe = self._auth.on_session_change(self._on_session_change)
        await self._settle_session()

    def cleanup(self) -> None:
        if self._auth_unsubscribe:
            self._auth_unsubscribe()
            self._auth_unsubscribe = None

    def _on_session_change(self, identity: Optional[Identity]) -> None:
        previous = self.state.user

        if identity is None:
            self.state.clear_user_data()
            self._pending_load = False
            self.events.publish(STATE_CHANGED, {"fields": ["user"]})
            return

        self.update_state(user=identity)
        if previous is None or previous.uid != identity.uid:
            self._pending_load = True

    async def _settle_session(self) -> None:
        """Load the signed-in user's data if a new session was reported."""
        if self._pending_load:
            self._pending_load = False
            await self.load_user_data()

    async def load_user_data(self) -> None:
        """Master expenses, master accounts, then pay info and its period."""
        await self.load_master_expenses()
        await self.load_master_bank_accounts()
        await self.load_pay_info()

    async def _auth_failed(self, error: AuthError, message: Optional[str]) -> None:
        logger.warning("auth_failed", code=error.code, message=message)
        await self._audit(AuditEventBuilder.auth_failed(error.code, message or error.code))
        if message is not None:
            self.update_state(login_error=message)

    async def _signed_in(self, identity: Identity, event_type: AuditEventType) -> None:
        self._on_session_change(identity)
        self.update_state(login_error=None)
        await self._audit(AuditEventBuilder.session_event(event_type, identity.uid))
        await self._settle_session()

    async def create_account(self) -> bool:
        """Sign up with the username/password/confirmation in state."""
        username = self.state.username
        password = self.state.password

        if password != self.state.confirm_password:
            logger.warning("passwords_do_not_match")
            return False
        if not username or not password:
            logger.warning("credentials_required", operation="create_account")
            return False

        try:
            identity = await self._auth.create_account(username, password)
        except AuthError as e:
            await self._auth_failed(e, describe_auth_error(e.code, self._unknown_auth_error_message))
            return False

        await self._signed_in(identity, AuditEventType.ACCOUNT_CREATED)
        return True

    async def sign_in(self) -> bool:
        """Sign in with the username/password in state."""
        username = self.state.username
        password = self.state.password

        if not username or not password:
            logger.warning("credentials_required", operation="sign_in")
            return False

        try:
            identity = await self._auth.sign_in(username, password)
        except AuthError as e:
            await self._auth_failed(e, describe_auth_error(e.code, self._unknown_auth_error_message))
            return False

        await self._signed_in(identity, AuditEventType.USER_SIGNED_IN)
        return True

    async def sign_in_with_federated_provider(self) -> bool:
        """
        Federated (popup) sign-in.

        A popup the user closed or the browser blocked is logged only;
        any other failure shows a generic message.
        """
        try:
            identity = await self._auth.sign_in_with_federated_provider()
        except AuthError as e:
            if e.code in SILENT_FEDERATED_CODES:
                await self._auth_failed(e, None)
            else:
                await self._auth_failed(e, FEDERATED_SIGN_IN_FAILED_MESSAGE)
            return False

        await self._signed_in(identity, AuditEventType.USER_SIGNED_IN)
        return True

    async def sign_out(self) -> bool:
        uid = self.state.user.uid if self.state.user else None
        try:
            await self._auth.sign_out()
        except AuthError as e:
            logger.error("sign_out_failed", code=e.code)
            return False

        await self._audit(AuditEventBuilder.session_event(AuditEventType.USER_SIGNED_OUT, uid))
        self._on_session_change(None)
        return True

    # =========================================================================
    # MASTER BANK ACCOUNTS
    # =========================================================================

    async def load_master_bank_accounts(self) -> list[MasterBankAccount]:
        paths = self._require_user("load_master_bank_accounts")
        if paths is None:
            return []

        try:
            records = await self._store.list_all(paths.bank_accounts)
        except StorageError as e:
            await self._storage_failed("load_master_bank_accounts", e)
            return []

        accounts = [MasterBankAccount.from_record(record) for record in records]
        self.update_state(master_bank_accounts=accounts)
        return accounts

    async def add_master_bank_account(
        self,
        name: str,
        starting_balance: Union[Decimal, int, str] = Decimal("0"),
        color: Optional[str] = None,
    ) -> Optional[MasterBankAccount]:
        """Create a master account and copy it into every materialized period."""
        paths = self._require_user("add_master_bank_account")
        if paths is None:
            return None

        fields = {"user_uid": self.state.user.uid, "name": name, "starting_balance": starting_balance}
        if color:
            fields["color"] = color
        try:
            account = MasterBankAccount(**fields)
        except ValidationError as e:
            logger.warning("invalid_master_bank_account", error=str(e))
            return None

        try:
            account_id = await self._store.create(paths.bank_accounts, account.to_record())
        except StorageError as e:
            await self._storage_failed("add_master_bank_account", e)
            return None

        account = account.model_copy(update={"id": account_id})
        self.update_state(master_bank_accounts=[*self.state.master_bank_accounts, account])
        await self._audit_logger.log_master_change(
            AuditEventType.MASTER_ACCOUNT_ADDED, "master_bank_account", account_id,
            name=account.name, collection_path=self._audit_collection(),
        )

        await self.propagate_new_master_data()
        return account

    async def update_master_bank_account(self, account_id: str, fields: dict) -> bool:
        """Merge `fields` into a master account. Period copies are untouched."""
        paths = self._require_user("update_master_bank_account")
        if paths is None:
            return False

        current = next((a for a in self.state.master_bank_accounts if a.id == account_id), None)
        if current is None:
            logger.warning("master_bank_account_not_found", account_id=account_id)
            return False

        fields = self._editable_fields(MasterBankAccount, fields, account_id)
        try:
            updated = MasterBankAccount.model_validate({**current.model_dump(), **fields})
        except ValidationError as e:
            logger.warning("invalid_master_bank_account", account_id=account_id, error=str(e))
            return False
        record = updated.to_record()

        try:
            await self._store.update(
                paths.bank_accounts, account_id, {name: record[name] for name in fields}
            )
        except StorageError as e:
            await self._storage_failed("update_master_bank_account", e, account_id)
            return False

        self.update_state(
            master_bank_accounts=[
                updated if a.id == account_id else a for a in self.state.master_bank_accounts
            ],
            selected_bank_account=None,
            new_bank_account_form_open=False,
        )
        await self._audit_logger.log_master_change(
            AuditEventType.MASTER_ACCOUNT_UPDATED, "master_bank_account", account_id,
            name=updated.name, collection_path=self._audit_collection(),
        )
        return True

    async def delete_master_bank_account(self, account_id: str) -> bool:
        """Delete a master account. Its expenses and period copies stay."""
        paths = self._require_user("delete_master_bank_account")
        if paths is None:
            return False

        try:
            await self._store.delete(paths.bank_accounts, account_id)
        except StorageError as e:
            await self._storage_failed("delete_master_bank_account", e, account_id)
            return False

        self.update_state(
            master_bank_accounts=[a for a in self.state.master_bank_accounts if a.id != account_id]
        )
        await self._audit_logger.log_master_change(
            AuditEventType.MASTER_ACCOUNT_DELETED, "master_bank_account", account_id,
            collection_path=self._audit_collection(),
        )
        return True

    async def _set_master_account_expenses(
        self,
        paths: UserCollections,
        account: MasterBankAccount,
        expense_ids: list[str],
    ) -> None:
        """Write a master account's expense list, then mirror it in state. Raises StorageError."""
        await self._store.update(paths.bank_accounts, account.id, {"expense_ids": expense_ids})
        updated = account.model_copy(update={"expense_ids": expense_ids})
        self.update_state(
            master_bank_accounts=[
                updated if a.id == account.id else a for a in self.state.master_bank_accounts
            ]
        )

    async def assign_expense_to_master_account(self, account_id: str, expense_id: str) -> bool:
        """Add an expense to a master account's set. No-op if already there."""
        paths = self._require_user("assign_expense_to_master_account")
        if paths is None:
            return False

        account = next((a for a in self.state.master_bank_accounts if a.id == account_id), None)
        if account is None:
            logger.warning("master_bank_account_not_found", account_id=account_id)
            return False
        if expense_id in account.expense_ids:
            return True

        try:
            await self._set_master_account_expenses(paths, account, [*account.expense_ids, expense_id])
        except StorageError as e:
            await self._storage_failed("assign_expense_to_master_account", e, account_id)
            return False
        return True

    async def detach_expense_from_master_account(self, account_id: str, expense_id: str) -> bool:
        """Remove an expense from a master account's set. No-op if absent."""
        paths = self._require_user("detach_expense_from_master_account")
        if paths is None:
            return False

        account = next((a for a in self.state.master_bank_accounts if a.id == account_id), None)
        if account is None:
            logger.warning("master_bank_account_not_found", account_id=account_id)
            return False
        if expense_id not in account.expense_ids:
            return True

        remaining = [eid for eid in account.expense_ids if eid != expense_id]
        try:
            await self._set_master_account_expenses(paths, account, remaining)
        except StorageError as e:
            await self._storage_failed("detach_expense_from_master_account", e, account_id)
            return False
        return True

    # =========================================================================
    # MASTER EXPENSES
    # =========================================================================

    async def load_master_expenses(self) -> list[MasterExpense]:
        """
        Load master expenses. A record stored without a cached
        next_due_date gets one computed (not written back).
        """
        paths = self._require_user("load_master_expenses")
        if paths is None:
            return []

        try:
            records = await self._store.list_all(paths.expenses)
        except StorageError as e:
            await self._storage_failed("load_master_expenses", e)
            return []

        expenses = []
        for record in records:
            expense = MasterExpense.from_record(record)
            if expense.next_due_date is None:
                expense = self._with_next_due_date(expense)
            expenses.append(expense)

        self.update_state(master_expenses=expenses)
        return expenses

    async def add_master_expense(
        self,
        name: str,
        amount: Union[Decimal, int, str],
        expense_type: Union[ExpenseType, str],
        due_date: DateLike,
        frequency: Union[ExpenseFrequency, str],
    ) -> Optional[MasterExpense]:
        """
        Create a master expense (computing its next_due_date) and copy it
        into every materialized period it falls in.
        """
        paths = self._require_user("add_master_expense")
        if paths is None:
            return None

        try:
            expense = self._with_next_due_date(MasterExpense(
                user_uid=self.state.user.uid,
                name=name,
                amount=amount,
                type=expense_type,
                due_date=due_date,
                frequency=frequency,
            ))
        except ValidationError as e:
            logger.warning("invalid_master_expense", error=str(e))
            return None

        try:
            expense_id = await self._store.create(paths.expenses, expense.to_record())
        except StorageError as e:
            await self._storage_failed("add_master_expense", e)
            return None

        expense = expense.model_copy(update={"id": expense_id})
        self.update_state(master_expenses=[*self.state.master_expenses, expense])
        await self._audit_logger.log_master_change(
            AuditEventType.MASTER_EXPENSE_ADDED, "master_expense", expense_id,
            name=expense.name, collection_path=self._audit_collection(),
        )

        await self.propagate_new_master_data()
        return expense

    async def update_master_expense(self, expense_id: str, fields: dict) -> bool:
        """
        Merge `fields` into a master expense.

        Writing due_date or frequency (either one) recomputes the cached
        next_due_date from the merged values, relative to today.
        """
        paths = self._require_user("update_master_expense")
        if paths is None:
            return False

        current = next((e for e in self.state.master_expenses if e.id == expense_id), None)
        if current is None:
            logger.warning("master_expense_not_found", expense_id=expense_id)
            return False

        fields = self._editable_fields(MasterExpense, fields, expense_id)
        changed = set(fields)
        try:
            updated = MasterExpense.model_validate({**current.model_dump(), **fields})
        except ValidationError as e:
            logger.warning("invalid_master_expense", expense_id=expense_id, error=str(e))
            return False
        if changed & _NEXT_DUE_DATE_SOURCES:
            updated = self._with_next_due_date(updated)
            changed.add("next_due_date")

        record = updated.to_record()
        try:
            await self._store.update(paths.expenses, expense_id, {name: record[name] for name in changed})
        except StorageError as e:
            await self._storage_failed("update_master_expense", e, expense_id)
            return False

        self.update_state(
            master_expenses=[updated if e.id == expense_id else e for e in self.state.master_expenses],
            selected_expense=None,
            new_expense_form_open=False,
        )
        await self._audit_logger.log_master_change(
            AuditEventType.MASTER_EXPENSE_UPDATED, "master_expense", expense_id,
            name=updated.name, collection_path=self._audit_collection(),
        )
        return True

    async def delete_master_expense(self, expense_id: str) -> bool:
        """Detach the expense from every master account listing it, then delete it."""
        paths = self._require_user("delete_master_expense")
        if paths is None:
            return False

        try:
            for account in accounts_for_expense(expense_id, list(self.state.master_bank_accounts)):
                remaining = [eid for eid in account.expense_ids if eid != expense_id]
                await self._set_master_account_expenses(paths, account, remaining)
            await self._store.delete(paths.expenses, expense_id)
        except StorageError as e:
            await self._storage_failed("delete_master_expense", e, expense_id)
            return False

        self.update_state(
            master_expenses=[e for e in self.state.master_expenses if e.id != expense_id]
        )
        await self._audit_logger.log_master_change(
            AuditEventType.MASTER_EXPENSE_DELETED, "master_expense", expense_id,
            collection_path=self._audit_collection(),
        )
        return True

    # =========================================================================
    # PAY INFO
    # =========================================================================

    async def load_pay_info(self) -> Optional[PayInfo]:
        """Load the singleton pay info and open the period containing today."""
        paths = self._require_user("load_pay_info")
        if paths is None:
            return None

        try:
            record = await self._store.get(paths.pay_info, PAY_INFO_DOCUMENT_ID)
        except StorageError as e:
            await self._storage_failed("load_pay_info", e)
            return None

        if record is None:
            return None

        pay_info = PayInfo.from_record(record)
        self.update_state(pay_info=pay_info)
        await self.open_current_period()
        return pay_info

    async def save_pay_info(
        self,
        take_home_pay: Union[Decimal, int, str],
        pay_frequency: Union[PayFrequency, str],
        start_date: DateLike,
    ) -> bool:
        """
        Upsert the singleton pay info.

        The anchor start date cannot change once any period has been
        materialized against it.
        """
        paths = self._require_user("save_pay_info")
        if paths is None:
            return False

        try:
            pay_info = PayInfo(
                user_uid=self.state.user.uid,
                take_home_pay=take_home_pay,
                pay_frequency=pay_frequency,
                start_date=start_date,
            )
        except ValidationError as e:
            logger.warning("invalid_pay_info", error=str(e))
            return False

        existing = self.state.pay_info
        if existing is not None:
            pay_info = pay_info.model_copy(update={"created_at": existing.created_at})

        try:
            if existing is not None and existing.start_date != pay_info.start_date:
                if await self._repository(paths).has_materialized_periods():
                    logger.warning(
                        "pay_info_anchor_locked",
                        current_start_date=existing.start_date.isoformat(),
                        requested_start_date=pay_info.start_date.isoformat(),
                    )
                    await self._audit(AuditEvent(
                        event_type=AuditEventType.PRECONDITION_FAILED,
                        entity_type="pay_info",
                        entity_id=PAY_INFO_DOCUMENT_ID,
                        description="Pay info start date is locked once periods exist",
                    ))
                    return False

            await self._store.set(paths.pay_info, PAY_INFO_DOCUMENT_ID, pay_info.to_record())
        except StorageError as e:
            await self._storage_failed("save_pay_info", e, PAY_INFO_DOCUMENT_ID)
            return False

        self.update_state(pay_info=pay_info)
        await self._audit(AuditEventBuilder.pay_info_saved(
            pay_info.pay_frequency.value, pay_info.start_date.isoformat()
        ))

        if self.state.current_pay_period is None:
            await self.open_current_period()
        return True

    # =========================================================================
    # PAY PERIODS
    # =========================================================================

    def _show_period(self, snapshot: PeriodSnapshot) -> None:
        period = snapshot.period
        known = [p for p in self.state.pay_periods if p.id != period.id]
        self.update_state(
            pay_periods=sorted([*known, period], key=lambda p: p.start_date),
            current_pay_period=period,
            pay_period_bank_accounts=snapshot.accounts,
            pay_period_expenses=snapshot.expenses,
        )

    async def _open(self, operation: str, opener) -> bool:
        self.update_state(pay_period_loading=True)
        try:
            snapshot = await opener
        finally:
            self.update_state(pay_period_loading=False)

        if snapshot is None:
            logger.warning("pay_period_unavailable", operation=operation)
            return False

        self._show_period(snapshot)
        return True

    async def open_period(self, start_date: DateLike) -> bool:
        """Find or create the period starting on `start_date` and show it."""
        paths = self._require_user("open_period")
        if paths is None:
            return False
        if self.state.pay_info is None:
            logger.warning("no_pay_info", operation="open_period")
            return False

        return await self._open("open_period", self._repository(paths).open_period(
            start_date,
            self.state.pay_info,
            self.state.master_bank_accounts,
            self.state.master_expenses,
        ))

    async def open_current_period(self) -> bool:
        """Show the period containing today."""
        if self.state.pay_info is None:
            logger.warning("no_pay_info", operation="open_current_period")
            return False
        return await self.open_period(locate_current_period_start(self.state.pay_info, self.today()))

    async def navigate(self, direction: Union[NavigationDirection, str]) -> bool:
        """Move one period forward or back from the current one."""
        paths = self._require_user("navigate")
        if paths is None:
            return False
        if self.state.pay_info is None or self.state.current_pay_period is None:
            logger.warning("no_current_period", operation="navigate")
            return False

        return await self._open("navigate", self._repository(paths).navigate(
            self.state.current_pay_period,
            self.state.pay_info,
            direction,
            self.state.master_bank_accounts,
            self.state.master_expenses,
        ))

    async def next_period(self) -> bool:
        return await self.navigate(NavigationDirection.NEXT)

    async def previous_period(self) -> bool:
        return await self.navigate(NavigationDirection.PREVIOUS)

    async def reset_current_period(self) -> bool:
        """Delete the current period and its copies, then rebuild it from master data."""
        paths = self._require_user("reset_current_period")
        if paths is None:
            return False
        if self.state.pay_info is None or self.state.current_pay_period is None:
            logger.warning("no_current_period", operation="reset_current_period")
            return False

        return await self._open("reset_current_period", self._repository(paths).reset_period(
            self.state.current_pay_period,
            self.state.pay_info,
            self.state.master_bank_accounts,
            self.state.master_expenses,
        ))

    async def propagate_new_master_data(self) -> bool:
        """
        Copy master records missing from any materialized period into it,
        then refresh the copies of the current period.
        """
        paths = self._require_user("propagate_new_master_data")
        if paths is None:
            return False

        repository = self._repository(paths)
        synchronizer = MasterDataSynchronizer(
            repository,
            audit_logger=self._audit_logger,
            audit_collection=self._audit_collection(),
        )
        result = await synchronizer.propagate_new_master_data(
            self.state.master_bank_accounts,
            self.state.master_expenses,
            correlation_id=create_correlation_id(),
        )
        if not result.success:
            return False

        current = self.state.current_pay_period
        if current is not None and result.records_created:
            try:
                accounts = await repository.list_period_accounts(current.id)
                expenses = await repository.list_period_expenses(current.id)
            except StorageError as e:
                await self._storage_failed("refresh_current_period", e, current.id)
                return False
            self.update_state(pay_period_bank_accounts=accounts, pay_period_expenses=expenses)

        return True

    def current_period_display(self) -> str:
        """e.g. "Jan 15 - Jan 28, 2024", or "No Period Selected"."""
        period = self.state.current_pay_period
        if period is None:
            return NO_PERIOD_SELECTED
        return format_period_range(period.start_date, period.end_date)

    # =========================================================================
    # PERIOD COPIES
    # =========================================================================

    def _period_account(self, account_id: str) -> Optional[PayPeriodBankAccount]:
        return next((a for a in self.state.pay_period_bank_accounts if a.id == account_id), None)

    async def _set_period_account_expenses(
        self,
        paths: UserCollections,
        account: PayPeriodBankAccount,
        expense_ids: list[str],
    ) -> None:
        """Write a period account's expense list and balance, then mirror it. Raises StorageError."""
        updated = account.model_copy(update={"expense_ids": expense_ids})
        updated = updated.model_copy(update={
            "current_balance": current_balance(updated, self.state.pay_period_expenses)
        })
        await self._repository(paths).update_period_account(account.id, {
            "expense_ids": expense_ids,
            "current_balance": str(updated.current_balance),
        })
        self.update_state(
            pay_period_bank_accounts=[
                updated if a.id == account.id else a for a in self.state.pay_period_bank_accounts
            ]
        )

    async def add_expense_to_bank_account(self, account_id: str, expense_id: str) -> bool:
        """Assign a period expense to a period account. No-op if already assigned."""
        paths = self._require_user("add_expense_to_bank_account")
        if paths is None:
            return False

        account = self._period_account(account_id)
        if account is None:
            logger.warning("pay_period_bank_account_not_found", account_id=account_id)
            return False
        if expense_id in account.expense_ids:
            return True

        try:
            await self._set_period_account_expenses(paths, account, [*account.expense_ids, expense_id])
        except StorageError as e:
            await self._storage_failed("add_expense_to_bank_account", e, account_id)
            return False
        return True

    async def remove_expense_from_bank_account(self, account_id: str, expense_id: str) -> bool:
        """Unassign a period expense from a period account. No-op if absent."""
        paths = self._require_user("remove_expense_from_bank_account")
        if paths is None:
            return False

        account = self._period_account(account_id)
        if account is None:
            logger.warning("pay_period_bank_account_not_found", account_id=account_id)
            return False
        if expense_id not in account.expense_ids:
            return True

        remaining = [eid for eid in account.expense_ids if eid != expense_id]
        try:
            await self._set_period_account_expenses(paths, account, remaining)
        except StorageError as e:
            await self._storage_failed("remove_expense_from_bank_account", e, account_id)
            return False
        return True

    def find_pay_period_expense_by_composite_id(self, composite_id: str) -> Optional[PayPeriodExpense]:
        return find_by_composite_id(self.state.pay_period_expenses, composite_id)

    def find_pay_period_bank_account_by_composite_id(self, composite_id: str) -> Optional[PayPeriodBankAccount]:
        return find_by_composite_id(self.state.pay_period_bank_accounts, composite_id)

    async def update_paid_status(self, composite_id: str, is_paid: bool) -> bool:
        """Mark a period expense paid/unpaid. The master's flag is untouched."""
        paths = self._require_user("update_paid_status")
        if paths is None:
            return False

        expense = self.find_pay_period_expense_by_composite_id(composite_id)
        if expense is None:
            logger.warning("pay_period_expense_not_found", composite_id=composite_id)
            return False

        try:
            await self._repository(paths).update_period_expense(expense.id, {"is_paid": is_paid})
        except StorageError as e:
            await self._storage_failed("update_paid_status", e, expense.id)
            return False

        updated = expense.model_copy(update={"is_paid": is_paid})
        self.update_state(
            pay_period_expenses=[
                updated if e.id == expense.id else e for e in self.state.pay_period_expenses
            ]
        )
        await self._audit(AuditEvent(
            event_type=AuditEventType.PERIOD_EXPENSE_PAID_STATUS_UPDATED,
            entity_type="pay_period_expense",
            entity_id=composite_id,
            description=f"{expense.name} marked {'paid' if is_paid else 'unpaid'}",
            details={"is_paid": is_paid},
            is_user_action=True,
        ))
        return True

    async def _period_record_deleted(self, entity_type: str, record_id: str) -> None:
        await self._audit(AuditEvent(
            event_type=AuditEventType.PERIOD_RECORD_DELETED,
            entity_type=entity_type,
            entity_id=record_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} deleted: {record_id}",
            is_user_action=True,
        ))

    async def delete_pay_period_bank_account(self, account_id: str) -> bool:
        paths = self._require_user("delete_pay_period_bank_account")
        if paths is None:
            return False

        try:
            await self._repository(paths).delete_period_account(account_id)
        except StorageError as e:
            await self._storage_failed("delete_pay_period_bank_account", e, account_id)
            return False

        self.update_state(
            pay_period_bank_accounts=[
                a for a in self.state.pay_period_bank_accounts if a.id != account_id
            ]
        )
        await self._period_record_deleted("pay_period_bank_account", account_id)
        return True

    async def delete_pay_period_expense(self, expense_id: str) -> bool:
        """Detach the expense from every period account listing it, then delete it."""
        paths = self._require_user("delete_pay_period_expense")
        if paths is None:
            return False

        try:
            for account in accounts_for_expense(expense_id, list(self.state.pay_period_bank_accounts)):
                remaining = [eid for eid in account.expense_ids if eid != expense_id]
                await self._set_period_account_expenses(paths, account, remaining)
            await self._repository(paths).delete_period_expense(expense_id)
        except StorageError as e:
            await self._storage_failed("delete_pay_period_expense", e, expense_id)
            return False

        self.update_state(
            pay_period_expenses=[e for e in self.state.pay_period_expenses if e.id != expense_id]
        )
        await self._period_record_deleted("pay_period_expense", expense_id)
        return True

    # =========================================================================
    # BALANCES (read-only, current period)
    # =========================================================================

    def get_expenses_for_bank_account(self, account_id: str) -> list[PayPeriodExpense]:
        account = self._period_account(account_id)
        if account is None:
            return []
        return expenses_for_account(account, self.state.pay_period_expenses)

    def get_current_balance(self, account_id: str) -> Decimal:
        """Starting balance plus assigned signed amounts; 0 for an unknown account."""
        account = self._period_account(account_id)
        if account is None:
            return Decimal("0")
        return current_balance(account, self.state.pay_period_expenses)

    def get_bank_accounts_for_expense(self, expense_id: str) -> list[PayPeriodBankAccount]:
        return accounts_for_expense(expense_id, self.state.pay_period_bank_accounts)


def create_document_store(settings: Optional[Settings] = None) -> DocumentStore:
    """
    Build the configured document store.

    Falls back to the in-memory store when the Google Sheets backend is
    selected but cannot be reached.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage

    if storage_settings.backend == "google_sheets":
        try:
            client = GoogleSheetsClient(storage_settings)
            client.get_documents_sheet()
            return GoogleSheetsDocumentStore(client)
        except StorageError as e:
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))

    return InMemoryDocumentStore()


def create_app_components(
    settings: Optional[Settings] = None,
    auth_provider: Optional[AuthProvider] = None,
    clock: Clock = date.today,
) -> PayPlannerStore:
    """
    Factory function to create a wired PayPlannerStore.

    Args:
        settings: Configuration; defaults to get_settings().
        auth_provider: Identity provider; defaults to the in-memory one.
        clock: Source of "today".
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)

    document_store = create_document_store(settings)

    return PayPlannerStore(
        auth_provider=auth_provider or InMemoryAuthProvider(),
        document_store=document_store,
        root_collection=settings.storage.root_collection,
        audit_logger=AuditLogger(document_store),
        persist_audit_events=app_settings.persist_audit_events,
        unknown_auth_error_message=app_settings.unknown_auth_error_message,
        clock=clock,
    )
