"""
Shared fixtures for the Pay Planner tests.

Nothing here touches a network: the in-memory document store and auth
provider stand in for the real collaborators, and FailingDocumentStore
simulates remote failures.
"""

from datetime import date
from decimal import Decimal

import pytest

from payplanner.models import (
    ExpenseFrequency,
    ExpenseType,
    MasterBankAccount,
    MasterExpense,
    PayFrequency,
    PayInfo,
)
from payplanner.orchestrator import PayPlannerStore
from payplanner.services.auth import InMemoryAuthProvider
from payplanner.services.storage import InMemoryDocumentStore, StorageError, UserCollections


TODAY = date(2024, 1, 20)
USER_EMAIL = "saver@example.com"
USER_PASSWORD = "hunter22"


class FailingDocumentStore(InMemoryDocumentStore):
    """In-memory store whose chosen operations raise StorageError."""

    def __init__(self):
        super().__init__()
        self.failing: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failing:
            raise StorageError(f"simulated {operation} failure")

    async def list_all(self, collection_path):
        self._maybe_fail("list_all")
        return await super().list_all(collection_path)

    async def create(self, collection_path, fields):
        self._maybe_fail("create")
        return await super().create(collection_path, fields)

    async def get(self, collection_path, document_id):
        self._maybe_fail("get")
        return await super().get(collection_path, document_id)

    async def update(self, collection_path, document_id, fields):
        self._maybe_fail("update")
        return await super().update(collection_path, document_id, fields)

    async def delete(self, collection_path, document_id):
        self._maybe_fail("delete")
        return await super().delete(collection_path, document_id)

    async def set(self, collection_path, document_id, fields):
        self._maybe_fail("set")
        return await super().set(collection_path, document_id, fields)


@pytest.fixture
def store():
    return FailingDocumentStore()


@pytest.fixture
def auth():
    return InMemoryAuthProvider()


@pytest.fixture
def planner(store, auth):
    return PayPlannerStore(auth_provider=auth, document_store=store, clock=lambda: TODAY)


@pytest.fixture
def collections():
    return UserCollections("userData", "user-1")


@pytest.fixture
def biweekly_pay_info():
    return PayInfo(
        user_uid="user-1",
        take_home_pay=Decimal("2500.00"),
        pay_frequency=PayFrequency.BI_WEEKLY,
        start_date=date(2024, 1, 1),
    )


def make_expense(
    expense_id="exp-1",
    name="Rent",
    amount="-1200.00",
    expense_type=ExpenseType.WITHDRAWAL,
    due_date=date(2024, 1, 20),
    frequency=ExpenseFrequency.MONTHLY,
    next_due_date=None,
):
    return MasterExpense(
        id=expense_id,
        user_uid="user-1",
        name=name,
        amount=Decimal(amount),
        type=expense_type,
        due_date=due_date,
        frequency=frequency,
        next_due_date=next_due_date,
    )


def make_account(account_id="acct-1", name="Checking", starting_balance="1000.00", expense_ids=()):
    return MasterBankAccount(
        id=account_id,
        user_uid="user-1",
        name=name,
        starting_balance=Decimal(starting_balance),
        expense_ids=list(expense_ids),
    )


async def sign_up(planner: PayPlannerStore) -> bool:
    planner.set_username(USER_EMAIL)
    planner.set_password(USER_PASSWORD)
    planner.set_confirm_password(USER_PASSWORD)
    return await planner.create_account()
