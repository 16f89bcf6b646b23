"""
Tests for the audit logger and the state event bus.
"""

import pytest

from payplanner.audit import AuditLogger, create_correlation_id
from payplanner.models import AuditEventBuilder, AuditEventType
from payplanner.services.storage import InMemoryDocumentStore
from payplanner.state import AppState, StateEventBus

from tests.conftest import FailingDocumentStore


class TestAuditLogger:
    """Tests for AuditLogger persistence."""

    @pytest.mark.asyncio
    async def test_local_only_without_collection(self):
        store = InMemoryDocumentStore()
        logger = AuditLogger(store)

        assert await logger.log(AuditEventBuilder.pay_period_created("2024-01-15", "2024-01-28")) is True
        assert store.count("userData/u/auditLog") == 0

    @pytest.mark.asyncio
    async def test_persists_to_collection(self):
        store = InMemoryDocumentStore()
        logger = AuditLogger(store)

        await logger.log_master_change(
            AuditEventType.MASTER_ACCOUNT_ADDED, "master_bank_account", "a1",
            name="Checking", collection_path="userData/u/auditLog",
        )

        records = await store.list_all("userData/u/auditLog")
        assert records[0]["event_type"] == "master_account_added"
        assert records[0]["entity_id"] == "a1"

    @pytest.mark.asyncio
    async def test_persistence_failure_never_raises(self):
        store = FailingDocumentStore()
        store.failing.add("create")
        logger = AuditLogger(store)

        ok = await logger.log(
            AuditEventBuilder.storage_error("save_pay_info", "boom"),
            "userData/u/auditLog",
        )

        assert ok is False

    @pytest.mark.asyncio
    async def test_storage_error_event_keeps_correlation(self):
        store = InMemoryDocumentStore()
        logger = AuditLogger(store)
        correlation_id = create_correlation_id()

        await logger.log_storage_error(
            "propagate_new_master_data", "boom",
            correlation_id=correlation_id, collection_path="log",
        )

        record = (await store.list_all("log"))[0]
        assert record["correlation_id"] == str(correlation_id)
        assert record["severity"] == "error"


class TestStateEventBus:
    """Tests for the publish/subscribe bus."""

    def test_publish_without_subscribers(self):
        assert StateEventBus().publish("anything", {}) == []

    def test_handlers_called_in_order_with_results(self):
        bus = StateEventBus()
        bus.subscribe("changed", lambda event: "first")
        bus.subscribe("changed", lambda event: event.payload["value"])

        assert bus.publish("changed", {"value": 42}) == ["first", 42]

    def test_unsubscribe(self):
        bus = StateEventBus()
        calls = []
        handler = calls.append
        bus.subscribe("changed", handler)
        bus.unsubscribe("changed", handler)
        bus.unsubscribe("never-subscribed", handler)

        bus.publish("changed", {})
        assert calls == []


class TestAppState:

    def test_clear_user_data_keeps_login_form(self):
        state = AppState(username="me@example.com", login_error="oops", loading=True)
        state.master_expenses = []
        state.new_expense_form_open = True

        state.clear_user_data()

        assert state.username == "me@example.com"
        assert state.login_error == "oops"
        assert state.loading is False
        assert state.new_expense_form_open is False
