"""
Tests for the Pay Planner data models

Test strategy:
1. Unit tests for individual components (models, scheduling, balances)
2. Integration tests for flows against the in-memory store
3. No real API calls in tests
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from payplanner.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    ExpenseFrequency,
    ExpenseType,
    MasterBankAccount,
    MasterExpense,
    PayFrequency,
    PayInfo,
    PayPeriod,
    PayPeriodExpense,
    SyncResult,
    make_composite_id,
    to_calendar_date,
)


class TestCalendarDates:
    """Tests for calendar date normalization."""

    def test_plain_iso_date(self):
        assert to_calendar_date("2024-01-15") == date(2024, 1, 15)

    def test_timestamp_keeps_its_calendar_day(self):
        """The date part of a UTC timestamp is used as-is, never shifted."""
        assert to_calendar_date("2024-01-15T23:30:00.000Z") == date(2024, 1, 15)
        assert to_calendar_date("2024-01-15T00:00:00-08:00") == date(2024, 1, 15)

    def test_datetime_reduced_to_date(self):
        assert to_calendar_date(datetime(2024, 1, 15, 18, 0, tzinfo=timezone.utc)) == date(2024, 1, 15)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_calendar_date("15/01/2024")
        with pytest.raises(TypeError):
            to_calendar_date(20240115)

    def test_model_fields_accept_timestamps(self):
        period = PayPeriod(
            start_date="2024-01-15T05:00:00.000Z",
            end_date="2024-01-28T05:00:00.000Z",
            year=2024,
        )
        assert period.start_date == date(2024, 1, 15)
        assert period.end_date == date(2024, 1, 28)


class TestMasterModels:
    """Tests for master data models."""

    def test_withdrawal_must_be_negative(self):
        with pytest.raises(ValidationError, match="Withdrawal amounts"):
            MasterExpense(
                name="Rent",
                amount=Decimal("1200"),
                type=ExpenseType.WITHDRAWAL,
                due_date=date(2024, 1, 1),
                frequency=ExpenseFrequency.MONTHLY,
            )

    def test_deposit_must_be_positive(self):
        with pytest.raises(ValidationError, match="Deposit amounts"):
            MasterExpense(
                name="Refund",
                amount=Decimal("-20"),
                type="deposit",
                due_date=date(2024, 1, 1),
                frequency="one-time",
            )

    def test_every_30_days_frequency_value(self):
        expense = MasterExpense(
            name="Gym",
            amount=Decimal("-30"),
            type="withdrawal",
            due_date="2024-01-05",
            frequency="every 30 days",
        )
        assert expense.frequency == ExpenseFrequency.EVERY_30_DAYS

    def test_name_whitespace_stripped(self):
        account = MasterBankAccount(name="  Checking  ")
        assert account.name == "Checking"
        assert account.expense_ids == []
        assert account.color == "#000000"

    def test_to_record_excludes_id_and_is_json_safe(self):
        expense = MasterExpense(
            id="abc",
            name="Rent",
            amount=Decimal("-1200.50"),
            type="withdrawal",
            due_date=date(2024, 1, 1),
            frequency="monthly",
        )
        record = expense.to_record()

        assert "id" not in record
        assert record["due_date"] == "2024-01-01"
        assert record["amount"] == "-1200.50"
        assert record["type"] == "withdrawal"

    def test_from_record_round_trip(self):
        account = MasterBankAccount(name="Savings", starting_balance=Decimal("50"), expense_ids=["e1"])
        rebuilt = MasterBankAccount.from_record({**account.to_record(), "id": "doc-1"})

        assert rebuilt.id == "doc-1"
        assert rebuilt.starting_balance == Decimal("50")
        assert rebuilt.expense_ids == ["e1"]

    def test_pay_info_defaults_to_singleton_id(self):
        pay_info = PayInfo(take_home_pay=Decimal("2000"), pay_frequency="weekly", start_date="2024-01-01")
        assert pay_info.id == "main"
        assert pay_info.pay_frequency == PayFrequency.WEEKLY

    def test_pay_info_rejects_negative_pay(self):
        with pytest.raises(ValidationError):
            PayInfo(take_home_pay=Decimal("-1"), pay_frequency="weekly", start_date="2024-01-01")


class TestPeriodModels:
    """Tests for pay periods and period-scoped copies."""

    def test_period_end_before_start_rejected(self):
        with pytest.raises(ValidationError, match="Period end cannot be before period start"):
            PayPeriod(start_date=date(2024, 1, 15), end_date=date(2024, 1, 14), year=2024)

    def test_period_starts_unmaterialized(self):
        period = PayPeriod(start_date=date(2024, 1, 15), end_date=date(2024, 1, 28), year=2024)
        assert period.is_materialized is False
        assert period.is_active is True
        assert period.key == "2024-01-15"

    def test_composite_id(self):
        assert make_composite_id("2024-01-15", "exp-1") == "2024-01-15-exp-1"

    def test_period_expense_sign_checked(self):
        with pytest.raises(ValidationError):
            PayPeriodExpense(
                pay_period_id="2024-01-15",
                master_expense_id="exp-1",
                composite_id="2024-01-15-exp-1",
                name="Paycheck",
                amount=Decimal("-5"),
                type="deposit",
                next_due_date=date(2024, 1, 19),
                frequency="bi-weekly",
            )

    def test_sync_result_records_created(self):
        result = SyncResult(success=True, periods_checked=2, accounts_created=1, expenses_created=3)
        assert result.records_created == 4


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.PAY_PERIOD_CREATED,
            entity_id="2024-01-15",
            description="Test event",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.is_user_action is False

    def test_audit_event_to_log_dict(self):
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="boom",
        )
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "storage_error"
        assert log_dict["severity"] == "error"
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_audit_event_to_record_is_json_safe(self):
        event = AuditEventBuilder.pay_period_reset("2024-01-15", 5)
        record = event.to_record()

        assert isinstance(record["event_id"], str)
        assert record["details"] == {"records_deleted": 5}
        assert record["severity"] == "warning"

    def test_builder_master_record_changed(self):
        event = AuditEventBuilder.master_record_changed(
            AuditEventType.MASTER_EXPENSE_ADDED, "master_expense", "exp-1", name="Rent"
        )
        assert event.description == "Master expense added: Rent"
        assert event.is_user_action is True

    def test_builder_materialized(self):
        event = AuditEventBuilder.pay_period_materialized("2024-01-15", 2, 3)
        assert event.details == {"accounts_created": 2, "expenses_created": 3}
        assert event.entity_type == "pay_period"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
