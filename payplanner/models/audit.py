"""
Audit Models for the Pay Period Engine

Every significant state change is recorded as an AuditEvent:
- master data added/updated/deleted
- periods created, materialized, reset
- synchronization runs
- sign-in/sign-out and auth failures
- storage failures caught at an operation boundary

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    ACCOUNT_CREATED = "account_created"
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"
    AUTH_FAILED = "auth_failed"

    # Master data
    MASTER_ACCOUNT_ADDED = "master_account_added"
    MASTER_ACCOUNT_UPDATED = "master_account_updated"
    MASTER_ACCOUNT_DELETED = "master_account_deleted"
    MASTER_EXPENSE_ADDED = "master_expense_added"
    MASTER_EXPENSE_UPDATED = "master_expense_updated"
    MASTER_EXPENSE_DELETED = "master_expense_deleted"
    PAY_INFO_SAVED = "pay_info_saved"

    # Periods
    PAY_PERIOD_CREATED = "pay_period_created"
    PAY_PERIOD_MATERIALIZED = "pay_period_materialized"
    PAY_PERIOD_RESET = "pay_period_reset"
    MASTER_DATA_SYNCED = "master_data_synced"

    # Period copies
    PERIOD_EXPENSE_PAID_STATUS_UPDATED = "period_expense_paid_status_updated"
    PERIOD_RECORD_DELETED = "period_record_deleted"

    # Failures
    PRECONDITION_FAILED = "precondition_failed"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    entity_id is a plain string because document ids and period keys
    (ISO start dates) are strings, not UUIDs.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'pay_period', 'master_expense')"
    )
    entity_id: Optional[str] = None

    # Ties together events from one user action (e.g. one sync run)
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_record(self) -> dict:
        """Fields to append to the audit collection of the document store."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.pay_period_created("2024-01-15", "2024-01-28")
        event = AuditEventBuilder.storage_error("add_expense", str(exc))
    """

    @staticmethod
    def master_record_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        name: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {verb}: {name or entity_id}",
            details={"name": name} if name else {},
            is_user_action=True,
        )

    @staticmethod
    def pay_info_saved(frequency: str, start_date: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAY_INFO_SAVED,
            entity_type="pay_info",
            entity_id="main",
            description=f"Pay info saved ({frequency} from {start_date})",
            details={"pay_frequency": frequency, "start_date": start_date},
            is_user_action=True,
        )

    @staticmethod
    def pay_period_created(period_id: str, end_date: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAY_PERIOD_CREATED,
            entity_type="pay_period",
            entity_id=period_id,
            description=f"Pay period created: {period_id} to {end_date}",
            details={"end_date": end_date},
        )

    @staticmethod
    def pay_period_materialized(
        period_id: str,
        accounts_created: int,
        expenses_created: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAY_PERIOD_MATERIALIZED,
            entity_type="pay_period",
            entity_id=period_id,
            description=(
                f"Pay period {period_id} populated with {accounts_created} "
                f"accounts and {expenses_created} expenses"
            ),
            details={
                "accounts_created": accounts_created,
                "expenses_created": expenses_created,
            },
        )

    @staticmethod
    def pay_period_reset(period_id: str, records_deleted: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAY_PERIOD_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="pay_period",
            entity_id=period_id,
            description=f"Pay period {period_id} reset ({records_deleted} copies removed)",
            details={"records_deleted": records_deleted},
            is_user_action=True,
        )

    @staticmethod
    def master_data_synced(
        periods_checked: int,
        accounts_created: int,
        expenses_created: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MASTER_DATA_SYNCED,
            correlation_id=correlation_id,
            description=(
                f"Synchronized {periods_checked} periods "
                f"(+{accounts_created} accounts, +{expenses_created} expenses)"
            ),
            details={
                "periods_checked": periods_checked,
                "accounts_created": accounts_created,
                "expenses_created": expenses_created,
            },
        )

    @staticmethod
    def session_event(
        event_type: AuditEventType,
        uid: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="user",
            entity_id=uid,
            description=event_type.value.replace("_", " ").capitalize(),
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(code: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Authentication failed: {message}",
            details={"code": code},
            error_message=message,
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Storage operation failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
