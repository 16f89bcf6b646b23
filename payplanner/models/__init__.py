"""
Data Models Package

Pydantic models for master data, pay periods, period-scoped copies and
audit events. Everything read from or written to the document store goes
through these schemas.
"""

from payplanner.models.dates import CalendarDate, to_calendar_date
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
    SyncResult,
    make_composite_id,
)
from payplanner.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Dates
    "CalendarDate",
    "to_calendar_date",
    # Enums
    "ExpenseFrequency",
    "ExpenseType",
    "NavigationDirection",
    "PayFrequency",
    # Finance models
    "PAY_INFO_DOCUMENT_ID",
    "MasterBankAccount",
    "MasterExpense",
    "PayInfo",
    "PayPeriod",
    "PayPeriodBankAccount",
    "PayPeriodExpense",
    "SyncResult",
    "make_composite_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
