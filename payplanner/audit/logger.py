"""
Audit Logger

DESIGN DECISION: Every significant state change in the engine is logged.
This provides:
1. Traceability of what happened to master data and periods
2. Debugging capability when storage and the in-memory snapshot diverge
3. A history the user can inspect

The audit logger:
- Always writes a structured local log line
- Optionally appends the event to the user's audit collection
- Never breaks the main flow if persisting the event fails
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from payplanner.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from payplanner.services.storage import DocumentStore


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog on top of stdlib logging with JSON output."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level, logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The document store (when a store is given and a collection path
       is supplied for the event)
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        """
        Initialize audit logger.

        Args:
            store: Document store for persistence.
                   If None, only logs locally.
        """
        self._store = store
        self._logger = structlog.get_logger("payplanner.audit")

    async def log(
        self,
        event: AuditEvent,
        collection_path: Optional[str] = None,
    ) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists when a store and collection path are
        both available.

        Returns True if the storage write succeeded (or none was attempted).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._store and collection_path:
            try:
                await self._store.create(collection_path, event.to_record())
                return True
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_master_change(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        name: Optional[str] = None,
        collection_path: Optional[str] = None,
    ) -> None:
        """Log a master account/expense being added, updated or deleted."""
        event = AuditEventBuilder.master_record_changed(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            name=name,
        )
        await self.log(event, collection_path)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
        collection_path: Optional[str] = None,
    ) -> None:
        """Log a storage failure caught at an operation boundary."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            entity_id=entity_id,
            correlation_id=correlation_id,
        )
        await self.log(event, collection_path)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-write operation (e.g. a sync run)
    and pass it through all subsequent events.
    """
    return uuid4()
