"""
Audit Logger

DESIGN DECISION: Every dashboard refresh and every save is logged under
one correlation id. This provides:
1. Traceability of a refresh cycle from start to completion or failure
2. A trail of upstream data problems the engine tolerated
3. Debugging information when the data service misbehaves

The audit logger:
- Is async so it composes with the refresh flow
- Gracefully handles failures (a broken audit sheet never breaks the dashboard)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from ledger_assistant.models.audit import AuditEvent, AuditEventBuilder
from ledger_assistant.services.storage import AuditStorageInterface


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route the JSON lines to stderr at `log_level` (AppSettings.log_level)."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    # =========================================================================
    # REFRESH CYCLE
    # =========================================================================

    async def log_refresh_started(
        self,
        year: int,
        month: int,
        report_type: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.refresh_started(
            year=year,
            month=month,
            report_type=report_type,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_refresh_completed(
        self,
        transaction_count: int,
        previous_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.refresh_completed(
            transaction_count=transaction_count,
            previous_count=previous_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_refresh_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.refresh_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_refresh_superseded(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.refresh_superseded(correlation_id))

    # =========================================================================
    # ENTRY
    # =========================================================================

    async def log_transaction_saved(
        self,
        transaction_id: Optional[str],
        amount: float,
        line_item_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a successfully persisted transaction."""
        event = AuditEventBuilder.transaction_saved(
            transaction_id=transaction_id,
            amount=amount,
            line_item_count=line_item_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_save_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.save_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    # =========================================================================
    # ERRORS
    # =========================================================================

    async def log_data_quality_issue(
        self,
        issue: str,
        entity_id: Optional[str],
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log upstream data the engine had to tolerate."""
        event = AuditEventBuilder.data_quality_issue(
            issue=issue,
            entity_id=entity_id,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a refresh cycle or a save.
    Pass it through all subsequent operations.
    """
    return uuid4()
