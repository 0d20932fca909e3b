"""
Audit Models for Ledger Assistant

Refreshes, saves and data-quality problems are recorded as audit events.
This provides:
1. Traceability of every dashboard refresh (one correlation id per cycle)
2. A record of bad upstream data (unparseable dates, unknown categories)
3. Debugging information when the data service fails

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Dashboard refresh cycle
    REFRESH_STARTED = "refresh_started"
    REFRESH_COMPLETED = "refresh_completed"
    REFRESH_FAILED = "refresh_failed"
    REFRESH_SUPERSEDED = "refresh_superseded"

    # Entry
    TRANSACTION_SAVED = "transaction_saved"
    SAVE_FAILED = "save_failed"

    # Data quality
    DATA_QUALITY_ISSUE = "data_quality_issue"

    # Upstream failures
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every refresh cycle and every save creates at least one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'dashboard')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one refresh)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
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

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, ensure_ascii=False) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.refresh_started(filters, correlation_id)
        event = AuditEventBuilder.transaction_saved(tx_id, amount, ...)
    """

    @staticmethod
    def refresh_started(
        year: int,
        month: int,
        report_type: str,
        correlation_id: UUID,
        is_user_action: bool = True,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_STARTED,
            entity_type="dashboard",
            correlation_id=correlation_id,
            description=f"Dashboard refresh started for {year}-{month:02d}",
            details={
                "year": year,
                "month": month,
                "report_type": report_type,
            },
            is_user_action=is_user_action,
        )

    @staticmethod
    def refresh_completed(
        transaction_count: int,
        previous_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_COMPLETED,
            entity_type="dashboard",
            correlation_id=correlation_id,
            description=f"Dashboard refreshed with {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
                "previous_month_count": previous_count,
            },
        )

    @staticmethod
    def refresh_failed(
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="dashboard",
            correlation_id=correlation_id,
            description="Dashboard refresh abandoned; keeping previous view",
            error_message=error_message,
        )

    @staticmethod
    def refresh_superseded(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_SUPERSEDED,
            severity=AuditSeverity.DEBUG,
            entity_type="dashboard",
            correlation_id=correlation_id,
            description="Dashboard refresh cancelled by a newer refresh",
        )

    @staticmethod
    def transaction_saved(
        transaction_id: Optional[str],
        amount: float,
        line_item_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction saved: ${amount:,.2f}",
            details={
                "amount": amount,
                "line_item_count": line_item_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="transaction",
            correlation_id=correlation_id,
            description="Transaction could not be saved",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def data_quality_issue(
        issue: str,
        entity_id: Optional[str],
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_QUALITY_ISSUE,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Data quality issue: {issue}",
            details=details or {},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
