"""
Abstract Storage Interface

DESIGN DECISION: The reporting engine never talks to a backend. The
refresh flow asks a LedgerDataService for plain records, then hands them
to the pure engine. This allows us to:
1. Keep Google Sheets (or swap in a real database later)
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is read-mostly: the dashboard only fetches, and the entry
flow only appends one transaction at a time.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from ledger_assistant.models.audit import AuditEvent
from ledger_assistant.models.ledger import (
    CategoryRecord,
    CreditCard,
    FamilyMember,
    Profile,
    Transaction,
)


class LedgerDataService(ABC):
    """
    Abstract interface for the ledger's data service.

    Any storage implementation (Google Sheets, in-memory, ...) must
    implement these methods. Fetches return validated models; rows that
    cannot be validated are skipped by the implementation.
    """

    @abstractmethod
    async def fetch_transactions(
        self,
        user_id: str,
        start: date,
        end: date,
    ) -> list[Transaction]:
        """
        Transactions of `user_id` dated in [start, end), with line items.

        Args:
            user_id: Owner of the transactions
            start: First calendar day included
            end: First calendar day excluded

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def fetch_categories(self) -> list[CategoryRecord]:
        """All category records (shared by every user)."""
        pass

    @abstractmethod
    async def fetch_credit_cards(self, user_id: str) -> list[CreditCard]:
        pass

    @abstractmethod
    async def fetch_family_members(self, user_id: str) -> list[FamilyMember]:
        pass

    @abstractmethod
    async def fetch_profile(self, user_id: str) -> Optional[Profile]:
        """The user's profile, or None when there is none."""
        pass

    @abstractmethod
    async def fetch_transaction_dates(self, user_id: str) -> list[str]:
        """
        Raw `transaction_date` values of every transaction of the user.

        Used only to offer the years that have data.
        """
        pass

    @abstractmethod
    async def create_transaction(self, transaction: Transaction) -> Transaction:
        """
        Persist a transaction and its line items.

        Returns:
            The stored transaction, with ids assigned

        Raises:
            DuplicateError: If a transaction with the same id exists
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one refresh cycle).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
