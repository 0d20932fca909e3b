"""
Storage Services Package

Provides the abstract data-service interface and its implementations.
Google Sheets is the production backend; the in-memory service backs
the tests.
"""

from ledger_assistant.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerDataService,
    NotFoundError,
    StorageError,
)
from ledger_assistant.services.storage.memory import InMemoryLedgerService
from ledger_assistant.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerService,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerDataService",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerService",
    "InMemoryLedgerService",
]
