"""Services package."""

from ledger_assistant.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerService,
    InMemoryLedgerService,
    LedgerDataService,
    NotFoundError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerService",
    "InMemoryLedgerService",
    "LedgerDataService",
    "NotFoundError",
    "StorageError",
]
