"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the ledger's backend because:
1. The family can read and fix their data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

Each table of the ledger is one worksheet whose header row holds the
wire field names (transaction_date, category_id, billing_day, ...), so a
row dict validates straight into the pydantic models.

TRADEOFFS:
- Not suitable for high-volume data (fine for a household ledger)
- No transactions (the transaction row is appended before its items)
- Limited query capabilities (we filter and join in Python)
"""

import asyncio
import json
from datetime import date, datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from ledger_assistant.config import get_settings
from ledger_assistant.config.settings import GoogleSheetsSettings
from ledger_assistant.engine.categories import normalize_id
from ledger_assistant.engine.periods import transaction_day
from ledger_assistant.models.audit import AuditEvent, AuditEventType, AuditSeverity
from ledger_assistant.models.ledger import (
    CategoryRecord,
    CreditCard,
    FamilyMember,
    Profile,
    Transaction,
)
from ledger_assistant.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerDataService,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Header rows, one per worksheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "account_id",
    "credit_card_id",
    "type",
    "amount",
    "note",
    "transaction_date",
    "receipt_url",
]

LINE_ITEM_COLUMNS = [
    "id",
    "transaction_id",
    "name",
    "title",
    "amount",
    "quantity",
    "category_id",
    "family_member_id",
    "payer_name",
]

CATEGORY_COLUMNS = ["id", "name", "icon", "color"]
CREDIT_CARD_COLUMNS = ["id", "user_id", "card_name", "billing_day"]
FAMILY_MEMBER_COLUMNS = ["id", "user_id", "name", "is_default"]
PROFILE_COLUMNS = ["id", "username", "monthly_limit"]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

_SHEET_BOOLEANS = {"TRUE": True, "FALSE": False}


def _clean_row(row: dict[str, Any]) -> dict[str, Any]:
    """
    Drop blank cells and turn Sheets' TRUE/FALSE into booleans.

    A blank cell means "no value", so the model default applies.
    """
    cleaned = {}
    for key, value in row.items():
        if value == "" or value is None:
            continue
        if isinstance(value, str) and value.upper() in _SHEET_BOOLEANS:
            value = _SHEET_BOOLEANS[value.upper()]
        cleaned[key] = value
    return cleaned


def _to_row(model: BaseModel, columns: list[str]) -> list:
    data = model.model_dump(mode="json")
    return ["" if data.get(column) is None else data[column] for column in columns]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise NotFoundError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row when missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_records(self, title: str, columns: list[str]) -> list[dict[str, Any]]:
        """All data rows of a worksheet as header-keyed dicts."""
        return self.get_sheet(title, columns).get_all_records()

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsLedgerService(LedgerDataService):
    """
    Google Sheets implementation of the ledger data service.

    Rows that fail validation are skipped and logged; one bad row never
    takes the dashboard down.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _validated(self, model: type[BaseModel], rows: list[dict], table: str) -> list:
        records = []
        for row in rows:
            try:
                records.append(model.model_validate(_clean_row(row)))
            except ValidationError as e:
                logger.warning(
                    "malformed_row_skipped",
                    table=table,
                    row_id=row.get("id"),
                    errors=e.error_count(),
                )
        return records

    def _rows_for_user(self, title: str, columns: list[str], user_id: str) -> list[dict]:
        key = normalize_id(user_id)
        return [
            row
            for row in self._client.get_records(title, columns)
            if normalize_id(str(row.get("user_id", ""))) == key
        ]

    def _line_items_by_transaction(self) -> dict[str, list[dict]]:
        settings = self._client.settings
        grouped: dict[str, list[dict]] = {}
        for row in self._client.get_records(
            settings.line_items_sheet_name, LINE_ITEM_COLUMNS
        ):
            key = normalize_id(str(row.get("transaction_id", "")))
            if key:
                grouped.setdefault(key, []).append(row)
        return grouped

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_transactions(
        self,
        user_id: str,
        start: date,
        end: date,
    ) -> list[Transaction]:
        """Transactions of the user dated in [start, end), items joined."""
        try:
            settings = self._client.settings
            rows, items = await asyncio.gather(
                asyncio.to_thread(
                    self._rows_for_user,
                    settings.transactions_sheet_name,
                    TRANSACTION_COLUMNS,
                    user_id,
                ),
                asyncio.to_thread(self._line_items_by_transaction),
            )

            in_window = []
            for row in rows:
                day = transaction_day(row.get("transaction_date"))
                if day is None or not (start <= day < end):
                    continue
                row = dict(row)
                row["line_items"] = [
                    _clean_row(item)
                    for item in items.get(normalize_id(str(row.get("id", ""))), [])
                ]
                in_window.append(row)

            return self._validated(Transaction, in_window, "transactions")
        except Exception as e:
            raise StorageError(f"Failed to fetch transactions: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_categories(self) -> list[CategoryRecord]:
        try:
            rows = await asyncio.to_thread(
                self._client.get_records,
                self._client.settings.categories_sheet_name,
                CATEGORY_COLUMNS,
            )
            return self._validated(CategoryRecord, rows, "categories")
        except Exception as e:
            raise StorageError(f"Failed to fetch categories: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_credit_cards(self, user_id: str) -> list[CreditCard]:
        try:
            rows = await asyncio.to_thread(
                self._rows_for_user,
                self._client.settings.credit_cards_sheet_name,
                CREDIT_CARD_COLUMNS,
                user_id,
            )
            return self._validated(CreditCard, rows, "credit_cards")
        except Exception as e:
            raise StorageError(f"Failed to fetch credit cards: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_family_members(self, user_id: str) -> list[FamilyMember]:
        try:
            rows = await asyncio.to_thread(
                self._rows_for_user,
                self._client.settings.family_members_sheet_name,
                FAMILY_MEMBER_COLUMNS,
                user_id,
            )
            return self._validated(FamilyMember, rows, "family_members")
        except Exception as e:
            raise StorageError(f"Failed to fetch family members: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_profile(self, user_id: str) -> Optional[Profile]:
        try:
            key = normalize_id(user_id)
            records = await asyncio.to_thread(
                self._client.get_records,
                self._client.settings.profiles_sheet_name,
                PROFILE_COLUMNS,
            )
            rows = [
                row
                for row in records
                if normalize_id(str(row.get("id", ""))) == key
            ]
            profiles = self._validated(Profile, rows, "profiles")
            return profiles[0] if profiles else None
        except Exception as e:
            raise StorageError(f"Failed to fetch profile: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_transaction_dates(self, user_id: str) -> list[str]:
        try:
            rows = await asyncio.to_thread(
                self._rows_for_user,
                self._client.settings.transactions_sheet_name,
                TRANSACTION_COLUMNS,
                user_id,
            )
            return [
                str(row["transaction_date"])
                for row in rows
                if row.get("transaction_date")
            ]
        except Exception as e:
            raise StorageError(f"Failed to fetch transaction dates: {e}")

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        """
        Append the transaction row, then its line item rows.

        Not retried: a blind retry after a partial append would duplicate
        the transaction.
        """
        try:
            return await asyncio.to_thread(self._append_transaction, transaction)
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    def _append_transaction(self, transaction: Transaction) -> Transaction:
        settings = self._client.settings
        sheet = self._client.get_sheet(
            settings.transactions_sheet_name, TRANSACTION_COLUMNS
        )
        transaction_id = transaction.id or str(uuid4())
        existing = {
            normalize_id(str(row.get("id", "")))
            for row in sheet.get_all_records()
        }
        if normalize_id(transaction_id) in existing:
            raise DuplicateError(f"Transaction already exists: {transaction_id}")

        line_items = [
            item.model_copy(
                update={
                    "id": item.id or str(uuid4()),
                    "transaction_id": transaction_id,
                }
            )
            for item in transaction.line_items
        ]
        stored = transaction.model_copy(
            update={"id": transaction_id, "line_items": line_items}
        )

        sheet.append_row(
            _to_row(stored, TRANSACTION_COLUMNS), value_input_option="RAW"
        )
        if line_items:
            items_sheet = self._client.get_sheet(
                settings.line_items_sheet_name, LINE_ITEM_COLUMNS
            )
            items_sheet.append_rows(
                [_to_row(item, LINE_ITEM_COLUMNS) for item in line_items],
                value_input_option="RAW",
            )
        return stored


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        timestamp = datetime.fromisoformat(safe_get(1))
        if timestamp.tzinfo is None:
            # Rows written before timestamps carried an offset
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=timestamp,
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        events = []
        for row in self._client.get_audit_sheet().get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError):
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event; failures are reported, never raised."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            logger.warning("audit_event_not_persisted", error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [
                event
                for event in self._all_events()
                if event.correlation_id == correlation_id
            ]
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._all_events()
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
