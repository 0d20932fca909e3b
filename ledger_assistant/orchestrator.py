"""
Main Orchestrator for Ledger Assistant

This module ties together all the components and defines the
end-to-end flows for:
1. Dashboard refresh (fan-out fetch → compute view → publish)
2. Entry (draft → split → save)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The engine never sees a partial fetch; any failed request abandons
  the whole refresh and the last good view stays on screen
- Only the newest refresh may publish a view
- Every refresh and save is audited under one correlation id

This is the "glue" that keeps the pure engine pure: all I/O, retries and
concurrency live here and in the storage services.
"""

import asyncio
from datetime import date, datetime
from typing import Optional
from uuid import UUID

import structlog

from ledger_assistant.audit import AuditLogger, configure_logging, create_correlation_id
from ledger_assistant.config import get_settings
from ledger_assistant.engine.periods import (
    current_month_window,
    previous_month_window,
    shift_month,
    unparseable_dates,
    unparseable_transactions,
)
from ledger_assistant.engine.splitter import prepare_transaction
from ledger_assistant.engine.view import DEFAULT_MONTHLY_LIMIT, compute_view
from ledger_assistant.models.ledger import Category, Transaction, TransactionDraft
from ledger_assistant.models.report import (
    DEFAULT_LABELS,
    DashboardData,
    DashboardView,
    ReportLabels,
    ReportType,
    ViewFilters,
)
from ledger_assistant.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerService,
    InMemoryLedgerService,
    LedgerDataService,
    StorageError,
)


logger = structlog.get_logger(__name__)


class LedgerError(Exception):
    """Base exception for the ledger flows."""
    pass


class RefreshFailedError(LedgerError):
    """A fetch of the refresh cycle failed; the previous view was kept."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class DashboardRefreshFlow:
    """
    Owns the dashboard's shared state: filters, fetched data and view.

    Flow:
    1. Fan out every read the view needs, concurrently
    2. Wait for all of them (no partial results)
    3. Compute the view with the pure engine
    4. Publish it, unless a newer refresh has started meanwhile

    Overlapping refreshes are serialized by cancel-and-restart: starting
    a refresh cancels the one in flight. The superseded caller gets the
    retained (last published) view back instead of an error.
    """

    def __init__(
        self,
        data_service: LedgerDataService,
        user_id: str,
        audit_logger: Optional[AuditLogger] = None,
        labels: ReportLabels = DEFAULT_LABELS,
        default_monthly_limit: float = DEFAULT_MONTHLY_LIMIT,
        today: Optional[date] = None,
    ):
        self._data_service = data_service
        self._user_id = user_id
        self._audit_logger = audit_logger
        self._labels = labels
        self._default_monthly_limit = default_monthly_limit
        self._today = today

        self._filters: Optional[ViewFilters] = None
        self._data: Optional[DashboardData] = None
        self._view: Optional[DashboardView] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def view(self) -> Optional[DashboardView]:
        """The last successfully published view, if any."""
        return self._view

    @property
    def filters(self) -> Optional[ViewFilters]:
        return self._filters

    def _default_filters(self) -> ViewFilters:
        today = self._today or date.today()
        return ViewFilters(year=today.year, month=today.month)

    async def _fetch(self, filters: ViewFilters) -> DashboardData:
        service = self._data_service
        user_id = self._user_id
        current = current_month_window(filters.year, filters.month)
        previous = previous_month_window(filters.year, filters.month)

        (
            transactions,
            previous_transactions,
            categories,
            credit_cards,
            family_members,
            profile,
            transaction_dates,
        ) = await asyncio.gather(
            service.fetch_transactions(user_id, current.start, current.end),
            service.fetch_transactions(user_id, previous.start, previous.end),
            service.fetch_categories(),
            service.fetch_credit_cards(user_id),
            service.fetch_family_members(user_id),
            service.fetch_profile(user_id),
            service.fetch_transaction_dates(user_id),
        )

        return DashboardData(
            transactions=transactions,
            previous_transactions=previous_transactions,
            categories=categories,
            credit_cards=credit_cards,
            family_members=family_members,
            profile=profile,
            transaction_dates=transaction_dates,
        )

    def _compute(self, data: DashboardData, filters: ViewFilters) -> DashboardView:
        return compute_view(
            data,
            filters,
            labels=self._labels,
            default_monthly_limit=self._default_monthly_limit,
            today=self._today,
        )

    async def _report_bad_dates(self, data: DashboardData, correlation_id: UUID) -> None:
        """One data-quality event per refresh for dates the engine had to skip."""
        transactions = unparseable_transactions(
            list(data.transactions) + list(data.previous_transactions)
        )
        raw_dates = unparseable_dates(data.transaction_dates)
        if not (transactions or raw_dates) or not self._audit_logger:
            return
        await self._audit_logger.log_data_quality_issue(
            issue="unparseable transaction dates",
            entity_id=None,
            details={
                "transaction_ids": [tx.id for tx in transactions],
                "raw_dates": raw_dates,
            },
            correlation_id=correlation_id,
        )

    async def _run(self, filters: ViewFilters, correlation_id: UUID) -> DashboardView:
        if self._audit_logger:
            await self._audit_logger.log_refresh_started(
                year=filters.year,
                month=filters.month,
                report_type=filters.report_type.value,
                correlation_id=correlation_id,
            )

        try:
            data = await self._fetch(filters)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="ledger_data_service",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                await self._audit_logger.log_refresh_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise RefreshFailedError(f"Dashboard refresh failed: {e}", cause=e) from e

        view = self._compute(data, filters)

        # No await between the fetch and here, so a cancelled refresh never publishes
        self._filters = filters
        self._data = data
        self._view = view

        await self._report_bad_dates(data, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_refresh_completed(
                transaction_count=len(data.transactions),
                previous_count=len(data.previous_transactions),
                correlation_id=correlation_id,
            )
        return view

    async def refresh(
        self,
        filters: Optional[ViewFilters] = None,
    ) -> Optional[DashboardView]:
        """
        Fetch everything for `filters` (default: current filters) and publish.

        Returns:
            The new view, or the retained view when superseded by a newer
            refresh (None if nothing was ever published)

        Raises:
            RefreshFailedError: If any fetch failed; the previous view is kept
        """
        filters = filters or self._filters or self._default_filters()
        correlation_id = create_correlation_id()

        if self._task is not None and not self._task.done():
            self._task.cancel()

        task = asyncio.ensure_future(self._run(filters, correlation_id))
        self._task = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._task is task:
                # Our own caller was cancelled
                raise
            logger.debug("refresh_superseded", correlation_id=str(correlation_id))
            if self._audit_logger:
                await self._audit_logger.log_refresh_superseded(correlation_id)
            return self._view

    # =========================================================================
    # FILTER CHANGES
    # =========================================================================

    def _recompute(self, **changes) -> DashboardView:
        if self._data is None or self._filters is None:
            raise LedgerError("Dashboard has no data yet; refresh first")
        filters = self._filters.model_copy(update=changes)
        view = self._compute(self._data, filters)
        self._filters = filters
        self._view = view
        return view

    def select_category(self, category: Optional[Category]) -> DashboardView:
        """Filter headline and timeline by `category` (None clears). No refetch."""
        return self._recompute(selected_category=category)

    def set_report_type(self, report_type: ReportType) -> DashboardView:
        """Switch the expense/income/billing tab. No refetch."""
        return self._recompute(report_type=ReportType(report_type))

    async def set_period(self, year: int, month: int) -> Optional[DashboardView]:
        """Navigate to another month; refetches."""
        base = self._filters or self._default_filters()
        filters = ViewFilters(
            year=year,
            month=month,
            report_type=base.report_type,
            selected_category=base.selected_category,
        )
        return await self.refresh(filters)

    async def previous_month(self) -> Optional[DashboardView]:
        base = self._filters or self._default_filters()
        year, month = shift_month(base.year, base.month, -1)
        return await self.set_period(year, month)

    async def next_month(self) -> Optional[DashboardView]:
        base = self._filters or self._default_filters()
        year, month = shift_month(base.year, base.month, 1)
        return await self.set_period(year, month)


class RecordEntryFlow:
    """
    Saves a confirmed entry draft.

    Flow:
    1. Load family members (for payer names and the default payer)
    2. Split every item between its payers
    3. Persist the transaction with its line items
    4. Audit
    """

    def __init__(
        self,
        data_service: LedgerDataService,
        user_id: str,
        audit_logger: Optional[AuditLogger] = None,
        labels: ReportLabels = DEFAULT_LABELS,
    ):
        self._data_service = data_service
        self._user_id = user_id
        self._audit_logger = audit_logger
        self._labels = labels

    async def save_draft(
        self,
        draft: TransactionDraft,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Split and save `draft`.

        Raises:
            LedgerError: If the draft has no items
            StorageError: If the data service rejects the save
        """
        correlation_id = correlation_id or create_correlation_id()

        if not draft.items:
            raise LedgerError("Cannot save an entry without items")
        if not draft.user_id:
            draft = draft.model_copy(update={"user_id": self._user_id})

        members = await self._data_service.fetch_family_members(self._user_id)
        transaction = prepare_transaction(draft, members, self._labels, now)

        try:
            stored = await self._data_service.create_transaction(transaction)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_saved(
                transaction_id=stored.id,
                amount=stored.amount,
                line_item_count=len(stored.line_items),
                correlation_id=correlation_id,
            )
        return stored


def create_app_components(
    use_storage: bool = True,
    user_id: Optional[str] = None,
) -> tuple[DashboardRefreshFlow, RecordEntryFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run against an empty in-memory ledger.
        user_id: Ledger owner; defaults to AppSettings.default_user_id

    Returns:
        (refresh_flow, entry_flow, sheets_client)
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)
    labels = settings.labels.to_labels()
    user_id = user_id or app_settings.default_user_id

    sheets_client = None
    data_service: LedgerDataService = InMemoryLedgerService()
    audit_logger = AuditLogger()  # Local-only logging

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            data_service = GoogleSheetsLedgerService(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None

    logger.info(
        "app_components_created",
        environment=app_settings.app_environment,
        storage="google_sheets" if sheets_client else "memory",
    )

    refresh_flow = DashboardRefreshFlow(
        data_service=data_service,
        user_id=user_id,
        audit_logger=audit_logger,
        labels=labels,
        default_monthly_limit=app_settings.default_monthly_limit,
    )
    entry_flow = RecordEntryFlow(
        data_service=data_service,
        user_id=user_id,
        audit_logger=audit_logger,
        labels=labels,
    )

    return refresh_flow, entry_flow, sheets_client
