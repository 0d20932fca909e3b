"""
Tests for Ledger Assistant models

Test strategy:
1. Unit tests for models and the pure engine
2. Flow tests against the in-memory data service
3. No real API calls in tests (fakes instead of Google Sheets)
"""

import json

import pytest
from pydantic import ValidationError
from uuid import uuid4

from ledger_assistant.models.ledger import (
    Category,
    CreditCard,
    DraftItem,
    FamilyMember,
    Transaction,
    TransactionType,
)
from ledger_assistant.models.report import (
    DateWindow,
    ReportType,
    ViewFilters,
)
from ledger_assistant.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from datetime import date


class TestLedgerModels:
    """Tests for the source record models."""

    def test_transaction_from_wire_row(self):
        """Test a joined transaction row validates, items under their wire name."""
        tx = Transaction.model_validate({
            "id": 42,
            "type": "expense",
            "amount": 120,
            "transaction_date": "2024-03-05T10:00:00Z",
            "transaction_line_items": [
                {"name": "Noodles", "amount": 120, "category_id": "c-food"},
            ],
        })
        assert tx.id == "42"
        assert tx.type == TransactionType.EXPENSE
        assert len(tx.line_items) == 1
        assert tx.line_items[0].quantity == 1

    def test_transaction_null_line_items(self):
        """Test that a null item list becomes empty."""
        tx = Transaction(type="income", amount=10, line_items=None)
        assert tx.line_items == []
        assert not tx.is_card_payment

    def test_transaction_is_frozen(self):
        tx = Transaction(type="expense", amount=10)
        with pytest.raises(ValidationError):
            tx.amount = 20

    def test_credit_card_accepts_card_name(self):
        """Test the card_name column maps to name."""
        card = CreditCard.model_validate({"id": 7, "card_name": "Esun", "billing_day": 25})
        assert card.name == "Esun"
        assert card.id == "7"

    @pytest.mark.parametrize("billing_day", [0, 32])
    def test_credit_card_billing_day_bounds(self, billing_day):
        with pytest.raises(ValidationError):
            CreditCard(id="c", name="x", billing_day=billing_day)

    def test_family_member_null_default(self):
        member = FamilyMember(id="m1", name="Kid", is_default=None)
        assert member.is_default is False

    def test_draft_item_requires_name(self):
        with pytest.raises(ValidationError):
            DraftItem(name="   ", amount=10)


class TestCategory:
    """Tests for the closed category set."""

    def test_canonical_order(self):
        assert [c.label for c in Category] == ["食", "衣", "住", "行", "娛", "樂", "其它"]
        assert Category.FOOD.sort_order < Category.OTHER.sort_order

    def test_presentation_attributes(self):
        assert Category.FOOD.key == "food"
        assert Category.FOOD.color == "orange"
        assert Category.OTHER.color == "secondary"
        assert all(category.icon for category in Category)


class TestReportModels:
    """Tests for the derived report models."""

    def test_billing_report_counts_expenses(self):
        assert ReportType.BILLING.transaction_type == TransactionType.EXPENSE
        assert ReportType.INCOME.transaction_type == TransactionType.INCOME

    def test_view_filters_month_bounds(self):
        with pytest.raises(ValidationError):
            ViewFilters(year=2024, month=13)

    def test_date_window_contains(self):
        window = DateWindow(start=date(2024, 2, 11), end=date(2024, 3, 10))
        assert window.contains(date(2024, 2, 11))
        assert not window.contains(date(2024, 3, 10))
        assert window.contains(date(2024, 3, 10), inclusive_end=True)
        assert window.label() == "2024/02/11 - 2024/03/10"


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.REFRESH_STARTED,
            description="Dashboard refresh started",
        )
        assert event.event_type == AuditEventType.REFRESH_STARTED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_sheets_row(self):
        """Test conversion to a Sheets row keeps non-ASCII details readable."""
        event = AuditEventBuilder.data_quality_issue(
            issue="unknown category",
            entity_id="tx-1",
            details={"category": "其他"},
        )
        row = event.to_sheets_row()
        assert len(row) == 11
        assert row[2] == "data_quality_issue"
        assert row[5] == "tx-1"
        assert json.loads(row[8]) == {"category": "其他"}
        assert "其他" in row[8]

    def test_refresh_events_share_correlation_id(self):
        correlation_id = uuid4()
        started = AuditEventBuilder.refresh_started(2024, 3, "expense", correlation_id)
        failed = AuditEventBuilder.refresh_failed("boom", correlation_id)
        assert started.correlation_id == failed.correlation_id
        assert failed.severity == AuditSeverity.ERROR
        assert started.details["month"] == 3

    def test_transaction_saved_event(self):
        event = AuditEventBuilder.transaction_saved("tx-9", 350.0, 3, uuid4())
        assert event.entity_id == "tx-9"
        assert event.is_user_action
        assert event.to_log_dict()["details"]["line_item_count"] == 3
