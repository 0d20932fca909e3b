"""
Shared fixtures for the ledger tests.

Reference data mirrors a small household: a categories table with one
legacy "其他" spelling, one credit card and two family members.
"""

import pytest

from ledger_assistant.models.ledger import (
    CategoryRecord,
    CreditCard,
    FamilyMember,
    Transaction,
)


@pytest.fixture
def category_records() -> list[CategoryRecord]:
    return [
        CategoryRecord(id="c-food", name="食"),
        CategoryRecord(id="c-clothing", name="衣"),
        CategoryRecord(id="c-transport", name="行"),
        CategoryRecord(id="c-other", name="其他"),
    ]


@pytest.fixture
def credit_cards() -> list[CreditCard]:
    return [CreditCard(id="card-1", card_name="Cathay", billing_day=10)]


@pytest.fixture
def family_members() -> list[FamilyMember]:
    return [
        FamilyMember(id="m-dad", name="Dad", is_default=True),
        FamilyMember(id="m-mom", name="Mom"),
    ]


@pytest.fixture
def make_tx():
    """Factory for expense transactions with (category_id, amount) items."""
    counter = {"n": 0}

    def _make(
        amount,
        transaction_date="2024-03-05T10:00:00Z",
        items=None,
        type="expense",
        credit_card_id=None,
        note=None,
        receipt_url=None,
        id=None,
    ):
        counter["n"] += 1
        line_items = [
            {"name": f"item-{index}", "amount": item_amount, "category_id": category_id}
            for index, (category_id, item_amount) in enumerate(items or [])
        ]
        return Transaction(
            id=id or f"tx-{counter['n']}",
            type=type,
            amount=amount,
            transaction_date=transaction_date,
            credit_card_id=credit_card_id,
            note=note,
            receipt_url=receipt_url,
            line_items=line_items,
        )

    return _make
