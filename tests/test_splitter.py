"""Tests for line-item splitting and entry preparation."""

from datetime import datetime, timedelta, timezone

import pytest

from ledger_assistant.engine.periods import transaction_day
from ledger_assistant.engine.splitter import (
    default_payer,
    payers_for_ids,
    prepare_transaction,
    split_line_item,
)
from ledger_assistant.models.ledger import (
    DraftItem,
    FamilyMember,
    Payer,
    TransactionDraft,
    TransactionType,
)
from ledger_assistant.models.report import ReportLabels


class TestSplitLineItem:
    """Tests for splitting one item between payers."""

    def test_zero_payers_gives_one_unassigned_record(self):
        records = split_line_item("Rice", 90.0, [], category_id="c-food")
        assert len(records) == 1
        assert records[0].amount == 90.0
        assert records[0].name == "Rice"
        assert records[0].payer_id is None
        assert records[0].payer_name is None

    def test_single_payer_keeps_name(self):
        records = split_line_item("Rice", 90.0, [Payer(id="m1", name="Dad")])
        assert len(records) == 1
        assert records[0].name == "Rice"
        assert records[0].payer_name == "Dad"

    def test_multiple_payers_share_evenly(self):
        payers = [Payer(id="a", name="A"), Payer(id="b", name="B"), Payer(id="c", name="C")]
        records = split_line_item("Pizza", 100.0, payers)
        assert len(records) == 3
        assert all(record.name == "Pizza (分)" for record in records)
        assert all(record.title == "Pizza" for record in records)
        assert [record.payer_id for record in records] == ["a", "b", "c"]
        assert abs(sum(record.amount for record in records) - 100.0) < 1e-9

    @pytest.mark.parametrize("amount", [0.0, 1.0, 99.99, 1000.0, -30.0])
    @pytest.mark.parametrize("payer_count", [0, 1, 2, 3, 7])
    def test_shares_add_back_up(self, amount, payer_count):
        payers = [Payer(id=str(index)) for index in range(payer_count)]
        records = split_line_item("x", amount, payers)
        assert abs(sum(record.amount for record in records) - amount) < 1e-9

    def test_duplicate_payers_count_once(self):
        payers = [Payer(id="a", name="A"), Payer(id="a", name="A")]
        records = split_line_item("Tea", 40.0, payers)
        assert len(records) == 1
        assert records[0].amount == 40.0

    def test_custom_split_suffix(self):
        labels = ReportLabels(split_suffix=" (shared)")
        payers = [Payer(id="a"), Payer(id="b")]
        records = split_line_item("Taxi", 10.0, payers, labels=labels)
        assert records[0].name == "Taxi (shared)"


class TestPayers:
    """Tests for payer selection."""

    def test_default_payer_prefers_flagged_member(self, family_members):
        assert default_payer(family_members).id == "m-dad"

    def test_default_payer_falls_back_to_first(self):
        members = [FamilyMember(id="a", name="A"), FamilyMember(id="b", name="B")]
        assert default_payer(members).id == "a"

    def test_default_payer_none_without_members(self):
        assert default_payer([]) is None

    def test_payers_for_unknown_id_have_no_name(self, family_members):
        payers = payers_for_ids(["m-mom", "ghost"], family_members)
        assert payers[0].name == "Mom"
        assert payers[1].name is None


class TestPrepareTransaction:
    """Tests for turning a draft into a transaction."""

    def test_split_and_default_payer(self, family_members):
        draft = TransactionDraft(
            items=[
                DraftItem(
                    name="Lunch",
                    amount=300,
                    category_id="c-food",
                    payer_ids=["m-dad", "m-mom"],
                ),
                DraftItem(name="Bus", amount=50, category_id="c-transport"),
            ],
            note="Saturday",
            user_id="u1",
        )
        tx = prepare_transaction(
            draft, family_members, now=datetime(2024, 3, 5, 12, 0, 0)
        )

        assert tx.amount == 350
        assert tx.type == TransactionType.EXPENSE
        assert tx.transaction_date == "2024-03-05T12:00:00Z"
        assert tx.credit_card_id is None
        assert tx.user_id == "u1"

        names = [item.name for item in tx.line_items]
        assert names == ["Lunch (分)", "Lunch (分)", "Bus"]
        assert [item.payer_name for item in tx.line_items] == ["Dad", "Mom", "Dad"]
        assert [item.family_member_id for item in tx.line_items] == [
            "m-dad",
            "m-mom",
            "m-dad",
        ]
        assert sum(item.amount for item in tx.line_items) == pytest.approx(tx.amount)

    def test_no_members_leaves_items_unassigned(self):
        draft = TransactionDraft(items=[DraftItem(name="Milk", amount=80)])
        tx = prepare_transaction(draft, [], now=datetime(2024, 3, 5))
        assert tx.line_items[0].payer_name is None
        assert tx.line_items[0].amount == 80

    def test_utc_timestamp_uses_z_suffix(self):
        draft = TransactionDraft(
            items=[DraftItem(name="Milk", amount=80)],
            credit_card_id="card-1",
        )
        tx = prepare_transaction(
            draft, [], now=datetime(2024, 3, 5, 8, 30, tzinfo=timezone.utc)
        )
        assert tx.transaction_date == "2024-03-05T08:30:00Z"
        assert tx.credit_card_id == "card-1"

    def test_other_offsets_are_kept(self):
        draft = TransactionDraft(items=[DraftItem(name="Milk", amount=80)])
        taipei = timezone(timedelta(hours=8))
        tx = prepare_transaction(draft, [], now=datetime(2024, 3, 5, 8, 30, tzinfo=taipei))
        assert tx.transaction_date == "2024-03-05T08:30:00+08:00"

    def test_default_time_is_utc(self):
        draft = TransactionDraft(items=[DraftItem(name="Milk", amount=80)])
        tx = prepare_transaction(draft, [])
        assert tx.transaction_date.endswith("Z")
        assert transaction_day(tx.transaction_date) is not None
