"""Tests for the day-by-day timeline."""

from ledger_assistant.engine.timeline import (
    build_timeline,
    payment_method_label,
    transaction_title,
)
from ledger_assistant.models.ledger import Category, Transaction


def _groups(timeline, display_date):
    day = next(d for d in timeline if d.display_date == display_date)
    return day.category_groups


class TestBuildTimeline:
    """Tests for grouping by date and category."""

    def test_transaction_without_items_goes_to_other(
        self, make_tx, category_records, credit_cards
    ):
        tx = make_tx(60, note="Parking")
        timeline = build_timeline([tx], category_records, credit_cards)

        groups = _groups(timeline, "2024/03/05")
        assert len(groups) == 1
        assert groups[0].category == Category.OTHER
        assert groups[0].items[0].name == "Parking"
        assert groups[0].total == 60

    def test_two_categories_on_one_transaction(
        self, make_tx, category_records, credit_cards
    ):
        tx = make_tx(100, items=[("c-food", 70), ("c-transport", 30)])
        groups = _groups(build_timeline([tx], category_records, credit_cards), "2024/03/05")
        assert [g.category for g in groups] == [Category.FOOD, Category.TRANSPORT]
        assert [g.total for g in groups] == [70, 30]

    def test_same_day_same_category_same_payment_merges(
        self, make_tx, category_records, credit_cards
    ):
        txs = [
            make_tx(20, "2024-03-05T08:00:00Z", items=[("c-food", 20)], receipt_url="r1"),
            make_tx(30, "2024-03-05T12:00:00Z", items=[("c-food", 30)], receipt_url="r1"),
            make_tx(40, "2024-03-05T19:00:00Z", items=[("c-food", 40)], receipt_url="r2"),
        ]
        groups = _groups(build_timeline(txs, category_records, credit_cards), "2024/03/05")
        assert len(groups) == 1
        assert groups[0].total == 90
        assert len(groups[0].items) == 3
        assert groups[0].receipt_urls == ["r1", "r2"]
        assert groups[0].payment_method == "現金"
        assert groups[0].id == "2024/03/05:food:cash"

    def test_card_and_cash_stay_apart(self, make_tx, category_records, credit_cards):
        txs = [
            make_tx(20, items=[("c-food", 20)]),
            make_tx(50, items=[("c-food", 50)], credit_card_id="card-1"),
        ]
        groups = _groups(build_timeline(txs, category_records, credit_cards), "2024/03/05")
        assert len(groups) == 2
        # larger total first within the same category
        assert groups[0].payment_method == "Cathay"
        assert groups[1].payment_method == "現金"

    def test_dates_descending_and_unparseable_skipped(
        self, make_tx, category_records, credit_cards
    ):
        txs = [
            make_tx(10, "2024-03-01"),
            make_tx(20, "2024-03-20T10:00:00Z"),
            make_tx(30, "???"),
            make_tx(40, "2024-03-07"),
        ]
        timeline = build_timeline(txs, category_records, credit_cards)
        assert [d.display_date for d in timeline] == [
            "2024/03/20",
            "2024/03/07",
            "2024/03/01",
        ]

    def test_selected_category_keeps_daily_total(
        self, make_tx, category_records, credit_cards
    ):
        txs = [
            make_tx(70, items=[("c-food", 70)]),
            make_tx(30, items=[("c-transport", 30)]),
        ]
        timeline = build_timeline(
            txs,
            category_records,
            credit_cards,
            selected_category=Category.FOOD,
        )
        day = timeline[0]
        assert day.daily_total == 100
        assert [g.category for g in day.category_groups] == [Category.FOOD]

    def test_selected_category_drops_days_without_it(
        self, make_tx, category_records, credit_cards
    ):
        txs = [
            make_tx(70, "2024-03-05", items=[("c-food", 70)]),
            make_tx(30, "2024-03-06", items=[("c-transport", 30)]),
        ]
        timeline = build_timeline(
            txs,
            category_records,
            credit_cards,
            selected_category=Category.FOOD,
        )
        assert [d.display_date for d in timeline] == ["2024/03/05"]
        assert all(d.category_groups for d in timeline)

    def test_blank_receipt_urls_excluded(self, make_tx, category_records, credit_cards):
        txs = [
            make_tx(10, items=[("c-food", 10)], receipt_url=""),
            make_tx(20, items=[("c-food", 20)], receipt_url="   "),
            make_tx(30, items=[("c-food", 30)], receipt_url="https://img/a.jpg"),
            make_tx(40, items=[("c-food", 40)], receipt_url="https://img/a.jpg"),
        ]
        groups = _groups(build_timeline(txs, category_records, credit_cards), "2024/03/05")
        assert len(groups) == 1
        assert groups[0].receipt_urls == ["https://img/a.jpg"]

    def test_no_receipts_gives_empty_list(self, make_tx, category_records, credit_cards):
        txs = [make_tx(10, items=[("c-food", 10)], receipt_url="")]
        groups = _groups(build_timeline(txs, category_records, credit_cards), "2024/03/05")
        assert groups[0].receipt_urls == []

    def test_payer_labels(self, category_records, credit_cards, family_members):
        shared = Transaction(
            id="t1",
            type="expense",
            amount=100,
            transaction_date="2024-03-05",
            line_items=[
                {"name": "Cake (分)", "amount": 50, "category_id": "c-food", "payer_name": "Dad"},
                {"name": "Cake (分)", "amount": 50, "category_id": "c-food", "payer_name": "Mom"},
            ],
        )
        solo = Transaction(
            id="t2",
            type="expense",
            amount=10,
            transaction_date="2024-03-05",
            line_items=[
                {"name": "Socks", "amount": 10, "category_id": "c-clothing",
                 "family_member_id": "m-mom"},
            ],
        )
        groups = _groups(
            build_timeline([shared, solo], category_records, credit_cards, family_members),
            "2024/03/05",
        )
        by_category = {g.category: g for g in groups}
        assert by_category[Category.FOOD].payer_name == "多人"
        assert by_category[Category.CLOTHING].payer_name == "Mom"

    def test_no_payer_gives_none(self, make_tx, category_records, credit_cards):
        groups = _groups(
            build_timeline([make_tx(5, items=[("c-food", 5)])], category_records, credit_cards),
            "2024/03/05",
        )
        assert groups[0].payer_name is None


class TestLabels:
    """Tests for titles and payment method labels."""

    def test_title_from_first_item(self, make_tx):
        assert transaction_title(make_tx(10, items=[("c-food", 10)])) == "item-0"
        tx = make_tx(10, items=[("c-food", 5), ("c-food", 5)])
        assert transaction_title(tx) == "item-0 等..."

    def test_title_fallbacks(self, make_tx):
        assert transaction_title(make_tx(10, note="Gift")) == "Gift"
        assert transaction_title(make_tx(10)) == "交易"

    def test_payment_method_label(self, make_tx, credit_cards):
        assert payment_method_label(make_tx(1), credit_cards) == "現金"
        assert payment_method_label(make_tx(1, credit_card_id="card-1"), credit_cards) == "Cathay"
        assert payment_method_label(make_tx(1, credit_card_id="lost"), credit_cards) == "信用卡"
