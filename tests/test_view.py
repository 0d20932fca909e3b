"""Tests for dashboard view composition."""

from datetime import date

from ledger_assistant.engine.view import compute_view
from ledger_assistant.models.ledger import Category, Profile, TransactionType
from ledger_assistant.models.report import DashboardData, ReportType, ViewFilters


TODAY = date(2024, 3, 20)


def _data(make_tx, category_records, credit_cards, family_members, profile=None):
    return DashboardData(
        transactions=[
            make_tx(1000, "2024-03-02", items=[("c-food", 1000)]),
            make_tx(200, "2024-03-04", items=[("c-transport", 200)], credit_card_id="card-1"),
            make_tx(5000, "2024-03-01", type="income"),
        ],
        previous_transactions=[
            make_tx(600, "2024-02-20", items=[("c-food", 600)], credit_card_id="card-1"),
        ],
        categories=category_records,
        credit_cards=credit_cards,
        family_members=family_members,
        profile=profile,
        transaction_dates=["2023-07-01", "2024-03-02"],
    )


class TestComputeView:
    """Tests for the full dashboard view."""

    def test_headline_figures(self, make_tx, category_records, credit_cards, family_members):
        data = _data(
            make_tx,
            category_records,
            credit_cards,
            family_members,
            Profile(id="u1", username="Amy", monthly_limit=5000),
        )
        view = compute_view(data, ViewFilters(year=2024, month=3), today=TODAY)

        assert view.user_name == "Amy"
        assert view.monthly_income == "$5,000"
        assert view.monthly_expense == "$1,200"
        assert view.total_expenditure == "$1,200"
        assert view.remaining_budget == "$3,800"
        assert view.expenditure_change == "+100%"
        assert view.available_years == [2023, 2024]

    def test_defaults_without_profile(self, make_tx, category_records, credit_cards, family_members):
        data = _data(make_tx, category_records, credit_cards, family_members)
        view = compute_view(data, ViewFilters(year=2024, month=3), today=TODAY)
        assert view.user_name == "使用者"
        assert view.remaining_budget == "$8,800"

    def test_selected_category_filters_headline_and_timeline(
        self, make_tx, category_records, credit_cards, family_members
    ):
        data = _data(make_tx, category_records, credit_cards, family_members)
        filters = ViewFilters(year=2024, month=3, selected_category=Category.TRANSPORT)
        view = compute_view(data, filters, today=TODAY)

        assert view.total_expenditure == "$200"
        assert view.monthly_expense == "$1,200"
        categories = {
            group.category
            for day in view.timeline
            for group in day.category_groups
        }
        assert categories == {Category.TRANSPORT}

    def test_income_tab(self, make_tx, category_records, credit_cards, family_members):
        data = _data(make_tx, category_records, credit_cards, family_members)
        filters = ViewFilters(year=2024, month=3, report_type=ReportType.INCOME)
        view = compute_view(data, filters, today=TODAY)
        assert view.report.report_type == TransactionType.INCOME
        assert view.report.monthly_total == 5000

    def test_payment_methods_span_previous_month(
        self, make_tx, category_records, credit_cards, family_members
    ):
        data = _data(make_tx, category_records, credit_cards, family_members)
        view = compute_view(data, ViewFilters(year=2024, month=3), today=TODAY)

        cash, card = view.payment_methods
        assert cash.amount == 1000
        assert card.amount == 800
        assert view.payment_methods_total == 1800

    def test_years_from_transactions_when_no_dates(self, make_tx, category_records):
        data = DashboardData(
            transactions=[make_tx(10, "2021-05-05")],
            categories=category_records,
        )
        view = compute_view(data, ViewFilters(year=2021, month=5), today=TODAY)
        assert view.available_years == [2021, 2024]

    def test_pure(self, make_tx, category_records, credit_cards, family_members):
        data = _data(make_tx, category_records, credit_cards, family_members)
        filters = ViewFilters(year=2024, month=3)
        assert compute_view(data, filters, today=TODAY) == compute_view(
            data, filters, today=TODAY
        )
