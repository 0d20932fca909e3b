"""
Dashboard View Composition

`compute_view` turns one refresh's worth of fetched data plus the user's
current filters into the complete dashboard view model.

DESIGN DECISION: Recomputation is an explicit call, not a side effect of
changing a filter. The caller fetches, then calls compute_view; after a
filter change that needs no new data (category, report tab) it simply
calls compute_view again on the cached DashboardData.
"""

from datetime import date
from typing import Optional

from ledger_assistant.engine.aggregation import (
    aggregate,
    category_filtered_total,
    format_currency,
    payment_method_stats,
    percentage_change,
)
from ledger_assistant.engine.periods import available_years
from ledger_assistant.engine.timeline import build_timeline
from ledger_assistant.models.ledger import TransactionType
from ledger_assistant.models.report import (
    DEFAULT_LABELS,
    DashboardData,
    DashboardView,
    ReportLabels,
    ViewFilters,
)


DEFAULT_MONTHLY_LIMIT = 10000.0


def _total(data_transactions, transaction_type: TransactionType) -> float:
    return sum(tx.amount for tx in data_transactions if tx.type == transaction_type)


def compute_view(
    data: DashboardData,
    filters: ViewFilters,
    labels: ReportLabels = DEFAULT_LABELS,
    default_monthly_limit: float = DEFAULT_MONTHLY_LIMIT,
    today: Optional[date] = None,
) -> DashboardView:
    """
    Build the dashboard for `filters` from already-fetched `data`.

    Pure: no I/O, no shared state; identical inputs give identical views.
    """
    symbol = labels.currency_symbol

    income = _total(data.transactions, TransactionType.INCOME)
    expense = _total(data.transactions, TransactionType.EXPENSE)
    previous_expense = _total(data.previous_transactions, TransactionType.EXPENSE)

    report = aggregate(
        data.transactions,
        data.categories,
        filters.report_type.transaction_type,
        previous_transactions=data.previous_transactions,
    )

    if filters.selected_category is not None:
        headline = category_filtered_total(
            data.transactions, data.categories, filters.selected_category
        )
    else:
        headline = expense

    monthly_limit = default_monthly_limit
    if data.profile is not None and data.profile.monthly_limit is not None:
        monthly_limit = data.profile.monthly_limit

    user_name = labels.default_user_name
    if data.profile is not None and data.profile.username:
        user_name = data.profile.username

    payment_methods = payment_method_stats(
        list(data.transactions) + list(data.previous_transactions),
        data.credit_cards,
        filters.year,
        filters.month,
        TransactionType.EXPENSE,
        labels,
    )

    timeline = build_timeline(
        data.transactions,
        data.categories,
        data.credit_cards,
        data.family_members,
        labels,
        selected_category=filters.selected_category,
    )

    raw_dates = data.transaction_dates or [
        tx.transaction_date for tx in data.transactions
    ]

    return DashboardView(
        filters=filters,
        user_name=user_name,
        monthly_income=format_currency(income, symbol),
        monthly_expense=format_currency(expense, symbol),
        total_expenditure=format_currency(headline, symbol),
        remaining_budget=format_currency(monthly_limit - expense, symbol),
        expenditure_change=percentage_change(expense, previous_expense),
        report=report,
        payment_methods=payment_methods,
        payment_methods_total=sum(stat.amount for stat in payment_methods),
        timeline=timeline,
        available_years=available_years(raw_dates, today),
    )
