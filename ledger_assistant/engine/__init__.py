"""
Reporting Engine Package

Pure functions over in-memory transactions: category resolution, line
item splitting, period arithmetic, aggregation and the timeline.
"""

from ledger_assistant.engine.aggregation import (
    aggregate,
    build_category_stats,
    build_chart_segments,
    category_filtered_total,
    category_totals,
    format_currency,
    payment_method_stats,
    percentage_change,
)
from ledger_assistant.engine.categories import (
    OTHER_SYNONYMS,
    RESOLUTION_STRATEGIES,
    CategoryResolver,
    resolve_category,
)
from ledger_assistant.engine.periods import (
    available_years,
    billing_coverage_window,
    billing_cycle,
    current_month_window,
    format_display_date,
    parse_transaction_date,
    previous_month_window,
    shift_month,
    transaction_day,
    unparseable_dates,
    unparseable_transactions,
)
from ledger_assistant.engine.splitter import (
    default_payer,
    payers_for_ids,
    prepare_transaction,
    split_line_item,
)
from ledger_assistant.engine.timeline import (
    build_timeline,
    payment_method_label,
    transaction_title,
)
from ledger_assistant.engine.view import compute_view

__all__ = [
    # Aggregation
    "aggregate",
    "build_category_stats",
    "build_chart_segments",
    "category_filtered_total",
    "category_totals",
    "format_currency",
    "payment_method_stats",
    "percentage_change",
    # Categories
    "OTHER_SYNONYMS",
    "RESOLUTION_STRATEGIES",
    "CategoryResolver",
    "resolve_category",
    # Periods
    "available_years",
    "billing_coverage_window",
    "billing_cycle",
    "current_month_window",
    "format_display_date",
    "parse_transaction_date",
    "previous_month_window",
    "shift_month",
    "transaction_day",
    "unparseable_dates",
    "unparseable_transactions",
    # Splitting
    "default_payer",
    "payers_for_ids",
    "prepare_transaction",
    "split_line_item",
    # Timeline
    "build_timeline",
    "payment_method_label",
    "transaction_title",
    # View
    "compute_view",
]
