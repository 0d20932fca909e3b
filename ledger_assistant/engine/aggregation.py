"""
Aggregation Engine

Category totals, proportions, chart segments, month-over-month change and
per-payment-method totals for one report period.

DESIGN DECISION: Proportions are shares of the category total, not of a
spending limit. The denominator is the sum of the positive category
amounts, clamped to at least 1, so proportions are always in [0, 1] and
never add up to more than 1.

DESIGN DECISION: Category totals do not look at dates. A transaction
whose date cannot be parsed still counts toward its categories; it only
drops out of the billing and cash windows.
"""

from typing import Iterable, Optional, Union

from ledger_assistant.engine.categories import CategoryResolver, normalize_id
from ledger_assistant.engine.periods import (
    billing_coverage_window,
    billing_cycle,
    current_month_window,
    transaction_day,
)
from ledger_assistant.models.ledger import (
    Category,
    CategoryRecord,
    CreditCard,
    Transaction,
    TransactionType,
)
from ledger_assistant.models.report import (
    DEFAULT_LABELS,
    AggregateReport,
    CategoryStat,
    ChartSegment,
    PaymentMethodKind,
    PaymentMethodStat,
    ReportLabels,
)


CASH_STAT_ID = "cash"


def _of_type(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> list[Transaction]:
    return [tx for tx in transactions if tx.type == transaction_type]


def _unique_by_id(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Drop repeats of the same id; transactions without an id are kept."""
    seen: set[str] = set()
    unique = []
    for tx in transactions:
        if tx.id:
            if tx.id in seen:
                continue
            seen.add(tx.id)
        unique.append(tx)
    return unique


# =============================================================================
# CATEGORY TOTALS
# =============================================================================

def category_totals(
    transactions: Iterable[Transaction],
    resolver: CategoryResolver,
) -> dict[Category, float]:
    """
    Sum amounts per category, with every category present.

    A transaction without line items is attributed in full to OTHER;
    otherwise each line item goes to its resolved category.
    """
    totals = {category: 0.0 for category in Category}
    for tx in transactions:
        if not tx.line_items:
            totals[Category.OTHER] += tx.amount
            continue
        for item in tx.line_items:
            totals[resolver.resolve(item.category_id)] += item.amount
    return totals


def percentage_change(current: float, previous: float) -> str:
    """
    Signed whole-percent change, e.g. '+25%' or '-10%'.

    A zero base reports exactly '0%': there is no meaningful change from
    nothing, and the dashboard shows neutrality rather than infinity.
    """
    if previous == 0:
        return "0%"
    change = (current - previous) / previous * 100
    sign = "+" if change >= 0 else ""
    return f"{sign}{int(change)}%"


def build_category_stats(
    totals: dict[Category, float],
    previous_totals: Optional[dict[Category, float]] = None,
) -> list[CategoryStat]:
    """One stat per category, largest amount first (ties keep canonical order)."""
    denominator = max(1.0, sum(max(0.0, amount) for amount in totals.values()))
    stats = []
    for category in Category:
        amount = totals.get(category, 0.0)
        change = None
        if previous_totals is not None:
            change = percentage_change(amount, previous_totals.get(category, 0.0))
        stats.append(
            CategoryStat(
                category=category,
                amount=amount,
                proportion=max(0.0, amount) / denominator,
                change=change,
            )
        )
    stats.sort(key=lambda stat: stat.amount, reverse=True)
    return stats


def build_chart_segments(stats: Iterable[CategoryStat]) -> list[ChartSegment]:
    """Segments in the given (sorted) order, skipping empty categories."""
    return [
        ChartSegment(
            category=stat.category,
            proportion=stat.proportion,
            color_key=stat.category.color,
        )
        for stat in stats
        if stat.amount > 0
    ]


def aggregate(
    transactions: Iterable[Transaction],
    category_records: Iterable[CategoryRecord],
    report_type: Union[TransactionType, str],
    previous_transactions: Optional[Iterable[Transaction]] = None,
) -> AggregateReport:
    """
    Build the category report for one month.

    When `previous_transactions` is given, every CategoryStat also carries
    its change against the previous month.
    """
    transaction_type = TransactionType(report_type)
    resolver = CategoryResolver(category_records)

    current = _of_type(transactions, transaction_type)
    previous = _of_type(previous_transactions or [], transaction_type)

    totals = category_totals(current, resolver)
    previous_totals = None
    if previous_transactions is not None:
        previous_totals = category_totals(previous, resolver)

    stats = build_category_stats(totals, previous_totals)
    monthly_total = sum(tx.amount for tx in current)
    previous_total = sum(tx.amount for tx in previous)

    return AggregateReport(
        report_type=transaction_type,
        category_stats=stats,
        chart_segments=build_chart_segments(stats),
        monthly_total=monthly_total,
        previous_total=previous_total,
        change_vs_previous_month=percentage_change(monthly_total, previous_total),
    )


def category_filtered_total(
    transactions: Iterable[Transaction],
    category_records: Iterable[CategoryRecord],
    category: Category,
) -> float:
    """
    Total of expense transactions with at least one item in `category`.

    Whole transaction amounts are summed, as on the dashboard headline.
    """
    resolver = CategoryResolver(category_records)
    total = 0.0
    for tx in _of_type(transactions, TransactionType.EXPENSE):
        if not tx.line_items:
            matched = category is Category.OTHER
        else:
            matched = any(
                resolver.resolve(item.category_id) is category
                for item in tx.line_items
            )
        if matched:
            total += tx.amount
    return total


# =============================================================================
# PAYMENT METHODS
# =============================================================================

def payment_method_stats(
    transactions: Iterable[Transaction],
    cards: Iterable[CreditCard],
    year: int,
    month: int,
    transaction_type: Union[TransactionType, str] = TransactionType.EXPENSE,
    labels: ReportLabels = DEFAULT_LABELS,
) -> list[PaymentMethodStat]:
    """
    Cash total for the calendar month plus one statement total per card.

    `transactions` should cover the current and previous month: a card's
    cycle starts in the previous month. Repeated ids are counted once.
    Card cycles are inclusive of both ends; the cash window excludes the
    first day of the next month.
    """
    cards = list(cards)
    coverage = billing_coverage_window(year, month, cards)
    pool = _of_type(_unique_by_id(transactions), TransactionType(transaction_type))
    dated = []
    for tx in pool:
        day = transaction_day(tx.transaction_date)
        if day is not None and coverage.contains(day):
            dated.append((tx, day))

    month_window = current_month_window(year, month)
    cash_amount = sum(
        tx.amount
        for tx, day in dated
        if not tx.is_card_payment and month_window.contains(day)
    )
    stats = [
        PaymentMethodStat(
            id=CASH_STAT_ID,
            kind=PaymentMethodKind.CASH,
            name=labels.cash,
            period=f"{year}/{month:02d}",
            window=month_window,
            amount=cash_amount,
        )
    ]

    for card in cards:
        cycle = billing_cycle(year, month, card.billing_day)
        card_key = normalize_id(card.id)
        amount = sum(
            tx.amount
            for tx, day in dated
            if tx.is_card_payment
            and normalize_id(tx.credit_card_id) == card_key
            and cycle.contains(day, inclusive_end=True)
        )
        stats.append(
            PaymentMethodStat(
                id=card.id,
                kind=PaymentMethodKind.CARD,
                name=card.name,
                period=cycle.label(),
                window=cycle,
                amount=amount,
            )
        )
    return stats


def format_currency(amount: float, symbol: str = "$") -> str:
    """Whole-unit currency string with grouping, e.g. '$1,234' or '-$50'."""
    rounded = round(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,}"
