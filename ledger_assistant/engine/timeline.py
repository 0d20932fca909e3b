"""
Timeline Builder

Groups transactions by display date, then by category, for the
"recent transactions" list. Within a day, line items that share a
category and a payment instrument are merged into one collapsible group
with a subtotal, the receipts it came from, and payer/payment labels.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ledger_assistant.engine.categories import CategoryResolver, normalize_id
from ledger_assistant.engine.periods import format_display_date
from ledger_assistant.models.ledger import (
    Category,
    CategoryRecord,
    CreditCard,
    FamilyMember,
    LineItem,
    Transaction,
)
from ledger_assistant.models.report import (
    DEFAULT_LABELS,
    ReportLabels,
    TimelineCategoryGroup,
    TimelineDateGroup,
    TimelineItem,
)


CASH_KEY = "cash"


@dataclass
class _GroupBucket:
    payment_method: str
    items: list[TimelineItem] = field(default_factory=list)
    receipt_urls: list[str] = field(default_factory=list)


@dataclass
class _DayBucket:
    daily_total: float = 0.0
    groups: dict[tuple[Category, str], _GroupBucket] = field(default_factory=dict)


def transaction_title(tx: Transaction, labels: ReportLabels = DEFAULT_LABELS) -> str:
    """First item name (with a 'more' suffix), else the note, else a generic label."""
    if tx.line_items and tx.line_items[0].name:
        first = tx.line_items[0].name
        if len(tx.line_items) > 1:
            return f"{first}{labels.more_items_suffix}"
        return first
    if tx.note:
        return tx.note
    return labels.transaction


def payment_method_label(
    tx: Transaction,
    cards: Iterable[CreditCard],
    labels: ReportLabels = DEFAULT_LABELS,
) -> str:
    if not tx.is_card_payment:
        return labels.cash
    card_key = normalize_id(tx.credit_card_id)
    for card in cards:
        if normalize_id(card.id) == card_key:
            return card.name
    return labels.credit_card


def payer_label(
    items: Iterable[TimelineItem],
    labels: ReportLabels = DEFAULT_LABELS,
) -> Optional[str]:
    """The single payer's name, the multiple-payers label, or None."""
    names = []
    for item in items:
        name = (item.payer_name or "").strip()
        if name and name not in names:
            names.append(name)
    if not names:
        return None
    if len(names) > 1:
        return labels.multiple_payers
    return names[0]


def _item_name(item: LineItem, tx: Transaction, labels: ReportLabels) -> str:
    return item.name or item.title or transaction_title(tx, labels)


def _item_payer(item: LineItem, member_names: dict[str, str]) -> Optional[str]:
    if item.payer_name:
        return item.payer_name
    if item.family_member_id:
        return member_names.get(normalize_id(item.family_member_id))
    return None


def _explode(
    tx: Transaction,
    resolver: CategoryResolver,
    member_names: dict[str, str],
    labels: ReportLabels,
) -> list[tuple[Category, TimelineItem]]:
    if not tx.line_items:
        return [
            (
                Category.OTHER,
                TimelineItem(name=transaction_title(tx, labels), amount=tx.amount),
            )
        ]
    return [
        (
            resolver.resolve(item.category_id),
            TimelineItem(
                name=_item_name(item, tx, labels),
                amount=item.amount,
                payer_name=_item_payer(item, member_names),
            ),
        )
        for item in tx.line_items
    ]


def build_timeline(
    transactions: Iterable[Transaction],
    category_records: Iterable[CategoryRecord],
    credit_cards: Iterable[CreditCard],
    family_members: Iterable[FamilyMember] = (),
    labels: ReportLabels = DEFAULT_LABELS,
    selected_category: Optional[Category] = None,
) -> list[TimelineDateGroup]:
    """
    Build the day-by-day timeline, most recent day first.

    Transactions with unparseable dates are left out of this view.
    `daily_total` always covers every transaction of the day, even when
    `selected_category` hides some of its groups. A day with nothing in
    the selected category is left out.

    Payer names come from the line items (captured at split time); a
    member lookup by `family_member_id` is only the fallback for items
    saved without a name, so renaming a member never rewrites history.
    """
    resolver = CategoryResolver(category_records)
    cards = list(credit_cards)
    member_names = {normalize_id(member.id): member.name for member in family_members}
    days: dict[str, _DayBucket] = {}

    for tx in transactions:
        display_date = format_display_date(tx.transaction_date)
        if display_date is None:
            continue

        day = days.setdefault(display_date, _DayBucket())
        day.daily_total += tx.amount

        payment_key = normalize_id(tx.credit_card_id) or CASH_KEY
        payment_method = payment_method_label(tx, cards, labels)
        receipt_url = (tx.receipt_url or "").strip()

        for category, item in _explode(tx, resolver, member_names, labels):
            if selected_category is not None and category is not selected_category:
                continue
            bucket = day.groups.setdefault(
                (category, payment_key), _GroupBucket(payment_method=payment_method)
            )
            bucket.items.append(item)
            if receipt_url and receipt_url not in bucket.receipt_urls:
                bucket.receipt_urls.append(receipt_url)

    timeline = []
    for display_date in sorted(days, reverse=True):
        day = days[display_date]
        if selected_category is not None and not day.groups:
            continue
        groups = [
            TimelineCategoryGroup(
                id=f"{display_date}:{category.key}:{payment_key}",
                category=category,
                items=bucket.items,
                total=sum(item.amount for item in bucket.items),
                receipt_urls=bucket.receipt_urls,
                payment_method=bucket.payment_method,
                payer_name=payer_label(bucket.items, labels),
            )
            for (category, payment_key), bucket in day.groups.items()
        ]
        groups.sort(key=lambda group: (group.category.sort_order, -group.total))
        timeline.append(
            TimelineDateGroup(
                display_date=display_date,
                daily_total=day.daily_total,
                category_groups=groups,
            )
        )
    return timeline
