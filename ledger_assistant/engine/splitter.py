"""
Line-Item Splitting

Turns an item shared by several family members into one record per
payer. The amount is divided evenly; fractional cents are carried as-is
so the shares always add back up to the original amount.

DESIGN DECISION: The payer's name is copied into each record at split
time. Renaming or deleting a family member later must not change what
old transactions say.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from ledger_assistant.models.ledger import (
    DraftItem,
    FamilyMember,
    LineItem,
    Payer,
    Transaction,
    TransactionDraft,
)
from ledger_assistant.models.report import DEFAULT_LABELS, ReportLabels, SplitRecord


def _unique_payers(payers: Iterable[Payer]) -> list[Payer]:
    seen: set[str] = set()
    unique = []
    for payer in payers:
        if payer.id in seen:
            continue
        seen.add(payer.id)
        unique.append(payer)
    return unique


def split_line_item(
    name: str,
    amount: float,
    payers: Iterable[Payer],
    category_id: Optional[str] = None,
    labels: ReportLabels = DEFAULT_LABELS,
) -> list[SplitRecord]:
    """
    Split one item between its payers.

    - no payers: a single unassigned record for the full amount
    - one payer: a single record carrying that payer
    - several payers: one record each, name suffixed with the split label
    """
    unique = _unique_payers(payers)
    share = amount / max(1, len(unique))

    if not unique:
        return [
            SplitRecord(
                name=name,
                title=name,
                amount=share,
                category_id=category_id,
            )
        ]

    display_name = f"{name}{labels.split_suffix}" if len(unique) > 1 else name
    return [
        SplitRecord(
            name=display_name,
            title=name,
            amount=share,
            category_id=category_id,
            payer_id=payer.id,
            payer_name=payer.name,
        )
        for payer in unique
    ]


def default_payer(members: Sequence[FamilyMember]) -> Optional[FamilyMember]:
    """First member flagged default, else the first member, else None."""
    for member in members:
        if member.is_default:
            return member
    return members[0] if members else None


def payers_for_ids(
    payer_ids: Iterable[str],
    members: Sequence[FamilyMember],
) -> list[Payer]:
    """Resolve selected ids to payers; unknown ids keep no name."""
    names = {member.id: member.name for member in members}
    return [Payer(id=payer_id, name=names.get(payer_id)) for payer_id in payer_ids]


def split_draft_item(
    item: DraftItem,
    members: Sequence[FamilyMember],
    labels: ReportLabels = DEFAULT_LABELS,
) -> list[SplitRecord]:
    payer_ids = list(item.payer_ids)
    if not payer_ids:
        fallback = default_payer(members)
        if fallback is not None:
            payer_ids = [fallback.id]
    return split_line_item(
        name=item.name,
        amount=item.amount,
        payers=payers_for_ids(payer_ids, members),
        category_id=item.category_id,
        labels=labels,
    )


def prepare_transaction(
    draft: TransactionDraft,
    members: Sequence[FamilyMember],
    labels: ReportLabels = DEFAULT_LABELS,
    now: Optional[datetime] = None,
) -> Transaction:
    """
    Build the transaction and its split line items from an entry draft.

    The transaction amount is the sum of the draft item amounts, which is
    also the sum of the split records.
    """
    now = now or datetime.now(timezone.utc)
    # Naive times are taken as UTC; UTC is written with a Z suffix
    if now.tzinfo is None or now.utcoffset() == timedelta(0):
        stamp = now.replace(tzinfo=None).isoformat(timespec="seconds") + "Z"
    else:
        stamp = now.isoformat(timespec="seconds")

    records: list[SplitRecord] = []
    for item in draft.items:
        records.extend(split_draft_item(item, members, labels))

    line_items = [
        LineItem(
            name=record.name,
            title=record.title,
            amount=record.amount,
            category_id=record.category_id,
            family_member_id=record.payer_id,
            payer_name=record.payer_name,
        )
        for record in records
    ]

    return Transaction(
        user_id=draft.user_id,
        credit_card_id=draft.credit_card_id or None,
        type=draft.type,
        amount=sum(item.amount for item in draft.items),
        note=draft.note or None,
        transaction_date=stamp,
        receipt_url=draft.receipt_url or None,
        line_items=line_items,
    )
