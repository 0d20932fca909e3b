"""
In-Memory Ledger Service

Dict-backed LedgerDataService used by the tests and for local demos.
It applies the same date-window and user filtering as the Sheets adapter.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import uuid4

from ledger_assistant.engine.categories import normalize_id
from ledger_assistant.engine.periods import transaction_day
from ledger_assistant.models.ledger import (
    CategoryRecord,
    CreditCard,
    FamilyMember,
    Profile,
    Transaction,
)
from ledger_assistant.services.storage.interface import (
    DuplicateError,
    LedgerDataService,
)


class InMemoryLedgerService(LedgerDataService):
    """
    Single-user in-memory ledger.

    Transactions whose `user_id` is empty belong to every user, which
    keeps fixtures short.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        categories: Iterable[CategoryRecord] = (),
        credit_cards: Iterable[CreditCard] = (),
        family_members: Iterable[FamilyMember] = (),
        profile: Optional[Profile] = None,
    ):
        self._transactions: list[Transaction] = list(transactions)
        self._categories = list(categories)
        self._credit_cards = list(credit_cards)
        self._family_members = list(family_members)
        self._profile = profile
        self.fetch_count = 0

    def _owned_by(self, tx: Transaction, user_id: str) -> bool:
        return not tx.user_id or normalize_id(tx.user_id) == normalize_id(user_id)

    async def fetch_transactions(
        self,
        user_id: str,
        start: date,
        end: date,
    ) -> list[Transaction]:
        self.fetch_count += 1
        result = []
        for tx in self._transactions:
            if not self._owned_by(tx, user_id):
                continue
            day = transaction_day(tx.transaction_date)
            if day is not None and start <= day < end:
                result.append(tx)
        return result

    async def fetch_categories(self) -> list[CategoryRecord]:
        return list(self._categories)

    async def fetch_credit_cards(self, user_id: str) -> list[CreditCard]:
        return list(self._credit_cards)

    async def fetch_family_members(self, user_id: str) -> list[FamilyMember]:
        return list(self._family_members)

    async def fetch_profile(self, user_id: str) -> Optional[Profile]:
        return self._profile

    async def fetch_transaction_dates(self, user_id: str) -> list[str]:
        return [
            tx.transaction_date
            for tx in self._transactions
            if tx.transaction_date and self._owned_by(tx, user_id)
        ]

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        transaction_id = transaction.id or str(uuid4())
        if any(tx.id == transaction_id for tx in self._transactions):
            raise DuplicateError(f"Transaction already exists: {transaction_id}")

        line_items = [
            item.model_copy(
                update={
                    "id": item.id or str(uuid4()),
                    "transaction_id": transaction_id,
                }
            )
            for item in transaction.line_items
        ]
        stored = transaction.model_copy(
            update={"id": transaction_id, "line_items": line_items}
        )
        self._transactions.append(stored)
        return stored
