"""
Category Resolution

Maps a stored `category_id` (a database id, a legacy name, or nothing at
all) onto one of the seven canonical categories.

DESIGN DECISION: Resolution is an ordered chain of small pure strategies.
Each strategy either answers or passes (returns None); the first answer
wins and the chain always ends at Category.OTHER. The order is the
contract, so it lives in one tuple that tests can inspect.

Ids are compared trimmed and lowercased: upstream ids have arrived with
different casing/whitespace between inserts.
"""

from typing import Callable, Iterable, Mapping, Optional

from ledger_assistant.models.ledger import Category, CategoryRecord


# Legacy spellings of "Other" found in the categories table.
OTHER_SYNONYMS: frozenset[str] = frozenset({"其他", "其它"})

_BY_LABEL: dict[str, Category] = {category.value: category for category in Category}
_BY_KEY: dict[str, Category] = {category.key: category for category in Category}

RecordIndex = Mapping[str, CategoryRecord]
Strategy = Callable[[str, RecordIndex], Optional[Category]]


def normalize_id(category_id: Optional[str]) -> str:
    return (category_id or "").strip().lower()


def index_records(records: Iterable[CategoryRecord]) -> dict[str, CategoryRecord]:
    """
    Build the normalized-id lookup used by the record strategies.

    Records without an id are skipped. When two records normalize to the
    same id the first one wins, matching a first-match scan.
    """
    index: dict[str, CategoryRecord] = {}
    for record in records:
        key = normalize_id(record.id)
        if key and key not in index:
            index[key] = record
    return index


# =============================================================================
# STRATEGIES - tried in order, first non-None wins
# =============================================================================

def _record_exact_label(category_id: str, index: RecordIndex) -> Optional[Category]:
    record = index.get(normalize_id(category_id))
    if record is None:
        return None
    return _BY_LABEL.get(record.name)


def _record_other_synonym(category_id: str, index: RecordIndex) -> Optional[Category]:
    record = index.get(normalize_id(category_id))
    if record is None:
        return None
    if record.name.strip() in OTHER_SYNONYMS:
        return Category.OTHER
    return None


def _record_trimmed_label(category_id: str, index: RecordIndex) -> Optional[Category]:
    record = index.get(normalize_id(category_id))
    if record is None:
        return None
    return _BY_LABEL.get(record.name.strip())


def _id_as_category(category_id: str, index: RecordIndex) -> Optional[Category]:
    """The id itself may be a label ('食') or an identifier ('food', 'FOOD')."""
    trimmed = category_id.strip()
    if trimmed in _BY_LABEL:
        return _BY_LABEL[trimmed]
    return _BY_KEY.get(trimmed.lower())


RESOLUTION_STRATEGIES: tuple[Strategy, ...] = (
    _record_exact_label,
    _record_other_synonym,
    _record_trimmed_label,
    _id_as_category,
)


def _resolve(category_id: Optional[str], index: RecordIndex) -> Category:
    if not category_id or not category_id.strip():
        return Category.OTHER
    for strategy in RESOLUTION_STRATEGIES:
        category = strategy(category_id, index)
        if category is not None:
            return category
    return Category.OTHER


def resolve_category(
    category_id: Optional[str],
    all_categories: Iterable[CategoryRecord],
) -> Category:
    """
    Resolve one category id against the reference records.

    Always returns a member of Category; unknown or missing ids give OTHER.
    """
    return _resolve(category_id, index_records(all_categories))


class CategoryResolver:
    """
    Resolver bound to one snapshot of the categories table.

    The reference data is refreshed once per aggregation pass, so the
    index is built once here and reused for every line item of the pass.
    """

    def __init__(self, all_categories: Iterable[CategoryRecord]):
        self._index = index_records(all_categories)

    def resolve(self, category_id: Optional[str]) -> Category:
        return _resolve(category_id, self._index)

