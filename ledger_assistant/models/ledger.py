"""
Source Records for Ledger Assistant

These models mirror the rows returned by the external data service.
Field names match the service's column names (transaction_date,
category_id, credit_card_id, billing_day, is_default, ...) because the
resolver and splitter pattern-match on them.

DESIGN DECISION: Source records are frozen after validation. The engine
only ever projects them into new objects, so nothing downstream can
mutate a transaction that another view is still reading.

DESIGN DECISION: Ids are plain strings. The data service hands out UUIDs,
but older rows and hand-entered data are not always canonical, so ids are
coerced to str and compared after normalization where it matters.
"""

from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)


def _coerce_id(value: Any) -> Any:
    """Accept UUIDs/ints for id columns and store them as strings."""
    if value is None or isinstance(value, str):
        return value
    return str(value)


EntityId = Annotated[str, BeforeValidator(_coerce_id)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    The closed set of spending categories.

    The value is the canonical label stored in the categories table.
    Declaration order is the canonical display order.
    """
    FOOD = "食"
    CLOTHING = "衣"
    HOUSING = "住"
    TRANSPORT = "行"
    ENTERTAINMENT = "娛"
    RECREATION = "樂"
    OTHER = "其它"

    @property
    def label(self) -> str:
        return self.value

    @property
    def key(self) -> str:
        """ASCII identifier, e.g. 'food'."""
        return self.name.lower()

    @property
    def icon(self) -> str:
        return CATEGORY_ICONS[self]

    @property
    def color(self) -> str:
        return CATEGORY_COLORS[self]

    @property
    def sort_order(self) -> int:
        return _CATEGORY_ORDER[self]


CATEGORY_ICONS: dict[Category, str] = {
    Category.FOOD: "fork.knife",
    Category.CLOTHING: "tshirt.fill",
    Category.HOUSING: "house.fill",
    Category.TRANSPORT: "car.fill",
    Category.ENTERTAINMENT: "gamecontroller.fill",
    Category.RECREATION: "music.note",
    Category.OTHER: "ellipsis.circle.fill",
}

CATEGORY_COLORS: dict[Category, str] = {
    Category.FOOD: "orange",
    Category.CLOTHING: "blue",
    Category.HOUSING: "green",
    Category.TRANSPORT: "gray",
    Category.ENTERTAINMENT: "purple",
    Category.RECREATION: "pink",
    Category.OTHER: "secondary",
}

_CATEGORY_ORDER: dict[Category, int] = {
    category: index for index, category in enumerate(Category)
}


class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# REFERENCE DATA
# =============================================================================

class CategoryRecord(BaseModel):
    """
    A row of the categories table.

    Names do not always match a Category label exactly (migration history
    left spellings like "其他" next to "其它"); the resolver copes with it.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[EntityId] = None
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None


class CreditCard(BaseModel):
    """A credit card whose statement closes on `billing_day` every month."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: EntityId
    name: str = Field(
        ...,
        validation_alias=AliasChoices("name", "card_name"),
        description="Display name of the card",
    )
    billing_day: int = Field(
        ...,
        ge=1,
        le=31,
        description="Day of month the statement closes",
    )


class FamilyMember(BaseModel):
    """
    A person who can be assigned as payer of a line item.

    At most one member should be the default, but that is enforced by the
    write API, not here. Readers pick the first default.
    """
    model_config = ConfigDict(frozen=True)

    id: EntityId
    name: str
    is_default: bool = False

    @field_validator("is_default", mode="before")
    @classmethod
    def null_is_not_default(cls, v: Any) -> Any:
        return False if v is None else v


class Profile(BaseModel):
    """User profile; only the fields the dashboard reads."""
    model_config = ConfigDict(frozen=True)

    id: EntityId
    username: Optional[str] = None
    monthly_limit: Optional[float] = Field(
        default=None,
        description="Monthly spending limit used for the remaining budget",
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class LineItem(BaseModel):
    """
    A single priced entry of a transaction.

    When an item is split between several payers the data service holds
    one LineItem per payer; `payer_name` is a copy taken at split time so
    renaming a family member later does not rewrite history.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[EntityId] = None
    transaction_id: Optional[EntityId] = None
    name: str = ""
    amount: float
    quantity: int = 1
    category_id: Optional[EntityId] = None
    family_member_id: Optional[EntityId] = None
    payer_name: Optional[str] = None
    title: Optional[str] = Field(
        default=None,
        description="Item name before any split suffix was added",
    )


class Transaction(BaseModel):
    """
    A transaction with its line items.

    `amount` is the authoritative total. `line_items` may be empty (one
    undivided transaction) or hold the itemized/split entries.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[EntityId] = None
    user_id: Optional[EntityId] = None
    account_id: Optional[EntityId] = None
    credit_card_id: Optional[EntityId] = None
    type: TransactionType
    amount: float
    note: Optional[str] = None
    transaction_date: Optional[str] = Field(
        default=None,
        description="ISO-8601 timestamp or YYYY-MM-DD",
    )
    receipt_url: Optional[str] = None
    line_items: list[LineItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("line_items", "transaction_line_items"),
    )

    @field_validator("line_items", mode="before")
    @classmethod
    def missing_items_are_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def is_card_payment(self) -> bool:
        return bool(self.credit_card_id)


# =============================================================================
# ENTRY DRAFTS
# =============================================================================

class Payer(BaseModel):
    """A payer as seen by the splitter: id plus the name at split time."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None


class DraftItem(BaseModel):
    """An item as confirmed on the entry form, before splitting."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    amount: float
    category_id: Optional[str] = None
    payer_ids: list[str] = Field(
        default_factory=list,
        description="Selected family member ids; empty means default payer",
    )


class TransactionDraft(BaseModel):
    """
    One receipt/voice group ready to be saved.

    `credit_card_id` of None means the group was paid in cash.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = TransactionType.EXPENSE
    items: list[DraftItem] = Field(default_factory=list)
    note: Optional[str] = None
    receipt_url: Optional[str] = None
    credit_card_id: Optional[str] = None
    user_id: Optional[str] = None
