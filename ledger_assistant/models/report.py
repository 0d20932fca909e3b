"""
Derived Report Models

Everything in this module is a projection of source Transactions. None of
it is persisted; each refresh recomputes it from scratch, so the models
are frozen and safe to share between threads.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ledger_assistant.models.ledger import (
    Category,
    CategoryRecord,
    CreditCard,
    FamilyMember,
    Profile,
    Transaction,
    TransactionType,
)


# =============================================================================
# ENUMS
# =============================================================================

class ReportType(str, Enum):
    """Report tabs on the dashboard."""
    EXPENSE = "expense"
    INCOME = "income"
    BILLING = "billing"

    @property
    def transaction_type(self) -> TransactionType:
        """Transaction type a report aggregates; billing reports expenses."""
        if self is ReportType.INCOME:
            return TransactionType.INCOME
        return TransactionType.EXPENSE


class PaymentMethodKind(str, Enum):
    CASH = "cash"
    CARD = "card"


# =============================================================================
# DISPLAY LABELS
# =============================================================================

class ReportLabels(BaseModel):
    """
    Display strings the engine writes into view models.

    Kept as a value object so the engine stays free of settings lookups;
    `LabelSettings.to_labels()` builds one from the environment.
    """
    model_config = ConfigDict(frozen=True)

    cash: str = "現金"
    credit_card: str = "信用卡"
    multiple_payers: str = "多人"
    transaction: str = "交易"
    split_suffix: str = " (分)"
    more_items_suffix: str = " 等..."
    currency_symbol: str = "$"
    default_user_name: str = "使用者"


DEFAULT_LABELS = ReportLabels()


# =============================================================================
# PERIODS AND SPLITS
# =============================================================================

class DateWindow(BaseModel):
    """
    A calendar window.

    Month windows are half-open (`end` is the first day of the next
    month); billing cycles are closed (`end` is the billing day itself).
    Callers say which one they mean through `inclusive_end`.
    """
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    def contains(self, day: date, inclusive_end: bool = False) -> bool:
        if inclusive_end:
            return self.start <= day <= self.end
        return self.start <= day < self.end

    def label(self) -> str:
        return f"{self.start:%Y/%m/%d} - {self.end:%Y/%m/%d}"


class SplitRecord(BaseModel):
    """One per-payer share of a line item, ready to persist."""
    model_config = ConfigDict(frozen=True)

    name: str
    title: str = Field(
        ...,
        description="Original item name without the split suffix",
    )
    amount: float
    category_id: Optional[str] = None
    payer_id: Optional[str] = None
    payer_name: Optional[str] = None


# =============================================================================
# AGGREGATES
# =============================================================================

class CategoryStat(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    amount: float
    proportion: float = Field(..., ge=0.0, le=1.0)
    change: Optional[str] = Field(
        default=None,
        description="Change vs. previous month, e.g. '+12%'",
    )


class ChartSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    proportion: float = Field(..., ge=0.0, le=1.0)
    color_key: str


class PaymentMethodStat(BaseModel):
    """Total spent through one payment instrument over its period."""
    model_config = ConfigDict(frozen=True)

    id: str
    kind: PaymentMethodKind
    name: str
    period: str
    window: DateWindow
    amount: float


class AggregateReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    report_type: TransactionType
    category_stats: list[CategoryStat]
    chart_segments: list[ChartSegment]
    monthly_total: float
    previous_total: float
    change_vs_previous_month: str


# =============================================================================
# TIMELINE
# =============================================================================

class TimelineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    amount: float
    payer_name: Optional[str] = None


class TimelineCategoryGroup(BaseModel):
    """Line items of one day sharing a category and payment instrument."""
    model_config = ConfigDict(frozen=True)

    id: str
    category: Category
    items: list[TimelineItem]
    total: float
    receipt_urls: list[str] = Field(default_factory=list)
    payment_method: Optional[str] = None
    payer_name: Optional[str] = None


class TimelineDateGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_date: str
    daily_total: float
    category_groups: list[TimelineCategoryGroup]


# =============================================================================
# DASHBOARD
# =============================================================================

class ViewFilters(BaseModel):
    """What the user is looking at; every change triggers `compute_view`."""
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1970, le=9999)
    month: int = Field(..., ge=1, le=12)
    report_type: ReportType = ReportType.EXPENSE
    selected_category: Optional[Category] = None


class DashboardData(BaseModel):
    """Everything one refresh fetched from the data service."""
    model_config = ConfigDict(frozen=True)

    transactions: list[Transaction] = Field(default_factory=list)
    previous_transactions: list[Transaction] = Field(default_factory=list)
    categories: list[CategoryRecord] = Field(default_factory=list)
    credit_cards: list[CreditCard] = Field(default_factory=list)
    family_members: list[FamilyMember] = Field(default_factory=list)
    profile: Optional[Profile] = None
    transaction_dates: list[str] = Field(
        default_factory=list,
        description="Dates of every transaction, for year discovery",
    )


class DashboardView(BaseModel):
    """View model handed to the presentation layer."""
    model_config = ConfigDict(frozen=True)

    filters: ViewFilters
    user_name: str
    monthly_income: str
    monthly_expense: str
    total_expenditure: str
    remaining_budget: str
    expenditure_change: str
    report: AggregateReport
    payment_methods: list[PaymentMethodStat]
    payment_methods_total: float
    timeline: list[TimelineDateGroup]
    available_years: list[int]
