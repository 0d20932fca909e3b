"""
Data Models Package

Source records as returned by the data service, derived report models,
and audit models.
"""

from ledger_assistant.models.ledger import (
    Category,
    CategoryRecord,
    CreditCard,
    DraftItem,
    FamilyMember,
    LineItem,
    Payer,
    Profile,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from ledger_assistant.models.report import (
    DEFAULT_LABELS,
    AggregateReport,
    CategoryStat,
    ChartSegment,
    DashboardData,
    DashboardView,
    DateWindow,
    PaymentMethodKind,
    PaymentMethodStat,
    ReportLabels,
    ReportType,
    SplitRecord,
    TimelineCategoryGroup,
    TimelineDateGroup,
    TimelineItem,
    ViewFilters,
)
from ledger_assistant.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Source records
    "Category",
    "CategoryRecord",
    "CreditCard",
    "DraftItem",
    "FamilyMember",
    "LineItem",
    "Payer",
    "Profile",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    # Derived models
    "DEFAULT_LABELS",
    "AggregateReport",
    "CategoryStat",
    "ChartSegment",
    "DashboardData",
    "DashboardView",
    "DateWindow",
    "PaymentMethodKind",
    "PaymentMethodStat",
    "ReportLabels",
    "ReportType",
    "SplitRecord",
    "TimelineCategoryGroup",
    "TimelineDateGroup",
    "TimelineItem",
    "ViewFilters",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
