"""
Data Models Package

This package contains all Pydantic models used in Vittas.
All data flowing through the system must conform to these schemas.
"""

from vittas.models.finance import (
    Budget,
    BudgetDraft,
    DashboardData,
    DashboardStats,
    DateWindow,
    TimePeriod,
    Transaction,
    TransactionCategory,
    TransactionDraft,
    TransactionType,
)
from vittas.models.subscription import (
    DEFAULT_TIER,
    PAID_TIERS,
    PLAN_PRICING,
    ActivationResult,
    AuthenticatedUser,
    CheckoutOrder,
    PlanPricing,
    Profile,
    SubscriberRecord,
    SubscriptionState,
    SubscriptionStatus,
    SubscriptionTier,
    UpiQrCode,
)
from vittas.models.sharing import (
    ExpenseShare,
    SharedExpense,
    SharedExpenseDraft,
    SplitType,
)
from vittas.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "Budget",
    "BudgetDraft",
    "DashboardData",
    "DashboardStats",
    "DateWindow",
    "TimePeriod",
    "Transaction",
    "TransactionCategory",
    "TransactionDraft",
    "TransactionType",
    # Subscription models
    "DEFAULT_TIER",
    "PAID_TIERS",
    "PLAN_PRICING",
    "ActivationResult",
    "AuthenticatedUser",
    "CheckoutOrder",
    "PlanPricing",
    "Profile",
    "SubscriberRecord",
    "SubscriptionState",
    "SubscriptionStatus",
    "SubscriptionTier",
    "UpiQrCode",
    # Sharing models
    "ExpenseShare",
    "SharedExpense",
    "SharedExpenseDraft",
    "SplitType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
