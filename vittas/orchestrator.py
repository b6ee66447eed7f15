"""
Application Wiring

Builds the services every entry point (HTTP functions, Streamlit UI)
works with, sharing one audit logger and one set of storage backends.

If Supabase is not configured the components fall back to in-memory
storage so the app still starts locally.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from vittas.audit import AuditLogger
from vittas.checkout import CheckoutInitiator, UpiQrGenerator
from vittas.dashboard import DashboardAggregator
from vittas.services.auth import AuthServiceInterface, SupabaseAuthService
from vittas.services.payments import RazorpayService
from vittas.services.storage import (
    FinanceStorageInterface,
    InMemoryFinanceStorage,
    InMemorySharedExpenseStorage,
    InMemorySubscriptionStorage,
    SharedExpenseStorageInterface,
    SubscriptionStorageInterface,
    SupabaseClient,
    SupabaseFinanceStorage,
    SupabaseSharedExpenseStorage,
    SupabaseSubscriptionStorage,
)
from vittas.sharing import SharedExpenseService
from vittas.subscriptions import SubscriptionManager


logger = structlog.get_logger(__name__)


@dataclass
class AppComponents:
    """Everything a request handler or page needs."""

    auth: Optional[AuthServiceInterface]
    finance_storage: FinanceStorageInterface
    subscription_storage: SubscriptionStorageInterface
    shared_expense_storage: SharedExpenseStorageInterface
    dashboard: DashboardAggregator
    subscriptions: SubscriptionManager
    checkout: CheckoutInitiator
    upi: UpiQrGenerator
    sharing: SharedExpenseService
    audit_logger: AuditLogger


def create_app_components(
    use_storage: bool = True,
    access_token: Optional[str] = None,
    payments: Optional[RazorpayService] = None,
    auth: Optional[AuthServiceInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to Supabase. Set to False for
            in-memory storage (tests, local runs).
        access_token: Signed-in user's token. Queries then run as that
            user so row level security applies.
        payments: Razorpay client override
        auth: Auth service override
    """
    audit_logger = AuditLogger()
    payments = payments or RazorpayService()

    finance_storage: FinanceStorageInterface
    subscription_storage: SubscriptionStorageInterface
    shared_expense_storage: SharedExpenseStorageInterface

    if use_storage:
        try:
            user_client = SupabaseClient(access_token=access_token)
            finance_storage = SupabaseFinanceStorage(user_client)
            shared_expense_storage = SupabaseSharedExpenseStorage(user_client)
            # Subscription writes are only granted to the backend key
            subscription_storage = SupabaseSubscriptionStorage(SupabaseClient())
            auth = auth or SupabaseAuthService()
        except PydanticValidationError as e:
            logger.warning("supabase_not_configured", error=str(e))
            use_storage = False

    if not use_storage:
        finance_storage = InMemoryFinanceStorage()
        subscription_storage = InMemorySubscriptionStorage()
        shared_expense_storage = InMemorySharedExpenseStorage()

    return AppComponents(
        auth=auth,
        finance_storage=finance_storage,
        subscription_storage=subscription_storage,
        shared_expense_storage=shared_expense_storage,
        dashboard=DashboardAggregator(finance_storage, audit_logger=audit_logger),
        subscriptions=SubscriptionManager(
            subscription_storage,
            payments=payments,
            audit_logger=audit_logger,
        ),
        checkout=CheckoutInitiator(payments, audit_logger=audit_logger),
        upi=UpiQrGenerator(),
        sharing=SharedExpenseService(shared_expense_storage, audit_logger=audit_logger),
        audit_logger=audit_logger,
    )
