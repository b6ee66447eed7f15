"""Services package."""

from vittas.services.auth import (
    AuthServiceInterface,
    SupabaseAuthService,
    bearer_token_from_header,
)
from vittas.services.payments import RazorpayService
from vittas.services.storage import (
    FinanceStorageInterface,
    InMemoryFinanceStorage,
    InMemorySharedExpenseStorage,
    InMemorySubscriptionStorage,
    NotFoundError,
    SharedExpenseStorageInterface,
    StorageError,
    SubscriptionStorageInterface,
    SupabaseClient,
    SupabaseFinanceStorage,
    SupabaseSharedExpenseStorage,
    SupabaseSubscriptionStorage,
)

__all__ = [
    # Auth services
    "AuthServiceInterface",
    "SupabaseAuthService",
    "bearer_token_from_header",
    # Payment services
    "RazorpayService",
    # Storage services
    "FinanceStorageInterface",
    "InMemoryFinanceStorage",
    "InMemorySharedExpenseStorage",
    "InMemorySubscriptionStorage",
    "NotFoundError",
    "SharedExpenseStorageInterface",
    "StorageError",
    "SubscriptionStorageInterface",
    "SupabaseClient",
    "SupabaseFinanceStorage",
    "SupabaseSharedExpenseStorage",
    "SupabaseSubscriptionStorage",
]
