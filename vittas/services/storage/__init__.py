"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Supabase (PostgREST) is the production backend; the in-memory backend
serves tests and local runs.
"""

from vittas.services.storage.interface import (
    FinanceStorageInterface,
    NotFoundError,
    SharedExpenseStorageInterface,
    StorageError,
    SubscriptionStorageInterface,
)
from vittas.services.storage.memory import (
    InMemoryFinanceStorage,
    InMemorySharedExpenseStorage,
    InMemorySubscriptionStorage,
)
from vittas.services.storage.supabase import (
    SupabaseClient,
    SupabaseFinanceStorage,
    SupabaseSharedExpenseStorage,
    SupabaseSubscriptionStorage,
    TableQuery,
)

__all__ = [
    # Interfaces
    "FinanceStorageInterface",
    "SharedExpenseStorageInterface",
    "SubscriptionStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryFinanceStorage",
    "InMemorySharedExpenseStorage",
    "InMemorySubscriptionStorage",
    # Supabase implementation
    "SupabaseClient",
    "SupabaseFinanceStorage",
    "SupabaseSharedExpenseStorage",
    "SupabaseSubscriptionStorage",
    "TableQuery",
]
