"""Authentication services package."""

from vittas.services.auth.supabase_auth import (
    AuthServiceInterface,
    SupabaseAuthService,
    bearer_token_from_header,
)

__all__ = [
    "AuthServiceInterface",
    "SupabaseAuthService",
    "bearer_token_from_header",
]
