"""
Auth module - Bearer token verification against Supabase.
"""
from aichat.auth.supabase_client import (
    AuthenticatedUser,
    SupabaseAuth,
    get_supabase_auth,
    reset_supabase_auth,
)

__all__ = [
    "AuthenticatedUser",
    "SupabaseAuth",
    "get_supabase_auth",
    "reset_supabase_auth",
]
