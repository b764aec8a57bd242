"""Authentication adapters."""

from repair_assistant.providers.auth.supabase_auth_provider import SupabaseAuthProvider

__all__ = ["SupabaseAuthProvider"]
