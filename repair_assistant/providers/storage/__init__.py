"""Object storage adapters: local filesystem and Supabase Storage."""

from repair_assistant.providers.storage.local_storage_provider import LocalObjectStorageProvider
from repair_assistant.providers.storage.supabase_storage_provider import SupabaseStorageProvider

__all__ = ["LocalObjectStorageProvider", "SupabaseStorageProvider"]
