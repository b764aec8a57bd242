"""SQLite persistence adapters sharing one database file."""

from repair_assistant.providers.database.sqlite_catalog_provider import SQLiteCatalogProvider
from repair_assistant.providers.database.sqlite_chat_history_provider import SQLiteChatHistoryProvider
from repair_assistant.providers.database.sqlite_user_profile_provider import SQLiteUserProfileProvider

__all__ = ["SQLiteCatalogProvider", "SQLiteChatHistoryProvider", "SQLiteUserProfileProvider"]
