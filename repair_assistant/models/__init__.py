"""Domain models — re-exports all public model classes.

    - catalog.py — brands, vehicle models, PDF manuals, app settings
    - chat.py    — sessions, messages, replies, interaction logs
    - index.py   — chunks and passages exchanged with vector indexes
    - users.py   — verified identities and user profiles
"""

from repair_assistant.models.catalog import AppSetting, CarBrand, CarModel, PdfDocument
from repair_assistant.models.chat import (
    ChatMessage,
    ChatReply,
    ChatSession,
    ChatSource,
    ClientInfo,
    InteractionLog,
    MessageRole,
    SourceImage,
)
from repair_assistant.models.index import DocumentChunk, IndexingStatus, IndexPassage
from repair_assistant.models.users import AuthenticatedUser, CurrentUser, UserProfile, UserRole

__all__ = [
    "AppSetting",
    "AuthenticatedUser",
    "CarBrand",
    "CarModel",
    "ChatMessage",
    "ChatReply",
    "ChatSession",
    "ChatSource",
    "ClientInfo",
    "CurrentUser",
    "DocumentChunk",
    "IndexPassage",
    "IndexingStatus",
    "InteractionLog",
    "MessageRole",
    "PdfDocument",
    "SourceImage",
    "UserProfile",
    "UserRole",
]
