"""Abstract base class for chat sessions, messages and interaction logs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from repair_assistant.models.chat import (
    ChatMessage,
    ChatSession,
    ClientInfo,
    InteractionLog,
    MessageRole,
)


# Concrete implementation: SQLiteChatHistoryProvider
# Located in: repair_assistant/providers/database/
class IChatHistoryProvider(ABC):
    """Contract for conversation persistence and admin auditing."""

    @abstractmethod
    async def create_session(self, user_id: str, model_id: str, title: str) -> ChatSession:
        """Insert a new session and return it."""

    @abstractmethod
    async def get_session(self, session_id: str) -> ChatSession | None:
        """Return one session or ``None``."""

    @abstractmethod
    async def latest_session(self, user_id: str, model_id: str) -> ChatSession | None:
        """Return the user's most recently updated session for a model."""

    @abstractmethod
    async def list_sessions(self, user_id: str) -> list[ChatSession]:
        """Return the user's sessions, most recently updated first."""

    @abstractmethod
    async def add_message(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        sources: list[dict[str, Any]] | None = None,
    ) -> ChatMessage:
        """Append one message to a session and bump its ``updated_at``.

        Raises
        ------
        repair_assistant.utils.errors.PersistenceError
            If the row could not be written.
        """

    @abstractmethod
    async def list_messages(self, session_id: str) -> list[ChatMessage]:
        """Return a session's messages in the order they were added."""

    @abstractmethod
    async def log_interaction(
        self,
        user_id: str,
        message_content: str,
        ai_response: str | None,
        *,
        user_email: str | None = None,
        session_id: str | None = None,
        model_name: str | None = None,
        interaction_type: str = "chat",
        client: ClientInfo | None = None,
    ) -> InteractionLog:
        """Write an interaction audit row.

        Raises
        ------
        repair_assistant.utils.errors.PersistenceError
            If the row could not be written.
        """

    @abstractmethod
    async def list_interactions(
        self,
        user_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[InteractionLog]:
        """Return audit rows newest first, optionally for one user."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
