"""Chat session lookup with owner-or-admin access checks."""

from __future__ import annotations

import structlog

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.interfaces.chat_history_provider import IChatHistoryProvider
from repair_assistant.models.chat import ChatMessage, ChatSession
from repair_assistant.models.users import CurrentUser
from repair_assistant.utils.errors import NotFoundError, PermissionDeniedError
from repair_assistant.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class ChatSessionService:
    """Resumes or starts a user's conversation about a model."""

    def __init__(self, catalog: ICatalogProvider, history: IChatHistoryProvider) -> None:
        self._catalog = catalog
        self._history = history

    async def open_session(self, user: CurrentUser, model_id: str) -> ChatSession:
        """Return the user's latest session for *model_id*, creating one if none exists."""
        model = await self._catalog.get_model(model_id)
        if model is None:
            raise NotFoundError(message=f"Model {model_id} not found")

        session = await self._history.latest_session(user.user_id, model.id)
        if session is not None:
            logger.debug("chat_session_resumed", session_id=session.id, user_id=user.user_id)
            return session
        return await self._history.create_session(user.user_id, model.id, f"{model.display_name} Repair Chat")

    async def list_sessions(self, user: CurrentUser) -> list[ChatSession]:
        return await self._history.list_sessions(user.user_id)

    async def list_messages(self, user: CurrentUser, session_id: str) -> list[ChatMessage]:
        session = await self._history.get_session(session_id)
        if session is None:
            raise NotFoundError(message=f"Session {session_id} not found")
        if session.user_id != user.user_id and not user.profile.is_admin:
            raise PermissionDeniedError(message="Session belongs to another user")
        return await self._history.list_messages(session.id)
