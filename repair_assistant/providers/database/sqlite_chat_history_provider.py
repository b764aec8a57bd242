"""SQLite-backed chat history: sessions, messages and interaction logs.

Message ``sources`` are stored as JSON text.  Ordering within a session
uses ``created_at`` with ``rowid`` as tie breaker, so two messages
written in the same millisecond keep their insertion order.
"""

from __future__ import annotations

import json
from typing import Any

import aiosqlite
import structlog

from repair_assistant.interfaces.chat_history_provider import IChatHistoryProvider
from repair_assistant.models.chat import (
    ChatMessage,
    ChatSession,
    ClientInfo,
    InteractionLog,
    MessageRole,
)
from repair_assistant.providers.database.base import NOW_SQL, SQLiteStore, new_id
from repair_assistant.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_CREATE_SESSIONS_SQL = f"""\
CREATE TABLE IF NOT EXISTS chat_sessions (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    model_id    TEXT NOT NULL,
    title       TEXT NOT NULL,
    created_at  TEXT NOT NULL DEFAULT ({NOW_SQL}),
    updated_at  TEXT NOT NULL DEFAULT ({NOW_SQL})
);
"""

_CREATE_MESSAGES_SQL = f"""\
CREATE TABLE IF NOT EXISTS chat_messages (
    id          TEXT PRIMARY KEY,
    session_id  TEXT NOT NULL REFERENCES chat_sessions(id) ON DELETE CASCADE,
    role        TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
    content     TEXT NOT NULL,
    sources     TEXT,
    created_at  TEXT NOT NULL DEFAULT ({NOW_SQL})
);
"""

_CREATE_LOGS_SQL = f"""\
CREATE TABLE IF NOT EXISTS interaction_logs (
    id                TEXT PRIMARY KEY,
    user_id           TEXT NOT NULL,
    user_email        TEXT,
    session_id        TEXT,
    message_content   TEXT NOT NULL,
    ai_response       TEXT,
    model_name        TEXT,
    interaction_type  TEXT NOT NULL DEFAULT 'chat',
    ip_address        TEXT,
    user_agent        TEXT,
    created_at        TEXT NOT NULL DEFAULT ({NOW_SQL})
);
"""

_SESSION_COLUMNS = "id, user_id, model_id, title, created_at, updated_at"
_MESSAGE_COLUMNS = "id, session_id, role, content, sources, created_at"
_LOG_COLUMNS = (
    "id, user_id, user_email, session_id, message_content, ai_response, model_name, "
    "interaction_type, ip_address, user_agent, created_at"
)


class SQLiteChatHistoryProvider(SQLiteStore, IChatHistoryProvider):
    """Conversation persistence in SQLite."""

    _SCHEMA = (
        _CREATE_SESSIONS_SQL,
        _CREATE_MESSAGES_SQL,
        _CREATE_LOGS_SQL,
        "CREATE INDEX IF NOT EXISTS idx_sessions_user_model ON chat_sessions(user_id, model_id);",
        "CREATE INDEX IF NOT EXISTS idx_messages_session ON chat_messages(session_id, created_at);",
        "CREATE INDEX IF NOT EXISTS idx_logs_user ON interaction_logs(user_id, created_at);",
    )

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(self, user_id: str, model_id: str, title: str) -> ChatSession:
        session_id = new_id()
        try:
            async with self._connect() as db:
                await db.execute(
                    "INSERT INTO chat_sessions (id, user_id, model_id, title) VALUES (?, ?, ?, ?)",
                    (session_id, user_id, model_id, title),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Could not create chat session: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chat_session_created", session_id=session_id, user_id=user_id, model_id=model_id)
        return await self.get_session(session_id)  # type: ignore[return-value]

    async def get_session(self, session_id: str) -> ChatSession | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_SESSION_COLUMNS} FROM chat_sessions WHERE id = ?", (session_id,)
            )
            row = await cursor.fetchone()
        return ChatSession(**dict(row)) if row else None

    async def latest_session(self, user_id: str, model_id: str) -> ChatSession | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_SESSION_COLUMNS} FROM chat_sessions "
                "WHERE user_id = ? AND model_id = ? ORDER BY updated_at DESC, rowid DESC LIMIT 1",
                (user_id, model_id),
            )
            row = await cursor.fetchone()
        return ChatSession(**dict(row)) if row else None

    async def list_sessions(self, user_id: str) -> list[ChatSession]:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_SESSION_COLUMNS} FROM chat_sessions "
                "WHERE user_id = ? ORDER BY updated_at DESC, rowid DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [ChatSession(**dict(r)) for r in rows]

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def add_message(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        sources: list[dict[str, Any]] | None = None,
    ) -> ChatMessage:
        message_id = new_id()
        encoded = json.dumps(sources) if sources is not None else None
        try:
            async with self._connect() as db:
                await db.execute(
                    "INSERT INTO chat_messages (id, session_id, role, content, sources) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (message_id, session_id, MessageRole(role).value, content, encoded),
                )
                await db.execute(
                    f"UPDATE chat_sessions SET updated_at = {NOW_SQL} WHERE id = ?",
                    (session_id,),
                )
                await db.commit()
                cursor = await db.execute(
                    f"SELECT {_MESSAGE_COLUMNS} FROM chat_messages WHERE id = ?", (message_id,)
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Could not store {MessageRole(role).value} message: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return self._row_to_message(row)

    async def list_messages(self, session_id: str) -> list[ChatMessage]:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_MESSAGE_COLUMNS} FROM chat_messages "
                "WHERE session_id = ? ORDER BY created_at, rowid",
                (session_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_message(r) for r in rows]

    # ------------------------------------------------------------------
    # Interaction logs
    # ------------------------------------------------------------------

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
        log_id = new_id()
        client = client or ClientInfo()
        try:
            async with self._connect() as db:
                await db.execute(
                    "INSERT INTO interaction_logs (id, user_id, user_email, session_id, "
                    "message_content, ai_response, model_name, interaction_type, ip_address, "
                    "user_agent) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        log_id,
                        user_id,
                        user_email,
                        session_id,
                        message_content,
                        ai_response,
                        model_name,
                        interaction_type,
                        client.ip_address,
                        client.user_agent,
                    ),
                )
                await db.commit()
                cursor = await db.execute(
                    f"SELECT {_LOG_COLUMNS} FROM interaction_logs WHERE id = ?", (log_id,)
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Could not write interaction log: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return InteractionLog(**dict(row))

    async def list_interactions(
        self,
        user_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[InteractionLog]:
        query = f"SELECT {_LOG_COLUMNS} FROM interaction_logs"
        params: list[Any] = []
        if user_id:
            query += " WHERE user_id = ?"
            params.append(user_id)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with self._connect() as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
        return [InteractionLog(**dict(r)) for r in rows]

    def get_provider_name(self) -> str:
        return "sqlite_chat_history"

    @staticmethod
    def _row_to_message(row: aiosqlite.Row) -> ChatMessage:
        data = dict(row)
        raw = data.pop("sources")
        return ChatMessage(**data, sources=json.loads(raw) if raw else None)
