"""SQLite-backed user profiles (role, approval, last login)."""

from __future__ import annotations

import aiosqlite
import structlog

from repair_assistant.interfaces.user_profile_provider import IUserProfileProvider
from repair_assistant.models.users import UserProfile, UserRole
from repair_assistant.providers.database.base import NOW_SQL, SQLiteStore, new_id

logger = structlog.get_logger(logger_name=__name__)

_CREATE_PROFILES_SQL = f"""\
CREATE TABLE IF NOT EXISTS user_profiles (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL UNIQUE,
    username         TEXT,
    role             TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('admin', 'user')),
    approved         INTEGER NOT NULL DEFAULT 0,
    last_login       TEXT,
    last_ip_address  TEXT,
    created_at       TEXT NOT NULL DEFAULT ({NOW_SQL})
);
"""

_INSERT_PROFILE_SQL = """\
INSERT INTO user_profiles (id, user_id, username, role, approved)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(user_id) DO NOTHING;
"""

_PROFILE_COLUMNS = "id, user_id, username, role, approved, last_login, last_ip_address, created_at"


class SQLiteUserProfileProvider(SQLiteStore, IUserProfileProvider):
    """User profile persistence in SQLite."""

    _SCHEMA = (_CREATE_PROFILES_SQL,)

    async def get_profile(self, user_id: str) -> UserProfile | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_PROFILE_COLUMNS} FROM user_profiles WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
        return self._row_to_profile(row) if row else None

    async def create_profile(
        self,
        user_id: str,
        username: str | None,
        role: UserRole = UserRole.USER,
        approved: bool = False,
    ) -> UserProfile:
        async with self._connect() as db:
            cursor = await db.execute(
                _INSERT_PROFILE_SQL,
                (new_id(), user_id, username, UserRole(role).value, int(approved)),
            )
            await db.commit()
            created = cursor.rowcount > 0
        if created:
            logger.info("user_profile_created", user_id=user_id, role=UserRole(role).value, approved=approved)
        return await self.get_profile(user_id)  # type: ignore[return-value]

    async def list_profiles(self) -> list[UserProfile]:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_PROFILE_COLUMNS} FROM user_profiles ORDER BY created_at DESC, rowid DESC"
            )
            rows = await cursor.fetchall()
        return [self._row_to_profile(r) for r in rows]

    async def set_role(self, user_id: str, role: UserRole) -> UserProfile | None:
        await self._execute(
            "UPDATE user_profiles SET role = ? WHERE user_id = ?", (UserRole(role).value, user_id)
        )
        logger.info("user_role_changed", user_id=user_id, role=UserRole(role).value)
        return await self.get_profile(user_id)

    async def set_approved(self, user_id: str, approved: bool) -> UserProfile | None:
        await self._execute(
            "UPDATE user_profiles SET approved = ? WHERE user_id = ?", (int(approved), user_id)
        )
        logger.info("user_approval_changed", user_id=user_id, approved=approved)
        return await self.get_profile(user_id)

    async def record_login(self, user_id: str, ip_address: str | None) -> UserProfile | None:
        await self._execute(
            f"UPDATE user_profiles SET last_login = {NOW_SQL}, last_ip_address = ? WHERE user_id = ?",
            (ip_address, user_id),
        )
        return await self.get_profile(user_id)

    async def delete_profile(self, user_id: str) -> bool:
        return await self._execute("DELETE FROM user_profiles WHERE user_id = ?", (user_id,)) > 0

    def get_provider_name(self) -> str:
        return "sqlite_user_profiles"

    async def _execute(self, sql: str, params: tuple) -> int:
        async with self._connect() as db:
            cursor = await db.execute(sql, params)
            await db.commit()
            return cursor.rowcount

    @staticmethod
    def _row_to_profile(row: aiosqlite.Row) -> UserProfile:
        data = dict(row)
        data["approved"] = bool(data["approved"])
        return UserProfile(**data)
