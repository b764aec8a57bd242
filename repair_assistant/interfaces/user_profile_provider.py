"""Abstract base class for user profile persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from repair_assistant.models.users import UserProfile, UserRole


# Concrete implementation: SQLiteUserProfileProvider
# Located in: repair_assistant/providers/database/
class IUserProfileProvider(ABC):
    """Contract for the application-side user profile table."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the profile of an auth user id, or ``None``."""

    @abstractmethod
    async def create_profile(
        self,
        user_id: str,
        username: str | None,
        role: UserRole = UserRole.USER,
        approved: bool = False,
    ) -> UserProfile:
        """Insert a profile; returns the existing one if it already exists."""

    @abstractmethod
    async def list_profiles(self) -> list[UserProfile]:
        """Return all profiles, newest first."""

    @abstractmethod
    async def set_role(self, user_id: str, role: UserRole) -> UserProfile | None:
        """Change a user's role; ``None`` if the profile is missing."""

    @abstractmethod
    async def set_approved(self, user_id: str, approved: bool) -> UserProfile | None:
        """Change a user's approval flag; ``None`` if the profile is missing."""

    @abstractmethod
    async def record_login(self, user_id: str, ip_address: str | None) -> UserProfile | None:
        """Stamp ``last_login`` with now and ``last_ip_address`` with *ip_address*."""

    @abstractmethod
    async def delete_profile(self, user_id: str) -> bool:
        """Delete a profile; ``True`` if a row was removed."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
