"""User identity and profile models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class AuthenticatedUser(BaseModel):
    """Identity asserted by a verified bearer token."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str | None = None


class UserProfile(BaseModel):
    """Application-side profile of an authenticated user."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    username: str | None = None
    role: UserRole = UserRole.USER
    approved: bool = False
    last_login: str | None = None
    last_ip_address: str | None = None
    created_at: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def can_use_assistant(self) -> bool:
        return self.is_admin or self.approved


class CurrentUser(BaseModel):
    """Request-scoped pairing of a verified identity and its profile."""

    model_config = ConfigDict(frozen=True)

    identity: AuthenticatedUser
    profile: UserProfile = Field(description="Profile row, created on first sight.")

    @property
    def user_id(self) -> str:
        return self.identity.user_id

    @property
    def email(self) -> str | None:
        return self.identity.email or self.profile.username
