"""User profiles: first-sight provisioning, login tracking and admin actions.

Identity comes from the hosted auth service; this service owns the
application-side profile (role, approval, last login).  Emails listed in
``ADMIN_EMAILS`` are provisioned as approved admins so a fresh deployment
has someone who can approve everybody else.
"""

from __future__ import annotations

import structlog

from repair_assistant.interfaces.auth_provider import IAuthProvider
from repair_assistant.interfaces.chat_history_provider import IChatHistoryProvider
from repair_assistant.interfaces.user_profile_provider import IUserProfileProvider
from repair_assistant.models.chat import InteractionLog
from repair_assistant.models.users import AuthenticatedUser, CurrentUser, UserProfile, UserRole
from repair_assistant.utils.errors import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from repair_assistant.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class UserAdminService:
    """Profile provisioning and user administration.

    Parameters
    ----------
    profiles:
        Profile store.
    auth:
        Hosted auth service; used to delete the auth-side user.
    history:
        Interaction log source for the audit listings.
    admin_emails:
        Lower-cased emails provisioned as approved admins.
    protected_emails:
        Lower-cased emails that can never be deleted.
    """

    def __init__(
        self,
        profiles: IUserProfileProvider,
        auth: IAuthProvider,
        history: IChatHistoryProvider,
        admin_emails: list[str] | None = None,
        protected_emails: list[str] | None = None,
    ) -> None:
        self._profiles = profiles
        self._auth = auth
        self._history = history
        self._admin_emails = {e.lower() for e in admin_emails or []}
        self._protected_emails = {e.lower() for e in protected_emails or []}

    async def ensure_profile(self, identity: AuthenticatedUser) -> CurrentUser:
        """Return the caller's profile, creating it on first sight."""
        profile = await self._profiles.get_profile(identity.user_id)
        bootstrap_admin = bool(identity.email) and identity.email.lower() in self._admin_emails

        if profile is None:
            profile = await self._profiles.create_profile(
                identity.user_id,
                identity.email,
                role=UserRole.ADMIN if bootstrap_admin else UserRole.USER,
                approved=bootstrap_admin,
            )
        elif bootstrap_admin and not (profile.is_admin and profile.approved):
            await self._profiles.set_role(identity.user_id, UserRole.ADMIN)
            profile = await self._profiles.set_approved(identity.user_id, True) or profile
            logger.info("admin_profile_promoted", user_id=identity.user_id)

        return CurrentUser(identity=identity, profile=profile)

    async def track_login(self, user: CurrentUser, ip_address: str | None) -> UserProfile:
        profile = await self._profiles.record_login(user.user_id, ip_address)
        logger.info("user_login_tracked", user_id=user.user_id, ip_address=ip_address)
        return profile or user.profile

    # ------------------------------------------------------------------
    # Admin actions
    # ------------------------------------------------------------------

    async def list_users(self) -> list[UserProfile]:
        return await self._profiles.list_profiles()

    async def set_role(self, user_id: str, role: UserRole) -> UserProfile:
        profile = await self._profiles.set_role(user_id, role)
        if profile is None:
            raise NotFoundError(message=f"User {user_id} not found")
        return profile

    async def set_approved(self, user_id: str, approved: bool) -> UserProfile:
        profile = await self._profiles.set_approved(user_id, approved)
        if profile is None:
            raise NotFoundError(message=f"User {user_id} not found")
        return profile

    async def delete_user(self, admin: CurrentUser, user_id: str | None, email: str | None = None) -> None:
        """Delete the auth user and the profile of *user_id*.

        Raises
        ------
        PermissionDeniedError
            If *admin* is not an admin, or the target email is protected.
        ValidationError
            If *user_id* is empty.
        """
        if not admin.profile.is_admin:
            raise PermissionDeniedError(message="Forbidden")
        if not user_id:
            raise ValidationError(message="userId is required")

        profile = await self._profiles.get_profile(user_id)
        candidates = {e.lower() for e in (email, profile.username if profile else None) if e}
        if candidates & self._protected_emails:
            raise PermissionDeniedError(message="Protected user cannot be deleted")

        await self._auth.delete_user(user_id)
        await self._profiles.delete_profile(user_id)
        logger.info("user_deleted", user_id=user_id, deleted_by=admin.user_id)

    # ------------------------------------------------------------------
    # Interaction logs
    # ------------------------------------------------------------------

    async def interaction_logs(
        self,
        requester: CurrentUser,
        user_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[InteractionLog]:
        """Admins see everyone's logs (optionally one user's); users see their own."""
        if not requester.profile.is_admin:
            user_id = requester.user_id
        return await self._history.list_interactions(user_id=user_id, limit=limit, offset=offset)
