"""Abstract base class for the external authentication service.

Sign-up, sign-in and password handling stay with the hosted auth
service.  This service only verifies the tokens it issues and asks it to
remove accounts on admin request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from repair_assistant.models.users import AuthenticatedUser


class IAuthProvider(ABC):
    """Contract for bearer-token verification and account removal."""

    @abstractmethod
    async def verify_token(self, token: str) -> AuthenticatedUser:
        """Verify *token* and return the identity it asserts.

        Raises
        ------
        repair_assistant.utils.errors.AuthenticationError
            If the token is malformed, expired or has a bad signature.
        """

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool:
        """Delete the account in the hosted auth service.

        Returns ``False`` when no hosted auth admin API is configured (the
        caller still removes the local profile).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this provider."""
