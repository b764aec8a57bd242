"""Supabase Auth adapter: JWT verification + admin user deletion.

Access tokens issued by Supabase Auth are HS256 JWTs signed with the
project's JWT secret, audience ``authenticated``.  They are verified
locally with python-jose; no network round trip per request.

Account deletion goes through the GoTrue admin API with the
service-role key:

    DELETE {url}/auth/v1/admin/users/{user_id}
"""

from __future__ import annotations

import httpx
import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from repair_assistant.interfaces.auth_provider import IAuthProvider
from repair_assistant.models.users import AuthenticatedUser
from repair_assistant.utils.errors import AuthenticationError, ConfigurationError, ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)


class SupabaseAuthProvider(IAuthProvider):
    """Verifies Supabase-issued bearer tokens and deletes hosted accounts."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        jwt_secret: str,
        base_url: str = "",
        service_key: str = "",
        audience: str = "authenticated",
    ) -> None:
        self._http = http_client
        self._jwt_secret = jwt_secret
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._audience = audience

    async def verify_token(self, token: str) -> AuthenticatedUser:
        if not self._jwt_secret:
            raise ConfigurationError(
                message="SUPABASE_JWT_SECRET is not configured",
                provider_name=self.get_provider_name(),
            )
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=["HS256"],
                audience=self._audience,
            )
        except ExpiredSignatureError as exc:
            raise AuthenticationError(
                message="Token has expired",
                provider_name=self.get_provider_name(),
            ) from exc
        except JWTError as exc:
            raise AuthenticationError(
                message=f"Invalid authentication token: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError(
                message="Token missing sub claim",
                provider_name=self.get_provider_name(),
            )
        email = payload.get("email") or None
        return AuthenticatedUser(user_id=str(user_id), email=email.lower() if email else None)

    async def delete_user(self, user_id: str) -> bool:
        if not (self._base_url and self._service_key):
            logger.warning("auth_admin_api_not_configured", user_id=user_id)
            return False

        try:
            response = await self._http.delete(
                f"{self._base_url}/auth/v1/admin/users/{user_id}",
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {self._service_key}",
                },
            )
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Auth admin API unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        # Already gone on the hosted side still lets the profile be removed.
        if response.status_code == 404:
            logger.info("auth_user_already_deleted", user_id=user_id)
            return True
        if not response.is_success:
            raise ProviderUnavailableError(
                message=f"Auth admin API returned HTTP {response.status_code}",
                provider_name=self.get_provider_name(),
            )
        logger.info("auth_user_deleted", user_id=user_id)
        return True

    def get_provider_name(self) -> str:
        return "supabase_auth"
