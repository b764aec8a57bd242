"""Request-scoped dependencies: service lookup and the calling user.

Services are built once at startup and stored on ``app.state``; these
helpers resolve them so route functions can declare them as
``Annotated[..., Depends(...)]`` parameters and tests can swap them for
mocks by setting ``app.state`` attributes.

The bearer token is verified by the auth provider and the caller's
profile is created on first sight (see
:meth:`UserAdminService.ensure_profile`).
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from repair_assistant.interfaces.auth_provider import IAuthProvider
from repair_assistant.models.users import CurrentUser
from repair_assistant.services.catalog_service import CatalogService
from repair_assistant.services.chat_service import ManualChatService
from repair_assistant.services.image_analysis_service import ImageAnalysisService
from repair_assistant.services.pdf_image_service import PdfImageService
from repair_assistant.services.session_service import ChatSessionService
from repair_assistant.services.user_admin_service import UserAdminService
from repair_assistant.services.voice_service import VoiceService
from repair_assistant.utils.errors import AuthenticationError, PermissionDeniedError

# auto_error=False: a missing header becomes our 401 ErrorResponse, not FastAPI's 403.
_bearer = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Services from app.state
# ---------------------------------------------------------------------------


def _get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def _get_chat_service(request: Request) -> ManualChatService:
    return request.app.state.chat_service


def _get_session_service(request: Request) -> ChatSessionService:
    return request.app.state.session_service


def _get_user_admin_service(request: Request) -> UserAdminService:
    return request.app.state.user_admin_service


def _get_image_analysis_service(request: Request) -> ImageAnalysisService:
    return request.app.state.image_analysis_service


def _get_voice_service(request: Request) -> VoiceService:
    return request.app.state.voice_service


def _get_pdf_image_service(request: Request) -> PdfImageService:
    return request.app.state.pdf_image_service


def _get_auth_provider(request: Request) -> IAuthProvider:
    return request.app.state.auth_provider


def _get_config(request: Request) -> dict[str, Any]:
    return getattr(request.app.state, "config", {}) or {}


CatalogServiceDep = Annotated[CatalogService, Depends(_get_catalog_service)]
ChatServiceDep = Annotated[ManualChatService, Depends(_get_chat_service)]
SessionServiceDep = Annotated[ChatSessionService, Depends(_get_session_service)]
UserAdminServiceDep = Annotated[UserAdminService, Depends(_get_user_admin_service)]
ImageAnalysisServiceDep = Annotated[ImageAnalysisService, Depends(_get_image_analysis_service)]
VoiceServiceDep = Annotated[VoiceService, Depends(_get_voice_service)]
PdfImageServiceDep = Annotated[PdfImageService, Depends(_get_pdf_image_service)]
AuthProviderDep = Annotated[IAuthProvider, Depends(_get_auth_provider)]
ConfigDep = Annotated[dict[str, Any], Depends(_get_config)]


# ---------------------------------------------------------------------------
# Calling user
# ---------------------------------------------------------------------------


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
    auth: AuthProviderDep,
    users: UserAdminServiceDep,
) -> CurrentUser:
    """Verify the bearer token and return the caller with their profile.

    Raises
    ------
    AuthenticationError
        If the header is missing or the token does not verify.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Unauthorized")
    identity = await auth.verify_token(credentials.credentials)
    user = await users.ensure_profile(identity)
    structlog.contextvars.bind_contextvars(user_id=user.user_id)
    return user


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


async def get_approved_user(user: CurrentUserDep) -> CurrentUser:
    """The caller, provided an admin approved their account."""
    if not user.profile.can_use_assistant:
        raise PermissionDeniedError(message="Your account is awaiting admin approval")
    return user


async def get_admin_user(user: CurrentUserDep) -> CurrentUser:
    if not user.profile.is_admin:
        raise PermissionDeniedError(message="Forbidden")
    return user


ApprovedUserDep = Annotated[CurrentUser, Depends(get_approved_user)]
AdminUserDep = Annotated[CurrentUser, Depends(get_admin_user)]
