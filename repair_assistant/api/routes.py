"""FastAPI routes for technicians using the repair assistant.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                    Method  Auth
# ─────────────────────────────────────────────────────────────────────
# /api/v1/chat                                POST    approved user
# /api/v1/sessions                            POST    approved user
# /api/v1/sessions                            GET     user
# /api/v1/sessions/{sid}/messages             GET     owner or admin
# /api/v1/brands                              GET     public
# /api/v1/models                              GET     public
# /api/v1/models/{mid}                        GET     public
# /api/v1/settings                            GET     public
# /api/v1/settings/{key}                      GET     public
# /api/v1/images/analyze                      POST    approved user
# /api/v1/voice/transcribe                    POST    approved user
# /api/v1/voice/speak                         POST    approved user
# /api/v1/documents/{did}/images              POST    approved user
# /api/v1/documents/{did}/images/{p}/{i}      GET     approved user
# /api/v1/auth/track-login                    POST    user
# /api/v1/me                                  GET     user
# /api/v1/me/interaction-logs                 GET     user
# /api/v1/health                              GET     public
#
# Catalog, manual and user administration lives in admin_routes.py.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Query, Request, Response

from repair_assistant import __version__
from repair_assistant.api.dependencies import (
    ApprovedUserDep,
    CatalogServiceDep,
    ChatServiceDep,
    CurrentUserDep,
    ImageAnalysisServiceDep,
    PdfImageServiceDep,
    SessionServiceDep,
    UserAdminServiceDep,
    VoiceServiceDep,
)
from repair_assistant.api.schemas import (
    AnalyzeImageRequest,
    AnalyzeImageResponse,
    ChatRequest,
    ChatResponse,
    DocumentImagesRequest,
    DocumentImagesResponse,
    ErrorResponse,
    HealthResponse,
    OpenSessionRequest,
    SpeakRequest,
    SpeakResponse,
    TranscribeRequest,
    TranscribeResponse,
)
from repair_assistant.models.catalog import AppSetting, CarBrand, CarModel
from repair_assistant.models.chat import ChatMessage, ChatSession, InteractionLog
from repair_assistant.models.users import UserProfile
from repair_assistant.utils.logging import get_logger
from repair_assistant.utils.request_info import client_info

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_AUTH_ERRORS: dict[int | str, dict[str, Any]] = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Ask a question about a vehicle model's repair manuals",
)
async def chat(
    body: ChatRequest,
    request: Request,
    user: ApprovedUserDep,
    chat_service: ChatServiceDep,
) -> ChatResponse:
    reply = await chat_service.respond(
        body.message or "",
        body.model_id,
        session_id=body.session_id,
        language=body.language,
        requester=user,
        client=client_info(request),
        include_images=body.include_images,
    )
    return ChatResponse(**reply.model_dump())


@router.post(
    "/sessions",
    response_model=ChatSession,
    responses={404: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Resume the latest chat for a model, or start one",
)
async def open_session(
    body: OpenSessionRequest,
    user: ApprovedUserDep,
    sessions: SessionServiceDep,
) -> ChatSession:
    return await sessions.open_session(user, body.model_id)


@router.get("/sessions", response_model=list[ChatSession], responses=_AUTH_ERRORS)
async def list_sessions(user: CurrentUserDep, sessions: SessionServiceDep) -> list[ChatSession]:
    return await sessions.list_sessions(user)


@router.get(
    "/sessions/{session_id}/messages",
    response_model=list[ChatMessage],
    responses={404: {"model": ErrorResponse}, **_AUTH_ERRORS},
)
async def list_messages(
    session_id: str,
    user: CurrentUserDep,
    sessions: SessionServiceDep,
) -> list[ChatMessage]:
    return await sessions.list_messages(user, session_id)


# ---------------------------------------------------------------------------
# Catalog (read-only)
# ---------------------------------------------------------------------------


@router.get("/brands", response_model=list[CarBrand], summary="List vehicle brands")
async def list_brands(catalog: CatalogServiceDep) -> list[CarBrand]:
    return await catalog.list_brands()


@router.get("/models", response_model=list[CarModel], summary="List vehicle models")
async def list_models(
    catalog: CatalogServiceDep,
    brand_id: str | None = Query(default=None),
) -> list[CarModel]:
    return await catalog.list_models(brand_id)


@router.get("/models/{model_id}", response_model=CarModel, responses={404: {"model": ErrorResponse}})
async def get_model(model_id: str, catalog: CatalogServiceDep) -> CarModel:
    return await catalog.get_model(model_id)


@router.get("/settings", response_model=list[AppSetting], summary="Branding and theme settings")
async def list_settings(catalog: CatalogServiceDep) -> list[AppSetting]:
    return await catalog.list_settings()


@router.get("/settings/{key}", response_model=AppSetting, responses={404: {"model": ErrorResponse}})
async def get_setting(key: str, catalog: CatalogServiceDep) -> AppSetting:
    return await catalog.get_setting(key)


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------


@router.post(
    "/images/analyze",
    response_model=AnalyzeImageResponse,
    responses={400: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Technical analysis of a workshop photo",
)
async def analyze_image(
    body: AnalyzeImageRequest,
    user: ApprovedUserDep,
    analyzer: ImageAnalysisServiceDep,
) -> AnalyzeImageResponse:
    analysis = await analyzer.analyze(body.image, body.model_id)
    return AnalyzeImageResponse(analysis=analysis)


@router.post(
    "/voice/transcribe",
    response_model=TranscribeResponse,
    responses={400: {"model": ErrorResponse}, **_AUTH_ERRORS},
)
async def transcribe(
    body: TranscribeRequest,
    user: ApprovedUserDep,
    voice: VoiceServiceDep,
) -> TranscribeResponse:
    text = await voice.transcribe(body.audio, language=body.language)
    return TranscribeResponse(text=text)


@router.post(
    "/voice/speak",
    response_model=SpeakResponse,
    responses={400: {"model": ErrorResponse}, **_AUTH_ERRORS},
)
async def speak(
    body: SpeakRequest,
    user: ApprovedUserDep,
    voice: VoiceServiceDep,
) -> SpeakResponse:
    audio = await voice.speak(body.text, language=body.language)
    return SpeakResponse(audio_content=audio, mime_type=voice.audio_format)


@router.post(
    "/documents/{document_id}/images",
    response_model=DocumentImagesResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Find images on the manual pages matching a query",
)
async def find_document_images(
    document_id: str,
    body: DocumentImagesRequest,
    user: ApprovedUserDep,
    images: PdfImageServiceDep,
) -> DocumentImagesResponse:
    found = await images.find_images(document_id, query=body.query, pages=body.pages, limit=body.limit)
    return DocumentImagesResponse(images=found)


@router.get(
    "/documents/{document_id}/images/{page}/{index}",
    responses={404: {"model": ErrorResponse}, **_AUTH_ERRORS},
    response_class=Response,
)
async def get_document_image(
    document_id: str,
    page: int,
    index: int,
    user: ApprovedUserDep,
    images: PdfImageServiceDep,
) -> Response:
    image = await images.get_image(document_id, page, index)
    return Response(
        content=image.data,
        media_type=image.mime_type,
        headers={"Cache-Control": "private, max-age=3600"},
    )


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@router.post("/auth/track-login", response_model=UserProfile, responses=_AUTH_ERRORS)
async def track_login(
    request: Request,
    user: CurrentUserDep,
    users: UserAdminServiceDep,
) -> UserProfile:
    return await users.track_login(user, client_info(request).ip_address)


@router.get("/me", response_model=UserProfile, responses=_AUTH_ERRORS)
async def me(user: CurrentUserDep) -> UserProfile:
    return user.profile


@router.get("/me/interaction-logs", response_model=list[InteractionLog], responses=_AUTH_ERRORS)
async def my_interaction_logs(
    user: CurrentUserDep,
    users: UserAdminServiceDep,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[InteractionLog]:
    return await users.interaction_logs(user, user_id=user.user_id, limit=limit, offset=offset)


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}) or {})

    critical_ok = providers.get("llm", False) and providers.get("index", False)
    status = "healthy" if critical_ok else "degraded"
    return HealthResponse(status=status, version=__version__, providers=providers)
