"""Repair assistant FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and serves locally stored uploads under ``/storage``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from repair_assistant import __version__
from repair_assistant.api.admin_routes import admin_router
from repair_assistant.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from repair_assistant.api.routes import router as api_router
from repair_assistant.config.loader import load_config
from repair_assistant.config.settings import Settings
from repair_assistant.interfaces.llm_provider import ILLMProvider
from repair_assistant.interfaces.object_storage_provider import IObjectStorageProvider
from repair_assistant.interfaces.vector_index_provider import IVectorIndexProvider
from repair_assistant.providers.auth.supabase_auth_provider import SupabaseAuthProvider
from repair_assistant.providers.database import (
    SQLiteCatalogProvider,
    SQLiteChatHistoryProvider,
    SQLiteUserProfileProvider,
)
from repair_assistant.providers.llm.anthropic_provider import AnthropicLLMProvider
from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider
from repair_assistant.providers.speech.openai_tts_provider import OpenAITTSProvider
from repair_assistant.providers.storage.local_storage_provider import LocalObjectStorageProvider
from repair_assistant.providers.storage.supabase_storage_provider import SupabaseStorageProvider
from repair_assistant.providers.transcription.whisper_api_provider import WhisperAPIProvider
from repair_assistant.services.catalog_service import CatalogService
from repair_assistant.services.chat_service import ManualChatService
from repair_assistant.services.image_analysis_service import ImageAnalysisService
from repair_assistant.services.manual_index_service import ManualIndexService
from repair_assistant.services.pdf_image_service import PdfImageService
from repair_assistant.services.session_service import ChatSessionService
from repair_assistant.services.user_admin_service import UserAdminService
from repair_assistant.services.voice_service import VoiceService
from repair_assistant.utils.errors import ConfigurationError
from repair_assistant.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the LLM provider.

    ``LLM_PROVIDER`` picks one explicitly; otherwise the first configured
    key wins, OpenAI before Anthropic.  With no key at all the OpenAI
    adapter is returned unconfigured and every chat gets the "unable to
    access" reply, which the health endpoint reports as degraded.
    """
    choice = app_settings.llm_provider.strip().lower()
    if choice == "anthropic":
        return AnthropicLLMProvider(settings=app_settings)
    if choice == "openai":
        return OpenAILLMProvider(settings=app_settings)
    if choice:
        raise ConfigurationError(message=f"Unknown LLM_PROVIDER {choice!r}")

    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    return OpenAILLMProvider(settings=app_settings)


def _build_index_provider(app_settings: Settings) -> IVectorIndexProvider:
    """Build the manual index backend named by ``INDEX_BACKEND``.

    The ChromaDB backend is imported lazily: it pulls in chromadb and
    embeds with OpenAI, neither of which the hosted backend needs.
    """
    backend = app_settings.index_backend.strip().lower()
    if backend == "openai":
        from repair_assistant.providers.vector_index.openai_vector_store_provider import (
            OpenAIVectorStoreProvider,
        )

        return OpenAIVectorStoreProvider(settings=app_settings)
    if backend == "chromadb":
        from repair_assistant.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )
        from repair_assistant.providers.vector_index.chromadb_provider import ChromaDBIndexProvider

        return ChromaDBIndexProvider(
            embedding_provider=OpenAIEmbeddingProvider(settings=app_settings),
            persist_directory=app_settings.chromadb_persist_dir,
        )
    raise ConfigurationError(message=f"Unknown INDEX_BACKEND {backend!r}")


def _build_storage_provider(app_settings: Settings, http_client: httpx.AsyncClient) -> IObjectStorageProvider:
    backend = app_settings.storage_backend.strip().lower()
    if backend == "local":
        return LocalObjectStorageProvider(
            root_dir=app_settings.local_storage_dir,
            public_base_url=app_settings.local_storage_public_url,
        )
    if backend == "supabase":
        if not (app_settings.supabase_url and app_settings.supabase_service_key):
            raise ConfigurationError(
                message="STORAGE_BACKEND=supabase needs SUPABASE_URL and SUPABASE_SERVICE_KEY"
            )
        return SupabaseStorageProvider(
            http_client=http_client,
            base_url=app_settings.supabase_url,
            service_key=app_settings.supabase_service_key,
        )
    raise ConfigurationError(message=f"Unknown STORAGE_BACKEND {backend!r}")


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    app_config = app_config or {}
    chat_cfg = app_config.get("chat", {})
    uploads_cfg = app_config.get("uploads", {})
    image_cfg = app_config.get("image_analysis", {})

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=30.0)

    # -- Providers --
    llm = _build_llm_provider(app_settings)
    index = _build_index_provider(app_settings)
    storage = _build_storage_provider(app_settings, http_client)
    auth = SupabaseAuthProvider(
        http_client=http_client,
        jwt_secret=app_settings.supabase_jwt_secret,
        base_url=app_settings.supabase_url,
        service_key=app_settings.supabase_service_key,
        audience=app_settings.jwt_audience,
    )
    catalog = SQLiteCatalogProvider(app_settings.database_path)
    history = SQLiteChatHistoryProvider(app_settings.database_path)
    profiles = SQLiteUserProfileProvider(app_settings.database_path)
    transcriber = WhisperAPIProvider(settings=app_settings)
    synthesizer = OpenAITTSProvider(settings=app_settings)

    # -- Services --
    index_service = ManualIndexService(
        catalog=catalog,
        index=index,
        storage=storage,
        manuals_bucket=app_settings.manuals_bucket,
        poll_interval=app_settings.index_poll_interval_seconds,
        poll_timeout=app_settings.index_poll_timeout_seconds,
    )
    pdf_image_service = PdfImageService(
        catalog=catalog,
        storage=storage,
        manuals_bucket=app_settings.manuals_bucket,
    )
    chat_service = ManualChatService(
        catalog=catalog,
        history=history,
        profiles=profiles,
        index_service=index_service,
        llm=llm,
        image_service=pdf_image_service,
        top_k=int(chat_cfg.get("top_k", 8)),
        max_output_tokens=int(chat_cfg.get("max_output_tokens", 800)),
        temperature=float(chat_cfg.get("temperature", 0.3)),
        source_images_per_reply=int(chat_cfg.get("source_images_per_reply", 4)),
    )
    catalog_service = CatalogService(
        catalog=catalog,
        storage=storage,
        index_service=index_service,
        manuals_bucket=app_settings.manuals_bucket,
        assets_bucket=app_settings.assets_bucket,
        max_pdf_bytes=int(uploads_cfg.get("max_pdf_bytes", 256 * 1024 * 1024)),
        allowed_image_types=uploads_cfg.get("allowed_image_types"),
    )
    user_admin_service = UserAdminService(
        profiles=profiles,
        auth=auth,
        history=history,
        admin_emails=app_settings.admin_emails,
        protected_emails=app_settings.protected_emails,
    )
    image_analysis_service = ImageAnalysisService(
        llm=llm,
        catalog=catalog,
        max_dimension=int(image_cfg.get("max_dimension", 2048)),
        max_tokens=int(image_cfg.get("max_tokens", 2000)),
        temperature=float(image_cfg.get("temperature", 0.3)),
    )

    provider_registry = {
        "llm": llm.is_available(),
        "llm_name": llm.get_provider_name(),
        "index": index.is_available(),
        "index_name": index.get_provider_name(),
        "storage_name": storage.get_provider_name(),
        "transcription": transcriber.is_available(),
        "speech": synthesizer.is_available(),
        "auth": bool(app_settings.supabase_jwt_secret),
    }

    return {
        "http_client": http_client,
        "config": app_config,
        "llm": llm,
        "index_provider": index,
        "storage_provider": storage,
        "auth_provider": auth,
        "catalog_provider": catalog,
        "chat_history_provider": history,
        "user_profile_provider": profiles,
        "index_service": index_service,
        "pdf_image_service": pdf_image_service,
        "chat_service": chat_service,
        "catalog_service": catalog_service,
        "session_service": ChatSessionService(catalog=catalog, history=history),
        "user_admin_service": user_admin_service,
        "image_analysis_service": image_analysis_service,
        "voice_service": VoiceService(transcriber=transcriber, synthesizer=synthesizer),
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    # Create the SQLite tables (idempotent)
    for key in ("catalog_provider", "chat_history_provider", "user_profile_provider"):
        await components[key].initialize()

    registry = components["provider_registry"]
    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        llm=registry["llm_name"],
        index=registry["index_name"],
        storage=registry["storage_name"],
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Repair Assistant API",
        version=__version__,
        description=(
            "Ask repair questions about a vehicle model and get answers grounded "
            "in its uploaded repair manuals, with source pages, diagrams, photo "
            "analysis and voice input."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=config.get("cors", {}).get("allowed_origins"))

    # -- API routes --
    application.include_router(api_router)
    application.include_router(admin_router)

    # -- Locally stored public assets (model pictures, logos) --
    # Only the assets bucket is served; manuals stay behind the API.
    if settings.storage_backend.strip().lower() == "local":
        assets_dir = Path(settings.local_storage_dir) / settings.assets_bucket
        assets_dir.mkdir(parents=True, exist_ok=True)
        base_url = settings.local_storage_public_url.rstrip("/") or "/storage"
        application.mount(
            f"{base_url}/{settings.assets_bucket}",
            StaticFiles(directory=str(assets_dir)),
            name="assets",
        )

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "repair_assistant.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
