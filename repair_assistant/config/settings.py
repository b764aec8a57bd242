"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources, highest priority first:
#
#   1. Environment variables, e.g. OPENAI_API_KEY=sk-abc123
#   2. A .env file in the working directory (local development)
#
# Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults
# apply when neither source sets a value.  An empty string means
# "not configured": the builders in main.py skip unconfigured providers.
#
# List-valued fields (ADMIN_EMAILS, PROTECTED_EMAILS) accept a
# comma-separated string as well as a JSON array.
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Repair assistant application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === LLM Providers ===
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_chat_model: str = ""  # default gpt-4o-mini
    openai_vision_model: str = ""  # default gpt-4o
    openai_embedding_model: str = ""  # default text-embedding-3-small
    openai_transcription_model: str = "whisper-1"
    openai_tts_model: str = "tts-1"
    openai_tts_voice: str = "alloy"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    # "openai" or "anthropic"; empty picks the first configured key.
    llm_provider: str = ""

    # === Manual index ===
    index_backend: str = "openai"  # "openai" (hosted vector store) | "chromadb"
    chromadb_persist_dir: str = "./data/chromadb"
    index_poll_interval_seconds: float = 2.0
    index_poll_timeout_seconds: float = 120.0

    # === Database ===
    database_path: str = "data/repair_assistant.db"

    # === Object storage ===
    storage_backend: str = "local"  # "local" | "supabase"
    local_storage_dir: str = "./data/storage"
    local_storage_public_url: str = "/storage"
    manuals_bucket: str = "repair-manuals"
    assets_bucket: str = "app-assets"

    # === Hosted backend (auth + storage) ===
    supabase_url: str = ""
    supabase_service_key: str = ""
    supabase_jwt_secret: str = ""
    jwt_audience: str = "authenticated"

    # === Users ===
    admin_emails: Annotated[list[str], NoDecode] = []
    protected_emails: Annotated[list[str], NoDecode] = []

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @field_validator("admin_emails", "protected_emails", mode="before")
    @classmethod
    def _split_emails(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                import json

                return [str(v).strip().lower() for v in json.loads(stripped)]
            return [part.strip().lower() for part in stripped.split(",") if part.strip()]
        if isinstance(value, list):
            return [str(v).strip().lower() for v in value]
        return value

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        return providers
