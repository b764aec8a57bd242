"""OpenAI Whisper API transcription provider.

# ─── VOICE QUESTIONS ──────────────────────────────────────────────────
#
# The voice recorder in the chat screen records a short clip (usually
# WebM/Opus from the browser) and posts it base64-encoded.  The clip is
# sent to Whisper as an in-memory file; nothing touches the disk.
#
# Max upload size accepted by the API: 25 MB per request.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import openai
import structlog

from repair_assistant.config.settings import Settings
from repair_assistant.interfaces.transcription_provider import (
    ITranscriptionProvider,
    TranscriptionResult,
)
from repair_assistant.providers.openai_client import build_async_openai
from repair_assistant.utils.errors import LLMError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

_MAX_AUDIO_BYTES = 25 * 1024 * 1024


class WhisperAPIProvider(ITranscriptionProvider):
    """Transcription via the OpenAI audio transcriptions endpoint."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._model = settings.openai_transcription_model
        self._client = build_async_openai(settings)

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        language: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe audio bytes using the Whisper API."""
        if len(audio) > _MAX_AUDIO_BYTES:
            raise ValidationError(
                message="Audio recording exceeds 25 MB",
                provider_name=self.get_provider_name(),
            )

        kwargs: dict = {
            "model": self._model,
            "file": (filename, audio),
            "response_format": "verbose_json",
        }
        if language:
            kwargs["language"] = language

        try:
            response = await self._require_client().audio.transcriptions.create(**kwargs)
        except openai.APIError as exc:
            raise LLMError(
                message=f"Whisper API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        duration = getattr(response, "duration", 0.0) or 0.0
        detected_language = getattr(response, "language", None) or language or "en"

        logger.info(
            "whisper_api_transcription_complete",
            duration=duration,
            language=detected_language,
            audio_bytes=len(audio),
        )

        return TranscriptionResult(
            text=(response.text or "").strip(),
            language=detected_language,
            duration_seconds=duration,
        )

    def get_provider_name(self) -> str:
        return "whisper_api"

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _require_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            raise LLMError(
                message="OpenAI API key is not configured for transcription",
                provider_name=self.get_provider_name(),
            )
        return self._client

    def supported_formats(self) -> list[str]:
        return [".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".ogg", ".wav", ".webm"]
