"""OpenAI text-to-speech provider.

Reads assistant answers aloud for the voice mode of the chat screen.
The speech endpoint detects the language from the text itself, so the
``language`` hint is only logged.
"""

from __future__ import annotations

import openai
import structlog

from repair_assistant.config.settings import Settings
from repair_assistant.interfaces.speech_provider import ISpeechSynthesisProvider
from repair_assistant.providers.openai_client import build_async_openai
from repair_assistant.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

# Hard limit of the speech endpoint.
_MAX_INPUT_CHARS = 4096


class OpenAITTSProvider(ISpeechSynthesisProvider):
    """Text-to-speech via ``audio.speech.create`` returning MP3 bytes."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._model = settings.openai_tts_model
        self._voice = settings.openai_tts_voice
        self._client = build_async_openai(settings)

    async def synthesize(self, text: str, language: str | None = None) -> bytes:
        spoken = text[:_MAX_INPUT_CHARS]
        try:
            response = await self._require_client().audio.speech.create(
                model=self._model,
                voice=self._voice,
                input=spoken,
                response_format="mp3",
            )
        except openai.APIError as exc:
            raise LLMError(
                message=f"Speech API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        audio = response.content
        logger.info(
            "openai_tts_complete",
            model=self._model,
            voice=self._voice,
            language=language,
            chars=len(spoken),
            audio_bytes=len(audio),
        )
        return audio

    def audio_format(self) -> str:
        return "audio/mpeg"

    def get_provider_name(self) -> str:
        return "openai_tts"

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _require_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            raise LLMError(
                message="OpenAI API key is not configured for speech",
                provider_name=self.get_provider_name(),
            )
        return self._client
