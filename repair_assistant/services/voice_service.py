"""Voice input and spoken answers for hands-busy technicians."""

from __future__ import annotations

import base64

import structlog

from repair_assistant.interfaces.speech_provider import ISpeechSynthesisProvider
from repair_assistant.interfaces.transcription_provider import ITranscriptionProvider
from repair_assistant.utils.encoding import decode_base64_payload
from repair_assistant.utils.errors import ValidationError
from repair_assistant.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class VoiceService:
    """Base64 in, base64 out wrapper around transcription and speech synthesis."""

    def __init__(
        self,
        transcriber: ITranscriptionProvider,
        synthesizer: ISpeechSynthesisProvider,
    ) -> None:
        self._transcriber = transcriber
        self._synthesizer = synthesizer

    async def transcribe(
        self,
        audio: str | None,
        language: str | None = None,
        filename: str = "recording.webm",
    ) -> str:
        if not audio:
            raise ValidationError(message="No audio data provided")
        result = await self._transcriber.transcribe(
            decode_base64_payload(audio), filename=filename, language=language
        )
        logger.info("voice_transcribed", language=result.language, chars=len(result.text))
        return result.text

    async def speak(self, text: str | None, language: str | None = None) -> str:
        """Return base64-encoded audio of *text*."""
        if not text or not text.strip():
            raise ValidationError(message="Text is required")
        audio = await self._synthesizer.synthesize(text, language=language)
        logger.info("voice_synthesized", chars=len(text), audio_bytes=len(audio))
        return base64.b64encode(audio).decode("ascii")

    @property
    def audio_format(self) -> str:
        return self._synthesizer.audio_format()
