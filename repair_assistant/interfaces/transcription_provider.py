"""Abstract base class for speech-to-text providers.

The voice recorder posts recorded audio; a transcription provider turns
it into the text question that is then sent through the chat flow.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field


class TranscriptionResult(BaseModel):
    """Immutable result from an audio transcription."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Full transcribed text.")
    language: str = Field(default="en", description="Detected or specified language.")
    duration_seconds: float = Field(default=0.0, description="Audio duration in seconds.")


class ITranscriptionProvider(ABC):
    """Contract for audio transcription backends."""

    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        language: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe recorded audio to text.

        Parameters
        ----------
        audio:
            Raw audio bytes as recorded by the browser.
        filename:
            Name hint whose extension tells the backend the container format.
        language:
            Optional ISO 639-1 code; ``None`` lets the backend detect it.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the provider can accept transcription requests."""

    @abstractmethod
    def supported_formats(self) -> list[str]:
        """Return supported audio file extensions (e.g. ['.webm', '.mp3'])."""
