"""Abstract base class for text-to-speech providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAITTSProvider
# Located in: repair_assistant/providers/speech/
class ISpeechSynthesisProvider(ABC):
    """Contract for services that read assistant answers aloud."""

    @abstractmethod
    async def synthesize(self, text: str, language: str | None = None) -> bytes:
        """Return encoded audio (see :meth:`audio_format`) speaking *text*.

        Raises
        ------
        repair_assistant.utils.errors.LLMError
            If the speech API call fails.
        """

    @abstractmethod
    def audio_format(self) -> str:
        """Return the MIME type of the audio produced by :meth:`synthesize`."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if credentials are configured."""
