"""Speech-to-text provider adapters."""

from repair_assistant.providers.transcription.whisper_api_provider import WhisperAPIProvider

__all__ = ["WhisperAPIProvider"]
