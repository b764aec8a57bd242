"""Text-to-speech provider adapters."""

from repair_assistant.providers.speech.openai_tts_provider import OpenAITTSProvider

__all__ = ["OpenAITTSProvider"]
