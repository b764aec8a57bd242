"""LLM provider adapters.

Two concrete implementations of ILLMProvider:
    - OpenAILLMProvider    — gpt-4o-mini text / gpt-4o vision (or any OpenAI-compatible API)
    - AnthropicLLMProvider — Claude Sonnet (text + vision)

main.py picks one from LLM_PROVIDER or the first configured API key.
"""

from repair_assistant.providers.llm.anthropic_provider import AnthropicLLMProvider
from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
