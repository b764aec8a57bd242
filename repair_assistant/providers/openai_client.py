"""Shared construction of ``openai.AsyncOpenAI`` clients for the adapters.

Every adapter makes exactly one attempt per call (``max_retries=0``): the
services above them own the fallback behaviour.  The SDK refuses to build a
client without an API key, so an unconfigured adapter holds ``None`` and
raises its own error type when used.
"""

from __future__ import annotations

import openai

from repair_assistant.config.settings import Settings


def build_async_openai(settings: Settings, timeout: openai.Timeout | None = None) -> openai.AsyncOpenAI | None:
    """Return a client for the configured endpoint, or ``None`` without an API key."""
    if not settings.openai_api_key:
        return None

    client_kwargs: dict = {"api_key": settings.openai_api_key, "max_retries": 0}
    if timeout is not None:
        client_kwargs["timeout"] = timeout
    if settings.openai_base_url:
        client_kwargs["base_url"] = settings.openai_base_url
    return openai.AsyncOpenAI(**client_kwargs)
