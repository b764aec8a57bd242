"""Unit tests for SDK client construction: single attempt per call, no key, no client."""

from __future__ import annotations

from unittest.mock import patch

import anthropic
import httpx
import openai
import pytest

from repair_assistant.config.settings import Settings
from repair_assistant.utils.errors import IndexingError, LLMError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "anthropic_api_key": "test-anthropic",
        "anthropic_model": "claude-test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class _CountingTransport:
    """Answers every request with 503 and remembers the paths it saw."""

    def __init__(self) -> None:
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        return httpx.Response(503, json={"error": {"message": "overloaded", "type": "server_error"}})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


# ======================================================================
# build_async_openai
# ======================================================================


class TestBuildAsyncOpenAI:
    def test_no_key_gives_no_client(self) -> None:
        from repair_assistant.providers.openai_client import build_async_openai

        assert build_async_openai(_settings(openai_api_key="")) is None

    def test_client_never_retries(self) -> None:
        from repair_assistant.providers.openai_client import build_async_openai

        client = build_async_openai(_settings())
        assert client is not None
        assert client.max_retries == 0

    def test_custom_endpoint_and_timeout(self) -> None:
        from repair_assistant.providers.openai_client import build_async_openai

        client = build_async_openai(
            _settings(openai_base_url="http://localhost:1234/v1"),
            timeout=openai.Timeout(60.0, connect=5.0),
        )
        assert str(client.base_url).startswith("http://localhost:1234/v1")
        assert client.timeout.read == 60.0


# ======================================================================
# One HTTP attempt per call
# ======================================================================


class TestSingleAttempt:
    @pytest.mark.asyncio
    async def test_openai_completion_is_not_retried(self) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        transport = _CountingTransport()
        real_client = openai.AsyncOpenAI

        def _client(**kwargs):
            return real_client(**kwargs, http_client=transport.client())

        with patch("repair_assistant.providers.openai_client.openai.AsyncOpenAI", side_effect=_client):
            provider = OpenAILLMProvider(_settings())

        with pytest.raises(LLMError):
            await provider.complete("system", "user")
        assert transport.paths == ["/v1/chat/completions"]

    @pytest.mark.asyncio
    async def test_vector_store_search_is_not_retried(self) -> None:
        from repair_assistant.providers.vector_index.openai_vector_store_provider import (
            OpenAIVectorStoreProvider,
        )

        transport = _CountingTransport()
        real_client = openai.AsyncOpenAI

        def _client(**kwargs):
            return real_client(**kwargs, http_client=transport.client())

        with patch("repair_assistant.providers.openai_client.openai.AsyncOpenAI", side_effect=_client):
            provider = OpenAIVectorStoreProvider(_settings())

        with pytest.raises(IndexingError):
            await provider.search("vs-1", "brake pads")
        assert len(transport.paths) == 1

    @pytest.mark.asyncio
    async def test_anthropic_completion_is_not_retried(self) -> None:
        from repair_assistant.providers.llm.anthropic_provider import AnthropicLLMProvider

        transport = _CountingTransport()
        real_client = anthropic.AsyncAnthropic

        def _client(**kwargs):
            return real_client(**kwargs, http_client=transport.client())

        with patch("repair_assistant.providers.llm.anthropic_provider.anthropic.AsyncAnthropic", side_effect=_client):
            provider = AnthropicLLMProvider(_settings())

        with pytest.raises(LLMError):
            await provider.complete("system", "user")
        assert transport.paths == ["/v1/messages"]


# ======================================================================
# Adapters without an API key
# ======================================================================


class TestUnconfiguredAdapters:
    @pytest.mark.asyncio
    async def test_openai_llm(self) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        provider = OpenAILLMProvider(_settings(openai_api_key=""))
        assert provider.is_available() is False
        assert await provider.validate_credentials() is False
        with pytest.raises(LLMError, match="not configured"):
            await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_anthropic_llm(self) -> None:
        from repair_assistant.providers.llm.anthropic_provider import AnthropicLLMProvider

        provider = AnthropicLLMProvider(_settings(anthropic_api_key=""))
        assert provider.is_available() is False
        with pytest.raises(LLMError, match="not configured"):
            await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_vector_store(self) -> None:
        from repair_assistant.providers.vector_index.openai_vector_store_provider import (
            OpenAIVectorStoreProvider,
        )

        provider = OpenAIVectorStoreProvider(_settings(openai_api_key=""))
        assert provider.is_available() is False
        with pytest.raises(IndexingError, match="not configured"):
            await provider.create_index("Voyah Courage manuals")

    @pytest.mark.asyncio
    async def test_embeddings(self) -> None:
        from repair_assistant.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        provider = OpenAIEmbeddingProvider(_settings(openai_api_key=""))
        assert provider.is_available() is False
        assert await provider.embed([]) == []
        with pytest.raises(IndexingError, match="not configured"):
            await provider.embed(["brake pads"])

    @pytest.mark.asyncio
    async def test_voice(self) -> None:
        from repair_assistant.providers.speech.openai_tts_provider import OpenAITTSProvider
        from repair_assistant.providers.transcription.whisper_api_provider import WhisperAPIProvider

        transcriber = WhisperAPIProvider(_settings(openai_api_key=""))
        synthesizer = OpenAITTSProvider(_settings(openai_api_key=""))
        assert transcriber.is_available() is False
        assert synthesizer.is_available() is False
        with pytest.raises(LLMError, match="not configured"):
            await transcriber.transcribe(b"audio")
        with pytest.raises(LLMError, match="not configured"):
            await synthesizer.synthesize("Torque the bolts to 35 Nm.")
