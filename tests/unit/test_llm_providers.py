"""Unit tests for LLM provider adapters: OpenAI and Anthropic."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from repair_assistant.config.settings import Settings
from repair_assistant.utils.errors import LLMError
from tests.conftest import png_bytes


# ======================================================================
# Shared helpers
# ======================================================================

def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_chat_model": "",
        "openai_vision_model": "",
        "anthropic_api_key": "test-anthropic",
        "anthropic_model": "claude-test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://api.test/v1")


def _openai_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=42)
    return response


def _anthropic_response(*texts: str) -> MagicMock:
    response = MagicMock()
    response.content = [MagicMock(type="text", text=t) for t in texts]
    response.usage = MagicMock(input_tokens=10, output_tokens=5)
    return response


# ======================================================================
# OpenAI LLM Provider
# ======================================================================


class TestOpenAILLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_provider_name_and_availability(self, settings: Settings) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        provider = OpenAILLMProvider(settings)
        assert provider.get_provider_name() == "openai"
        assert provider.is_available() is True
        assert provider.supports_vision() is True

    def test_custom_endpoint_without_vision_model(self) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        provider = OpenAILLMProvider(_settings(openai_base_url="http://localhost:1234/v1"))
        assert provider.get_provider_name() == "openai-compatible"
        assert provider.supports_vision() is False

        with_vision = OpenAILLMProvider(
            _settings(openai_base_url="http://localhost:1234/v1", openai_vision_model="llava")
        )
        assert with_vision.supports_vision() is True

    def test_is_available_without_key(self) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_success(self, settings: Settings) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_openai_response("Check fuse F12."))

        with patch("repair_assistant.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            result = await provider.complete("system prompt", "user prompt", max_tokens=800)

        assert result == "Check fuse F12."
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 800
        assert kwargs["messages"][0] == {"role": "system", "content": "system prompt"}

    @pytest.mark.asyncio
    async def test_complete_empty_content_returns_empty_string(self, settings: Settings) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_openai_response(None))

        with patch("repair_assistant.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            assert await provider.complete("s", "u") == ""

    @pytest.mark.asyncio
    async def test_complete_error(self, settings: Settings) -> None:
        import openai

        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(message="Rate limit exceeded", request=_request(), body=None)
        )

        with patch("repair_assistant.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError, match="Rate limit exceeded"):
                await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_vision_sends_data_uri(self, settings: Settings) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_openai_response("Cracked hose."))

        with patch("repair_assistant.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            result = await provider.vision_extract(png_bytes(), "What is this?", system_prompt="Expert")

        assert result == "Cracked hose."
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        image_part = kwargs["messages"][1]["content"][1]
        assert image_part["image_url"]["url"].startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_vision_empty_response_raises(self, settings: Settings) -> None:
        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_openai_response(""))

        with patch("repair_assistant.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError):
                await provider.vision_extract(png_bytes(), "What is this?")

    @pytest.mark.asyncio
    async def test_validate_credentials(self, settings: Settings) -> None:
        import openai

        from repair_assistant.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.models.list = AsyncMock(return_value=[])
        with patch("repair_assistant.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            assert await OpenAILLMProvider(settings).validate_credentials() is True

        mock_client.models.list = AsyncMock(
            side_effect=openai.APIError(message="bad key", request=_request(), body=None)
        )
        with patch("repair_assistant.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            assert await OpenAILLMProvider(settings).validate_credentials() is False


# ======================================================================
# Anthropic LLM Provider
# ======================================================================


class TestAnthropicLLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_provider_name(self, settings: Settings) -> None:
        from repair_assistant.providers.llm.anthropic_provider import AnthropicLLMProvider

        provider = AnthropicLLMProvider(settings)
        assert provider.get_provider_name() == "anthropic"
        assert provider.supports_vision() is True
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self, settings: Settings) -> None:
        from repair_assistant.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=_anthropic_response("Step 1.", "Step 2."))

        with patch(
            "repair_assistant.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicLLMProvider(settings)
            result = await provider.complete("system", "user")

        assert result == "Step 1.\nStep 2."
        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["model"] == "claude-test"

    @pytest.mark.asyncio
    async def test_complete_error(self, settings: Settings) -> None:
        import anthropic

        from repair_assistant.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(
            side_effect=anthropic.APIError(message="overloaded", request=_request(), body=None)
        )

        with patch(
            "repair_assistant.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicLLMProvider(settings)
            with pytest.raises(LLMError):
                await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_vision_without_text_raises(self, settings: Settings) -> None:
        from repair_assistant.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=_anthropic_response())

        with patch(
            "repair_assistant.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicLLMProvider(settings)
            with pytest.raises(LLMError, match="no text"):
                await provider.vision_extract(png_bytes(), "Describe")
