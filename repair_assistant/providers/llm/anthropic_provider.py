"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`
via the Messages API.  Differences from the OpenAI adapter:

    - the system prompt is a top-level ``system`` argument
    - images are ``image`` blocks with an inline base64 source, placed
      before the text block
    - responses are lists of content blocks; text blocks are joined
"""

from __future__ import annotations

import base64

import anthropic
import structlog

from repair_assistant.config.settings import Settings
from repair_assistant.interfaces.llm_provider import ILLMProvider
from repair_assistant.utils.errors import LLMError
from repair_assistant.utils.images import detect_media_type

logger = structlog.get_logger(logger_name=__name__)


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API (text + vision)."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.anthropic_api_key
        # One attempt per call: the chat flow has its own fallback replies.
        self._client: anthropic.AsyncAnthropic | None = (
            anthropic.AsyncAnthropic(api_key=self._api_key, max_retries=0) if self._api_key else None
        )
        self._model = settings.anthropic_model

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        try:
            response = await self._require_client().messages.create(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
            )
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text = "\n".join(block.text for block in response.content if block.type == "text")
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return text

    async def vision_extract(
        self,
        image_bytes: bytes,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        kwargs: dict = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": detect_media_type(image_bytes),
                                "data": b64,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self._require_client().messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"Anthropic vision API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMError(
                message="Anthropic vision returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_vision_extract",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    def supports_vision(self) -> bool:
        return True

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Send a 10-token completion to verify the API key works."""
        if not self.is_available():
            return False
        try:
            await self._require_client().messages.create(
                model=self._model,
                max_tokens=10,
                messages=[{"role": "user", "content": "hi"}],
            )
            return True
        except anthropic.APIError:
            return False

    def get_provider_name(self) -> str:
        return "anthropic"

    def _require_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            raise LLMError(
                message="Anthropic API key is not configured",
                provider_name=self.get_provider_name(),
            )
        return self._client
