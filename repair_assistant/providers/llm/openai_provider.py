"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
Answers repair questions with ``gpt-4o-mini`` and analyses component
photos with ``gpt-4o`` by default.  When ``openai_base_url`` is set the
client talks to that OpenAI-compatible endpoint instead.
"""

from __future__ import annotations

import base64

import openai
import structlog

from repair_assistant.config.settings import Settings
from repair_assistant.interfaces.llm_provider import ILLMProvider
from repair_assistant.providers.openai_client import build_async_openai
from repair_assistant.utils.errors import LLMError
from repair_assistant.utils.images import detect_media_type

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        # 25 s total keeps a slow completion inside typical proxy timeouts.
        self._client = build_async_openai(settings, timeout=openai.Timeout(25.0, connect=5.0))
        self._text_model = settings.openai_chat_model or "gpt-4o-mini"
        self._vision_model = settings.openai_vision_model or "gpt-4o"
        # Custom endpoints only get vision when a vision model is named.
        self._has_vision = bool(settings.openai_vision_model) or not settings.openai_base_url
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion via the chat completions API.

        A ``None`` message content is returned as an empty string; the chat
        flow turns that into its "having trouble" reply.
        """
        try:
            response = await self._require_client().chat.completions.create(
                model=self._text_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} timed out after 25s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content or ""

    async def vision_extract(
        self,
        image_bytes: bytes,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """Analyse a photo with the configured vision model."""
        if not self._has_vision:
            raise LLMError(
                message="Vision not supported by this provider configuration",
                provider_name=self.get_provider_name(),
            )
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        media_type = detect_media_type(image_bytes)

        messages: list[dict] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append(
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{media_type};base64,{b64}"},
                    },
                ],
            }
        )

        try:
            response = await self._require_client().chat.completions.create(
                model=self._vision_model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} vision API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message=f"{self._provider_label} vision returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_vision_extract",
            model=self._vision_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def supports_vision(self) -> bool:
        return self._has_vision

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to confirm the key is accepted without inference cost."""
        if not self.is_available():
            return False
        try:
            await self._require_client().models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        return self._provider_label

    def _require_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            raise LLMError(
                message=f"{self._provider_label} API key is not configured",
                provider_name=self.get_provider_name(),
            )
        return self._client
