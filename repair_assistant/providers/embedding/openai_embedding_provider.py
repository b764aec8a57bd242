"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`
for the locally hosted manual index.  Uses ``text-embedding-3-small``
(1536 dims) unless ``openai_embedding_model`` names another model.
"""

from __future__ import annotations

import openai
import structlog

from repair_assistant.config.settings import Settings
from repair_assistant.interfaces.embedding_provider import IEmbeddingProvider
from repair_assistant.providers.openai_client import build_async_openai
from repair_assistant.utils.errors import IndexingError

logger = structlog.get_logger(logger_name=__name__)

_OPENAI_BATCH_LIMIT = 2048

_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Inputs larger than the per-call limit are split into batches of 2048.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        self._client = build_async_openai(settings)
        self._model = settings.openai_embedding_model or "text-embedding-3-small"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        client = self._require_client()
        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _OPENAI_BATCH_LIMIT):
                batch = texts[start : start + _OPENAI_BATCH_LIMIT]
                response = await client.embeddings.create(input=batch, model=self._model)
                all_embeddings.extend(item.embedding for item in response.data)
                logger.info(
                    "openai_embedding_batch",
                    model=self._model,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
            return all_embeddings
        except openai.APIError as exc:
            raise IndexingError(
                message=f"Embedding API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "openai_embedding"

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _require_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            raise IndexingError(
                message="OpenAI API key is not configured for embeddings",
                provider_name=self.get_provider_name(),
            )
        return self._client
