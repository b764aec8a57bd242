"""OpenAI hosted vector store adapter.

Implements :class:`IVectorIndexProvider` on top of the OpenAI Files and
Vector Stores APIs.  This is the backend the assistant was built around:
OpenAI parses each PDF, chunks and embeds it server-side, and answers
``vector_stores.search`` queries.

# ─── REQUEST SEQUENCE ─────────────────────────────────────────────────
#
#   create_index      → vector_stores.create(name=...)
#   add_document      → files.create(purpose="assistants")
#                       vector_stores.files.create(vector_store_id, file_id)
#   get_document_status → vector_stores.files.retrieve(file_id, vector_store_id=...)
#   remove_document   → vector_stores.files.delete + files.delete
#   search            → vector_stores.search(vector_store_id, query=...)
#
# The index-side document id is the OpenAI file id.  Hosted search does
# not report page numbers, so passages carry ``page_number=None``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import openai
import structlog

from repair_assistant.config.settings import Settings
from repair_assistant.interfaces.vector_index_provider import IVectorIndexProvider
from repair_assistant.models.index import IndexingStatus, IndexPassage
from repair_assistant.providers.openai_client import build_async_openai
from repair_assistant.utils.errors import IndexingError

logger = structlog.get_logger(logger_name=__name__)

_STATUS_MAP: dict[str, IndexingStatus] = {
    "in_progress": IndexingStatus.IN_PROGRESS,
    "completed": IndexingStatus.COMPLETED,
    "failed": IndexingStatus.FAILED,
    "cancelled": IndexingStatus.CANCELLED,
}


class OpenAIVectorStoreProvider(IVectorIndexProvider):
    """Manual index backed by an OpenAI vector store per vehicle model."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._client = build_async_openai(settings, timeout=openai.Timeout(60.0, connect=5.0))

    async def create_index(self, name: str) -> str:
        try:
            store = await self._require_client().vector_stores.create(name=name)
        except openai.APIError as exc:
            raise IndexingError(
                message=f"Vector store creation failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("openai_vector_store_created", vector_store_id=store.id, name=name)
        return store.id

    async def add_document(self, index_id: str, filename: str, data: bytes) -> str:
        client = self._require_client()
        try:
            uploaded = await client.files.create(
                file=(filename, data, "application/pdf"),
                purpose="assistants",
            )
            await client.vector_stores.files.create(
                vector_store_id=index_id,
                file_id=uploaded.id,
            )
        except openai.APIError as exc:
            raise IndexingError(
                message=f"Uploading {filename} to vector store failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info(
            "openai_vector_store_file_added",
            vector_store_id=index_id,
            file_id=uploaded.id,
            filename=filename,
            size=len(data),
        )
        return uploaded.id

    async def get_document_status(self, index_id: str, document_id: str) -> IndexingStatus:
        try:
            vs_file = await self._require_client().vector_stores.files.retrieve(
                document_id,
                vector_store_id=index_id,
            )
        except openai.APIError as exc:
            raise IndexingError(
                message=f"Vector store status check failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        status = _STATUS_MAP.get(str(vs_file.status), IndexingStatus.FAILED)
        if status is IndexingStatus.FAILED and getattr(vs_file, "last_error", None):
            logger.warning(
                "openai_vector_store_file_failed",
                vector_store_id=index_id,
                file_id=document_id,
                error=str(vs_file.last_error),
            )
        return status

    async def remove_document(self, index_id: str, document_id: str) -> None:
        client = self._require_client()
        try:
            await client.vector_stores.files.delete(document_id, vector_store_id=index_id)
            await client.files.delete(document_id)
        except openai.NotFoundError:
            logger.info("openai_vector_store_file_already_gone", file_id=document_id)
        except openai.APIError as exc:
            raise IndexingError(
                message=f"Vector store file removal failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def search(self, index_id: str, query: str, top_k: int = 8) -> list[IndexPassage]:
        try:
            page = await self._require_client().vector_stores.search(
                index_id,
                query=query,
                max_num_results=top_k,
            )
        except openai.APIError as exc:
            raise IndexingError(
                message=f"Vector store search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        passages: list[IndexPassage] = []
        for item in page.data:
            text = "\n".join(part.text for part in item.content if getattr(part, "text", None))
            if not text:
                continue
            passages.append(
                IndexPassage(
                    document_id=item.file_id,
                    filename=item.filename,
                    text=text,
                    score=max(0.0, min(1.0, float(item.score))),
                )
            )

        logger.info(
            "openai_vector_store_search",
            vector_store_id=index_id,
            query_length=len(query),
            results_count=len(passages),
            top_score=passages[0].score if passages else 0.0,
        )
        return passages

    def get_provider_name(self) -> str:
        return "openai_vector_store"

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _require_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            raise IndexingError(
                message="OpenAI API key is not configured for the vector store",
                provider_name=self.get_provider_name(),
            )
        return self._client
