"""ChromaDB manual index adapter.

Implements :class:`IVectorIndexProvider` fully locally: one persistent
ChromaDB collection per vehicle model, PDF text extracted page by page
with PyMuPDF, chunked by :class:`TextChunker` and embedded by the
injected :class:`IEmbeddingProvider`.  Useful for development and for
deployments that must not send manuals to a hosted vector store.

Indexing is synchronous, so a document is ``completed`` as soon as
:meth:`add_document` returns.  The ChromaDB client and PyMuPDF are
blocking, so every call into them runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from typing import Any

# ChromaDB reports telemetry through PostHog; switch both off before import.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from repair_assistant.interfaces.embedding_provider import IEmbeddingProvider
from repair_assistant.interfaces.vector_index_provider import IVectorIndexProvider
from repair_assistant.models.index import IndexingStatus, IndexPassage
from repair_assistant.services.ingestion.chunker import TextChunker
from repair_assistant.services.ingestion.pdf_reader import PdfManualReader
from repair_assistant.utils.errors import IndexingError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

_UPSERT_BATCH = 500


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Keeps ChromaDB from loading its default ONNX model.

    Every vector is computed by the injected embedding provider and passed
    explicitly, so this function is never called.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError("Embeddings are always supplied by the caller.")

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBIndexProvider(IVectorIndexProvider):
    """Manual index backed by local ChromaDB collections (cosine distance)."""

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        persist_directory: str = "./data/chromadb",
        chunker: TextChunker | None = None,
        reader: PdfManualReader | None = None,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._chunker = chunker or TextChunker()
        self._reader = reader or PdfManualReader()

    # ------------------------------------------------------------------
    # IVectorIndexProvider implementation
    # ------------------------------------------------------------------

    async def create_index(self, name: str) -> str:
        # Collection names must be 3-63 chars of [a-zA-Z0-9._-]; the human
        # readable name goes into the collection metadata instead.
        index_id = f"manuals-{uuid.uuid4().hex[:20]}"
        try:
            await asyncio.to_thread(self._create_collection_sync, index_id, name)
        except Exception as exc:
            raise IndexingError(
                message=f"ChromaDB collection creation failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_index_created", index_id=index_id, name=name)
        return index_id

    async def add_document(self, index_id: str, filename: str, data: bytes) -> str:
        document_id = f"doc-{uuid.uuid4().hex}"
        try:
            pages = await asyncio.to_thread(self._reader.extract_pages, data)
        except ValidationError as exc:
            raise IndexingError(
                message=f"{filename}: {exc.message}",
                provider_name=self.get_provider_name(),
            ) from exc

        chunks = []
        for page_number, text in pages:
            chunks.extend(
                self._chunker.chunk(
                    text,
                    {"document_id": document_id, "filename": filename, "page_number": page_number},
                )
            )
        if not chunks:
            raise IndexingError(
                message=f"{filename} contains no extractable text",
                provider_name=self.get_provider_name(),
            )

        embeddings = await self._embedding_provider.embed([c.text for c in chunks])

        try:
            await asyncio.to_thread(self._upsert_sync, index_id, chunks, embeddings)
        except IndexingError:
            raise
        except Exception as exc:
            raise IndexingError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_document_indexed",
            index_id=index_id,
            document_id=document_id,
            filename=filename,
            pages=len(pages),
            chunks=len(chunks),
        )
        return document_id

    async def get_document_status(self, index_id: str, document_id: str) -> IndexingStatus:
        try:
            found = await asyncio.to_thread(self._has_document_sync, index_id, document_id)
        except IndexingError:
            return IndexingStatus.FAILED
        return IndexingStatus.COMPLETED if found else IndexingStatus.FAILED

    async def remove_document(self, index_id: str, document_id: str) -> None:
        try:
            await asyncio.to_thread(self._delete_document_sync, index_id, document_id)
        except IndexingError:
            logger.info("chromadb_index_already_gone", index_id=index_id)
            return
        except Exception as exc:
            raise IndexingError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_document_removed", index_id=index_id, document_id=document_id)

    async def search(self, index_id: str, query: str, top_k: int = 8) -> list[IndexPassage]:
        # Resolve the collection first so an unknown index fails before embedding.
        collection = await asyncio.to_thread(self._collection, index_id)
        query_embedding = await self._embedding_provider.embed_single(query)

        try:
            results = await asyncio.to_thread(self._query_sync, collection, query_embedding, top_k)
        except Exception as exc:
            raise IndexingError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results or not results["documents"] or not results["documents"][0]:
            return []

        documents = results["documents"][0]
        metadatas: list[Any] = results["metadatas"][0] if results["metadatas"] else [{}] * len(documents)
        distances = results["distances"][0] if results["distances"] else [0.0] * len(documents)

        passages = [
            IndexPassage(
                document_id=str(meta.get("document_id", "")),
                filename=str(meta.get("filename", "")),
                text=text,
                score=max(0.0, min(1.0, 1.0 - distance)),
                page_number=int(meta["page_number"]) if meta.get("page_number") else None,
            )
            for text, meta, distance in zip(documents, metadatas, distances, strict=True)
        ]
        passages.sort(key=lambda p: p.score, reverse=True)

        logger.info(
            "chromadb_query",
            index_id=index_id,
            query_length=len(query),
            results_count=len(passages),
            top_score=passages[0].score if passages else 0.0,
        )
        return passages

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    def _collection(self, index_id: str) -> chromadb.Collection:
        try:
            return self._client.get_collection(
                name=index_id,
                embedding_function=_NoopEmbeddingFunction(),
            )
        except Exception as exc:
            raise IndexingError(
                message=f"Unknown index {index_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _create_collection_sync(self, index_id: str, title: str) -> None:
        self._client.create_collection(
            name=index_id,
            metadata={"hnsw:space": "cosine", "title": title},
            embedding_function=_NoopEmbeddingFunction(),
        )

    def _upsert_sync(self, index_id: str, chunks: list, embeddings: list[list[float]]) -> None:
        collection = self._collection(index_id)
        for start in range(0, len(chunks), _UPSERT_BATCH):
            batch = chunks[start : start + _UPSERT_BATCH]
            collection.upsert(
                ids=[c.chunk_id for c in batch],
                embeddings=embeddings[start : start + _UPSERT_BATCH],
                documents=[c.text for c in batch],
                metadatas=[
                    {
                        "document_id": c.document_id,
                        "filename": c.filename,
                        "page_number": c.page_number or 0,
                    }
                    for c in batch
                ],
            )

    def _has_document_sync(self, index_id: str, document_id: str) -> bool:
        found = self._collection(index_id).get(where={"document_id": document_id}, limit=1)
        return bool(found["ids"])

    def _delete_document_sync(self, index_id: str, document_id: str) -> None:
        self._collection(index_id).delete(where={"document_id": document_id})

    @staticmethod
    def _query_sync(
        collection: chromadb.Collection, query_embedding: list[float], top_k: int
    ) -> dict[str, Any] | None:
        count = collection.count()
        if count == 0:
            return None
        return collection.query(query_embeddings=[query_embedding], n_results=min(top_k, count))
