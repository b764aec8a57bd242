"""Keeps a vehicle model's manuals uploaded to its vector index.

Every chat request for a model with manuals goes through
:meth:`ManualIndexService.ensure_indexed` before retrieval.  The first
call creates the model's index and persists its id on the model; later
calls only upload documents that have no index-side id yet.

# ─── FLOW ─────────────────────────────────────────────────────────────
#
#   lock(model) → re-read model → create index if missing
#       └─ for each document without vector_store_document_id:
#            download PDF (manuals bucket) → add_document → poll status
#            → persist index-side id (unless indexing failed)
#
# The per-model asyncio.Lock makes concurrent chats for the same model
# wait for one another instead of each creating an index.  A document
# that fails to download or index is logged and skipped; it is retried
# on the next call.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict

import structlog

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.interfaces.object_storage_provider import IObjectStorageProvider
from repair_assistant.interfaces.vector_index_provider import IVectorIndexProvider
from repair_assistant.models.catalog import CarModel, PdfDocument
from repair_assistant.models.index import IndexingStatus
from repair_assistant.utils.errors import IndexingError, NotFoundError, StorageError
from repair_assistant.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class ManualIndexService:
    """Creates vector indexes and uploads manuals on demand.

    Parameters
    ----------
    catalog:
        Catalog store; the index id lives on the model row and the
        index-side document id on the document row.
    index:
        Vector index backend.
    storage:
        Object storage holding the uploaded PDFs.
    manuals_bucket:
        Bucket the PDFs were uploaded to.
    poll_interval:
        Seconds between indexing status checks.
    poll_timeout:
        Seconds to wait for one document before giving up on polling.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        index: IVectorIndexProvider,
        storage: IObjectStorageProvider,
        manuals_bucket: str = "repair-manuals",
        poll_interval: float = 2.0,
        poll_timeout: float = 120.0,
    ) -> None:
        self._catalog = catalog
        self._index = index
        self._storage = storage
        self._manuals_bucket = manuals_bucket
        self._poll_interval = poll_interval
        self._poll_timeout = poll_timeout
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def index(self) -> IVectorIndexProvider:
        return self._index

    async def ensure_indexed(self, model: CarModel, documents: list[PdfDocument]) -> str:
        """Return the model's index id after uploading any unindexed manuals.

        Raises
        ------
        IndexingError
            If the index itself cannot be created.
        NotFoundError
            If the model was deleted meanwhile.
        """
        async with self._locks[model.id]:
            current = await self._catalog.get_model(model.id)
            if current is None:
                raise NotFoundError(message=f"Model {model.id} no longer exists")

            index_id = current.vector_store_id
            if not index_id:
                index_id = await self._index.create_index(f"{current.full_name} manuals")
                await self._catalog.set_model_vector_store(current.id, index_id)
                logger.info("manual_index_created", model_id=current.id, index_id=index_id)

            pending = [d for d in documents if not d.is_indexed]
            for document in pending:
                await self._index_document(index_id, document)

        return index_id

    async def remove_document(self, index_id: str | None, document: PdfDocument) -> None:
        """Best-effort removal of a document from the index."""
        if not index_id or not document.vector_store_document_id:
            return
        try:
            await self._index.remove_document(index_id, document.vector_store_document_id)
        except IndexingError as exc:
            logger.warning(
                "manual_index_removal_failed",
                document_id=document.id,
                index_id=index_id,
                error=str(exc),
            )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _index_document(self, index_id: str, document: PdfDocument) -> None:
        try:
            data = await self._storage.download(self._manuals_bucket, document.storage_path)
            external_id = await self._index.add_document(index_id, document.original_filename, data)
            status = await self._wait_for_indexing(index_id, external_id)
        except (StorageError, IndexingError) as exc:
            logger.error(
                "manual_index_upload_failed",
                document_id=document.id,
                index_id=index_id,
                error=str(exc),
            )
            return

        if status is IndexingStatus.FAILED or status is IndexingStatus.CANCELLED:
            logger.error(
                "manual_indexing_failed",
                document_id=document.id,
                external_id=external_id,
                status=status.value,
            )
            return

        await self._catalog.set_document_vector_id(document.id, external_id)
        logger.info(
            "manual_indexed",
            document_id=document.id,
            external_id=external_id,
            status=status.value,
        )

    async def _wait_for_indexing(self, index_id: str, external_id: str) -> IndexingStatus:
        """Poll until the document leaves ``in_progress`` or the timeout elapses."""
        deadline = time.monotonic() + self._poll_timeout
        status = await self._index.get_document_status(index_id, external_id)
        while not status.is_terminal and time.monotonic() < deadline:
            await asyncio.sleep(self._poll_interval)
            status = await self._index.get_document_status(index_id, external_id)

        if not status.is_terminal:
            logger.warning("manual_indexing_poll_timeout", index_id=index_id, external_id=external_id)
        return status
