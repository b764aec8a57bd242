"""Images embedded in manual pages (diagrams, exploded views, pinouts).

Manuals are downloaded from object storage on demand and parsed with
PyMuPDF in a worker thread.  Image references point at the
``/api/v1/documents/{id}/images/{page}/{index}`` endpoint, which streams
the bytes through :meth:`PdfImageService.get_image`.
"""

from __future__ import annotations

import asyncio

import structlog

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.interfaces.object_storage_provider import IObjectStorageProvider
from repair_assistant.models.catalog import PdfDocument
from repair_assistant.models.chat import SourceImage
from repair_assistant.services.ingestion.pdf_reader import PageImage, PdfManualReader
from repair_assistant.utils.errors import NotFoundError, ValidationError
from repair_assistant.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

IMAGE_URL_TEMPLATE = "/api/v1/documents/{document_id}/images/{page}/{index}"


class PdfImageService:
    """Finds and serves images from uploaded manual PDFs."""

    def __init__(
        self,
        catalog: ICatalogProvider,
        storage: IObjectStorageProvider,
        reader: PdfManualReader | None = None,
        manuals_bucket: str = "repair-manuals",
    ) -> None:
        self._catalog = catalog
        self._storage = storage
        self._reader = reader or PdfManualReader()
        self._manuals_bucket = manuals_bucket

    async def find_images(
        self,
        document_id: str,
        query: str | None = None,
        pages: list[int] | None = None,
        limit: int = 10,
    ) -> list[SourceImage]:
        """Return image references from *pages*, or from the pages matching *query*.

        Raises
        ------
        ValidationError
            If neither *query* nor *pages* is given.
        NotFoundError
            If the document does not exist.
        """
        if not pages and not (query and query.strip()):
            raise ValidationError(message="A query or a list of pages is required")

        document = await self._require_document(document_id)
        data = await self._storage.download(self._manuals_bucket, document.storage_path)

        if not pages:
            pages = await asyncio.to_thread(self._reader.find_pages, data, query or "")
        images = await asyncio.to_thread(self._reader.extract_images, data, sorted(set(pages)))

        refs = [self._to_reference(document_id, image) for image in images[:limit]]
        logger.info(
            "manual_images_found",
            document_id=document_id,
            pages=pages,
            images=len(refs),
        )
        return refs

    async def get_image(self, document_id: str, page: int, index: int) -> PageImage:
        """Return one embedded image.

        Raises
        ------
        NotFoundError
            If the document, page or image does not exist.
        """
        document = await self._require_document(document_id)
        data = await self._storage.download(self._manuals_bucket, document.storage_path)
        images = await asyncio.to_thread(self._reader.extract_images, data, [page])
        for image in images:
            if image.index == index:
                return image
        raise NotFoundError(message=f"No image {index} on page {page} of document {document_id}")

    async def _require_document(self, document_id: str) -> PdfDocument:
        document = await self._catalog.get_document(document_id)
        if document is None:
            raise NotFoundError(message=f"Document {document_id} not found")
        return document

    @staticmethod
    def _to_reference(document_id: str, image: PageImage) -> SourceImage:
        return SourceImage(
            document_id=document_id,
            page=image.page,
            index=image.index,
            mime_type=image.mime_type,
            width=image.width,
            height=image.height,
            url=IMAGE_URL_TEMPLATE.format(document_id=document_id, page=image.page, index=image.index),
        )
