"""Catalog administration: brands, vehicle models, manuals and branding.

Uploaded files are written to object storage under timestamped,
sanitized paths before the catalog row is created:

    repair-manuals / {model_id}/{ms}-{name}.pdf      manuals
    app-assets     / car-models/{ms}-{name}.{ext}    model pictures
    app-assets     / logos/{ms}-{name}.{ext}         application logo

Deletes cascade downwards: a brand takes its models with it, a model its
manuals, and a manual its storage object and index entry.
"""

from __future__ import annotations

from typing import Any

import structlog

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.interfaces.object_storage_provider import IObjectStorageProvider
from repair_assistant.models.catalog import AppSetting, CarBrand, CarModel, PdfDocument
from repair_assistant.services.manual_index_service import ManualIndexService
from repair_assistant.utils.errors import NotFoundError, ValidationError
from repair_assistant.utils.filenames import timestamped_path
from repair_assistant.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"
LOGO_SETTING_KEY = "logo_url"


class CatalogService:
    """Brand / model / manual CRUD on top of the catalog and object storage.

    Parameters
    ----------
    catalog:
        Catalog store.
    storage:
        Object storage for manuals and images.
    index_service:
        Used to drop a deleted manual from its model's vector index.
    manuals_bucket, assets_bucket:
        Bucket names for PDFs and for images.
    max_pdf_bytes:
        Largest accepted manual upload.
    allowed_image_types:
        Accepted MIME types for model pictures and logos.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        storage: IObjectStorageProvider,
        index_service: ManualIndexService,
        manuals_bucket: str = "repair-manuals",
        assets_bucket: str = "app-assets",
        max_pdf_bytes: int = 256 * 1024 * 1024,
        allowed_image_types: list[str] | None = None,
    ) -> None:
        self._catalog = catalog
        self._storage = storage
        self._index_service = index_service
        self._manuals_bucket = manuals_bucket
        self._assets_bucket = assets_bucket
        self._max_pdf_bytes = max_pdf_bytes
        self._allowed_image_types = allowed_image_types or ["image/jpeg", "image/png", "image/webp"]

    # ------------------------------------------------------------------
    # Brands
    # ------------------------------------------------------------------

    async def list_brands(self) -> list[CarBrand]:
        return await self._catalog.list_brands()

    async def create_brand(self, name: str, display_name: str) -> CarBrand:
        self._require_text(name=name, display_name=display_name)
        return await self._catalog.create_brand(name.strip(), display_name.strip())

    async def update_brand(self, brand_id: str, **fields: Any) -> CarBrand:
        brand = await self._catalog.update_brand(brand_id, **self._drop_none(fields))
        if brand is None:
            raise NotFoundError(message=f"Brand {brand_id} not found")
        return brand

    async def delete_brand(self, brand_id: str) -> None:
        if await self._catalog.get_brand(brand_id) is None:
            raise NotFoundError(message=f"Brand {brand_id} not found")
        for model in await self._catalog.list_models(brand_id):
            await self.delete_model(model.id)
        await self._catalog.delete_brand(brand_id)
        logger.info("brand_deleted", brand_id=brand_id)

    # ------------------------------------------------------------------
    # Vehicle models
    # ------------------------------------------------------------------

    async def list_models(self, brand_id: str | None = None) -> list[CarModel]:
        return await self._catalog.list_models(brand_id)

    async def get_model(self, model_id: str) -> CarModel:
        model = await self._catalog.get_model(model_id)
        if model is None:
            raise NotFoundError(message=f"Model {model_id} not found")
        return model

    async def create_model(
        self,
        brand_id: str,
        name: str,
        display_name: str,
        image_url: str | None = None,
    ) -> CarModel:
        self._require_text(name=name, display_name=display_name)
        if await self._catalog.get_brand(brand_id) is None:
            raise NotFoundError(message=f"Brand {brand_id} not found")
        return await self._catalog.create_model(brand_id, name.strip(), display_name.strip(), image_url)

    async def update_model(self, model_id: str, **fields: Any) -> CarModel:
        model = await self._catalog.update_model(model_id, **self._drop_none(fields))
        if model is None:
            raise NotFoundError(message=f"Model {model_id} not found")
        return model

    async def upload_model_image(
        self, model_id: str, filename: str, data: bytes, content_type: str
    ) -> CarModel:
        """Store a picture of the model and point ``image_url`` at it."""
        await self.get_model(model_id)
        url = await self._upload_asset("car-models", filename, data, content_type)
        return await self.update_model(model_id, image_url=url)

    async def delete_model(self, model_id: str) -> None:
        model = await self.get_model(model_id)
        for document in await self._catalog.list_documents(model.id):
            await self._delete_document(model, document)
        await self._catalog.delete_model(model.id)
        logger.info("model_deleted", model_id=model.id)

    # ------------------------------------------------------------------
    # Manuals
    # ------------------------------------------------------------------

    async def list_documents(self, model_id: str) -> list[PdfDocument]:
        return await self._catalog.list_documents(model_id)

    async def upload_document(
        self,
        model_id: str,
        original_filename: str,
        data: bytes,
        content_type: str | None,
        uploaded_by: str | None = None,
    ) -> PdfDocument:
        """Store a manual PDF and register it against *model_id*.

        The document is indexed lazily on the model's next chat request.

        Raises
        ------
        ValidationError
            If the file is not a PDF, is empty, or exceeds the size limit.
        NotFoundError
            If the model does not exist.
        """
        if content_type != PDF_MIME_TYPE:
            raise ValidationError(message="Only PDF files are allowed")
        if not data:
            raise ValidationError(message="The uploaded file is empty")
        if len(data) > self._max_pdf_bytes:
            limit_mb = self._max_pdf_bytes // (1024 * 1024)
            raise ValidationError(message=f"Please upload a PDF smaller than {limit_mb} MB.")

        model = await self.get_model(model_id)
        path = timestamped_path(model.id, original_filename)
        stored = await self._storage.upload(self._manuals_bucket, path, data, PDF_MIME_TYPE)

        document = await self._catalog.create_document(
            model_id=model.id,
            filename=stored,
            original_filename=original_filename,
            storage_path=stored,
            file_size=len(data),
            mime_type=PDF_MIME_TYPE,
            uploaded_by=uploaded_by,
        )
        logger.info(
            "manual_uploaded",
            document_id=document.id,
            model_id=model.id,
            size=len(data),
            uploaded_by=uploaded_by,
        )
        return document

    async def delete_document(self, document_id: str) -> None:
        document = await self._catalog.get_document(document_id)
        if document is None:
            raise NotFoundError(message=f"Document {document_id} not found")
        model = await self._catalog.get_model(document.model_id)
        await self._delete_document(model, document)

    # ------------------------------------------------------------------
    # Branding and app settings
    # ------------------------------------------------------------------

    async def upload_logo(self, filename: str, data: bytes, content_type: str) -> AppSetting:
        url = await self._upload_asset("logos", filename, data, content_type)
        return await self._catalog.put_setting(LOGO_SETTING_KEY, url)

    async def get_setting(self, key: str) -> AppSetting:
        setting = await self._catalog.get_setting(key)
        if setting is None:
            raise NotFoundError(message=f"Setting {key!r} not found")
        return setting

    async def list_settings(self) -> list[AppSetting]:
        return await self._catalog.list_settings()

    async def put_setting(self, key: str, value: Any) -> AppSetting:
        self._require_text(key=key)
        return await self._catalog.put_setting(key, value)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _delete_document(self, model: CarModel | None, document: PdfDocument) -> None:
        await self._storage.delete(self._manuals_bucket, [document.storage_path])
        await self._index_service.remove_document(model.vector_store_id if model else None, document)
        await self._catalog.delete_document(document.id)
        logger.info("manual_deleted", document_id=document.id, model_id=document.model_id)

    async def _upload_asset(self, prefix: str, filename: str, data: bytes, content_type: str) -> str:
        if content_type not in self._allowed_image_types:
            raise ValidationError(message=f"Unsupported image type {content_type!r}")
        if not data:
            raise ValidationError(message="The uploaded file is empty")
        stored = await self._storage.upload(
            self._assets_bucket, timestamped_path(prefix, filename), data, content_type
        )
        return self._storage.public_url(self._assets_bucket, stored)

    @staticmethod
    def _require_text(**values: str | None) -> None:
        for field, value in values.items():
            if not value or not value.strip():
                raise ValidationError(message=f"{field} is required")

    @staticmethod
    def _drop_none(fields: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in fields.items() if v is not None}
