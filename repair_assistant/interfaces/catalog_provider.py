"""Abstract base class for the catalog store.

Holds brands, vehicle models, PDF manual metadata and app settings.  The
hosted deployment kept these in Postgres; the bundled adapter uses SQLite.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from repair_assistant.models.catalog import AppSetting, CarBrand, CarModel, PdfDocument


# Concrete implementation: SQLiteCatalogProvider
# Located in: repair_assistant/providers/database/
class ICatalogProvider(ABC):
    """Contract for catalog persistence."""

    # -- brands --

    @abstractmethod
    async def list_brands(self) -> list[CarBrand]:
        """Return all brands ordered by display name."""

    @abstractmethod
    async def get_brand(self, brand_id: str) -> CarBrand | None:
        """Return one brand or ``None``."""

    @abstractmethod
    async def create_brand(self, name: str, display_name: str) -> CarBrand:
        """Insert a brand and return it."""

    @abstractmethod
    async def update_brand(self, brand_id: str, **fields: Any) -> CarBrand | None:
        """Update ``name`` / ``display_name``; ``None`` if the brand is missing."""

    @abstractmethod
    async def delete_brand(self, brand_id: str) -> bool:
        """Delete a brand row; ``True`` if a row was removed."""

    # -- vehicle models --

    @abstractmethod
    async def list_models(self, brand_id: str | None = None) -> list[CarModel]:
        """Return models (with their brand), optionally filtered by brand."""

    @abstractmethod
    async def get_model(self, model_id: str) -> CarModel | None:
        """Return one model with its brand populated, or ``None``."""

    @abstractmethod
    async def create_model(
        self,
        brand_id: str,
        name: str,
        display_name: str,
        image_url: str | None = None,
    ) -> CarModel:
        """Insert a model and return it."""

    @abstractmethod
    async def update_model(self, model_id: str, **fields: Any) -> CarModel | None:
        """Update model columns; ``None`` if the model is missing."""

    @abstractmethod
    async def set_model_vector_store(self, model_id: str, vector_store_id: str) -> None:
        """Persist the vector index identifier against a model."""

    @abstractmethod
    async def delete_model(self, model_id: str) -> bool:
        """Delete a model row; ``True`` if a row was removed."""

    # -- documents --

    @abstractmethod
    async def list_documents(self, model_id: str) -> list[PdfDocument]:
        """Return a model's manuals, oldest first."""

    @abstractmethod
    async def get_document(self, document_id: str) -> PdfDocument | None:
        """Return one manual or ``None``."""

    @abstractmethod
    async def create_document(
        self,
        model_id: str,
        filename: str,
        original_filename: str,
        storage_path: str,
        file_size: int,
        mime_type: str = "application/pdf",
        uploaded_by: str | None = None,
    ) -> PdfDocument:
        """Insert a manual row and return it."""

    @abstractmethod
    async def set_document_vector_id(self, document_id: str, vector_store_document_id: str | None) -> None:
        """Persist (or clear) the index-side id of a manual."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete a manual row; ``True`` if a row was removed."""

    # -- app settings --

    @abstractmethod
    async def get_setting(self, key: str) -> AppSetting | None:
        """Return one setting or ``None``."""

    @abstractmethod
    async def list_settings(self) -> list[AppSetting]:
        """Return all settings."""

    @abstractmethod
    async def put_setting(self, key: str, value: Any) -> AppSetting:
        """Insert or replace a JSON-serialisable setting."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
