"""Catalog models: brands, vehicle models, repair manuals and app settings.

Rows come back from the catalog store as plain dicts and are validated
into these frozen Pydantic models at the provider boundary, so services
never handle raw database rows.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CarBrand(BaseModel):
    """A vehicle manufacturer (e.g. ``voyah`` / "Voyah")."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(description="Internal lowercase name.")
    display_name: str = Field(description="Name shown to users.")
    created_at: str | None = None


class CarModel(BaseModel):
    """A vehicle model whose repair manuals back the chat assistant.

    ``vector_store_id`` is the external index that holds the model's
    manuals.  It is created on first use and reused afterwards.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    brand_id: str
    name: str
    display_name: str
    image_url: str | None = None
    vector_store_id: str | None = Field(
        default=None,
        description="Identifier of the vector index holding this model's manuals.",
    )
    created_at: str | None = None
    brand: CarBrand | None = Field(
        default=None,
        description="Owning brand, populated when the model is fetched with its brand.",
    )

    @property
    def full_name(self) -> str:
        """Brand + model display name, e.g. ``"Voyah Courage"``."""
        if self.brand is None:
            return self.display_name
        return f"{self.brand.display_name} {self.display_name}"


class PdfDocument(BaseModel):
    """An uploaded PDF repair manual attached to a vehicle model."""

    model_config = ConfigDict(frozen=True)

    id: str
    model_id: str
    filename: str = Field(description="Sanitized filename used in the storage key.")
    original_filename: str = Field(description="Filename as uploaded by the admin.")
    storage_path: str = Field(description="Object key inside the manuals bucket.")
    file_size: int = Field(default=0, ge=0)
    mime_type: str = "application/pdf"
    uploaded_by: str | None = None
    vector_store_document_id: str | None = Field(
        default=None,
        description="Identifier of this manual inside the model's vector index.",
    )
    created_at: str | None = None

    @property
    def is_indexed(self) -> bool:
        return self.vector_store_document_id is not None


class AppSetting(BaseModel):
    """A key/value application setting such as ``logo_url`` or theme colours."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: Any = None
    updated_at: str | None = None
