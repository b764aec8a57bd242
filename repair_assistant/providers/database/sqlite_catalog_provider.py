"""SQLite-backed catalog store: brands, models, manuals, app settings."""

from __future__ import annotations

import json
from typing import Any

import aiosqlite
import structlog

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.models.catalog import AppSetting, CarBrand, CarModel, PdfDocument
from repair_assistant.providers.database.base import NOW_SQL, SQLiteStore, new_id
from repair_assistant.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)

_CREATE_BRANDS_SQL = f"""\
CREATE TABLE IF NOT EXISTS car_brands (
    id            TEXT PRIMARY KEY,
    name          TEXT NOT NULL UNIQUE,
    display_name  TEXT NOT NULL,
    created_at    TEXT NOT NULL DEFAULT ({NOW_SQL})
);
"""

_CREATE_MODELS_SQL = f"""\
CREATE TABLE IF NOT EXISTS car_models (
    id               TEXT PRIMARY KEY,
    brand_id         TEXT NOT NULL REFERENCES car_brands(id) ON DELETE CASCADE,
    name             TEXT NOT NULL,
    display_name     TEXT NOT NULL,
    image_url        TEXT,
    vector_store_id  TEXT,
    created_at       TEXT NOT NULL DEFAULT ({NOW_SQL}),
    UNIQUE(brand_id, name)
);
"""

_CREATE_DOCUMENTS_SQL = f"""\
CREATE TABLE IF NOT EXISTS pdf_documents (
    id                        TEXT PRIMARY KEY,
    model_id                  TEXT NOT NULL REFERENCES car_models(id) ON DELETE CASCADE,
    filename                  TEXT NOT NULL,
    original_filename         TEXT NOT NULL,
    storage_path              TEXT NOT NULL,
    file_size                 INTEGER NOT NULL DEFAULT 0,
    mime_type                 TEXT NOT NULL DEFAULT 'application/pdf',
    uploaded_by               TEXT,
    vector_store_document_id  TEXT,
    created_at                TEXT NOT NULL DEFAULT ({NOW_SQL})
);
"""

_CREATE_SETTINGS_SQL = f"""\
CREATE TABLE IF NOT EXISTS app_settings (
    key         TEXT PRIMARY KEY,
    value       TEXT,
    updated_at  TEXT NOT NULL DEFAULT ({NOW_SQL})
);
"""

_SELECT_MODEL_SQL = """\
SELECT m.id, m.brand_id, m.name, m.display_name, m.image_url, m.vector_store_id,
       m.created_at, b.name AS brand_name, b.display_name AS brand_display_name,
       b.created_at AS brand_created_at
FROM car_models m
LEFT JOIN car_brands b ON b.id = m.brand_id
"""

_SELECT_DOCUMENT_SQL = """\
SELECT id, model_id, filename, original_filename, storage_path, file_size, mime_type,
       uploaded_by, vector_store_document_id, created_at
FROM pdf_documents
"""

_UPSERT_SETTING_SQL = f"""\
INSERT INTO app_settings (key, value) VALUES (?, ?)
ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = {NOW_SQL};
"""

_BRAND_COLUMNS = frozenset({"name", "display_name"})
_MODEL_COLUMNS = frozenset({"brand_id", "name", "display_name", "image_url"})


class SQLiteCatalogProvider(SQLiteStore, ICatalogProvider):
    """Catalog persistence in SQLite."""

    _SCHEMA = (
        _CREATE_BRANDS_SQL,
        _CREATE_MODELS_SQL,
        _CREATE_DOCUMENTS_SQL,
        _CREATE_SETTINGS_SQL,
        "CREATE INDEX IF NOT EXISTS idx_models_brand ON car_models(brand_id);",
        "CREATE INDEX IF NOT EXISTS idx_documents_model ON pdf_documents(model_id);",
    )

    # ------------------------------------------------------------------
    # Brands
    # ------------------------------------------------------------------

    async def list_brands(self) -> list[CarBrand]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, name, display_name, created_at FROM car_brands ORDER BY display_name"
            )
            rows = await cursor.fetchall()
        return [CarBrand(**dict(r)) for r in rows]

    async def get_brand(self, brand_id: str) -> CarBrand | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, name, display_name, created_at FROM car_brands WHERE id = ?",
                (brand_id,),
            )
            row = await cursor.fetchone()
        return CarBrand(**dict(row)) if row else None

    async def create_brand(self, name: str, display_name: str) -> CarBrand:
        brand_id = new_id()
        try:
            async with self._connect() as db:
                await db.execute(
                    "INSERT INTO car_brands (id, name, display_name) VALUES (?, ?, ?)",
                    (brand_id, name, display_name),
                )
                await db.commit()
        except aiosqlite.IntegrityError as exc:
            raise ValidationError(message=f"Brand {name!r} already exists", provider_name="sqlite") from exc
        logger.info("brand_created", brand_id=brand_id, name=name)
        return await self.get_brand(brand_id)  # type: ignore[return-value]

    async def update_brand(self, brand_id: str, **fields: Any) -> CarBrand | None:
        await self._update("car_brands", brand_id, _BRAND_COLUMNS, fields)
        return await self.get_brand(brand_id)

    async def delete_brand(self, brand_id: str) -> bool:
        return await self._delete("car_brands", brand_id)

    # ------------------------------------------------------------------
    # Vehicle models
    # ------------------------------------------------------------------

    async def list_models(self, brand_id: str | None = None) -> list[CarModel]:
        async with self._connect() as db:
            if brand_id:
                cursor = await db.execute(
                    _SELECT_MODEL_SQL + "WHERE m.brand_id = ? ORDER BY m.display_name",
                    (brand_id,),
                )
            else:
                cursor = await db.execute(_SELECT_MODEL_SQL + "ORDER BY b.display_name, m.display_name")
            rows = await cursor.fetchall()
        return [self._row_to_model(r) for r in rows]

    async def get_model(self, model_id: str) -> CarModel | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_MODEL_SQL + "WHERE m.id = ?", (model_id,))
            row = await cursor.fetchone()
        return self._row_to_model(row) if row else None

    async def create_model(
        self,
        brand_id: str,
        name: str,
        display_name: str,
        image_url: str | None = None,
    ) -> CarModel:
        model_id = new_id()
        try:
            async with self._connect() as db:
                await db.execute(
                    "INSERT INTO car_models (id, brand_id, name, display_name, image_url) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (model_id, brand_id, name, display_name, image_url),
                )
                await db.commit()
        except aiosqlite.IntegrityError as exc:
            raise ValidationError(
                message=f"Model {name!r} already exists or brand {brand_id} is unknown",
                provider_name="sqlite",
            ) from exc
        logger.info("model_created", model_id=model_id, brand_id=brand_id, name=name)
        return await self.get_model(model_id)  # type: ignore[return-value]

    async def update_model(self, model_id: str, **fields: Any) -> CarModel | None:
        await self._update("car_models", model_id, _MODEL_COLUMNS, fields)
        return await self.get_model(model_id)

    async def set_model_vector_store(self, model_id: str, vector_store_id: str) -> None:
        async with self._connect() as db:
            await db.execute(
                "UPDATE car_models SET vector_store_id = ? WHERE id = ?",
                (vector_store_id, model_id),
            )
            await db.commit()

    async def delete_model(self, model_id: str) -> bool:
        return await self._delete("car_models", model_id)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def list_documents(self, model_id: str) -> list[PdfDocument]:
        async with self._connect() as db:
            cursor = await db.execute(
                _SELECT_DOCUMENT_SQL + "WHERE model_id = ? ORDER BY created_at, rowid",
                (model_id,),
            )
            rows = await cursor.fetchall()
        return [PdfDocument(**dict(r)) for r in rows]

    async def get_document(self, document_id: str) -> PdfDocument | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_DOCUMENT_SQL + "WHERE id = ?", (document_id,))
            row = await cursor.fetchone()
        return PdfDocument(**dict(row)) if row else None

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
        document_id = new_id()
        try:
            async with self._connect() as db:
                await db.execute(
                    "INSERT INTO pdf_documents (id, model_id, filename, original_filename, "
                    "storage_path, file_size, mime_type, uploaded_by) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        document_id,
                        model_id,
                        filename,
                        original_filename,
                        storage_path,
                        file_size,
                        mime_type,
                        uploaded_by,
                    ),
                )
                await db.commit()
        except aiosqlite.IntegrityError as exc:
            raise ValidationError(message=f"Unknown model {model_id}", provider_name="sqlite") from exc
        logger.info("document_created", document_id=document_id, model_id=model_id, filename=filename)
        return await self.get_document(document_id)  # type: ignore[return-value]

    async def set_document_vector_id(self, document_id: str, vector_store_document_id: str | None) -> None:
        async with self._connect() as db:
            await db.execute(
                "UPDATE pdf_documents SET vector_store_document_id = ? WHERE id = ?",
                (vector_store_document_id, document_id),
            )
            await db.commit()

    async def delete_document(self, document_id: str) -> bool:
        return await self._delete("pdf_documents", document_id)

    # ------------------------------------------------------------------
    # App settings
    # ------------------------------------------------------------------

    async def get_setting(self, key: str) -> AppSetting | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT key, value, updated_at FROM app_settings WHERE key = ?", (key,)
            )
            row = await cursor.fetchone()
        return self._row_to_setting(row) if row else None

    async def list_settings(self) -> list[AppSetting]:
        async with self._connect() as db:
            cursor = await db.execute("SELECT key, value, updated_at FROM app_settings ORDER BY key")
            rows = await cursor.fetchall()
        return [self._row_to_setting(r) for r in rows]

    async def put_setting(self, key: str, value: Any) -> AppSetting:
        async with self._connect() as db:
            await db.execute(_UPSERT_SETTING_SQL, (key, json.dumps(value)))
            await db.commit()
        logger.info("app_setting_saved", key=key)
        return await self.get_setting(key)  # type: ignore[return-value]

    def get_provider_name(self) -> str:
        return "sqlite_catalog"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _update(self, table: str, row_id: str, allowed: frozenset[str], fields: dict[str, Any]) -> None:
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(message=f"Cannot update {', '.join(sorted(unknown))} on {table}")
        if not fields:
            return
        assignments = ", ".join(f"{column} = ?" for column in fields)
        try:
            async with self._connect() as db:
                await db.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ?",  # noqa: S608 - whitelisted columns
                    (*fields.values(), row_id),
                )
                await db.commit()
        except aiosqlite.IntegrityError as exc:
            raise ValidationError(message=f"Update of {table} violates a constraint", provider_name="sqlite") from exc

    async def _delete(self, table: str, row_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))  # noqa: S608
            await db.commit()
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_model(row: aiosqlite.Row) -> CarModel:
        data = dict(row)
        brand = None
        if data.get("brand_name") is not None:
            brand = CarBrand(
                id=data["brand_id"],
                name=data["brand_name"],
                display_name=data["brand_display_name"],
                created_at=data["brand_created_at"],
            )
        return CarModel(
            id=data["id"],
            brand_id=data["brand_id"],
            name=data["name"],
            display_name=data["display_name"],
            image_url=data["image_url"],
            vector_store_id=data["vector_store_id"],
            created_at=data["created_at"],
            brand=brand,
        )

    @staticmethod
    def _row_to_setting(row: aiosqlite.Row) -> AppSetting:
        data = dict(row)
        raw = data.get("value")
        return AppSetting(
            key=data["key"],
            value=json.loads(raw) if raw is not None else None,
            updated_at=data.get("updated_at"),
        )
