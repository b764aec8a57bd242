"""Admin-only routes: catalog, manuals, branding, users and audit logs.

Every route depends on :func:`get_admin_user`, so a non-admin caller gets
403 before any handler runs.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, UploadFile

from repair_assistant.api.dependencies import (
    AdminUserDep,
    CatalogServiceDep,
    ConfigDep,
    UserAdminServiceDep,
    get_admin_user,
)
from repair_assistant.api.schemas import (
    ApprovalRequest,
    BrandRequest,
    BrandUpdateRequest,
    DeleteUserRequest,
    ErrorResponse,
    ModelRequest,
    ModelUpdateRequest,
    RoleRequest,
    SettingValueRequest,
    SuccessResponse,
)
from repair_assistant.models.catalog import AppSetting, CarBrand, CarModel, PdfDocument
from repair_assistant.models.chat import InteractionLog
from repair_assistant.models.users import UserProfile
from repair_assistant.utils.errors import PayloadTooLargeError
from repair_assistant.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

admin_router = APIRouter(
    prefix="/api/v1/admin",
    dependencies=[Depends(get_admin_user)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)

_DEFAULT_MAX_PDF_BYTES = 256 * 1024 * 1024
_MAX_IMAGE_BYTES = 10 * 1024 * 1024

# Read uploads in 1 MB chunks so an oversized file is rejected early.
_UPLOAD_CHUNK_SIZE = 1024 * 1024


async def _read_upload(file: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_bytes:
            raise PayloadTooLargeError(
                message=f"File too large: maximum is {max_bytes // (1024 * 1024)} MB."
            )
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@admin_router.get("/users", response_model=list[UserProfile])
async def list_users(users: UserAdminServiceDep) -> list[UserProfile]:
    return await users.list_users()


@admin_router.put("/users/{user_id}/role", response_model=UserProfile)
async def set_user_role(user_id: str, body: RoleRequest, users: UserAdminServiceDep) -> UserProfile:
    return await users.set_role(user_id, body.role)


@admin_router.put("/users/{user_id}/approval", response_model=UserProfile)
async def set_user_approval(
    user_id: str, body: ApprovalRequest, users: UserAdminServiceDep
) -> UserProfile:
    return await users.set_approved(user_id, body.approved)


@admin_router.post(
    "/users/delete",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Delete a user account and profile",
)
async def delete_user(
    body: DeleteUserRequest,
    admin: AdminUserDep,
    users: UserAdminServiceDep,
) -> SuccessResponse:
    await users.delete_user(admin, body.user_id, body.email)
    return SuccessResponse()


@admin_router.get("/interaction-logs", response_model=list[InteractionLog])
async def interaction_logs(
    admin: AdminUserDep,
    users: UserAdminServiceDep,
    user_id: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[InteractionLog]:
    return await users.interaction_logs(admin, user_id=user_id, limit=limit, offset=offset)


# ---------------------------------------------------------------------------
# Brands and models
# ---------------------------------------------------------------------------


@admin_router.post("/brands", response_model=CarBrand, status_code=201)
async def create_brand(body: BrandRequest, catalog: CatalogServiceDep) -> CarBrand:
    return await catalog.create_brand(body.name, body.display_name)


@admin_router.put("/brands/{brand_id}", response_model=CarBrand)
async def update_brand(brand_id: str, body: BrandUpdateRequest, catalog: CatalogServiceDep) -> CarBrand:
    return await catalog.update_brand(brand_id, **body.model_dump())


@admin_router.delete("/brands/{brand_id}", response_model=SuccessResponse)
async def delete_brand(brand_id: str, catalog: CatalogServiceDep) -> SuccessResponse:
    await catalog.delete_brand(brand_id)
    return SuccessResponse()


@admin_router.post("/models", response_model=CarModel, status_code=201)
async def create_model(body: ModelRequest, catalog: CatalogServiceDep) -> CarModel:
    return await catalog.create_model(body.brand_id, body.name, body.display_name, body.image_url)


@admin_router.put("/models/{model_id}", response_model=CarModel)
async def update_model(model_id: str, body: ModelUpdateRequest, catalog: CatalogServiceDep) -> CarModel:
    return await catalog.update_model(model_id, **body.model_dump())


@admin_router.delete("/models/{model_id}", response_model=SuccessResponse)
async def delete_model(model_id: str, catalog: CatalogServiceDep) -> SuccessResponse:
    await catalog.delete_model(model_id)
    return SuccessResponse()


@admin_router.post("/models/{model_id}/image", response_model=CarModel, responses={413: {"model": ErrorResponse}})
async def upload_model_image(model_id: str, file: UploadFile, catalog: CatalogServiceDep) -> CarModel:
    data = await _read_upload(file, _MAX_IMAGE_BYTES)
    return await catalog.upload_model_image(
        model_id, file.filename or "image", data, file.content_type or ""
    )


# ---------------------------------------------------------------------------
# Manuals
# ---------------------------------------------------------------------------


@admin_router.get("/models/{model_id}/documents", response_model=list[PdfDocument])
async def list_documents(model_id: str, catalog: CatalogServiceDep) -> list[PdfDocument]:
    return await catalog.list_documents(model_id)


@admin_router.post(
    "/models/{model_id}/documents",
    response_model=PdfDocument,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    summary="Upload a repair manual PDF (indexed on the model's next chat)",
)
async def upload_document(
    model_id: str,
    file: UploadFile,
    admin: AdminUserDep,
    catalog: CatalogServiceDep,
    config: ConfigDep,
) -> PdfDocument:
    max_bytes = int(config.get("uploads", {}).get("max_pdf_bytes", _DEFAULT_MAX_PDF_BYTES))
    data = await _read_upload(file, max_bytes)
    return await catalog.upload_document(
        model_id,
        file.filename or "manual.pdf",
        data,
        file.content_type,
        uploaded_by=admin.user_id,
    )


@admin_router.delete("/documents/{document_id}", response_model=SuccessResponse)
async def delete_document(document_id: str, catalog: CatalogServiceDep) -> SuccessResponse:
    await catalog.delete_document(document_id)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Branding and settings
# ---------------------------------------------------------------------------


@admin_router.post("/logo", response_model=AppSetting, responses={413: {"model": ErrorResponse}})
async def upload_logo(file: UploadFile, catalog: CatalogServiceDep) -> AppSetting:
    data = await _read_upload(file, _MAX_IMAGE_BYTES)
    return await catalog.upload_logo(file.filename or "logo", data, file.content_type or "")


@admin_router.get("/settings", response_model=list[AppSetting])
async def list_settings(catalog: CatalogServiceDep) -> list[AppSetting]:
    return await catalog.list_settings()


@admin_router.put("/settings/{key}", response_model=AppSetting)
async def put_setting(key: str, body: SettingValueRequest, catalog: CatalogServiceDep) -> AppSetting:
    value: Any = body.value
    return await catalog.put_setting(key, value)
