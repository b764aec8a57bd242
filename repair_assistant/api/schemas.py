"""Pydantic request/response schemas for the repair assistant API.

Request bodies accept both ``snake_case`` and the ``camelCase`` field
names the web client sends (``modelId``, ``sessionId``, ``userId``).
Domain models from :mod:`repair_assistant.models` are returned directly
where their shape is already the public contract.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from repair_assistant.models.chat import ChatSource, SourceImage
from repair_assistant.models.users import UserRole


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """A user question about one vehicle model."""

    # Optional so a missing message gets the chat error body, not a 422.
    message: str | None = None
    model_id: str | None = Field(default=None, validation_alias=AliasChoices("model_id", "modelId"))
    session_id: str | None = Field(default=None, validation_alias=AliasChoices("session_id", "sessionId"))
    language: str = "en"
    include_images: bool = Field(
        default=False,
        validation_alias=AliasChoices("include_images", "includeImages"),
        description="Attach references to images on the cited manual pages.",
    )


class ChatResponse(BaseModel):
    response: str
    sources: list[ChatSource] = Field(default_factory=list)
    source_images: list[SourceImage] = Field(default_factory=list)
    grounded: bool = False


class OpenSessionRequest(BaseModel):
    model_id: str = Field(validation_alias=AliasChoices("model_id", "modelId"))


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------


class AnalyzeImageRequest(BaseModel):
    image: str | None = Field(default=None, description="Base64 image or data URI.")
    model_id: str | None = Field(default=None, validation_alias=AliasChoices("model_id", "modelId"))


class AnalyzeImageResponse(BaseModel):
    analysis: str


class TranscribeRequest(BaseModel):
    audio: str | None = Field(default=None, description="Base64 audio (webm, mp3, wav, ...).")
    language: str | None = None


class TranscribeResponse(BaseModel):
    text: str


class SpeakRequest(BaseModel):
    text: str | None = None
    language: str | None = None


class SpeakResponse(BaseModel):
    audio_content: str = Field(description="Base64-encoded audio.")
    mime_type: str = "audio/mpeg"


class DocumentImagesRequest(BaseModel):
    query: str | None = None
    pages: list[int] | None = None
    limit: int = Field(default=10, ge=1, le=50)


class DocumentImagesResponse(BaseModel):
    images: list[SourceImage]


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class BrandRequest(BaseModel):
    name: str
    display_name: str = Field(validation_alias=AliasChoices("display_name", "displayName"))


class BrandUpdateRequest(BaseModel):
    name: str | None = None
    display_name: str | None = Field(
        default=None, validation_alias=AliasChoices("display_name", "displayName")
    )


class ModelRequest(BaseModel):
    brand_id: str = Field(validation_alias=AliasChoices("brand_id", "brandId"))
    name: str
    display_name: str = Field(validation_alias=AliasChoices("display_name", "displayName"))
    image_url: str | None = Field(default=None, validation_alias=AliasChoices("image_url", "imageUrl"))


class ModelUpdateRequest(BaseModel):
    brand_id: str | None = Field(default=None, validation_alias=AliasChoices("brand_id", "brandId"))
    name: str | None = None
    display_name: str | None = Field(
        default=None, validation_alias=AliasChoices("display_name", "displayName")
    )
    image_url: str | None = Field(default=None, validation_alias=AliasChoices("image_url", "imageUrl"))


class RoleRequest(BaseModel):
    role: UserRole


class ApprovalRequest(BaseModel):
    approved: bool


class DeleteUserRequest(BaseModel):
    user_id: str | None = Field(default=None, validation_alias=AliasChoices("user_id", "userId"))
    email: str | None = None


class SettingValueRequest(BaseModel):
    value: Any


class SuccessResponse(BaseModel):
    success: bool = True
