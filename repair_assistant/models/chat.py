"""Chat models: sessions, messages, replies and interaction audit rows."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatSession(BaseModel):
    """A conversation between one user and the assistant about one model."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    model_id: str
    title: str
    created_at: str | None = None
    updated_at: str | None = None


class ChatSource(BaseModel):
    """A manual passage the assistant's answer was grounded on."""

    model_config = ConfigDict(frozen=True)

    document_id: str | None = Field(
        default=None, description="Catalog id of the manual, when it could be resolved."
    )
    filename: str
    page: int | None = Field(default=None, description="1-based page number, when known.")
    score: float = Field(default=0.0, description="Similarity score reported by the index.")
    snippet: str = Field(default="", description="Leading text of the retrieved passage.")


class SourceImage(BaseModel):
    """Reference to an image embedded in a manual page."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    page: int = Field(ge=1)
    index: int = Field(ge=0, description="Position of the image on its page.")
    mime_type: str
    width: int = 0
    height: int = 0
    url: str


class ChatMessage(BaseModel):
    """One row of a session's message log."""

    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    role: MessageRole
    content: str
    sources: list[dict[str, Any]] | None = None
    created_at: str | None = None


class ChatReply(BaseModel):
    """What the chat flow hands back to the caller."""

    model_config = ConfigDict(frozen=True)

    response: str
    sources: list[ChatSource] = Field(default_factory=list)
    source_images: list[SourceImage] = Field(default_factory=list)
    grounded: bool = Field(
        default=False,
        description="True when the answer came from the LLM with manual passages.",
    )


class ClientInfo(BaseModel):
    """Network metadata of the caller, recorded in audit rows."""

    model_config = ConfigDict(frozen=True)

    ip_address: str | None = None
    user_agent: str | None = None


class InteractionLog(BaseModel):
    """An audited assistant interaction, reviewed by admins."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    user_email: str | None = None
    session_id: str | None = None
    message_content: str
    ai_response: str | None = None
    model_name: str | None = None
    interaction_type: str = "chat"
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: str | None = None
