"""Vector index models: chunks written to an index and passages read back."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IndexingStatus(str, Enum):
    """Lifecycle of a document inside a vector index."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not IndexingStatus.IN_PROGRESS


class DocumentChunk(BaseModel):
    """A window of manual text ready for embedding.

    Produced by :class:`~repair_assistant.services.ingestion.chunker.TextChunker`
    for the locally hosted index backend.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique identifier (UUID) for this chunk.")
    text: str
    token_count: int = Field(default=0, ge=0, description="Approximate token count.")
    document_id: str = Field(description="Index-side document identifier.")
    filename: str
    page_number: int | None = Field(default=None, description="1-based PDF page.")


class IndexPassage(BaseModel):
    """A passage returned by an index search, best match first."""

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(description="Index-side document identifier.")
    filename: str
    text: str
    score: float = Field(default=0.0, description="Similarity in [0, 1], higher is closer.")
    page_number: int | None = None
