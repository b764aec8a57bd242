"""Abstract base class for manual vector indexes.

# ─── ONE INDEX PER VEHICLE MODEL ──────────────────────────────────────
#
# Each vehicle model owns one index (its id is stored on the model row
# as ``vector_store_id``).  Every PDF manual of that model is added to
# the index once; the id the index assigns is stored on the document row
# as ``vector_store_document_id``.
#
# Adding a document may be asynchronous on the index side (the hosted
# OpenAI vector store parses and embeds in the background).  Callers
# poll :meth:`get_document_status` until it leaves ``in_progress``.
# Backends that index synchronously simply report ``completed``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from repair_assistant.models.index import IndexingStatus, IndexPassage


# Concrete implementations: OpenAIVectorStoreProvider, ChromaDBIndexProvider
# Located in: repair_assistant/providers/vector_index/
class IVectorIndexProvider(ABC):
    """Contract for the similarity-search index over manual text."""

    @abstractmethod
    async def create_index(self, name: str) -> str:
        """Create an empty index and return its identifier.

        Raises
        ------
        repair_assistant.utils.errors.IndexingError
            If the backend rejects the request.
        """

    @abstractmethod
    async def add_document(self, index_id: str, filename: str, data: bytes) -> str:
        """Upload a PDF into *index_id* and return its index-side document id."""

    @abstractmethod
    async def get_document_status(self, index_id: str, document_id: str) -> IndexingStatus:
        """Return the indexing status of a previously added document."""

    @abstractmethod
    async def remove_document(self, index_id: str, document_id: str) -> None:
        """Remove a document and its passages from the index."""

    @abstractmethod
    async def search(self, index_id: str, query: str, top_k: int = 8) -> list[IndexPassage]:
        """Return up to *top_k* passages most similar to *query*, best first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this index backend."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backend is configured and reachable."""
