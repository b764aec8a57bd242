"""Abstract base class for object storage (manual PDFs, model images, logos).

Objects are addressed by ``(bucket, path)``.  Two buckets are used:
``repair-manuals`` (private PDFs) and ``app-assets`` (public images).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: LocalObjectStorageProvider, SupabaseStorageProvider
# Located in: repair_assistant/providers/storage/
class IObjectStorageProvider(ABC):
    """Contract for a bucketed blob store."""

    @abstractmethod
    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """Store *data* at ``bucket/path`` and return the stored path.

        Raises
        ------
        repair_assistant.utils.errors.StorageError
            If the object could not be written (including when it exists).
        """

    @abstractmethod
    async def download(self, bucket: str, path: str) -> bytes:
        """Return the bytes stored at ``bucket/path``.

        Raises
        ------
        repair_assistant.utils.errors.StorageError
            If the object is missing or unreadable.
        """

    @abstractmethod
    async def delete(self, bucket: str, paths: list[str]) -> None:
        """Delete the given objects.  Missing objects are not an error."""

    @abstractmethod
    def public_url(self, bucket: str, path: str) -> str:
        """Return the URL under which a public-bucket object is served."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this provider."""
