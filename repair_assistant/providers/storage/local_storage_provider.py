"""Filesystem-backed object storage.

Buckets are directories under ``LOCAL_STORAGE_DIR``; object paths map to
files inside them.  main.py mounts the directory as static files at
``LOCAL_STORAGE_PUBLIC_URL`` so model images and logos are reachable by
URL, as they were from the hosted public bucket.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from repair_assistant.interfaces.object_storage_provider import IObjectStorageProvider
from repair_assistant.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)


class LocalObjectStorageProvider(IObjectStorageProvider):
    """Object storage on the local filesystem."""

    def __init__(self, root_dir: str | Path, public_base_url: str = "/storage") -> None:
        self._root = Path(root_dir).resolve()
        self._public_base_url = public_base_url.rstrip("/")

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        target = self._resolve(bucket, path)
        if target.exists():
            raise StorageError(
                message=f"Object already exists: {bucket}/{path}",
                provider_name=self.get_provider_name(),
            )
        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as exc:
            raise StorageError(
                message=f"Writing {bucket}/{path} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("local_storage_upload", bucket=bucket, path=path, size=len(data), content_type=content_type)
        return path

    async def download(self, bucket: str, path: str) -> bytes:
        target = self._resolve(bucket, path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise StorageError(
                message=f"Reading {bucket}/{path} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def delete(self, bucket: str, paths: list[str]) -> None:
        for path in paths:
            target = self._resolve(bucket, path)
            await asyncio.to_thread(target.unlink, True)
        logger.info("local_storage_delete", bucket=bucket, count=len(paths))

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._public_base_url}/{bucket}/{path}"

    def get_provider_name(self) -> str:
        return "local_storage"

    @property
    def root_dir(self) -> Path:
        return self._root

    # ------------------------------------------------------------------

    def _resolve(self, bucket: str, path: str) -> Path:
        target = (self._root / bucket / path).resolve()
        if not target.is_relative_to(self._root / bucket):
            raise StorageError(
                message=f"Path escapes bucket: {path}",
                provider_name=self.get_provider_name(),
            )
        return target

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
