"""Supabase Storage adapter (hosted object storage over REST).

Talks to the Storage API with the service-role key over the shared
``httpx.AsyncClient`` created in main.py:

    upload    POST   {url}/storage/v1/object/{bucket}/{path}
    download  GET    {url}/storage/v1/object/{bucket}/{path}
    delete    DELETE {url}/storage/v1/object/{bucket}   {"prefixes": [...]}
    public    {url}/storage/v1/object/public/{bucket}/{path}
"""

from __future__ import annotations

import httpx
import structlog

from repair_assistant.interfaces.object_storage_provider import IObjectStorageProvider
from repair_assistant.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)


class SupabaseStorageProvider(IObjectStorageProvider):
    """Object storage backed by Supabase Storage buckets."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str, service_key: str) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        response = await self._send(
            "POST",
            f"/storage/v1/object/{bucket}/{path}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        self._raise_for_status(response, f"upload {bucket}/{path}")
        logger.info("supabase_storage_upload", bucket=bucket, path=path, size=len(data))
        return path

    async def download(self, bucket: str, path: str) -> bytes:
        response = await self._send("GET", f"/storage/v1/object/{bucket}/{path}")
        self._raise_for_status(response, f"download {bucket}/{path}")
        return response.content

    async def delete(self, bucket: str, paths: list[str]) -> None:
        if not paths:
            return
        response = await self._send(
            "DELETE",
            f"/storage/v1/object/{bucket}",
            json={"prefixes": paths},
        )
        self._raise_for_status(response, f"delete from {bucket}")
        logger.info("supabase_storage_delete", bucket=bucket, count=len(paths))

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{bucket}/{path}"

    def get_provider_name(self) -> str:
        return "supabase_storage"

    # ------------------------------------------------------------------

    async def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            return await self._http.request(method, f"{self._base_url}{endpoint}", headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise StorageError(
                message=f"Storage request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        logger.warning(
            "supabase_storage_error",
            action=action,
            status=response.status_code,
            body=response.text[:300],
        )
        raise StorageError(
            message=f"Storage {action} failed with HTTP {response.status_code}",
            provider_name=self.get_provider_name(),
        )
