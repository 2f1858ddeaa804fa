"""Object storage client abstractions and implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Annotated
from urllib.parse import quote, unquote

import httpx
from fastapi import Depends

from storefront.config import settings
from storefront.errors import StorageRemoveError, StorageUploadError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """Abstract binary object store returning durable public URLs."""

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        """Store ``data`` at ``bucket/path`` and return its public URL."""

    @abstractmethod
    def public_url(self, bucket: str, path: str) -> str:
        """Return the public URL of ``bucket/path``."""

    @abstractmethod
    async def remove(self, bucket: str, path: str) -> None:
        """Delete ``bucket/path`` if present."""

    def object_path(self, bucket: str, url: str | None) -> str | None:
        """Map a public URL issued by this store back to its object path.

        Returns None for URLs that point elsewhere.
        """
        if not url:
            return None
        prefix = self.public_url(bucket, "")
        if not url.startswith(prefix):
            return None
        return unquote(url[len(prefix):]) or None


class SupabaseObjectStorage(ObjectStorage):
    """Object store backed by the Supabase Storage REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str,
        cache_control: str = "3600",
        timeout: float = 30.0,
        retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("Storage URL is required to initialize object storage")
        if not service_key:
            raise ValueError("Storage service key is required to initialize object storage")

        self._base_url = base_url.rstrip("/")
        self._cache_control = cache_control
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/storage/v1",
            headers={
                "Authorization": f"Bearer {service_key}",
                "apikey": service_key,
            },
            timeout=timeout,
            # connection-level retries; HTTP error responses are not retried
            transport=transport or httpx.AsyncHTTPTransport(retries=retries),
        )

    @staticmethod
    def _object_path(bucket: str, path: str) -> str:
        return f"{quote(bucket, safe='')}/{quote(path.lstrip('/'), safe='/')}"

    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        object_path = self._object_path(bucket, path)
        try:
            response = await self._client.post(
                f"/object/{object_path}",
                content=data,
                headers={
                    "Content-Type": content_type,
                    "Cache-Control": f"max-age={self._cache_control}",
                    "x-upsert": "true" if upsert else "false",
                },
            )
        except httpx.HTTPError as exc:
            raise StorageUploadError(f"{bucket}/{path}", str(exc)) from exc

        if response.status_code >= 400:
            raise StorageUploadError(
                f"{bucket}/{path}",
                f"HTTP {response.status_code}: {response.text[:200]}",
            )

        logger.debug("Uploaded %s/%s (%d bytes)", bucket, path, len(data))
        return self.public_url(bucket, path)

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self._object_path(bucket, path)}"

    async def remove(self, bucket: str, path: str) -> None:
        try:
            response = await self._client.request(
                "DELETE",
                f"/object/{quote(bucket, safe='')}",
                json={"prefixes": [path.lstrip("/")]},
            )
        except httpx.HTTPError as exc:
            raise StorageRemoveError(f"{bucket}/{path}", str(exc)) from exc

        if response.status_code >= 400:
            raise StorageRemoveError(
                f"{bucket}/{path}",
                f"HTTP {response.status_code}: {response.text[:200]}",
            )
        logger.debug("Removed %s/%s", bucket, path)

    async def aclose(self) -> None:
        await self._client.aclose()


_object_storage: ObjectStorage | None = None


def _initialize_storage() -> ObjectStorage | None:
    if not settings.storage_configured:
        return None

    return SupabaseObjectStorage(
        base_url=settings.STORAGE_URL,
        service_key=settings.STORAGE_SERVICE_KEY,
        cache_control=settings.STORAGE_CACHE_CONTROL,
        timeout=settings.STORAGE_TIMEOUT_SECONDS,
        retries=settings.STORAGE_RETRIES,
    )


_object_storage = _initialize_storage()


def get_object_storage() -> ObjectStorage | None:
    """FastAPI dependency returning the configured object storage if any."""

    return _object_storage


ObjectStorageDependency = Annotated[ObjectStorage | None, Depends(get_object_storage)]
