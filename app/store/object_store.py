"""Blob storage for file-attachment answers.

Supabase Storage is reached through the supabase-py client
(``storage.from_(bucket).upload`` and ``get_public_url``).

Usage:
    store = SupabaseObjectStore(url="...", key="...", bucket="intake-attachments")
    await store.upload("form-responses/r1/q1/abc-scan.pdf", data, "application/pdf")
    store.public_url("form-responses/r1/q1/abc-scan.pdf")
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Callable
from urllib.parse import quote

from supabase import Client, create_client

from app.common.exceptions import PersistenceError, StorageError
from observability.logging_config import get_logger

logger = get_logger("object_store")


class ObjectStore(ABC):
    @abstractmethod
    async def upload(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Store ``data`` under ``key``; raises StorageError on failure."""
        ...

    @abstractmethod
    def public_url(self, key: str) -> str:
        ...


class InMemoryObjectStore(ObjectStore):
    """Dict-backed store for development and tests.

    ``fail_on`` is called with each key; returning True makes that upload fail.
    """

    def __init__(
        self,
        base_url: str = "memory://attachments",
        fail_on: Callable[[str], bool] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.fail_on = fail_on
        self.objects: dict[str, tuple[bytes, str | None]] = {}

    async def upload(self, key: str, data: bytes, content_type: str | None = None) -> None:
        if self.fail_on is not None and self.fail_on(key):
            raise StorageError(f"upload rejected for {key}", file_name=key.rsplit("/", 1)[-1])
        self.objects[key] = (bytes(data), content_type)

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"


class SupabaseObjectStore(ObjectStore):
    """Attachment bucket in Supabase Storage, reached through supabase-py.

    The client is created lazily; tests pass a prebuilt ``client``.
    """

    def __init__(
        self,
        url: str | None,
        key: str | None,
        bucket: str,
        *,
        public_base_url: str | None = None,
        client: Client | None = None,
    ):
        if client is None and (not url or not key):
            raise PersistenceError(
                "Supabase storage credentials not configured. "
                "Set ATTACHMENTS_SUPABASE_URL and ATTACHMENTS_SUPABASE_KEY.",
                operation="init",
            )
        self._url = (url or "").rstrip("/")
        self._key = key or ""
        self.bucket = bucket
        self._public_base_url = (public_base_url or "").rstrip("/") or None
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            try:
                self._client = create_client(self._url, self._key)
            except Exception as exc:
                raise PersistenceError(
                    f"Failed to create Supabase client: {exc}", operation="init"
                ) from exc
            logger.info("Supabase storage client initialized", extra={"bucket": self.bucket})
        return self._client

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    async def upload(self, key: str, data: bytes, content_type: str | None = None) -> None:
        file_name = key.rsplit("/", 1)[-1]
        options = {"content-type": content_type or "application/octet-stream", "upsert": "false"}
        try:
            # supabase-py storage calls are blocking
            await asyncio.to_thread(self._bucket().upload, key, data, options)
        except PersistenceError:
            raise
        except Exception as exc:
            logger.warning(
                "Attachment upload rejected",
                extra={"key": key, "error": type(exc).__name__},
            )
            raise StorageError(f"upload of {file_name} failed: {exc}", file_name=file_name) from exc

    def public_url(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{quote(key)}"
        return self._bucket().get_public_url(key)


__all__ = ["ObjectStore", "InMemoryObjectStore", "SupabaseObjectStore"]
