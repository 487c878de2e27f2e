"""Azure Blob Storage implementation of the blob store capability."""

import asyncio
import base64
import binascii
import logging
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator
from urllib.parse import unquote

from azure.core.credentials import AzureNamedKeyCredential
from azure.core.exceptions import (
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceResponseError,
)
from azure.storage.blob import BlobSasPermissions, ContentSettings, generate_blob_sas
from azure.storage.blob.aio import BlobPrefix, BlobServiceClient

from zwila.config import Settings
from zwila.errors import (
    ConfigurationError,
    NotFoundError,
    SigningError,
    StoreError,
    TransientStoreError,
)
from zwila.storage.base import BlobItem

logger = logging.getLogger(__name__)

# Request timeout, throttling and server-side failures
TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Upload response headers worth handing back to callers
RESPONSE_KEYS = ("etag", "last_modified", "request_id", "version_id")


class AzureBlobStore:
    """One Azure Storage container, accessed with the account's shared key."""

    def __init__(self, settings: Settings) -> None:
        missing = [
            name for name in ("storageaccount", "accesskey", "container")
            if not getattr(settings, name)
        ]
        if missing:
            raise ConfigurationError(
                "Missing settings: " + ", ".join(f"ZWILA_{m.upper()}" for m in missing)
            )
        try:
            base64.b64decode(settings.accesskey, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ConfigurationError("ZWILA_ACCESSKEY is not a base64 account key") from exc

        self._account = settings.storageaccount
        self._key = settings.accesskey
        self.container_name = settings.container
        self._timeout = settings.request_timeout_seconds

        credential = AzureNamedKeyCredential(self._account, self._key)
        self._service = BlobServiceClient(settings.blob_endpoint, credential=credential)
        self._container = self._service.get_container_client(self.container_name)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self) -> None:
        await self._service.close()

    async def _call(self, what: str, coro):
        """Await a store request under the request timeout, translating SDK errors."""
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise TransientStoreError(f"{what}: timed out after {self._timeout}s") from exc
        except ResourceNotFoundError as exc:
            raise NotFoundError(f"{what}: not found") from exc
        except (ServiceRequestError, ServiceResponseError) as exc:
            raise TransientStoreError(f"{what}: {exc}") from exc
        except HttpResponseError as exc:
            if exc.status_code in TRANSIENT_STATUS_CODES:
                raise TransientStoreError(f"{what}: HTTP {exc.status_code}") from exc
            raise StoreError(f"{what}: HTTP {exc.status_code} {exc.reason}") from exc

    async def exists(self) -> bool:
        return await self._call(f"exists {self.container_name}", self._container.exists())

    async def put_object(self, key: str, data: bytes, content_type: str) -> dict:
        blob = self._container.get_blob_client(key)
        resp = await self._call(
            f"put {key}",
            blob.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            ),
        )
        logger.info("Stored blob %s (%d bytes, %s)", key, len(data), content_type or "no content type")
        return _summary(resp)

    async def put_object_from_file(self, key: str, path: Path, content_type: str) -> dict:
        blob = self._container.get_blob_client(key)
        with open(path, "rb") as f:
            resp = await self._call(
                f"put {key}",
                blob.upload_blob(
                    f,
                    overwrite=True,
                    content_settings=ContentSettings(content_type=content_type),
                ),
            )
        logger.info("Uploaded %s -> %s (%s)", path, key, content_type or "no content type")
        return _summary(resp)

    async def get_object(self, key: str, max_bytes: int | None = None) -> bytes:
        """Read a blob into memory.

        With ``max_bytes`` set, requests only the first ``max_bytes + 1`` bytes
        so the caller can tell an oversized blob apart without fetching all of it.
        """
        blob = self._container.get_blob_client(key)
        return await self._call(f"get {key}", _read_bounded(blob, max_bytes))

    async def list_by_prefix(self, delimiter: str = "/", prefix: str | None = None) -> AsyncIterator[BlobItem]:
        items = await self._call(
            f"list {prefix or '/'}",
            self._walk(delimiter, prefix),
        )
        for item in items:
            yield item

    async def _walk(self, delimiter: str, prefix: str | None) -> list[BlobItem]:
        items = []
        async for entry in self._container.walk_blobs(name_starts_with=prefix, delimiter=delimiter):
            if isinstance(entry, BlobPrefix):
                items.append(BlobItem(kind="prefix", name=entry.name))
            else:
                props = entry.content_settings
                items.append(BlobItem(
                    kind="object",
                    name=entry.name,
                    size=entry.size,
                    content_type=props.content_type if props else None,
                    last_modified=entry.last_modified,
                ))
        return items

    def sign_read_only(self, key: str, valid_from: datetime, valid_until: datetime) -> str:
        try:
            token = generate_blob_sas(
                account_name=self._account,
                container_name=self.container_name,
                blob_name=key,
                account_key=self._key,
                permission=BlobSasPermissions(read=True),
                start=valid_from,
                expiry=valid_until,
            )
        except (binascii.Error, TypeError, ValueError) as exc:
            raise SigningError(f"Could not sign {key}: {exc}") from exc
        if not token:
            raise SigningError(f"Empty signature for {key}")
        return token

    def object_url(self, key: str) -> str:
        # The SDK percent-encodes the blob path ("/" -> "%2F"); undo this
        return unquote(self._container.get_blob_client(key).url)


async def _read_bounded(blob, max_bytes: int | None) -> bytes:
    if max_bytes is None:
        downloader = await blob.download_blob()
    else:
        # Ranged GET: never transfer more than one byte past the cap
        downloader = await blob.download_blob(offset=0, length=max_bytes + 1)
    return await downloader.readall()


def _summary(resp: dict) -> dict:
    return {k: resp[k] for k in RESPONSE_KEYS if resp.get(k) is not None}
