"""Folder service: create folders, upload their files, read their metadata."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from zwila.config import Settings
from zwila.errors import DecodeError, NotFoundError
from zwila.models.folder import CreatedFolder, FolderMeta, UploadedFile, normalize_instant
from zwila.services import metadata_codec
from zwila.services.content_type import infer_content_type
from zwila.services.metadata_codec import MetadataFormat
from zwila.services.paths import blob_key, generate_slug, validate_filename, validate_slug
from zwila.storage.base import BlobStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_expiry(value: datetime | str) -> datetime:
    """Turn a datetime or ISO-8601 string into an aware UTC instant."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise ValueError(f"Invalid expiry {value!r}: expected an ISO-8601 timestamp") from e
    return normalize_instant(value)


class FolderService:
    """Folder lifecycle on top of one blob container."""

    def __init__(
        self,
        store: BlobStore,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock

    def _meta_key(self, slug: str, fmt: MetadataFormat = MetadataFormat.STRUCTURED) -> str:
        if fmt is MetadataFormat.LEGACY:
            return blob_key(slug, self.settings.legacy_meta_filename)
        return blob_key(slug, self.settings.meta_filename)

    async def container_reachable(self) -> bool:
        """Check that the backing container exists. Meant as a startup check."""
        exists = await self.store.exists()
        if not exists:
            logger.warning("Container %s does not exist", self.settings.container)
        return exists

    async def create_folder(
        self,
        slug: str | None = None,
        description: str | None = None,
        expiry: datetime | str | None = None,
        message: str | None = None,
    ) -> CreatedFolder:
        """Create a folder by writing its metadata record.

        Omitted values default to a random slug, an empty description, and an
        expiry ``default_expiry_days`` from now. An existing folder with the
        same slug has its metadata overwritten.
        """
        slug = validate_slug(slug) if slug else generate_slug()
        if expiry is None or expiry == "":
            expiry = self.clock() + timedelta(days=self.settings.default_expiry_days)
        else:
            expiry = parse_expiry(expiry)

        meta = FolderMeta(
            slug=slug,
            description=description or "",
            expiry=expiry,
            downloads=0,
            message=message,
        )
        document = metadata_codec.render(meta)
        key = self._meta_key(slug)

        resp = await self.store.put_object(
            key,
            document.encode("utf-8"),
            MetadataFormat.STRUCTURED.content_type,
        )
        logger.info("Created folder %s (expires %s)", slug, meta.expiry.isoformat())

        return CreatedFolder(
            meta=meta,
            document=document,
            url=self.store.object_url(key),
            server_response=resp,
        )

    async def upload_file(self, source_path: Path | str, slug: str, filename: str) -> UploadedFile:
        """Upload a local file into a folder, replacing any file of the same name."""
        source_path = Path(source_path)
        validate_slug(slug)
        validate_filename(filename)
        if filename in self.settings.reserved_filenames:
            raise ValueError(f"{filename!r} is reserved for folder metadata")
        if not source_path.is_file():
            raise FileNotFoundError(f"No such file: {source_path}")

        content_type = await asyncio.to_thread(infer_content_type, source_path)
        key = blob_key(slug, filename)
        resp = await self.store.put_object_from_file(key, source_path, content_type)

        return UploadedFile(
            url=self.store.object_url(key),
            content_type=content_type,
            server_response=resp,
        )

    async def get_folder_meta(self, slug: str) -> FolderMeta:
        """Fetch and decode a folder's metadata.

        Falls back to the legacy ``foldermeta.json`` record when enabled.
        Raises NotFoundError when the folder has no metadata at all.
        """
        validate_slug(slug)
        try:
            return await self._read_meta(slug, MetadataFormat.STRUCTURED)
        except NotFoundError:
            if not self.settings.read_legacy_meta:
                raise

        try:
            return await self._read_meta(slug, MetadataFormat.LEGACY)
        except NotFoundError:
            raise NotFoundError(f"Folder {slug} has no metadata") from None

    async def _read_meta(self, slug: str, fmt: MetadataFormat) -> FolderMeta:
        limit = self.settings.max_meta_size_bytes
        data = await self.store.get_object(self._meta_key(slug, fmt), max_bytes=limit)
        if len(data) > limit:
            raise DecodeError("size", f"metadata record exceeds {limit} bytes")
        return metadata_codec.decode(data, fmt)
