"""Listing service: enumerate folders and their files from the container hierarchy."""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from zwila.config import Settings
from zwila.errors import DecodeError, NotFoundError
from zwila.models.folder import FolderListing, MemberObject
from zwila.services.folder_service import FolderService, utcnow
from zwila.services.paths import DELIMITER, folder_prefix, slug_from_prefix, validate_slug
from zwila.storage.base import BlobStore

logger = logging.getLogger(__name__)


class ListingService:
    """Read-side view of the folders in a container.

    Folders are not stored entities: every call re-walks the prefix hierarchy.
    """

    def __init__(
        self,
        store: BlobStore,
        settings: Settings,
        folders: FolderService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.settings = settings
        self.folders = folders or FolderService(store, settings, clock=clock)
        self.clock = clock

    async def list_folder_members(self, slug: str) -> list[MemberObject]:
        """List the files in a folder, excluding its metadata records."""
        validate_slug(slug)
        prefix = folder_prefix(slug)
        reserved = {prefix + name for name in self.settings.reserved_filenames}

        members = []
        async for item in self.store.list_by_prefix(DELIMITER, prefix):
            if item.kind != "object" or item.name in reserved:
                continue
            members.append(MemberObject(
                name=item.name,
                filename=item.name[len(prefix):],
                size=item.size,
                content_type=item.content_type,
                last_modified=item.last_modified,
            ))
        return members

    async def list_folders(
        self,
        slug: str | None = None,
        include_expired: bool = False,
    ) -> list[FolderListing]:
        """List metadata and files of every folder, or of the one named ``slug``.

        Expired folders are left out unless ``include_expired`` is set.
        Folders whose metadata is missing, cannot be decoded, or names a
        different slug than its prefix are skipped with a warning.
        """
        candidates = []
        async for item in self.store.list_by_prefix(DELIMITER):
            if item.kind != "prefix":
                continue
            candidate = slug_from_prefix(item.name)
            if slug and candidate != slug:
                continue
            candidates.append(candidate)

        now = self.clock()
        limit = asyncio.Semaphore(max(1, self.settings.list_concurrency))

        async def load(candidate: str) -> FolderListing | None:
            async with limit:
                return await self._load_folder(candidate, now, include_expired)

        # gather() keeps the store's prefix order; cancelling the listing cancels pending loads
        results = await asyncio.gather(*(load(c) for c in candidates))
        folders = [r for r in results if r is not None]
        logger.debug("Listed %d of %d folders", len(folders), len(candidates))
        return folders

    async def _load_folder(
        self,
        slug: str,
        now: datetime,
        include_expired: bool,
    ) -> FolderListing | None:
        try:
            meta = await self.folders.get_folder_meta(slug)
        except DecodeError as e:
            logger.warning("Skipping folder %s: bad metadata (%s)", slug, e)
            return None
        except NotFoundError:
            logger.warning("Skipping prefix %s: no folder metadata", slug)
            return None
        except ValueError as e:
            logger.warning("Skipping prefix %s: %s", slug, e)
            return None
        if meta.slug != slug:
            logger.warning("Skipping folder %s: metadata names slug %r", slug, meta.slug)
            return None

        if not include_expired and meta.is_expired(now):
            return None

        members = await self.list_folder_members(slug)
        return FolderListing(meta=meta, members=members)
