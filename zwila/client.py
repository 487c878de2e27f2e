"""Zwila: expiring shared folders in an Azure Storage container."""

from datetime import datetime
from pathlib import Path
from typing import Callable

from zwila.config import Settings
from zwila.models.folder import CreatedFolder, FolderListing, FolderMeta, MemberObject, UploadedFile
from zwila.services.folder_service import FolderService, utcnow
from zwila.services.listing_service import ListingService
from zwila.services.sas_service import SasService
from zwila.storage.azure import AzureBlobStore
from zwila.storage.base import BlobStore


class Zwila:
    """Entry point bundling the folder, listing and SAS services.

    Usage::

        async with Zwila(Settings()) as z:
            created = await z.create_folder(description="Holiday photos")
            await z.upload_file("rhino.png", created.meta.slug, "Northern_White_Rhino.png")
            url = z.get_sas_url(created.meta.slug, "Northern_White_Rhino.png")

    ``store`` defaults to an :class:`AzureBlobStore` built from ``settings``,
    which raises ConfigurationError straight away if the account, key or
    container is missing.
    """

    def __init__(
        self,
        settings: Settings,
        store: BlobStore | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.settings = settings
        self.store = store if store is not None else AzureBlobStore(settings)
        self.folders = FolderService(self.store, settings, clock=clock)
        self.listing = ListingService(self.store, settings, folders=self.folders, clock=clock)
        self.sas = SasService(self.store, settings, clock=clock)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self) -> None:
        await self.store.close()

    async def has_container(self) -> bool:
        return await self.folders.container_reachable()

    async def create_folder(
        self,
        slug: str | None = None,
        description: str | None = None,
        expiry: datetime | str | None = None,
        message: str | None = None,
    ) -> CreatedFolder:
        return await self.folders.create_folder(slug, description, expiry, message)

    async def upload_file(self, source_path: Path | str, slug: str, filename: str) -> UploadedFile:
        return await self.folders.upload_file(source_path, slug, filename)

    async def get_folder_meta(self, slug: str) -> FolderMeta:
        return await self.folders.get_folder_meta(slug)

    async def list_folder_blobs(self, slug: str) -> list[MemberObject]:
        return await self.listing.list_folder_members(slug)

    async def list_folders(self, slug: str | None = None, include_expired: bool = False) -> list[FolderListing]:
        return await self.listing.list_folders(slug, include_expired)

    def get_sas_url(self, slug: str, filename: str, minutes: int | None = None) -> str:
        return self.sas.issue_read_url(slug, filename, minutes)
