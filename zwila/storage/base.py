"""The blob store capability the folder services are written against."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Literal, Protocol


@dataclass
class BlobItem:
    """One entry of a hierarchical listing: a virtual directory or a blob."""

    kind: Literal["prefix", "object"]
    name: str
    size: int | None = None
    content_type: str | None = None
    last_modified: datetime | None = None


class BlobStore(Protocol):
    """Protocol for a single container of a blob store."""

    async def exists(self) -> bool:
        """Whether the container exists."""
        ...

    async def put_object(self, key: str, data: bytes, content_type: str) -> dict:
        """Create or overwrite a blob from bytes."""
        ...

    async def put_object_from_file(self, key: str, path: Path, content_type: str) -> dict:
        """Create or overwrite a blob by streaming a local file."""
        ...

    async def get_object(self, key: str, max_bytes: int | None = None) -> bytes:
        """Read a whole blob. Raises NotFoundError if absent."""
        ...

    def list_by_prefix(self, delimiter: str = "/", prefix: str | None = None) -> AsyncIterator[BlobItem]:
        """Walk one level of the hierarchy below ``prefix``."""
        ...

    def sign_read_only(self, key: str, valid_from: datetime, valid_until: datetime) -> str:
        """Return a read-only SAS query string for one blob."""
        ...

    def object_url(self, key: str) -> str:
        """Return the blob's percent-decoded canonical URL."""
        ...

    async def close(self) -> None:
        ...
