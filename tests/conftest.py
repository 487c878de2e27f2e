"""Shared test fixtures for all test modules."""

import base64
import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

# ── Environment overrides (must be set before importing zwila modules) ───────
TEST_ACCOUNT = "zwilatest"
TEST_KEY = base64.b64encode(b"zwila-pytest-account-key-0123456789").decode()
TEST_CONTAINER = "zwila"

os.environ["ZWILA_STORAGEACCOUNT"] = TEST_ACCOUNT
os.environ["ZWILA_ACCESSKEY"] = TEST_KEY
os.environ["ZWILA_CONTAINER"] = TEST_CONTAINER

from zwila.config import Settings  # noqa: E402
from zwila.errors import NotFoundError  # noqa: E402
from zwila.storage.base import BlobItem  # noqa: E402

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryBlobStore:
    """Dict-backed stand-in for one blob container.

    Listing mimics a hierarchical walk: names sorted lexicographically, with
    everything below the next delimiter folded into a single prefix entry.
    """

    def __init__(self, account: str = TEST_ACCOUNT, container: str = TEST_CONTAINER):
        self.account = account
        self.container = container
        self.blobs: dict[str, tuple[bytes, str]] = {}
        self.container_exists = True
        self.failures: dict[str, Exception] = {}
        self.get_calls: list[str] = []
        self.signed: list[tuple[str, datetime, datetime]] = []
        self.closed = False

    def _maybe_fail(self, key: str) -> None:
        if key in self.failures:
            raise self.failures[key]

    async def exists(self) -> bool:
        return self.container_exists

    async def put_object(self, key: str, data: bytes, content_type: str) -> dict:
        self._maybe_fail(key)
        self.blobs[key] = (bytes(data), content_type)
        return {"etag": f'"{len(self.blobs)}"'}

    async def put_object_from_file(self, key: str, path: Path, content_type: str) -> dict:
        self._maybe_fail(key)
        self.blobs[key] = (Path(path).read_bytes(), content_type)
        return {"etag": f'"{len(self.blobs)}"'}

    async def get_object(self, key: str, max_bytes: int | None = None) -> bytes:
        self.get_calls.append(key)
        self._maybe_fail(key)
        if key not in self.blobs:
            raise NotFoundError(f"get {key}: not found")
        data = self.blobs[key][0]
        return data if max_bytes is None else data[: max_bytes + 1]

    async def list_by_prefix(self, delimiter: str = "/", prefix: str | None = None):
        prefix = prefix or ""
        seen_prefixes = set()
        for name in sorted(self.blobs):
            if not name.startswith(prefix):
                continue
            rest = name[len(prefix):]
            if delimiter in rest:
                sub = prefix + rest[: rest.index(delimiter) + 1]
                if sub not in seen_prefixes:
                    seen_prefixes.add(sub)
                    yield BlobItem(kind="prefix", name=sub)
            else:
                data, content_type = self.blobs[name]
                yield BlobItem(kind="object", name=name, size=len(data), content_type=content_type)

    def sign_read_only(self, key: str, valid_from: datetime, valid_until: datetime) -> str:
        self.signed.append((key, valid_from, valid_until))
        return f"st={valid_from:%Y-%m-%dT%H:%M:%SZ}&se={valid_until:%Y-%m-%dT%H:%M:%SZ}&sp=r&sig=fake"

    def object_url(self, key: str) -> str:
        return f"https://{self.account}.blob.core.windows.net/{self.container}/{key}"

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def test_settings():
    """Settings pinned to the test account, independent of the process environment."""
    return Settings(
        storageaccount=TEST_ACCOUNT,
        accesskey=TEST_KEY,
        container=TEST_CONTAINER,
        _env_file=None,
    )


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def store():
    return InMemoryBlobStore()


@pytest.fixture
def png_file(tmp_path):
    """A small PNG image on disk."""
    from PIL import Image as PILImage

    img = PILImage.new("RGB", (64, 48), color=(100, 150, 200))
    path = tmp_path / "rhino.png"
    img.save(str(path), "PNG")
    return path
