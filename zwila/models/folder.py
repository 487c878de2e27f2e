"""Pydantic models for folders, their members, and write results."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


def normalize_instant(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime with millisecond precision.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


class FolderMeta(BaseModel):
    slug: str
    description: str = ""
    expiry: datetime
    downloads: int = Field(default=0, ge=0)
    message: str | None = None

    @field_validator("expiry")
    @classmethod
    def _normalize_expiry(cls, v: datetime) -> datetime:
        return normalize_instant(v)

    @field_validator("message")
    @classmethod
    def _empty_message_is_none(cls, v: str | None) -> str | None:
        return v or None

    def is_expired(self, now: datetime) -> bool:
        return self.expiry <= now


class MemberObject(BaseModel):
    name: str  # full blob name, "<slug>/<filename>"
    filename: str
    size: int | None = None
    content_type: str | None = None
    last_modified: datetime | None = None


class FolderListing(BaseModel):
    meta: FolderMeta
    members: list[MemberObject] = []


class CreatedFolder(BaseModel):
    meta: FolderMeta
    document: str
    url: str
    server_response: dict = {}


class UploadedFile(BaseModel):
    url: str
    content_type: str = ""
    server_response: dict = {}
