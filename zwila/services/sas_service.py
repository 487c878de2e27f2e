"""Shared access signature service: time-boxed read links for single files."""

import logging
from datetime import datetime, timedelta
from typing import Callable

from zwila.config import Settings
from zwila.errors import SigningError
from zwila.services.folder_service import utcnow
from zwila.services.paths import blob_key, validate_filename, validate_slug
from zwila.storage.base import BlobStore

logger = logging.getLogger(__name__)


class SasService:
    def __init__(
        self,
        store: BlobStore,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock

    def validity_window(self, lifetime_minutes: int) -> tuple[datetime, datetime]:
        """Return ``(valid_from, valid_until)`` for a link issued now.

        The start lies ``sas_skew_minutes`` in the past so that a consumer
        whose clock runs behind ours can use the link immediately.
        """
        now = self.clock()
        return (
            now - timedelta(minutes=self.settings.sas_skew_minutes),
            now + timedelta(minutes=lifetime_minutes),
        )

    def issue_read_url(self, slug: str, filename: str, lifetime_minutes: int | None = None) -> str:
        """Return a read-only SAS URL for ``slug/filename``.

        Folder expiry is not checked here. Raises SigningError rather than
        ever returning an unsigned URL.
        """
        if lifetime_minutes is None:
            lifetime_minutes = self.settings.sas_lifetime_minutes
        if lifetime_minutes <= 0:
            raise ValueError(f"SAS lifetime must be positive, got {lifetime_minutes} minutes")
        validate_slug(slug)
        validate_filename(filename)

        key = blob_key(slug, filename)
        valid_from, valid_until = self.validity_window(lifetime_minutes)
        token = self.store.sign_read_only(key, valid_from, valid_until)
        if not token:
            raise SigningError(f"Store returned an empty signature for {key}")

        logger.info("Issued read SAS for %s valid until %s", key, valid_until.isoformat())
        return f"{self.store.object_url(key)}?{token}"
