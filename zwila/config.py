"""Zwila configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Zwila settings loaded from environment variables."""

    # Required: the storage account, its shared key, and the container
    storageaccount: str = ""
    accesskey: str = ""
    container: str = ""

    # Blob service endpoint override (e.g. Azurite); derived from the account when empty
    account_url: str = ""

    # Reserved metadata objects within each folder
    meta_filename: str = "_zwila.md"
    legacy_meta_filename: str = "foldermeta.json"
    read_legacy_meta: bool = True

    # Folder lifecycle
    default_expiry_days: int = 31

    # Shared access signatures
    sas_lifetime_minutes: int = 60
    sas_skew_minutes: int = 10

    # Store access
    max_meta_size_kb: int = 64
    request_timeout_seconds: float = 30.0
    list_concurrency: int = 8

    log_level: str = "INFO"

    model_config = {
        "env_prefix": "ZWILA_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def max_meta_size_bytes(self) -> int:
        return self.max_meta_size_kb * 1024

    @property
    def blob_endpoint(self) -> str:
        if self.account_url:
            return self.account_url.rstrip("/")
        return f"https://{self.storageaccount}.blob.core.windows.net"

    @property
    def reserved_filenames(self) -> frozenset[str]:
        """Member names that hold folder metadata rather than uploads."""
        return frozenset({self.meta_filename, self.legacy_meta_filename})


# Singleton instance
settings = Settings()
