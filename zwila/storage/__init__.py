from zwila.storage.azure import AzureBlobStore
from zwila.storage.base import BlobItem, BlobStore

__all__ = ["AzureBlobStore", "BlobItem", "BlobStore"]
