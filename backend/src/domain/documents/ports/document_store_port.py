"""Document Store Port - blob storage for uploaded application documents.

The core only needs put/exists/delete semantics plus a content hash.
Implementations: LocalStorageAdapter (disk) and S3StorageAdapter (boto3).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


@dataclass
class StoredFile:
    """Metadata for a stored blob.

    Attributes:
        storage_key: Locator of the blob (the path it was stored under)
        sha256: SHA256 hash of the content (hex)
        size_bytes: Content size in bytes
    """
    storage_key: str
    sha256: str
    size_bytes: int


class DocumentStore(ABC):

    @abstractmethod
    def put(self, path: str, content: bytes, mime_type: str = "application/octet-stream") -> StoredFile:
        """Store ``content`` under ``path``, overwriting any blob already there.

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    def delete(self, storage_key: str) -> bool:
        """Delete a blob.

        Returns:
            True if deleted, False if it was already absent

        Raises:
            StorageError: If the backend refuses or is unreachable
        """

    @abstractmethod
    def exists(self, storage_key: str) -> bool:
        pass

    @abstractmethod
    def read(self, storage_key: str) -> bytes:
        """Return blob content.

        Raises:
            FileNotFoundError: If the blob does not exist
            StorageError: If retrieval fails
        """
