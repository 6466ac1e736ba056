"""Local-disk implementation of DocumentStore.

Blobs live under a root directory; the storage key is the relative path.
"""

import hashlib
import logging
from pathlib import Path

from domain.documents.ports.document_store_port import DocumentStore, StorageError, StoredFile

logger = logging.getLogger(__name__)


class LocalStorageAdapter(DocumentStore):

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def put(self, path: str, content: bytes, mime_type: str = "application/octet-stream") -> StoredFile:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            logger.error(f"Local storage write failed: storage_key={path}, error={e}")
            raise StorageError(f"Failed to store file: {e}")

        logger.info(f"Stored file: storage_key={path}, size={len(content)}")
        return StoredFile(
            storage_key=path,
            sha256=hashlib.sha256(content).hexdigest(),
            size_bytes=len(content),
        )

    def delete(self, storage_key: str) -> bool:
        target = self._resolve(storage_key)
        if not target.exists():
            logger.info(f"File not found for deletion: storage_key={storage_key}")
            return False
        try:
            target.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}")
        logger.info(f"Deleted file: storage_key={storage_key}")
        return True

    def exists(self, storage_key: str) -> bool:
        return self._resolve(storage_key).is_file()

    def read(self, storage_key: str) -> bytes:
        target = self._resolve(storage_key)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {storage_key}")
        try:
            return target.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read file: {e}")

    def _resolve(self, storage_key: str) -> Path:
        target = (self.root / storage_key).resolve()
        if self.root not in target.parents:
            raise StorageError(f"Storage key escapes storage root: {storage_key}")
        return target
