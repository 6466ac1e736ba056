from .local_storage_adapter import LocalStorageAdapter
from .s3_storage_adapter import S3StorageAdapter
from .storage_config import build_document_store

__all__ = ["LocalStorageAdapter", "S3StorageAdapter", "build_document_store"]
