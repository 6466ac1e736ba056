"""Document store selection from settings.

FILESYSTEM_DISK picks the backend: 'local' (LOCAL_STORAGE_ROOT) or 's3'
(S3_* settings, MinIO or AWS).
"""

from config import Settings
from domain.documents.ports.document_store_port import DocumentStore

from .local_storage_adapter import LocalStorageAdapter
from .s3_storage_adapter import S3StorageAdapter


def build_document_store(settings: Settings) -> DocumentStore:
    """Create the configured document store.

    Raises:
        ValueError: If FILESYSTEM_DISK names an unknown backend or S3
            credentials are missing
    """
    disk = settings.FILESYSTEM_DISK.lower()

    if disk == "local":
        return LocalStorageAdapter(settings.LOCAL_STORAGE_ROOT)

    if disk == "s3":
        if not settings.S3_ACCESS_KEY_ID or not settings.S3_SECRET_ACCESS_KEY:
            raise ValueError(
                "Missing required storage credentials. "
                "Set S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY."
            )
        if not settings.S3_BUCKET_NAME:
            raise ValueError("S3_BUCKET_NAME is required when FILESYSTEM_DISK=s3")
        if settings.S3_ENDPOINT_URL and not settings.S3_ENDPOINT_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid S3_ENDPOINT_URL: {settings.S3_ENDPOINT_URL}. "
                "Must start with http:// or https://"
            )
        return S3StorageAdapter(
            endpoint_url=settings.S3_ENDPOINT_URL or None,
            access_key=settings.S3_ACCESS_KEY_ID,
            secret_key=settings.S3_SECRET_ACCESS_KEY,
            bucket_name=settings.S3_BUCKET_NAME,
            region=settings.S3_REGION,
        )

    raise ValueError(f"Unknown FILESYSTEM_DISK '{settings.FILESYSTEM_DISK}' (expected 'local' or 's3')")
