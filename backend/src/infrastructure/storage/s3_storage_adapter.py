"""S3 Storage Adapter - DocumentStore implementation using boto3.

Works against AWS S3 and S3-compatible services such as MinIO.
"""

import hashlib
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from domain.documents.ports.document_store_port import DocumentStore, StorageError, StoredFile

logger = logging.getLogger(__name__)


class S3StorageAdapter(DocumentStore):
    """S3-compatible storage adapter using boto3.

    Example:
        storage = S3StorageAdapter(
            endpoint_url="http://localhost:9000",
            access_key="minioadmin",
            secret_key="minioadmin",
            bucket_name="permohonan-dokumen",
        )
        stored = storage.put("permohonan/<id>/dokumen/<uuid>_ssm.pdf", content, "application/pdf")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except (BotoCoreError, NoCredentialsError) as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    def put(self, path: str, content: bytes, mime_type: str = "application/octet-stream") -> StoredFile:
        sha256_hex = hashlib.sha256(content).hexdigest()
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=content,
                ContentType=mime_type,
                Metadata={"sha256": sha256_hex},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 upload failed: storage_key={path}, error={e}")
            raise StorageError(f"Failed to upload file: {e}")

        logger.info(f"Uploaded file: storage_key={path}, size={len(content)}, mime_type={mime_type}")
        return StoredFile(storage_key=path, sha256=sha256_hex, size_bytes=len(content))

    def delete(self, storage_key: str) -> bool:
        if not self.exists(storage_key):
            logger.info(f"File not found for deletion: storage_key={storage_key}")
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=storage_key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 deletion failed: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to delete file: {e}")

        logger.info(f"Deleted file: storage_key={storage_key}")
        return True

    def exists(self, storage_key: str) -> bool:
        """HEAD the object. A 404 means absent; any other failure raises."""
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=storage_key)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to check file: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to check file: {e}")

    def read(self, storage_key: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=storage_key)
            return response["Body"].read()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey"):
                raise FileNotFoundError(f"File not found: {storage_key}")
            raise StorageError(f"Failed to retrieve file: {error_code}")

    def verify_bucket_exists(self) -> bool:
        """Fail fast on startup when the configured bucket is missing."""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "404":
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. "
                    f"Create it first or update S3_BUCKET_NAME."
                )
            raise StorageError(f"Failed to verify bucket: {error_code}")
