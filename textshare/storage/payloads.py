"""
Payload store for file bytes kept outside the metadata row.

Objects live in a single MinIO bucket under ``files/``. Deletion is
idempotent: an object that is already gone counts as deleted.
"""
import io
import logging
import os
from datetime import datetime
from typing import Optional

from minio import Minio
from minio.error import S3Error

from textshare.core.config import settings
from textshare.core.errors import NotFound, PayloadUnavailable
from textshare.metrics import record_payload_operation

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = ("NoSuchKey", "NoSuchObject")
OBJECT_PREFIX = "files/"


def get_minio_client(config=settings) -> Minio:
    """
    Create a MinIO client from settings.

    Returns:
        Minio: Configured MinIO client
    """
    return Minio(
        f"{config.MINIO_HOST}:{config.MINIO_PORT}",
        access_key=config.MINIO_ACCESS_KEY,
        secret_key=config.MINIO_SECRET_KEY,
        secure=config.MINIO_SECURE,
    )


def object_key(slug: str, original_name: str, now: datetime) -> str:
    """Build the object key for an upload, e.g. ``files/ab12cd_1700000000000.pdf``."""
    ext = os.path.splitext(original_name or "")[1][:16]
    return f"{OBJECT_PREFIX}{slug}_{int(now.timestamp() * 1000)}{ext}"


class PayloadStore:
    """Put, fetch and delete file payloads in MinIO."""

    def __init__(self, minio_client: Minio, bucket_name: str):
        self.client = minio_client
        self.bucket_name = bucket_name

    @classmethod
    def from_settings(cls, config=settings) -> "PayloadStore":
        return cls(get_minio_client(config), config.MINIO_BUCKET)

    def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        try:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info(f"Created bucket '{self.bucket_name}'")
        except S3Error as e:
            logger.error(f"Failed to ensure bucket '{self.bucket_name}': {e}")
            raise PayloadUnavailable("Object storage is unavailable") from e

    def put(self, ref: str, data: bytes, content_type: Optional[str] = None) -> None:
        try:
            self.client.put_object(
                self.bucket_name,
                ref,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream",
            )
        except S3Error as e:
            record_payload_operation("put", success=False)
            logger.error(f"Failed to store payload '{ref}': {e}")
            raise PayloadUnavailable("Could not store file") from e
        record_payload_operation("put", success=True, size_bytes=len(data))
        logger.debug(f"Stored payload '{ref}' ({len(data)} bytes)")

    def get(self, ref: str) -> bytes:
        """
        Read a payload fully into memory.

        Raises:
            NotFound: The object no longer exists
            PayloadUnavailable: Object storage failed
        """
        try:
            response = self.client.get_object(self.bucket_name, ref)
        except S3Error as e:
            record_payload_operation("get", success=False)
            if e.code in MISSING_OBJECT_CODES:
                logger.warning(f"Payload missing for '{ref}'")
                raise NotFound("File content is no longer available") from e
            logger.error(f"Failed to read payload '{ref}': {e}")
            raise PayloadUnavailable("Could not read file") from e

        try:
            data = response.read()
            record_payload_operation("get", success=True)
            return data
        finally:
            response.close()
            response.release_conn()

    def delete(self, ref: str) -> bool:
        """
        Delete a payload.

        Returns:
            bool: True if the object is gone afterwards (deleted or already
            absent), False if object storage refused the delete
        """
        try:
            self.client.remove_object(self.bucket_name, ref)
        except S3Error as e:
            if e.code in MISSING_OBJECT_CODES:
                logger.debug(f"Payload already absent: {ref}")
                record_payload_operation("delete", success=True)
                return True
            logger.error(f"Failed to delete payload '{ref}': {e}")
            record_payload_operation("delete", success=False)
            return False
        record_payload_operation("delete", success=True)
        logger.info(f"Deleted payload: {ref}")
        return True
