"""
File storage for player photos and team logos.

Two backends share one interface: S3 when AWS credentials and a bucket are
configured, local disk otherwise. The backend is chosen once at startup
(``build_storage``) and handed to the code that needs it.
"""

import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from scoreboard.services.errors import ValidationFailedError

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ALLOWED_UPLOAD_TYPES = ("players", "teams")
LOCAL_URL_PREFIX = "/uploads"


@dataclass(frozen=True)
class StorageConfig:
    """Resolved storage settings."""

    upload_dir: str = "uploads"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    bucket: Optional[str] = None
    region: str = "us-east-1"

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """Read storage configuration from environment variables."""
        return cls(
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
            bucket=os.getenv("AWS_S3_BUCKET"),
            region=os.getenv("AWS_S3_REGION", "us-east-1"),
        )

    @property
    def use_s3(self) -> bool:
        return all([self.access_key_id, self.secret_access_key, self.bucket])


def build_object_name(upload_type: str, filename: str) -> str:
    """
    Generate a unique file name such as ``players-1700000000000-123456789.png``.

    The extension of the uploaded file name is kept.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{upload_type}-{suffix}{ext}"


def _check_upload(upload_type: str, file_bytes: bytes, content_type: Optional[str]) -> None:
    if upload_type not in ALLOWED_UPLOAD_TYPES:
        raise ValueError(f"Unknown upload type: {upload_type}")
    if not content_type or not content_type.startswith("image/"):
        raise ValidationFailedError("Only image files are allowed")
    if not file_bytes:
        raise ValidationFailedError("Uploaded file is empty")
    if len(file_bytes) > MAX_UPLOAD_BYTES:
        raise ValidationFailedError("File too large. Maximum size is 5MB")


class S3Storage:
    """Stores uploads in an S3 bucket and returns public object URLs."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self._client = None

    @property
    def client(self):
        """Lazily created boto3 S3 client."""
        if self._client is None:
            import boto3

            self._client = boto3.client(
                "s3",
                aws_access_key_id=self.config.access_key_id,
                aws_secret_access_key=self.config.secret_access_key,
                region_name=self.config.region,
            )
        return self._client

    def public_url(self, key: str) -> str:
        return f"https://{self.config.bucket}.s3.{self.config.region}.amazonaws.com/{key}"

    def upload_image(
        self, upload_type: str, file_bytes: bytes, filename: str, content_type: str
    ) -> str:
        """
        Upload an image under ``{upload_type}/{unique name}``.

        Returns:
            Public URL of the uploaded object
        """
        _check_upload(upload_type, file_bytes, content_type)
        key = f"{upload_type}/{build_object_name(upload_type, filename)}"
        self.client.put_object(
            Bucket=self.config.bucket,
            Key=key,
            Body=file_bytes,
            ContentType=content_type,
        )
        logger.info(f"Uploaded {upload_type} image to S3: {key}")
        return self.public_url(key)

    def delete_file(self, url: str) -> bool:
        """
        Delete an object by its URL or key. Best-effort: logs errors but doesn't raise.

        Returns:
            True if deleted, False otherwise
        """
        key = _extract_key_from_url(url, self.config.bucket)
        if not key:
            logger.warning(f"Could not extract S3 key from URL: {url}")
            return False
        try:
            self.client.delete_object(Bucket=self.config.bucket, Key=key)
        except Exception as e:
            logger.error(f"Failed to delete file from S3: {e}")
            return False
        logger.info(f"Deleted file from S3: {key}")
        return True


class LocalStorage:
    """Stores uploads on local disk; files are served by the API under /uploads."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self.root = os.path.abspath(config.upload_dir)

    def upload_image(
        self, upload_type: str, file_bytes: bytes, filename: str, content_type: str
    ) -> str:
        """
        Write an image to ``{upload_dir}/{upload_type}/``.

        Returns:
            URL path (``/uploads/{upload_type}/{name}``)
        """
        _check_upload(upload_type, file_bytes, content_type)
        name = build_object_name(upload_type, filename)
        directory = os.path.join(self.root, upload_type)
        os.makedirs(directory, exist_ok=True)
        with open(os.path.join(directory, name), "wb") as f:
            f.write(file_bytes)
        logger.info(f"Saved {upload_type} image locally: {name}")
        return f"{LOCAL_URL_PREFIX}/{upload_type}/{name}"

    def delete_file(self, url: str) -> bool:
        """Delete a previously uploaded file. Best-effort."""
        parts = urlparse(url).path.strip("/").split("/")
        if len(parts) < 2 or parts[-2] not in ALLOWED_UPLOAD_TYPES:
            logger.warning(f"Not a local upload URL: {url}")
            return False
        path = os.path.join(self.root, parts[-2], os.path.basename(parts[-1]))
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete local file {path}: {e}")
            return False
        logger.info(f"Deleted local file: {path}")
        return True


def build_storage(config: Optional[StorageConfig] = None):
    """
    Select the storage backend for this process.

    Args:
        config: Storage settings (read from the environment when omitted)

    Returns:
        S3Storage when S3 is fully configured, LocalStorage otherwise
    """
    config = config or StorageConfig.from_env()
    if config.use_s3:
        logger.info(f"Using S3 storage (bucket={config.bucket}, region={config.region})")
        return S3Storage(config)
    logger.info(f"Using local storage at {os.path.abspath(config.upload_dir)}")
    return LocalStorage(config)


def _extract_key_from_url(url: str, expected_bucket: Optional[str] = None) -> Optional[str]:
    """
    Extract the S3 object key from a full S3 URL (or return a bare key as is).

    Handles URLs like:
      https://bucket.s3.region.amazonaws.com/players/players-1-2.jpg
      https://s3.region.amazonaws.com/bucket/players/players-1-2.jpg

    Returns:
        Object key string, or None if parsing fails or the hostname doesn't match
    """
    if not url:
        return None
    if not url.startswith(("http://", "https://")):
        return url.lstrip("/") or None

    parsed = urlparse(url)
    key = parsed.path.lstrip("/")
    host = parsed.hostname or ""
    if expected_bucket and not host.startswith(f"{expected_bucket}."):
        # Path-style URL: bucket is the first path segment
        if not key.startswith(f"{expected_bucket}/"):
            logger.warning(
                f"URL hostname '{host}' does not match expected bucket '{expected_bucket}'"
            )
            return None
        key = key[len(expected_bucket) + 1:]
    return key or None
