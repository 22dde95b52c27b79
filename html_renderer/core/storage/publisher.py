"""
Storage Publisher
=================

Uploads rendered PNGs to an S3-compatible bucket (Cloudflare R2 by default)
and derives the public URL they are served from.

Upload failures are reported as ``UploadOutcome(success=False)`` and never
retried: the caller decides whether to resubmit the whole render.
"""

import time
from typing import Any, Optional

import anyio
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from html_renderer.config.logging import get_logger
from html_renderer.config.settings import Settings, get_settings
from html_renderer.models.schemas import CapturedImage, UploadOutcome

logger = get_logger(__name__)


def _normalize_object_key(key: str) -> str:
    return str(key or "").strip().replace("\\", "/").lstrip("/")


class StoragePublisher:
    """Publishes captured images to object storage."""

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        self.settings = settings or get_settings()
        self._client = client
        self.logger: Any = logger.bind(component="storage_publisher")

    @property
    def is_configured(self) -> bool:
        """Whether an upload can be attempted at all."""
        return self._client is not None or self.settings.storage_configured

    @property
    def client(self) -> Any:
        """Lazily created boto3 S3 client."""
        if self._client is None:
            self._client = self._create_s3_client()
        return self._client

    def _create_s3_client(self) -> Any:
        session = boto3.session.Session()
        return session.client(
            "s3",
            endpoint_url=self.settings.r2_endpoint or None,
            region_name=self.settings.r2_region or None,
            aws_access_key_id=self.settings.r2_access_key_id or None,
            aws_secret_access_key=self.settings.r2_secret_access_key or None,
            config=Config(
                signature_version="s3v4",
                connect_timeout=self.settings.storage_connect_timeout_s,
                read_timeout=self.settings.storage_read_timeout_s,
                retries={"max_attempts": 1},
            ),
        )

    def object_key(self, filename: Optional[str] = None) -> str:
        """
        Derive the object key for an upload.

        Uses the caller-supplied filename when present, otherwise the
        configured prefix plus a millisecond timestamp, e.g.
        ``report-1712054400123.png``.
        """
        key = _normalize_object_key(filename or "")
        if key:
            return key
        return f"{self.settings.storage_key_prefix}-{time.time_ns() // 1_000_000}.png"

    def public_url(self, key: str) -> str:
        """Public URL an object is served from."""
        base_url = self.settings.storage_public_base_url
        if not base_url:
            endpoint = (self.settings.r2_endpoint or "").rstrip("/")
            base_url = f"{endpoint}/{self.settings.r2_bucket_name}"
        return f"{base_url.rstrip('/')}/{key}"

    async def publish(
        self, image: CapturedImage, filename: Optional[str] = None
    ) -> UploadOutcome:
        """
        Upload a captured image.

        Args:
            image: Rendered PNG
            filename: Optional object key override

        Returns:
            UploadOutcome with the public URL and key on success, or the
            error message on failure
        """
        if not self.is_configured:
            self.logger.error("Upload requested but object storage is not configured")
            return UploadOutcome.failed("Object storage is not configured")

        key = self.object_key(filename)
        bucket = self.settings.r2_bucket_name

        def _put() -> Any:
            return self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=image.data,
                ContentType=image.mime_type,
            )

        try:
            await anyio.to_thread.run_sync(_put)
        except (BotoCoreError, ClientError) as e:
            self.logger.error("Error uploading to object storage", key=key, error=str(e))
            return UploadOutcome.failed(str(e))

        url = self.public_url(key)
        self.logger.info("File uploaded successfully", key=key, url=url, file_size=image.size)
        return UploadOutcome.ok(url=url, key=key)
