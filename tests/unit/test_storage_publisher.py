"""
Unit Tests for Storage Publisher
================================

Tests for object key derivation, public URLs and upload outcomes.
"""

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from html_renderer.core.storage.publisher import StoragePublisher
from html_renderer.models.schemas import CapturedImage

from tests.utils.assertions import assert_failed_upload, assert_successful_upload, make_png
from tests.utils.mocks import MockS3Client


@pytest.fixture
def image():
    """Captured PNG to upload."""
    return CapturedImage(data=make_png())


class TestObjectKey:
    """Test key derivation."""

    def test_filename_used_verbatim(self, publisher):
        """Test a caller filename becomes the key."""
        assert publisher.object_key("daily/report.png") == "daily/report.png"

    def test_filename_normalized(self, publisher):
        """Test leading slashes and backslashes are normalized."""
        assert publisher.object_key("/reports\\today.png") == "reports/today.png"
        assert publisher.object_key("  /daily.png \n") == "daily.png"

    def test_generated_key(self, publisher, monkeypatch):
        """Test a timestamped key is generated when no filename is given."""
        monkeypatch.setattr(
            "html_renderer.core.storage.publisher.time.time_ns", lambda: 1712054400123456789
        )
        assert publisher.object_key() == "report-1712054400123.png"
        assert publisher.object_key("   ") == "report-1712054400123.png"

    def test_generated_key_uses_prefix(self, test_settings, mock_s3_client):
        """Test the configured prefix starts generated keys."""
        settings = test_settings.model_copy(update={"storage_key_prefix": "snapshot"})
        key = StoragePublisher(settings, client=mock_s3_client).object_key()

        assert key.startswith("snapshot-")
        assert key.endswith(".png")


class TestPublicUrl:
    """Test public URL derivation."""

    def test_public_base_url(self, publisher):
        """Test the configured public domain is used."""
        assert publisher.public_url("a.png") == "https://cdn.example.com/a.png"

    def test_fallback_to_endpoint_and_bucket(self, test_settings, mock_s3_client):
        """Test URLs fall back to endpoint/bucket without a public domain."""
        settings = test_settings.model_copy(update={"storage_public_base_url": None})
        publisher = StoragePublisher(settings, client=mock_s3_client)

        assert (
            publisher.public_url("a.png")
            == "https://account.r2.cloudflarestorage.com/test-bucket/a.png"
        )


class TestPublish:
    """Test uploads."""

    @pytest.mark.asyncio
    async def test_publish_success(self, publisher, mock_s3_client, image):
        """Test a successful upload stores the PNG and returns its URL."""
        outcome = await publisher.publish(image, "daily.png")

        assert_successful_upload(outcome, expected_key="daily.png")
        assert outcome.url == "https://cdn.example.com/daily.png"

        put = mock_s3_client.put_calls[0]
        assert put["Bucket"] == "test-bucket"
        assert put["Key"] == "daily.png"
        assert put["Body"] == image.data
        assert put["ContentType"] == "image/png"

    @pytest.mark.asyncio
    async def test_publish_client_error(self, test_settings, image):
        """Test an S3 error becomes a failed outcome."""
        error = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )
        publisher = StoragePublisher(test_settings, client=MockS3Client(error=error))

        outcome = await publisher.publish(image)

        assert_failed_upload(outcome, expected_error="AccessDenied")
        assert outcome.key is None

    @pytest.mark.asyncio
    async def test_publish_connection_error(self, test_settings, image):
        """Test a connection failure becomes a failed outcome without retries."""
        client = MockS3Client(error=EndpointConnectionError(endpoint_url="https://r2"))
        publisher = StoragePublisher(test_settings, client=client)

        outcome = await publisher.publish(image, "x.png")

        assert_failed_upload(outcome, expected_error="https://r2")
        assert len(client.put_calls) == 1

    @pytest.mark.asyncio
    async def test_publish_unconfigured(self, test_settings, image):
        """Test publishing without storage configuration fails cleanly."""
        settings = test_settings.model_copy(update={"r2_bucket_name": None})
        publisher = StoragePublisher(settings)

        assert not publisher.is_configured
        outcome = await publisher.publish(image)

        assert_failed_upload(outcome, expected_error="not configured")


class TestClientCreation:
    """Test lazy boto3 client creation."""

    def test_client_configuration(self, test_settings):
        """Test the S3 client targets the configured endpoint."""
        publisher = StoragePublisher(test_settings)
        client = publisher.client

        assert client.meta.endpoint_url == "https://account.r2.cloudflarestorage.com"
        assert client.meta.config.signature_version == "s3v4"
        assert client.meta.config.connect_timeout == test_settings.storage_connect_timeout_s
        assert client.meta.region_name == "auto"
        assert publisher.client is client
