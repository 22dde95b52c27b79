"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, mock browser/storage services, and sample payloads.
"""

from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient

import html_renderer.config.settings as settings_module
from html_renderer.config.settings import Settings
from html_renderer.api.main import create_app
from html_renderer.core.pipeline import RenderOrchestrator
from html_renderer.core.storage.publisher import StoragePublisher

from tests.utils.mocks import MockDriverFactory, MockS3Client

TEST_API_SECRET = "test-secret"


def build_test_settings(**overrides) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    values = dict(
        environment="testing",
        debug=True,
        log_level="DEBUG",
        api_secret=TEST_API_SECRET,
        r2_endpoint="https://account.r2.cloudflarestorage.com",
        r2_access_key_id="test-access-key",
        r2_secret_access_key="test-secret-key",
        r2_bucket_name="test-bucket",
        storage_public_base_url="https://cdn.example.com",
        rate_limit_enabled=False,
        browser_executable_path=None,
        browser_candidate_paths=[],
        browser_search_enabled=False,
        browser_allow_bundled=True,
        render_timeout_s=5.0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings() -> Settings:
    """Test settings fixture."""
    return build_test_settings()


@pytest.fixture(autouse=True)
def override_settings(test_settings: Settings, monkeypatch) -> Settings:
    """Override the global settings instance for every test."""
    monkeypatch.setattr(settings_module, "settings", test_settings)
    return test_settings


@pytest.fixture
def mock_s3_client() -> MockS3Client:
    """Mock S3 client that accepts every upload."""
    return MockS3Client()


@pytest.fixture
def publisher(test_settings: Settings, mock_s3_client: MockS3Client) -> StoragePublisher:
    """Storage publisher backed by the mock S3 client."""
    return StoragePublisher(test_settings, client=mock_s3_client)


@pytest.fixture
def driver_factory() -> MockDriverFactory:
    """Factory producing mock render drivers."""
    return MockDriverFactory()


@pytest.fixture
def orchestrator(
    test_settings: Settings, publisher: StoragePublisher, driver_factory: MockDriverFactory
) -> RenderOrchestrator:
    """Render orchestrator wired to mock driver and storage."""
    return RenderOrchestrator(
        test_settings,
        publisher=publisher,
        driver_factory=driver_factory,
        locator=lambda settings: None,
    )


@pytest.fixture
def fastapi_client(
    test_settings: Settings, orchestrator: RenderOrchestrator
) -> Generator[TestClient, None, None]:
    """FastAPI test client."""
    app = create_app(test_settings, orchestrator)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    """Headers carrying a valid API key."""
    return {"X-API-Key": TEST_API_SECRET, "Content-Type": "text/html"}


@pytest.fixture
def sample_html() -> str:
    """Sample report HTML."""
    return """
        <html>
            <body style="font-family: Arial; padding: 20px;">
                <h1>Daily News Report</h1>
                <p style="color: #333;">This is a test report generated from HTML.</p>
                <ul>
                    <li>News Item 1: Something happened today.</li>
                    <li>News Item 2: More exciting updates.</li>
                </ul>
            </body>
        </html>
    """


@pytest.fixture
def fenced_html() -> str:
    """HTML wrapped in a markdown code fence, as LLMs usually return it."""
    return "Here is your report:\n```html\n<h1>Fenced report</h1>\n```\nLet me know if you need changes."


# Pytest configuration
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file paths."""
    for item in items:
        path = str(item.fspath)
        if "/unit/" in path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in path:
            item.add_marker(pytest.mark.integration)
