"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.

Every field reads from an ``HTML_RENDER_``-prefixed environment variable. The
secrets and storage fields also accept the unprefixed names used by existing
container deployments (``API_SECRET``, ``R2_*``, ``PUPPETEER_EXECUTABLE_PATH``).
"""

from typing import Annotated, List, Optional, Union
import json

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _env(name: str, *legacy: str) -> AliasChoices:
    return AliasChoices(f"HTML_RENDER_{name}", *legacy)


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="HTML Renderer", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Rendering Configuration
    default_width: int = Field(
        default=800, gt=0, description="Initial viewport width and empty-document fallback"
    )
    default_height: int = Field(
        default=600, gt=0, description="Initial viewport height used while the content loads"
    )
    max_width: int = Field(default=16384, gt=0, description="Maximum render width")
    max_height: int = Field(default=16384, gt=0, description="Maximum render height")
    render_timeout_s: float = Field(
        default=60.0, gt=0, description="Overall budget for one browser session in seconds"
    )
    load_timeout_ms: int = Field(
        default=30000, gt=0, description="Network-idle wait timeout in milliseconds"
    )
    capture_timeout_ms: int = Field(
        default=30000, gt=0, description="Screenshot timeout in milliseconds"
    )
    browser_timeout_ms: int = Field(
        default=30000, gt=0, description="Default Playwright page timeout in milliseconds"
    )
    png_optimize: bool = Field(default=False, description="Losslessly re-encode captured PNGs")

    # Browser Configuration
    browser_headless: bool = Field(default=True, description="Run browser in headless mode")
    browser_executable_path: Optional[str] = Field(
        default=None,
        validation_alias=_env(
            "BROWSER_EXECUTABLE_PATH", "PUPPETEER_EXECUTABLE_PATH", "CHROMIUM_PATH"
        ),
        description="Explicit Chromium executable path",
    )
    browser_candidate_paths: Annotated[List[str], NoDecode] = Field(
        default=["/usr/bin/chromium", "/usr/bin/chromium-browser", "/usr/lib/chromium/chromium"],
        description="Fixed locations checked for a Chromium executable",
    )
    browser_search_enabled: bool = Field(
        default=False, description="Search browser_search_roots when fixed paths fail"
    )
    browser_search_roots: Annotated[List[str], NoDecode] = Field(
        default=["/usr/lib", "/usr/local/bin", "/opt"],
        description="Directories searched for a Chromium executable",
    )
    browser_search_max_depth: int = Field(
        default=3, ge=0, description="Maximum directory depth for the browser search"
    )
    browser_allow_bundled: bool = Field(
        default=True, description="Fall back to Playwright's managed Chromium"
    )

    # Object Storage Configuration (Cloudflare R2 / S3)
    r2_endpoint: Optional[str] = Field(
        default=None,
        validation_alias=_env("R2_ENDPOINT", "R2_ENDPOINT"),
        description="S3 endpoint URL",
    )
    r2_access_key_id: Optional[str] = Field(
        default=None,
        validation_alias=_env("R2_ACCESS_KEY_ID", "R2_ACCESS_KEY_ID"),
        description="Access key id",
    )
    r2_secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias=_env("R2_SECRET_ACCESS_KEY", "R2_SECRET_ACCESS_KEY"),
        description="Secret access key",
    )
    r2_bucket_name: Optional[str] = Field(
        default=None,
        validation_alias=_env("R2_BUCKET_NAME", "R2_BUCKET_NAME"),
        description="Bucket name",
    )
    r2_region: str = Field(default="auto", description="Region name (R2 uses 'auto')")
    storage_public_base_url: Optional[str] = Field(
        default=None,
        description="Public domain objects are served from (defaults to endpoint/bucket)",
    )
    storage_key_prefix: str = Field(default="report", description="Prefix for generated keys")
    storage_connect_timeout_s: float = Field(default=10.0, gt=0, description="Connect timeout")
    storage_read_timeout_s: float = Field(default=30.0, gt=0, description="Read timeout")

    # Security Configuration
    allowed_hosts: Annotated[List[str], NoDecode] = Field(
        default=["*"], description="Allowed hosts for CORS"
    )
    api_secret: Optional[str] = Field(
        default=None,
        validation_alias=_env("API_SECRET", "API_SECRET"),
        description="Shared secret expected in X-API-Key",
    )
    api_key_hashes: Annotated[List[str], NoDecode] = Field(
        default=[], description="Valid SHA-256 API key hashes"
    )
    skip_api_key_validation: bool = Field(
        default=False, description="Skip API key validation (local development only)"
    )
    rate_limit_enabled: bool = Field(default=True, description="Enable the request rate limiter")
    rate_limit_window_s: int = Field(default=900, gt=0, description="Rate limit window in seconds")
    rate_limit_max_requests: int = Field(
        default=1000, gt=0, description="Requests allowed per client per window"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator(
        "allowed_hosts",
        "browser_candidate_paths",
        "browser_search_roots",
        "api_key_hashes",
        mode="before",
    )
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse list values from a JSON array or a comma-separated string."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def storage_configured(self) -> bool:
        """Whether every value required for an upload is present."""
        required = (
            self.r2_endpoint,
            self.r2_bucket_name,
            self.r2_access_key_id,
            self.r2_secret_access_key,
        )
        return all(bool((value or "").strip()) for value in required)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="HTML_RENDER_",
        populate_by_name=True,
        extra="ignore",
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
