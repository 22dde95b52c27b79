"""
Authentication Utilities
=======================

Authentication utilities for API endpoints.
Provides API key validation and hashing.
"""

import hashlib
import hmac
from typing import Optional
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader

from html_renderer.config.settings import Settings, get_settings

ACCESS_DENIED_MESSAGE = "Access denied: Invalid or missing API key"

# API key header
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_api_key_hash(api_key: str) -> str:
    """
    Hash API key for storage and comparison.

    Args:
        api_key: API key to hash

    Returns:
        Hashed API key
    """
    return hashlib.sha256(api_key.encode()).hexdigest()


def app_settings(request: Request) -> Settings:
    """Settings the serving application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def is_valid_api_key(api_key: str, settings: Settings) -> bool:
    """Check an API key against the shared secret and the configured hashes."""
    if settings.api_secret and hmac.compare_digest(api_key, settings.api_secret):
        return True

    api_key_hash = get_api_key_hash(api_key)
    return any(hmac.compare_digest(api_key_hash, known) for known in settings.api_key_hashes)


async def validate_api_key(
    request: Request, api_key: Optional[str] = Depends(api_key_header)
) -> str:
    """
    Validate API key.

    Args:
        request: Incoming request
        api_key: API key from header

    Returns:
        API key if valid

    Raises:
        HTTPException: If API key is invalid
    """
    settings = app_settings(request)

    # Skip validation in development mode if configured
    if settings.skip_api_key_validation:
        return "development_key"

    if not api_key or not is_valid_api_key(api_key, settings):
        raise HTTPException(
            status_code=401, detail=ACCESS_DENIED_MESSAGE, headers={"WWW-Authenticate": "ApiKey"}
        )

    return api_key
