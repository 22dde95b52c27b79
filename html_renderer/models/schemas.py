"""
Models and Schemas
==================

Request-scoped pipeline entities and API response payloads.

Pipeline entities are frozen dataclasses: each is created once per request
and never mutated. API payloads are Pydantic models so FastAPI can document
and serialize them.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from html_renderer.core.exceptions import EmptyContent

PNG_MIME_TYPE = "image/png"

# Viewport height in full-page mode; the capture itself decides the final height.
FULL_PAGE_PLACEHOLDER_HEIGHT = 1

_TRUE_VALUES = {"true", "1", "yes", "on"}


def parse_flag(value: Union[str, bool, None]) -> bool:
    """Interpret a query/header flag such as ``save=true``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return value.strip().lower() in _TRUE_VALUES


# Pipeline entities
@dataclass(frozen=True)
class RenderRequest:
    """One inbound render request."""

    content: str
    width: Optional[int] = None
    height: Optional[int] = None
    filename: Optional[str] = None
    persist: bool = False

    @property
    def full_page(self) -> bool:
        return self.height is None

    @classmethod
    def from_raw(
        cls,
        content: Optional[str],
        *,
        width: Union[str, int, None] = None,
        height: Union[str, int, None] = None,
        filename: Optional[str] = None,
        persist: Union[str, bool, None] = None,
        max_width: Optional[int] = None,
        max_height: Optional[int] = None,
    ) -> "RenderRequest":
        """
        Build a validated request from raw query/header values.

        Raises:
            EmptyContent: If the content is missing or blank
            InvalidParameter: If width or height is not a positive integer
        """
        # viewport imports this module
        from html_renderer.core.rendering.viewport import parse_dimension

        if content is None or not content.strip():
            raise EmptyContent()

        return cls(
            content=content,
            width=parse_dimension(width, "width", maximum=max_width),
            height=parse_dimension(height, "height", maximum=max_height),
            filename=(filename or "").strip() or None,
            persist=parse_flag(persist),
        )


@dataclass(frozen=True)
class ResolvedGeometry:
    """Final viewport geometry applied to the page."""

    width: int
    height: Optional[int]
    full_page: bool

    @property
    def viewport(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height or FULL_PAGE_PLACEHOLDER_HEIGHT}


@dataclass(frozen=True)
class CapturedImage:
    """Rendered PNG bytes."""

    data: bytes
    mime_type: str = PNG_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class UploadOutcome:
    """Terminal result of one storage upload."""

    success: bool
    url: Optional[str] = None
    key: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, url: str, key: str) -> "UploadOutcome":
        return cls(success=True, url=url, key=key)

    @classmethod
    def failed(cls, error: str) -> "UploadOutcome":
        return cls(success=False, error=error or "Unknown upload error")


@dataclass(frozen=True)
class RenderOutcome:
    """What the orchestrator hands back to the HTTP layer."""

    image: CapturedImage
    upload: Optional[UploadOutcome] = None


# API Response Models
class UploadResponse(BaseModel):
    """Response returned when a rendered image was persisted."""

    success: bool = Field(True, description="Whether the upload succeeded")
    message: str = Field(..., description="Human readable summary")
    url: str = Field(..., description="Public URL of the stored image")
    filename: str = Field(..., description="Object key the image was stored under")


class UploadErrorResponse(BaseModel):
    """Response returned when rendering succeeded but the upload failed."""

    success: bool = Field(False, description="Always false")
    message: str = Field(..., description="Human readable summary")
    error: str = Field(..., description="Storage error message")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Error timestamp"
    )
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
