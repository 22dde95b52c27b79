"""
Render Errors
=============

Error taxonomy for the render pipeline. Each error carries the HTTP status
and machine-readable code the API layer reports it with.

Upload failures are not exceptions: the publisher reports them as an
``UploadOutcome`` with ``success=False`` because the image itself rendered.
"""

from typing import Optional


class RenderError(Exception):
    """Base class for render pipeline failures."""

    error_code = "RENDER_ERROR"
    status_code = 500

    def __init__(self, message: str, *, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidParameter(RenderError):
    """Malformed or non-positive request parameter."""

    error_code = "INVALID_PARAMETER"
    status_code = 400

    def __init__(self, name: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid {name}. Must be a positive number.")
        self.name = name


class EmptyContent(RenderError):
    """Request body is missing or blank."""

    error_code = "EMPTY_CONTENT"
    status_code = 400

    def __init__(self, message: str = "No HTML content provided"):
        super().__init__(message)


class BrowserUnavailable(RenderError):
    """No usable browser executable, or the browser failed to launch."""

    error_code = "BROWSER_UNAVAILABLE"
    status_code = 503


class RenderTimeout(RenderError):
    """Content did not reach network idle within the allotted window."""

    error_code = "RENDER_TIMEOUT"
    status_code = 504


class CaptureFailure(RenderError):
    """Screenshot failed after the content loaded."""

    error_code = "CAPTURE_FAILURE"
    status_code = 500
