"""
Health Routes
=============

Liveness probe. It reports the process is up and does not touch the browser.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_class=PlainTextResponse)
async def health_check() -> str:
    """Basic health check endpoint."""
    return "OK"
