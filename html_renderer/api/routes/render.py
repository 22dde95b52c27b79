"""
Render Routes
=============

FastAPI route for synchronous HTML to PNG rendering.

Configuration is read from query parameters first and request headers second:

    width    / X-Width        positive integer, measured from the content if absent
    height   / X-Height       positive integer, disables full-page capture
    filename / X-Filename     object key override when persisting
    save     / X-Save-To-R2   upload the image and answer with JSON
    persist  / X-Persist      alias of save
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from html_renderer.api.auth import app_settings, validate_api_key
from html_renderer.core.exceptions import InvalidParameter
from html_renderer.core.pipeline import RenderOrchestrator
from html_renderer.models.schemas import (
    ErrorResponse,
    RenderRequest,
    UploadErrorResponse,
    UploadResponse,
    parse_flag,
)

router = APIRouter(tags=["Rendering"])


def _param(request: Request, query_name: str, header_name: str) -> Optional[str]:
    value = request.query_params.get(query_name)
    if value is None or value == "":
        value = request.headers.get(header_name)
    return value


def _persist_requested(request: Request) -> bool:
    return any(
        parse_flag(value)
        for value in (
            request.query_params.get("save"),
            request.query_params.get("persist"),
            request.headers.get("X-Save-To-R2"),
            request.headers.get("X-Persist"),
        )
    )


def get_orchestrator(request: Request) -> RenderOrchestrator:
    """Dependency returning the application's render orchestrator."""
    return request.app.state.orchestrator


async def read_render_request(request: Request) -> RenderRequest:
    """Parse and validate a render request from the raw HTTP request."""
    body = await request.body()
    try:
        content = body.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidParameter("body", "Request body must be UTF-8 encoded text") from None

    settings = app_settings(request)
    return RenderRequest.from_raw(
        content,
        width=_param(request, "width", "X-Width"),
        height=_param(request, "height", "X-Height"),
        filename=_param(request, "filename", "X-Filename"),
        persist=_persist_requested(request),
        max_width=settings.max_width,
        max_height=settings.max_height,
    )


@router.post(
    "/render",
    dependencies=[Depends(validate_api_key)],
    responses={
        200: {
            "content": {"image/png": {}, "application/json": {"model": UploadResponse}},
            "description": "Rendered PNG, or upload result when persisting",
        },
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        502: {"model": UploadErrorResponse},
        503: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def render_html(
    request: Request, orchestrator: RenderOrchestrator = Depends(get_orchestrator)
) -> Response:
    """
    Render an HTML payload (optionally fenced in markdown) to PNG.

    Returns the PNG bytes, or a JSON upload result when persisting.
    """
    render_request = await read_render_request(request)
    outcome = await orchestrator.execute(render_request)

    if outcome.upload is None:
        return Response(content=outcome.image.data, media_type=outcome.image.mime_type)

    if outcome.upload.success:
        payload = UploadResponse(
            message="Image rendered and uploaded to R2",
            url=outcome.upload.url or "",
            filename=outcome.upload.key or "",
        )
        return JSONResponse(content=payload.model_dump())

    error = UploadErrorResponse(
        message="Failed to upload to R2",
        error=outcome.upload.error or "Unknown upload error",
    )
    return JSONResponse(status_code=502, content=error.model_dump())
