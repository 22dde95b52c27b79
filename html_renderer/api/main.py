"""
FastAPI Application
==================

Main FastAPI application exposing the HTML to PNG render endpoint.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from html_renderer.api.rate_limit import FixedWindowRateLimiter, create_rate_limit_middleware
from html_renderer.api.routes.health import router as health_router
from html_renderer.api.routes.render import router as render_router
from html_renderer.config.logging import get_logger, setup_logging
from html_renderer.config.settings import Settings, get_settings
from html_renderer.core.exceptions import BrowserUnavailable, RenderError
from html_renderer.core.pipeline import RenderOrchestrator
from html_renderer.core.rendering.browser_locator import locate_browser_executable
from html_renderer.models.schemas import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting HTML renderer",
        environment=settings.environment,
        port=settings.port,
        storage_configured=settings.storage_configured,
    )

    # Browser lookup runs again per request; this only reports what a render would use.
    try:
        executable_path = locate_browser_executable(settings)
        logger.info(
            "Browser executable resolved",
            executable_path=executable_path or "playwright-managed",
        )
    except BrowserUnavailable as e:
        logger.error("No browser available at startup", error=str(e))

    try:
        yield
    finally:
        logger.info("Shutting down HTML renderer")


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    error_code: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    settings: Settings = request.app.state.settings
    error_response = ErrorResponse(
        error=error,
        error_code=error_code,
        details=details if settings.debug else None,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error-to-response mapping."""

    @app.exception_handler(RenderError)
    async def render_exception_handler(request: Request, exc: RenderError) -> JSONResponse:
        """Map render pipeline errors to their status codes."""
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Render request failed",
            error_code=exc.error_code,
            error_message=exc.message,
            request_id=getattr(request.state, "request_id", None),
        )
        details = {"message": str(exc.__cause__)} if exc.__cause__ else None
        return _error_response(request, exc.status_code, exc.message, exc.error_code, details)

    @app.exception_handler(HTTPException)
    async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Custom HTTP exception handler with structured error response."""
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            request_id=getattr(request.state, "request_id", None),
        )
        response = _error_response(request, exc.status_code, str(exc.detail), str(exc.status_code))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """General exception handler for unexpected errors."""
        logger.error(
            "Unhandled exception",
            exception=str(exc),
            request_id=getattr(request.state, "request_id", None),
            exc_info=True,
        )
        return _error_response(
            request, 500, "Internal server error", "INTERNAL_ERROR", {"exception": str(exc)}
        )


def create_app(
    settings: Optional[Settings] = None, orchestrator: Optional[RenderOrchestrator] = None
) -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.

    Args:
        settings: Settings to use, defaults to the global settings
        orchestrator: Render orchestrator, built from settings if omitted

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Render HTML (optionally fenced in markdown) to PNG images",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator or RenderOrchestrator(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    if settings.rate_limit_enabled:
        limiter = FixedWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_s,
        )
        app.state.rate_limiter = limiter
        app.middleware("http")(create_rate_limit_middleware(limiter, exempt_paths={"/health"}))

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):  # type: ignore
        """Add request ID to all requests."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(render_router)
    return app


app = create_app()


def run() -> None:
    """Run the API server with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "html_renderer.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
