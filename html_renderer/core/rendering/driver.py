"""
Render Driver
=============

Playwright-based PNG capture of one HTML document.

A driver owns exactly one browser session and walks it through a strictly
sequential lifecycle:

    IDLE -> LAUNCHED -> PAGE_OPEN -> CONTENT_LOADED -> VIEWPORT_SET -> CAPTURED -> CLOSED

The browser process is torn down on every exit path (success, render error,
unexpected exception, task cancellation) so no Chromium process outlives the
request that started it.
"""

import asyncio
from enum import Enum
from typing import Any, Optional

import anyio
from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from html_renderer.config.logging import get_logger
from html_renderer.config.settings import Settings, get_settings
from html_renderer.core.exceptions import (
    BrowserUnavailable,
    CaptureFailure,
    RenderError,
    RenderTimeout,
)
from html_renderer.core.rendering.postprocess import optimize_png
from html_renderer.core.rendering.viewport import MEASURE_CONTENT_WIDTH_JS, GeometryPlan
from html_renderer.models.schemas import CapturedImage, ResolvedGeometry

logger = get_logger(__name__)

# The service runs inside an already sandboxed container.
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class RenderState(str, Enum):
    """Lifecycle states of a render driver."""

    IDLE = "idle"
    LAUNCHED = "launched"
    PAGE_OPEN = "page_open"
    CONTENT_LOADED = "content_loaded"
    VIEWPORT_SET = "viewport_set"
    CAPTURED = "captured"
    CLOSED = "closed"


class RenderDriver:
    """Single-use browser session that renders one document to PNG."""

    def __init__(self, executable_path: Optional[str] = None, settings: Optional[Settings] = None):
        self.executable_path = executable_path
        self.settings = settings or get_settings()
        self.state = RenderState.IDLE
        self.geometry: Optional[ResolvedGeometry] = None
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._start_task: Optional["asyncio.Future[Playwright]"] = None
        self.logger: Any = logger.bind(component="render_driver")

    def _transition(self, state: RenderState) -> None:
        self.state = state
        self.logger.debug("Render state changed", state=state.value)

    async def render(self, html_content: str, plan: GeometryPlan) -> CapturedImage:
        """
        Render HTML content to a PNG.

        Args:
            html_content: HTML document or fragment to load
            plan: Pre-load geometry; its width is measured here when absent

        Returns:
            CapturedImage with the PNG bytes

        Raises:
            BrowserUnavailable: If the browser could not be started
            RenderTimeout: If the content did not reach network idle in time
            CaptureFailure: If sizing the viewport or the screenshot failed
            RuntimeError: If the driver was already used
        """
        if self.state is not RenderState.IDLE:
            raise RuntimeError("RenderDriver instances are single-use")

        self.logger.info(
            "Rendering HTML",
            html_length=len(html_content),
            width=plan.width,
            height=plan.height,
            full_page=plan.full_page,
        )

        try:
            browser = await self._launch()
            page = await self._open_page(browser)
            await self._load_content(page, html_content)
            self.geometry = await self._apply_viewport(page, plan)
            image = await self._capture(page, self.geometry)
        finally:
            await self._teardown()

        self.logger.info(
            "PNG capture completed",
            file_size=image.size,
            width=self.geometry.width,
            full_page=self.geometry.full_page,
        )
        return image

    async def _launch(self) -> Browser:
        try:
            # An interrupted start is awaited and stopped by _teardown.
            self._start_task = asyncio.ensure_future(async_playwright().start())
            self._playwright = await asyncio.shield(self._start_task)
            browser = await self._playwright.chromium.launch(
                headless=self.settings.browser_headless,
                executable_path=self.executable_path,
                args=LAUNCH_ARGS,
            )
            self._browser = browser
        except Exception as e:
            self.logger.error(
                "Browser launch failed", executable_path=self.executable_path, error=str(e)
            )
            raise BrowserUnavailable(f"Browser launch failed: {e}") from e

        self._transition(RenderState.LAUNCHED)
        return browser

    async def _open_page(self, browser: Browser) -> Page:
        try:
            page = await browser.new_page(
                viewport={
                    "width": self.settings.default_width,
                    "height": self.settings.default_height,
                }
            )
        except PlaywrightError as e:
            raise BrowserUnavailable(f"Failed to open page: {e}") from e

        page.set_default_timeout(self.settings.browser_timeout_ms)
        self._transition(RenderState.PAGE_OPEN)
        return page

    async def _load_content(self, page: Page, html_content: str) -> None:
        try:
            await page.set_content(
                html_content,
                wait_until="networkidle",
                timeout=self.settings.load_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            raise RenderTimeout(
                f"Content did not reach network idle within {self.settings.load_timeout_ms}ms"
            ) from e
        except PlaywrightError as e:
            raise RenderError(f"Failed to load content: {e}") from e

        self._transition(RenderState.CONTENT_LOADED)

    async def _apply_viewport(self, page: Page, plan: GeometryPlan) -> ResolvedGeometry:
        try:
            measured_width = None
            if plan.needs_measurement:
                measured_width = await page.evaluate(MEASURE_CONTENT_WIDTH_JS)
                self.logger.debug("Measured content width", width=measured_width)

            geometry = plan.resolve(measured_width, fallback_width=self.settings.default_width)
            await page.set_viewport_size(geometry.viewport)
        except PlaywrightError as e:
            raise CaptureFailure(f"Failed to set viewport: {e}") from e

        self._transition(RenderState.VIEWPORT_SET)
        return geometry

    async def _capture(self, page: Page, geometry: ResolvedGeometry) -> CapturedImage:
        try:
            png_bytes = await page.screenshot(
                type="png",
                full_page=geometry.full_page,
                timeout=self.settings.capture_timeout_ms,
            )
        except PlaywrightError as e:
            raise CaptureFailure(f"Screenshot failed: {e}") from e

        if not png_bytes:
            raise CaptureFailure("Screenshot returned no data")

        if self.settings.png_optimize:
            png_bytes = await anyio.to_thread.run_sync(optimize_png, png_bytes)

        self._transition(RenderState.CAPTURED)
        return CapturedImage(data=png_bytes)

    async def _teardown(self) -> None:
        """Close the browser and stop Playwright, whatever state we are in."""
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        start_task, self._start_task = self._start_task, None

        if playwright is None and start_task is not None and not start_task.cancelled():
            try:
                playwright = await start_task
            except Exception as e:
                self.logger.debug("Playwright never started", error=str(e))

        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                self.logger.warning("Error closing browser", error=str(e))

        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                self.logger.warning("Error stopping Playwright", error=str(e))

        self._transition(RenderState.CLOSED)
