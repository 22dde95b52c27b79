"""
Render Orchestrator
===================

Composes the render pipeline for one request:

    extract HTML -> plan geometry -> locate browser -> render -> (publish)

Every request gets its own driver, and so its own browser process; nothing is
shared between concurrent pipelines.
"""

import asyncio
from typing import Any, Callable, Optional

import anyio

from html_renderer.config.logging import get_logger
from html_renderer.config.settings import Settings, get_settings
from html_renderer.core.exceptions import RenderTimeout
from html_renderer.core.markup.extractor import extract_html
from html_renderer.core.rendering.browser_locator import locate_browser_executable
from html_renderer.core.rendering.driver import RenderDriver
from html_renderer.core.rendering.viewport import plan_geometry
from html_renderer.core.storage.publisher import StoragePublisher
from html_renderer.models.schemas import RenderOutcome, RenderRequest

logger = get_logger(__name__)

DriverFactory = Callable[[Optional[str], Settings], RenderDriver]
BrowserLocator = Callable[[Settings], Optional[str]]


class RenderOrchestrator:
    """Runs the render pipeline for validated requests."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        publisher: Optional[StoragePublisher] = None,
        driver_factory: DriverFactory = RenderDriver,
        locator: BrowserLocator = locate_browser_executable,
    ):
        self.settings = settings or get_settings()
        self.publisher = publisher or StoragePublisher(self.settings)
        self.driver_factory = driver_factory
        self.locator = locator
        self.logger: Any = logger.bind(component="render_orchestrator")

    async def execute(self, request: RenderRequest) -> RenderOutcome:
        """
        Render a request and, if asked to, publish the image.

        Args:
            request: Validated render request

        Returns:
            RenderOutcome with the image and the upload outcome when persisting

        Raises:
            InvalidParameter: If a width or height is not positive; raised
                before any browser is located or launched
            RenderError: Subclasses for browser, timeout and capture failures
        """
        html_content = extract_html(request.content)
        plan = plan_geometry(request.width, request.height)

        # Candidate checks and the optional search touch the filesystem.
        executable_path = await anyio.to_thread.run_sync(self.locator, self.settings)
        driver = self.driver_factory(executable_path, self.settings)

        try:
            image = await asyncio.wait_for(
                driver.render(html_content, plan), timeout=self.settings.render_timeout_s
            )
        except asyncio.TimeoutError as e:
            self.logger.error(
                "Render exceeded time budget",
                timeout_s=self.settings.render_timeout_s,
                state=getattr(driver, "state", None),
            )
            raise RenderTimeout(
                f"Render did not complete within {self.settings.render_timeout_s}s"
            ) from e

        if not request.persist:
            return RenderOutcome(image=image)

        upload = await self.publisher.publish(image, request.filename)
        return RenderOutcome(image=image, upload=upload)
