"""
Test Mocks
===========

Mock implementations of Playwright objects, the S3 client and the render
driver for testing pipeline components without a browser or network.
"""

import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

from html_renderer.core.rendering.driver import RenderState
from html_renderer.core.rendering.viewport import GeometryPlan
from html_renderer.models.schemas import CapturedImage

from .assertions import make_png

__all__ = [
    "MockPage",
    "MockBrowser",
    "MockChromium",
    "MockPlaywright",
    "mock_async_playwright",
    "MockS3Client",
    "MockRenderDriver",
    "MockDriverFactory",
]


class MockPage:
    """Mock Playwright page."""

    def __init__(
        self,
        png_data: Optional[bytes] = None,
        scroll_width: Any = 640,
        failures: Optional[Dict[str, BaseException]] = None,
        hang_on: Optional[str] = None,
    ):
        self.png_data = make_png() if png_data is None else png_data
        self.scroll_width = scroll_width
        self.failures = failures or {}
        self.hang_on = hang_on
        self.calls: List[str] = []
        self.default_timeout: Optional[int] = None
        self.content: Optional[str] = None
        self.content_kwargs: Dict[str, Any] = {}
        self.viewport: Optional[Dict[str, int]] = None
        self.screenshot_kwargs: Dict[str, Any] = {}

    async def _step(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]
        if name == self.hang_on:
            await asyncio.Event().wait()

    def set_default_timeout(self, timeout: int) -> None:
        self.default_timeout = timeout

    async def set_content(self, html: str, **kwargs) -> None:
        await self._step("set_content")
        self.content = html
        self.content_kwargs = kwargs

    async def evaluate(self, expression: str) -> Any:
        await self._step("evaluate")
        return self.scroll_width

    async def set_viewport_size(self, viewport_size: Dict[str, int]) -> None:
        await self._step("set_viewport_size")
        self.viewport = dict(viewport_size)

    async def screenshot(self, **kwargs) -> bytes:
        await self._step("screenshot")
        self.screenshot_kwargs = kwargs
        return self.png_data


class MockBrowser:
    """Mock Playwright browser."""

    def __init__(
        self, page: Optional[MockPage] = None, new_page_error: Optional[BaseException] = None
    ):
        self.page = page or MockPage()
        self.new_page_error = new_page_error
        self.new_page_kwargs: Dict[str, Any] = {}
        self.closed = False
        self.close_calls = 0

    async def new_page(self, **kwargs) -> MockPage:
        if self.new_page_error is not None:
            raise self.new_page_error
        self.new_page_kwargs = kwargs
        return self.page

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True


class MockChromium:
    """Mock ``playwright.chromium`` browser type."""

    def __init__(
        self, browser: Optional[MockBrowser] = None, launch_error: Optional[BaseException] = None
    ):
        self.browser = browser or MockBrowser()
        self.launch_error = launch_error
        self.launch_kwargs: Dict[str, Any] = {}

    async def launch(self, **kwargs) -> MockBrowser:
        self.launch_kwargs = kwargs
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class MockPlaywright:
    """Mock started Playwright instance."""

    def __init__(self, chromium: Optional[MockChromium] = None):
        self.chromium = chromium or MockChromium()
        self.stopped = False

    async def stop(self) -> None:
        self.stopped = True


def mock_async_playwright(playwright: MockPlaywright, start_delay: float = 0.0) -> Any:
    """Build a stand-in for ``async_playwright`` whose ``start()`` yields ``playwright``."""

    async def start() -> MockPlaywright:
        if start_delay:
            await asyncio.sleep(start_delay)
        return playwright

    manager = AsyncMock()
    manager.start = AsyncMock(side_effect=start)

    def factory() -> Any:
        return manager

    return factory


class MockS3Client:
    """Mock boto3 S3 client."""

    def __init__(self, error: Optional[BaseException] = None):
        self.error = error
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.put_calls: List[Dict[str, Any]] = []

    def put_object(self, **kwargs) -> Dict[str, Any]:
        self.put_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        self.objects[kwargs["Key"]] = kwargs
        return {"ETag": '"mock-etag"'}


class MockRenderDriver:
    """Mock render driver recording what it was asked to render."""

    def __init__(
        self,
        executable_path: Optional[str] = None,
        settings: Any = None,
        png_data: Optional[bytes] = None,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
    ):
        self.executable_path = executable_path
        self.settings = settings
        self.png_data = make_png() if png_data is None else png_data
        self.error = error
        self.delay = delay
        self.state = RenderState.IDLE
        self.html_content: Optional[str] = None
        self.plan: Optional[GeometryPlan] = None

    async def render(self, html_content: str, plan: GeometryPlan) -> CapturedImage:
        self.html_content = html_content
        self.plan = plan
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return CapturedImage(data=self.png_data)
        finally:
            self.state = RenderState.CLOSED


class MockDriverFactory:
    """Driver factory that records every driver it creates."""

    def __init__(self, **driver_kwargs):
        self.driver_kwargs = driver_kwargs
        self.drivers: List[MockRenderDriver] = []

    def __call__(self, executable_path: Optional[str], settings: Any) -> MockRenderDriver:
        driver = MockRenderDriver(executable_path, settings, **self.driver_kwargs)
        self.drivers.append(driver)
        return driver
