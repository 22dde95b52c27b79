"""
Browser Locator
===============

Resolves the Chromium executable the render driver launches.

Lookup order:
1. ``browser_executable_path`` (also read from ``PUPPETEER_EXECUTABLE_PATH``)
2. ``browser_candidate_paths``
3. A depth-bounded search of ``browser_search_roots``, only when enabled
4. Playwright's managed Chromium, when ``browser_allow_bundled`` is set
"""

import os
from pathlib import Path
from typing import Iterable, Iterator, Optional

from html_renderer.config.logging import get_logger
from html_renderer.config.settings import Settings
from html_renderer.core.exceptions import BrowserUnavailable

logger = get_logger(__name__)

SEARCH_NAME_PREFIX = "chromium"
SEARCH_EXACT_NAMES = frozenset({"chrome", "headless_shell"})
SEARCH_EXCLUDED_SUFFIXES = frozenset({".xml", ".png", ".desktop", ".so", ".pak", ".json"})


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _looks_like_browser(path: Path) -> bool:
    name = path.name.lower()
    if path.suffix.lower() in SEARCH_EXCLUDED_SUFFIXES:
        return False
    return name.startswith(SEARCH_NAME_PREFIX) or name in SEARCH_EXACT_NAMES


def _walk_bounded(root: Path, max_depth: int) -> Iterator[Path]:
    """Yield files under ``root`` no deeper than ``max_depth`` levels."""
    root_depth = len(root.parts)
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        if len(current.parts) - root_depth >= max_depth:
            dirnames[:] = []
        dirnames.sort()
        for filename in sorted(filenames):
            yield current / filename


def search_browser_executable(roots: Iterable[str], max_depth: int) -> Optional[str]:
    """
    Search ``roots`` for a Chromium executable.

    The walk is bounded by ``max_depth`` and visits entries in sorted order so
    the same filesystem always yields the same result.
    """
    for root in roots:
        root_path = Path(root)
        if not root_path.is_dir():
            continue
        for candidate in _walk_bounded(root_path, max_depth):
            if _looks_like_browser(candidate) and _is_executable(candidate):
                return str(candidate)
    return None


def locate_browser_executable(settings: Settings) -> Optional[str]:
    """
    Resolve the browser executable for a render.

    Args:
        settings: Application settings

    Returns:
        Path to a Chromium executable, or None to launch Playwright's managed
        Chromium

    Raises:
        BrowserUnavailable: If no executable was found and the managed
            browser fallback is disabled
    """
    configured = settings.browser_executable_path
    if configured:
        if _is_executable(Path(configured)):
            logger.debug("Using configured browser executable", path=configured)
            return configured
        logger.warning("Configured browser executable not found", path=configured)

    for candidate in settings.browser_candidate_paths:
        if _is_executable(Path(candidate)):
            logger.debug("Found browser executable", path=candidate)
            return candidate

    if settings.browser_search_enabled:
        found = search_browser_executable(
            settings.browser_search_roots, settings.browser_search_max_depth
        )
        if found:
            logger.info("Found browser executable by search", path=found)
            return found

    if settings.browser_allow_bundled:
        logger.debug("No system browser found, using Playwright managed Chromium")
        return None

    logger.error("No Chromium executable found")
    raise BrowserUnavailable("Chromium browser not found. Cannot render HTML.")
