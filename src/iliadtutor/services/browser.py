"""Headless-browser page rendering for client-rendered sites."""

from __future__ import annotations

import logging

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from iliadtutor.services.base import ServiceError

logger = logging.getLogger(__name__)


class RenderError(ServiceError):
    """The page could not be loaded or rendered."""

    pass


class RenderTimeoutError(RenderError):
    """The page loaded but the awaited selector never appeared."""

    pass


class PageRenderer:
    """Renders one page per call in a fresh headless Chromium.

    Uses the sync API, so call it from a worker thread, never from inside
    a running event loop.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout_ms = timeout * 1000

    def render(self, url: str, wait_for: str | None = None) -> str:
        """
        Load a URL until the network is idle and return the rendered HTML.

        Args:
            url: Page to load
            wait_for: CSS selector that must appear before the HTML is read

        Raises:
            RenderTimeoutError: If ``wait_for`` does not appear in time
            RenderError: If the browser fails to load the page
        """
        logger.debug(f"Rendering {url}")
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(headless=True)
                try:
                    page = browser.new_page()
                    page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
                    if wait_for:
                        try:
                            page.wait_for_selector(wait_for, timeout=self.timeout_ms)
                        except PlaywrightTimeoutError as e:
                            raise RenderTimeoutError(
                                f"{wait_for!r} never appeared on {url}"
                            ) from e
                    return page.content()
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise RenderError(f"Could not render {url}: {e}") from e
