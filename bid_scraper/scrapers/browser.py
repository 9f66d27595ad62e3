"""
Browser session management for the scraping engine.

A BrowserSession owns at most one Playwright Chromium instance for the
duration of an orchestration run. Pages are handed out to adapters and the
browser is torn down when the session is released.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from playwright.sync_api import Browser, Page, Playwright, sync_playwright

from ..config import BrowserConfig
from .exceptions import BrowserLaunchError

logger = logging.getLogger(__name__)


class BrowserSession:
    """Lazily launched, single shared browser with guaranteed cleanup."""

    def __init__(self, config: Optional[BrowserConfig] = None,
                 playwright_factory: Callable = sync_playwright):
        self.config = config or BrowserConfig()
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    def _launch(self):
        """Start Playwright and launch Chromium."""
        try:
            self._playwright = self._playwright_factory().start()
            self._browser = self._playwright.chromium.launch(
                headless=self.config.headless,
                args=list(self.config.launch_args),
            )
            logger.info("Browser launched")
        except Exception as e:
            self.release()
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

    def acquire_page(self) -> Page:
        """Open a new page on the shared browser, launching it on first use."""
        if self._browser is None:
            self._launch()

        page = self._browser.new_page(user_agent=self.config.user_agent)
        page.set_default_timeout(self.config.element_timeout * 1000)
        page.set_default_navigation_timeout(self.config.navigation_timeout * 1000)
        return page

    @contextmanager
    def page(self) -> Iterator[Page]:
        """Acquire a page and close it when the block exits."""
        page = self.acquire_page()
        try:
            yield page
        finally:
            try:
                page.close()
            except Exception as e:
                logger.warning(f"Error closing page: {e}")

    def release(self):
        """Close the browser and stop Playwright. Safe to call repeatedly."""
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None

        if browser is not None:
            try:
                browser.close()
                logger.info("Browser closed")
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")

        if playwright is not None:
            try:
                playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(open={self.is_open})>"
