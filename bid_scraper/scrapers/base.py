"""
Base adapter class for the bid scraper.

Provides the navigation, waiting and extraction steps shared by every portal
adapter. Each step is a blocking Playwright call with its own timeout; a
timeout or browser error becomes a NavigationError scoped to the portal.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..config import BrowserConfig, ScrapingConfig
from .exceptions import NavigationError
from .extractors import ListingExtractor
from .models import Bid, Credential, PortalType
from .portals import PortalDescriptor, default_url_for, get_portal_descriptor


class ScrapeState(str, Enum):
    """Progress of a single adapter invocation."""
    NOT_STARTED = "not_started"
    NAVIGATED = "navigated"
    AUTHENTICATED = "authenticated"
    AUTH_FAILED = "auth_failed"
    EXTRACTED = "extracted"
    EXTRACT_FAILED = "extract_failed"


class PortalAdapter(ABC):
    """Abstract base class for all portal adapters."""

    portal_type: PortalType

    def __init__(self, scraping_config: Optional[ScrapingConfig] = None,
                 browser_config: Optional[BrowserConfig] = None):
        self.scraping_config = scraping_config or ScrapingConfig()
        self.browser_config = browser_config or BrowserConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.state = ScrapeState.NOT_STARTED

    @abstractmethod
    def scrape(self, page: Page, credential: Credential) -> List[Bid]:
        """
        Navigate to the credential's portal and extract its bids.

        Raises:
            NavigationError: a page failed to load or never showed a listing
            AuthenticationError: login was impossible or rejected
        """

    @property
    def navigation_timeout_ms(self) -> int:
        return self.browser_config.navigation_timeout * 1000

    @property
    def element_timeout_ms(self) -> int:
        return self.browser_config.element_timeout * 1000

    def descriptor_for(self, credential: Credential) -> PortalDescriptor:
        return get_portal_descriptor(self.portal_type, credential.portal_name)

    def target_url(self, credential: Credential, descriptor: PortalDescriptor) -> str:
        url = credential.url or default_url_for(
            self.portal_type, credential.portal_name, self.scraping_config.portal_urls
        )
        if not url:
            raise NavigationError(f"No URL configured for portal {credential.portal_name}")
        return url

    def navigate(self, page: Page, url: str):
        """Load ``url`` within the navigation timeout."""
        self.logger.info(f"Navigating to: {url}")
        try:
            page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"Timed out loading {url}", url) from e
        except PlaywrightError as e:
            raise NavigationError(f"Failed to load {url}: {e}", url) from e
        self.state = ScrapeState.NAVIGATED

    def wait_for_listing(self, page: Page, descriptor: PortalDescriptor):
        """Block until any of the descriptor's listing containers appears."""
        selector = descriptor.wait_selector
        try:
            page.wait_for_selector(selector, timeout=self.element_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationError(
                f"Listing did not appear within {self.browser_config.element_timeout}s",
                page.url,
                selector,
            ) from e
        except PlaywrightError as e:
            raise NavigationError(f"Error waiting for listing: {e}", page.url, selector) from e

    def extract(self, page: Page, credential: Credential, descriptor: PortalDescriptor) -> List[Bid]:
        """Run the descriptor's extraction rules over the rendered page."""
        try:
            html_content = page.content()
        except PlaywrightError as e:
            self.state = ScrapeState.EXTRACT_FAILED
            raise NavigationError(f"Could not read page content: {e}", page.url) from e

        extractor = ListingExtractor(descriptor, self.scraping_config)
        bids = extractor.extract(html_content, page.url, credential.portal_name)
        self.state = ScrapeState.EXTRACTED
        self.logger.info(f"Extracted {len(bids)} bids from {credential.portal_name}")
        return bids

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(state='{self.state.value}')>"
