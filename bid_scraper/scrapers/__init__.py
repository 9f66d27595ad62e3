"""
Scraping engine for the bid scraper.

This package provides:
- Browser session management with guaranteed cleanup
- Declarative portal descriptors and the listing extractor that runs them
- Public and authenticated portal adapters
- The orchestrator and scheduler (import them from their modules)
"""

from .authenticated import AuthenticatedListingAdapter
from .base import PortalAdapter, ScrapeState
from .browser import BrowserSession
from .exceptions import (
    AlreadyRunningError,
    AuthenticationError,
    BrowserLaunchError,
    ExtractionSkip,
    NavigationError,
    ScrapingError,
    SessionError,
    StoreUnavailable,
    ValidationError,
)
from .extractors import ListingExtractor
from .models import Bid, Credential, PortalType, RunResult
from .public import PublicListingAdapter

__all__ = [
    "AuthenticatedListingAdapter",
    "PortalAdapter",
    "ScrapeState",
    "BrowserSession",
    "AlreadyRunningError",
    "AuthenticationError",
    "BrowserLaunchError",
    "ExtractionSkip",
    "NavigationError",
    "ScrapingError",
    "SessionError",
    "StoreUnavailable",
    "ValidationError",
    "ListingExtractor",
    "Bid",
    "Credential",
    "PortalType",
    "RunResult",
    "PublicListingAdapter",
]
