"""
Adapter for public solicitation listings that need no login.
"""

from typing import List

from playwright.sync_api import Page

from .base import PortalAdapter
from .models import Bid, Credential, PortalType


class PublicListingAdapter(PortalAdapter):
    """Loads a public listing page and extracts its rows."""

    portal_type = PortalType.PUBLIC

    def scrape(self, page: Page, credential: Credential) -> List[Bid]:
        descriptor = self.descriptor_for(credential)
        url = self.target_url(credential, descriptor)

        self.navigate(page, url)
        self.wait_for_listing(page, descriptor)
        return self.extract(page, credential, descriptor)
