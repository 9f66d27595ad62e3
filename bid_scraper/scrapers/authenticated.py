"""
Adapter for vendor portals that require a login before listing solicitations.

Login flow:
    1. load the portal URL (portals redirect anonymous users to the login form)
    2. locate username, password and submit controls from ordered candidates
    3. fill and submit, then wait for the resulting navigation to settle
    4. judge the outcome: a logout control means success, a known failure
       message means rejection, neither is treated as success
    5. reload the listing and extract it
"""

from typing import List, Optional, Sequence

from playwright.sync_api import ElementHandle
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .base import PortalAdapter, ScrapeState
from .exceptions import AuthenticationError, NavigationError
from .extractors import find_failure_text
from .models import Bid, Credential, PortalType
from .portals import PortalDescriptor


class AuthenticatedListingAdapter(PortalAdapter):
    """Logs into a vendor portal and extracts its requisition listing."""

    portal_type = PortalType.AUTHENTICATED

    def scrape(self, page: Page, credential: Credential) -> List[Bid]:
        if not credential.has_secrets:
            self.state = ScrapeState.AUTH_FAILED
            raise AuthenticationError(
                "Username and password are required", credential.portal_name
            )

        descriptor = self.descriptor_for(credential)
        url = self.target_url(credential, descriptor)

        self.navigate(page, url)
        self.login(page, credential, descriptor)

        self.navigate(page, url)
        self.wait_for_listing(page, descriptor)
        return self.extract(page, credential, descriptor)

    @property
    def login_field_timeout_ms(self) -> int:
        return self.browser_config.login_field_timeout * 1000

    def find_control(self, page: Page, selectors: Sequence[str]) -> Optional[ElementHandle]:
        """Return the first element matched by ``selectors``, tried in order."""
        for selector in selectors:
            try:
                handle = page.query_selector(selector)
            except PlaywrightError as e:
                self.logger.debug(f"Selector {selector} failed: {e}")
                continue
            if handle is not None:
                return handle
        return None

    def login(self, page: Page, credential: Credential, descriptor: PortalDescriptor):
        """Fill and submit the login form, then verify the outcome."""
        portal = credential.portal_name
        try:
            page.wait_for_selector(
                ", ".join(descriptor.password_selectors), timeout=self.login_field_timeout_ms
            )
        except PlaywrightTimeoutError as e:
            self.state = ScrapeState.AUTH_FAILED
            raise AuthenticationError("Login form not found", portal, page.url) from e

        controls = {
            "username field": self.find_control(page, descriptor.username_selectors),
            "password field": self.find_control(page, descriptor.password_selectors),
            "submit control": self.find_control(page, descriptor.submit_selectors),
        }
        missing = [name for name, handle in controls.items() if handle is None]
        if missing:
            self.state = ScrapeState.AUTH_FAILED
            raise AuthenticationError(f"Could not locate {', '.join(missing)}", portal, page.url)

        self.logger.info(f"Logging into {portal}")
        try:
            controls["username field"].fill(credential.username)
            controls["password field"].fill(credential.password)
            controls["submit control"].click()
            page.wait_for_load_state("networkidle", timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationError("Timed out waiting for login to complete", page.url) from e
        except PlaywrightError as e:
            raise NavigationError(f"Login submission failed: {e}", page.url) from e

        self.verify_login(page, credential, descriptor)

    def verify_login(self, page: Page, credential: Credential, descriptor: PortalDescriptor):
        """Raise AuthenticationError unless the page looks logged in."""
        if self.find_control(page, descriptor.logout_selectors) is not None:
            self.state = ScrapeState.AUTHENTICATED
            self.logger.info(f"Login to {credential.portal_name} confirmed by logout control")
            return

        failure = find_failure_text(page.content(), descriptor.failure_texts)
        if failure:
            self.state = ScrapeState.AUTH_FAILED
            raise AuthenticationError(
                f"Login failed: portal reported '{failure}'", credential.portal_name, page.url
            )

        self.state = ScrapeState.AUTHENTICATED
        self.logger.info(f"Login to {credential.portal_name} assumed successful, no failure message shown")
