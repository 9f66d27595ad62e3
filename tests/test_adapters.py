import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from bid_scraper.config import BrowserConfig
from bid_scraper.scrapers.authenticated import AuthenticatedListingAdapter
from bid_scraper.scrapers.base import ScrapeState
from bid_scraper.scrapers.exceptions import AuthenticationError, NavigationError
from bid_scraper.scrapers.models import Credential, PortalType
from bid_scraper.scrapers.public import PublicListingAdapter

from conftest import FakePage

LISTING_URL = "https://bids.example.gov/open"
VENDOR_URL = "https://vendor.example.org/requisitions/list/"

PUBLIC_HTML = """
<table><tbody>
  <tr><td>Bus Parts Supply</td><td>11/30/2026</td></tr>
  <tr><td>Janitorial Services</td><td>12/05/2026</td></tr>
</tbody></table>
"""

REQUISITIONS_HTML = """
<a href="/logout">Log out</a>
<table>
  <tr><th>Requisition</th><th>Posted</th><th>Due</th></tr>
  <tr><td><a href="/requisitions/view/7">Rail Fasteners</a></td><td>10/16/2026</td><td>11/02/2026</td></tr>
</table>
"""

LOGIN_FORM = ['input[name="username"]', 'input[name="password"]', 'button[type="submit"]']


def public_credential(**kwargs):
    return Credential(portal_type=PortalType.PUBLIC, portal_name="County", url=LISTING_URL, **kwargs)


def vendor_credential(username="vendor", password="secret"):
    return Credential(
        portal_type=PortalType.AUTHENTICATED,
        portal_name="Vendor Portal",
        url=VENDOR_URL,
        username=username,
        password=password,
    )


class TestPublicListingAdapter:

    def test_scrape_extracts_rows(self):
        page = FakePage(html=PUBLIC_HTML)
        adapter = PublicListingAdapter()

        bids = adapter.scrape(page, public_credential())

        assert [bid.title for bid in bids] == ["Bus Parts Supply", "Janitorial Services"]
        assert all(bid.portal == "County" for bid in bids)
        assert page.visits == [LISTING_URL]
        assert adapter.state == ScrapeState.EXTRACTED

    def test_known_portal_uses_default_url(self):
        page = FakePage(html=PUBLIC_HTML)

        PublicListingAdapter().scrape(page, Credential(portal_type=PortalType.PUBLIC, portal_name="Metro"))

        assert page.visits[0].startswith("https://business.metro.net/")

    def test_unknown_portal_without_url_fails(self):
        page = FakePage(html=PUBLIC_HTML)

        with pytest.raises(NavigationError):
            PublicListingAdapter().scrape(page, Credential(portal_type=PortalType.PUBLIC, portal_name="Nowhere"))

        assert page.visits == []

    def test_navigation_timeout(self):
        page = FakePage(goto_error=PlaywrightTimeoutError("Timeout 60000ms exceeded"))

        with pytest.raises(NavigationError) as exc_info:
            PublicListingAdapter().scrape(page, public_credential())

        assert exc_info.value.url == LISTING_URL

    def test_listing_never_appears(self):
        page = FakePage(html=PUBLIC_HTML, wait_timeout=True)
        adapter = PublicListingAdapter(browser_config=BrowserConfig(element_timeout=5))

        with pytest.raises(NavigationError) as exc_info:
            adapter.scrape(page, public_credential())

        assert "5s" in exc_info.value.message
        assert exc_info.value.selector.startswith("table")

    def test_empty_listing_returns_no_bids(self):
        page = FakePage(html="<table></table>")

        assert PublicListingAdapter().scrape(page, public_credential()) == []


class TestAuthenticatedListingAdapter:

    def test_missing_secrets_fail_before_navigation(self):
        page = FakePage()
        adapter = AuthenticatedListingAdapter()

        with pytest.raises(AuthenticationError) as exc_info:
            adapter.scrape(page, vendor_credential(password=None))

        assert exc_info.value.message == "Username and password are required"
        assert page.visits == []
        assert adapter.state == ScrapeState.AUTH_FAILED

    def test_login_confirmed_by_logout_control(self):
        page = FakePage(
            html="<form>login</form>",
            elements=LOGIN_FORM,
            after_submit_html=REQUISITIONS_HTML,
            after_submit_elements=['a[href*="logout"]'],
        )
        adapter = AuthenticatedListingAdapter()

        bids = adapter.scrape(page, vendor_credential())

        assert page.filled == {'input[name="username"]': "vendor", 'input[name="password"]': "secret"}
        assert page.clicked == ['button[type="submit"]']
        assert page.visits == [VENDOR_URL, VENDOR_URL]
        assert [bid.title for bid in bids] == ["Rail Fasteners"]
        assert bids[0].bid_link == "https://vendor.example.org/requisitions/view/7"
        assert adapter.state == ScrapeState.EXTRACTED

    def test_login_rejected_by_failure_text(self):
        page = FakePage(
            html="<form>login</form>",
            elements=LOGIN_FORM,
            after_submit_html="<div class='error'>Invalid username or password</div>",
            after_submit_elements=[],
        )
        adapter = AuthenticatedListingAdapter()

        with pytest.raises(AuthenticationError) as exc_info:
            adapter.scrape(page, vendor_credential())

        assert "invalid username" in exc_info.value.message
        assert page.visits == [VENDOR_URL]
        assert adapter.state == ScrapeState.AUTH_FAILED

    def test_login_without_signals_is_assumed_successful(self):
        page = FakePage(
            html="<form>login</form>",
            elements=LOGIN_FORM,
            after_submit_html=REQUISITIONS_HTML.replace('<a href="/logout">Log out</a>', ""),
            after_submit_elements=[],
        )

        bids = AuthenticatedListingAdapter().scrape(page, vendor_credential())

        assert len(bids) == 1

    def test_login_form_not_found(self):
        page = FakePage(html=REQUISITIONS_HTML, elements=[])

        with pytest.raises(AuthenticationError) as exc_info:
            AuthenticatedListingAdapter().scrape(page, vendor_credential())

        assert exc_info.value.message == "Login form not found"

    def test_missing_submit_control(self):
        page = FakePage(html="<form>login</form>", elements=LOGIN_FORM[:2])

        with pytest.raises(AuthenticationError) as exc_info:
            AuthenticatedListingAdapter().scrape(page, vendor_credential())

        assert exc_info.value.message == "Could not locate submit control"
        assert page.filled == {}
