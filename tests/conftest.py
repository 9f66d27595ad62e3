import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from bid_scraper.config import Config, DatabaseConfig
from bid_scraper.database.repositories import InMemoryBidStore, InMemoryCredentialStore
from bid_scraper.database.repositories.base import CredentialStore
from bid_scraper.scrapers.base import PortalAdapter
from bid_scraper.scrapers.exceptions import BrowserLaunchError, StoreUnavailable
from bid_scraper.scrapers.models import Bid, PortalType


class FakeElement:
    def __init__(self, page: "FakePage", name: str):
        self.page = page
        self.name = name

    def fill(self, value):
        self.page.filled[self.name] = value

    def click(self):
        self.page.clicked.append(self.name)
        self.page.submit()


class FakePage:
    """Stands in for a Playwright page: serves canned HTML and form elements."""

    def __init__(
        self,
        html: str = "",
        elements: Optional[List[str]] = None,
        after_submit_html: Optional[str] = None,
        after_submit_elements: Optional[List[str]] = None,
        present: Optional[List[str]] = None,
        goto_error: Optional[Exception] = None,
        wait_timeout: bool = False,
    ):
        self.html = html
        self.url = "about:blank"
        self.elements = {name: FakeElement(self, name) for name in elements or []}
        self.after_submit_html = after_submit_html
        self.after_submit_elements = after_submit_elements
        self.present = set(present if present is not None else ["table"])
        self.goto_error = goto_error
        self.wait_timeout = wait_timeout
        self.visits: List[str] = []
        self.waits: List[str] = []
        self.filled: Dict[str, str] = {}
        self.clicked: List[str] = []
        self.closed = False

    def goto(self, url, wait_until=None, timeout=None):
        self.visits.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    def wait_for_selector(self, selector, timeout=None):
        self.waits.append(selector)
        parts = [part.strip() for part in selector.split(",")]
        if self.wait_timeout or not any(p in self.elements or p in self.present for p in parts):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return object()

    def wait_for_load_state(self, state=None, timeout=None):
        return None

    def query_selector(self, selector):
        return self.elements.get(selector)

    def content(self):
        return self.html

    def submit(self):
        if self.after_submit_html is not None:
            self.html = self.after_submit_html
        if self.after_submit_elements is not None:
            self.elements = {name: FakeElement(self, name) for name in self.after_submit_elements}

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for BrowserSession, handing out FakePages."""

    def __init__(self, page_factory=None, fail_launch: bool = False):
        self.page_factory = page_factory or FakePage
        self.fail_launch = fail_launch
        self.pages: List[FakePage] = []
        self.released = False

    def acquire_page(self):
        if self.fail_launch:
            raise BrowserLaunchError("Failed to launch browser: chromium not installed")
        page = self.page_factory()
        self.pages.append(page)
        return page

    @contextmanager
    def page(self):
        page = self.acquire_page()
        try:
            yield page
        finally:
            page.close()

    def release(self):
        self.released = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


class SessionFactory:
    """Records how many browser sessions an orchestrator opened."""

    def __init__(self, session=None):
        self.session = session or FakeSession()
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.session


class UnavailableBidStore(InMemoryBidStore):
    def exists_by_id(self, bid_id):
        raise StoreUnavailable("bid store unavailable: connection refused", "bid store")

    def count_since(self, timestamp):
        raise StoreUnavailable("bid store unavailable: connection refused", "bid store")


class UnavailableCredentialStore(CredentialStore):
    def find_active(self):
        raise StoreUnavailable("credential store unavailable", "credential store")

    def find_all(self):
        raise StoreUnavailable("credential store unavailable", "credential store")

    def get(self, credential_id):
        raise StoreUnavailable("credential store unavailable", "credential store")

    def delete(self, credential_id):
        raise StoreUnavailable("credential store unavailable", "credential store")

    def _store(self, credential):
        raise StoreUnavailable("credential store unavailable", "credential store")

    def _replace(self, credential):
        raise StoreUnavailable("credential store unavailable", "credential store")


def make_bid(bid_id: str, portal: str = "Metro", posted_date: Optional[datetime] = None, **kwargs) -> Bid:
    posted_date = posted_date or datetime.now()
    return Bid(
        id=bid_id,
        posted_date=posted_date,
        due_date=kwargs.pop("due_date", posted_date + timedelta(days=30)),
        title=kwargs.pop("title", f"Solicitation {bid_id}"),
        quantity=kwargs.pop("quantity", "1"),
        description=kwargs.pop("description", "No description available"),
        portal=portal,
        **kwargs,
    )


def scripted_adapter(outcomes: Dict[str, object]):
    """Adapter class whose result per portal name is a list of bids or an exception."""

    class ScriptedAdapter(PortalAdapter):
        portal_type = PortalType.PUBLIC

        def scrape(self, page, credential):
            outcome = outcomes[credential.portal_name]
            if isinstance(outcome, Exception):
                raise outcome
            return list(outcome)

    return {PortalType.PUBLIC: ScriptedAdapter, PortalType.AUTHENTICATED: ScriptedAdapter}


def blocking_adapter(entered: threading.Event, release: threading.Event):
    """Adapter class that signals ``entered`` and holds the run until ``release`` is set."""

    class BlockingAdapter(PortalAdapter):
        portal_type = PortalType.PUBLIC

        def scrape(self, page, credential):
            entered.set()
            release.wait(timeout=5)
            return [make_bid("slow")]

    return {PortalType.PUBLIC: BlockingAdapter, PortalType.AUTHENTICATED: BlockingAdapter}


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("BID_SCRAPER_CONFIG", raising=False)


@pytest.fixture
def config():
    return Config(database=DatabaseConfig(url="sqlite://"))


@pytest.fixture
def bid_store():
    return InMemoryBidStore()


@pytest.fixture
def credential_store():
    return InMemoryCredentialStore()
