"""
Orchestrator - one end-to-end scraping run.

Loads the active credentials, scrapes each portal in turn on a single shared
browser, keeps bids posted today or later, drops those already stored and
saves the rest. A failure on one portal is recorded and the run moves on to
the next portal.
"""

import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set, Tuple, Type

from ..config import Config, get_config
from ..database.repositories.base import BidStore, CredentialStore
from ..utils.logging import get_logger, log_run_summary, log_scraping_activity
from .authenticated import AuthenticatedListingAdapter
from .base import PortalAdapter
from .browser import BrowserSession
from .exceptions import AlreadyRunningError, BrowserLaunchError, ScrapingError, StoreUnavailable
from .models import Bid, Credential, PortalType, RunResult
from .public import PublicListingAdapter

logger = get_logger(__name__)

ADAPTERS: Dict[PortalType, Type[PortalAdapter]] = {
    PortalType.PUBLIC: PublicListingAdapter,
    PortalType.AUTHENTICATED: AuthenticatedListingAdapter,
}

_unhandled = set(PortalType) - set(ADAPTERS)
if _unhandled:
    raise RuntimeError(f"No adapter registered for portal types: {sorted(t.value for t in _unhandled)}")


def start_of_today(now: Optional[datetime] = None) -> datetime:
    """Local midnight of the current day."""
    now = now or datetime.now()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def filter_bids_from_today(bids: List[Bid], now: Optional[datetime] = None) -> List[Bid]:
    """Keep bids whose posted date is today or later."""
    threshold = start_of_today(now)
    return [bid for bid in bids if bid.posted_date >= threshold]


class Orchestrator:
    """
    Coordinates scraping runs.

    At most one run is active at a time; a second caller gets
    AlreadyRunningError instead of waiting.
    """

    def __init__(
        self,
        bid_store: BidStore,
        credential_store: CredentialStore,
        config: Optional[Config] = None,
        browser_session_factory: Optional[Callable[[], BrowserSession]] = None,
        adapters: Optional[Dict[PortalType, Type[PortalAdapter]]] = None,
    ):
        self.bid_store = bid_store
        self.credential_store = credential_store
        self.config = config or get_config()
        self.browser_session_factory = browser_session_factory or (
            lambda: BrowserSession(self.config.browser)
        )
        self.adapters = adapters or ADAPTERS
        self.last_result: Optional[RunResult] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run_scraper(self) -> RunResult:
        """
        Run every active portal once and persist the new bids.

        Returns:
            RunResult describing the run; failures are reported in it rather
            than raised.

        Raises:
            AlreadyRunningError: if another run is in progress
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Scraper run rejected, another run is in progress")
            raise AlreadyRunningError()

        started_at = datetime.now()
        try:
            logger.info("Scraper run started")
            try:
                result = self._run()
            except Exception as e:
                logger.exception("Scraper run failed unexpectedly")
                result = RunResult(success=False, message=f"Scraper run failed: {e}", errors=[str(e)])
        finally:
            self._lock.release()

        result.started_at = started_at
        result.finished_at = datetime.now()
        self.last_result = result
        log_run_summary(result)
        return result

    def get_todays_bid_count(self) -> int:
        """Bids stored since local midnight, 0 if the store is unreachable."""
        try:
            return self.bid_store.count_since(start_of_today())
        except StoreUnavailable as e:
            logger.warning("Bid store unavailable for today's count", error=e.message)
            return 0

    def _load_credentials(self) -> List[Credential]:
        try:
            return self.credential_store.find_active()
        except StoreUnavailable as e:
            logger.warning("Credential store unavailable, treating as no credentials", error=e.message)
            return []

    def _run(self) -> RunResult:
        credentials = self._load_credentials()
        if not credentials:
            logger.warning("No active credentials configured, nothing to scrape")
            return RunResult(success=False, message="No active credentials configured")

        errors: List[str] = []
        portals: Dict[str, int] = {}
        scraped: List[Bid] = []
        failed = 0

        try:
            with self.browser_session_factory() as session:
                for credential in credentials:
                    bids, error = self._scrape_portal(session, credential)
                    if error:
                        failed += 1
                        errors.append(error)
                        continue
                    portals[credential.portal_name] = len(bids)
                    scraped.extend(bids)
        except BrowserLaunchError as e:
            logger.error("Browser could not be started", error=e.message)
            errors.append(f"Browser: {e.message}")
            return RunResult(
                success=False,
                message="Browser could not be started",
                errors=errors,
                portals=portals,
            )

        fresh = filter_bids_from_today(scraped)
        logger.info("Bids filtered to today", scraped=len(scraped), kept=len(fresh))

        try:
            new_bids = self._persist(fresh)
        except StoreUnavailable as e:
            if e.saved:
                message = f"Bid store unavailable after saving {e.saved} new bids"
            else:
                message = "Bid store unavailable, no bids saved"
            logger.error(message, error=e.message, saved=e.saved)
            errors.append(f"Bid store: {e.message}")
            return RunResult(
                success=False,
                message=message,
                new_bids=e.saved,
                total_bids=len(fresh),
                errors=errors,
                portals=portals,
            )

        succeeded = len(credentials) - failed
        if succeeded == 0:
            message = f"All {len(credentials)} portals failed"
        else:
            message = f"Scraped {succeeded}/{len(credentials)} portals, saved {new_bids} new bids"

        return RunResult(
            success=succeeded > 0,
            message=message,
            new_bids=new_bids,
            total_bids=len(fresh),
            errors=errors,
            portals=portals,
        )

    def _scrape_portal(self, session: BrowserSession, credential: Credential) -> Tuple[List[Bid], Optional[str]]:
        """Scrape one portal; returns (bids, error string or None)."""
        name = credential.portal_name
        adapter = self.adapters[credential.portal_type](self.config.scraping, self.config.browser)

        try:
            with session.page() as page:
                bids = adapter.scrape(page, credential)
        except BrowserLaunchError:
            raise
        except ScrapingError as e:
            log_scraping_activity(name, credential.url, 0, False, e.message)
            return [], f"{name}: {e.message}"
        except Exception as e:
            logger.exception("Unexpected error scraping portal", portal=name)
            log_scraping_activity(name, credential.url, 0, False, str(e))
            return [], f"{name}: {e}"

        log_scraping_activity(name, credential.url, len(bids), True)
        return bids, None

    def _persist(self, bids: List[Bid]) -> int:
        """
        Insert bids whose id is not stored yet; returns how many were inserted.

        Raises:
            StoreUnavailable: with ``saved`` set to the inserts that committed
                before the failure
        """
        inserted = 0
        seen: Set[str] = set()
        try:
            for bid in bids:
                if bid.id in seen or self.bid_store.exists_by_id(bid.id):
                    continue
                self.bid_store.insert(bid)
                seen.add(bid.id)
                inserted += 1
                logger.debug("Saved new bid", bid_id=bid.id, title=bid.title)
        except StoreUnavailable as e:
            e.saved = inserted
            raise
        return inserted
