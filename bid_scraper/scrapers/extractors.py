"""
Content extraction utilities for the scraping engine.

The ListingExtractor is the single rule runner for every portal: it applies a
PortalDescriptor's ordered selector rules to listing HTML and turns each row
into a Bid. It works on plain HTML strings so it can be exercised without a
browser.
"""

import hashlib
import logging
import re
from datetime import datetime
from typing import List, Optional, Set, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser

from ..config import ScrapingConfig
from .exceptions import ExtractionSkip
from .models import Bid, default_due_date
from .portals import DATE_ORDER_POSTED_THEN_DUE, PortalDescriptor, slugify

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(
    r"\b("
    r"\d{1,2}/\d{1,2}/\d{4}"
    r"|\d{4}-\d{2}-\d{2}"
    r"|(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?\s+\d{1,2},?\s+\d{4}"
    r")\b",
    re.IGNORECASE,
)

QUANTITY_PATTERN = re.compile(
    r"\b\d[\d,]*(?:\.\d+)?\s*"
    r"(?:units?|each|ea|pcs|pieces?|items?|lots?|box(?:es)?|cases?|contracts?"
    r"|sets?|pairs?|gallons?|tons?|lbs?)\b",
    re.IGNORECASE,
)

HEADER_PATTERN = re.compile(
    r"^(?:title|description|requisition|solicitation|bid|name|status|date|item|posted|due)s?"
    r"(?:\s*(?:#|no\.?|number|title|name|date|description))?:?$",
    re.IGNORECASE,
)

DEFAULT_QUANTITY = "1"
NO_DESCRIPTION = "No description available"


def clean_text(text: str) -> str:
    """Collapse whitespace and drop control characters."""
    if not text:
        return ""
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]", "", text)
    return text.strip()


def calculate_content_hash(content: str) -> str:
    """SHA-256 hex digest of ``content``."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def base_origin(url: str) -> str:
    """Return ``scheme://host`` for ``url``, or an empty string if it has none."""
    parsed = urlparse(url or "")
    if parsed.scheme and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    return ""


def resolve_url(href: str, origin: str) -> str:
    if not origin:
        return href
    return urljoin(origin + "/", href)


def find_dates(texts: List[str]) -> List[Tuple[str, datetime]]:
    """All parsable dates in ``texts``, in order of appearance."""
    found = []
    for text in texts:
        for match in DATE_PATTERN.finditer(text):
            raw = match.group(1)
            try:
                found.append((raw, date_parser.parse(raw)))
            except (ValueError, OverflowError) as e:
                logger.debug(f"Error parsing date '{raw}': {e}")
    return found


def find_quantity(texts: List[str]) -> Optional[str]:
    for text in texts:
        match = QUANTITY_PATTERN.search(text)
        if match:
            return match.group(0).strip()
    return None


def find_failure_text(html_content: str, failure_texts) -> Optional[str]:
    """Return the first login failure indicator present in the page, if any."""
    text = BeautifulSoup(html_content or "", "lxml").get_text(" ").lower()
    for indicator in failure_texts:
        if indicator.lower() in text:
            return indicator
    return None


class ListingExtractor:
    """Evaluates a portal descriptor's rules against listing HTML."""

    def __init__(self, descriptor: PortalDescriptor, config: Optional[ScrapingConfig] = None):
        self.descriptor = descriptor
        self.config = config or ScrapingConfig()

    def extract(
        self,
        html_content: str,
        page_url: str,
        portal_name: Optional[str] = None,
        extracted_at: Optional[datetime] = None,
    ) -> List[Bid]:
        """
        Extract bids from a listing page.

        Rows that cannot be parsed are skipped; this method never raises for
        a single bad row.

        Args:
            html_content: Rendered listing HTML
            page_url: URL the HTML was loaded from, used to resolve links
            portal_name: Portal name recorded on each bid
            extracted_at: Extraction timestamp, defaults to now

        Returns:
            List of bids in page order
        """
        portal_name = portal_name or self.descriptor.name
        extracted_at = extracted_at or datetime.now()
        origin = base_origin(page_url)

        soup = BeautifulSoup(html_content or "", "lxml")
        selector, rows = self.find_rows(soup)
        if not rows:
            logger.info(f"No listing rows found for {portal_name}")
            return []

        logger.info(f"Found {len(rows)} candidate rows for {portal_name} using selector: {selector}")

        bids = []
        seen_ids: Set[str] = set()
        for index, row in enumerate(rows):
            try:
                bid = self.parse_row(row, index, origin, portal_name, extracted_at, seen_ids)
            except ExtractionSkip as e:
                logger.debug(f"Skipping row {index} on {portal_name}: {e.message}")
                continue
            except Exception as e:
                logger.warning(f"Error processing row {index} on {portal_name}: {e}")
                continue
            seen_ids.add(bid.id)
            bids.append(bid)

        return bids

    def find_rows(self, soup: BeautifulSoup) -> Tuple[Optional[str], List[Tag]]:
        """Apply the row strategies in order; the first one producing rows wins."""
        for selector in self.descriptor.row_selectors:
            rows = soup.select(selector)
            if rows:
                return selector, rows
        return None, []

    def row_cells(self, row: Tag) -> List[Tag]:
        if row.name == "tr":
            cells = row.find_all(["td", "th"], recursive=False)
            if cells and all(cell.name == "th" for cell in cells):
                raise ExtractionSkip("header row")
            return [cell for cell in cells if cell.name == "td"]

        children = [child for child in row.find_all(True, recursive=False)
                    if clean_text(child.get_text(" "))]
        return children or [row]

    def parse_row(
        self,
        row: Tag,
        index: int,
        origin: str,
        portal_name: str,
        extracted_at: datetime,
        seen_ids: Optional[Set[str]] = None,
    ) -> Bid:
        cells = self.row_cells(row)
        texts = [clean_text(cell.get_text(" ")) for cell in cells]
        texts = [text for text in texts if text]
        if not texts:
            raise ExtractionSkip("empty row", index)

        title = self.resolve_title(row, texts)
        if not title:
            raise ExtractionSkip("no title", index)
        if self.descriptor.skip_header_rows and self.looks_like_header(title):
            raise ExtractionSkip(f"header-like title '{title}'", index)

        dates = find_dates(texts)
        posted_date, due_date = self.assign_dates(dates, extracted_at)

        documents, bid_link = self.collect_links(row, origin)

        raw_dates = "|".join(raw for raw, _ in dates)
        quantity = find_quantity(texts) or DEFAULT_QUANTITY
        bid_id = self.make_id(portal_name, index, title, bid_link, raw_dates, quantity, seen_ids)

        return Bid(
            id=bid_id,
            posted_date=posted_date,
            due_date=due_date,
            title=title,
            quantity=quantity,
            description=self.build_description(texts),
            portal=portal_name,
            documents=documents,
            bid_link=bid_link,
        )

    def resolve_title(self, row: Tag, texts: List[str]) -> str:
        """
        First title-selector match that reads like a title, else the first
        non-empty cell. Short link labels ("PDF", "View") never win.
        """
        for selector in self.descriptor.title_selectors:
            element = row.select_one(selector)
            if element is not None:
                text = clean_text(element.get_text(" "))
                if text and not self.looks_like_header(text):
                    return text
        return texts[0] if texts else ""

    def looks_like_header(self, title: str) -> bool:
        return len(title) < self.config.min_title_length or bool(HEADER_PATTERN.match(title))

    def assign_dates(self, dates: List[Tuple[str, datetime]], extracted_at: datetime) -> Tuple[datetime, datetime]:
        """
        Map the dates found in a row onto posted/due dates.

        Listing portals carry only a deadline. Authenticated portals list the
        posted date first and the due date second; this depends on column
        order and is best-effort.
        """
        days = self.config.default_due_days
        if self.descriptor.date_order == DATE_ORDER_POSTED_THEN_DUE:
            posted = dates[0][1] if dates else extracted_at
            due = dates[1][1] if len(dates) > 1 else default_due_date(posted, days)
            return posted, due

        due = dates[0][1] if dates else default_due_date(extracted_at, days)
        return extracted_at, due

    def build_description(self, texts: List[str]) -> str:
        parts = [text for text in texts if len(text) > self.config.description_min_length]
        description = " | ".join(parts)
        if not description:
            return NO_DESCRIPTION
        return description[:self.config.description_max_length]

    def collect_links(self, row: Tag, origin: str) -> Tuple[List[str], Optional[str]]:
        """Return (document links, first link) for a row, resolved against ``origin``."""
        documents: List[str] = []
        bid_link = None
        tokens = tuple(token.lower() for token in self.descriptor.document_tokens)

        for anchor in row.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href or href.startswith(("javascript:", "#", "mailto:")):
                continue
            absolute_url = resolve_url(href, origin)
            if bid_link is None:
                bid_link = absolute_url
            if any(token in href.lower() for token in tokens) and absolute_url not in documents:
                documents.append(absolute_url)

        return documents, bid_link

    def make_id(
        self,
        portal_name: str,
        index: int,
        title: str,
        bid_link: Optional[str],
        raw_dates: str,
        quantity: str,
        seen_ids: Optional[Set[str]] = None,
    ) -> str:
        """Stable id from the row's content; the row index breaks in-page ties."""
        fingerprint = calculate_content_hash(f"{title}|{bid_link or ''}|{raw_dates}|{quantity}")
        bid_id = f"{slugify(portal_name)}_{fingerprint[:16]}"
        if seen_ids and bid_id in seen_ids:
            bid_id = f"{bid_id}_{index}"
        return bid_id
