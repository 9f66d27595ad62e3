"""
In-memory stores, used when no database is reachable and in tests.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ...scrapers.models import Bid, Credential
from .base import BidStore, CredentialStore

logger = logging.getLogger(__name__)


class InMemoryBidStore(BidStore):
    """Bid store kept in a dict, keyed by bid id."""

    def __init__(self):
        self._bids: Dict[str, Tuple[Bid, datetime]] = {}
        self._lock = threading.Lock()

    def exists_by_id(self, bid_id: str) -> bool:
        with self._lock:
            return bid_id in self._bids

    def insert(self, bid: Bid) -> None:
        with self._lock:
            self._bids[bid.id] = (bid, datetime.now())

    def count_since(self, timestamp: datetime) -> int:
        with self._lock:
            return sum(1 for _, created_at in self._bids.values() if created_at >= timestamp)

    def list_recent(self, limit: int = 50) -> List[Bid]:
        with self._lock:
            bids = [bid for bid, _ in self._bids.values()]
        return sorted(bids, key=lambda bid: bid.posted_date, reverse=True)[:limit]

    def __len__(self) -> int:
        return len(self._bids)


class InMemoryCredentialStore(CredentialStore):
    """Credential store kept in a list."""

    def __init__(self, credentials: Optional[List[Credential]] = None,
                 portal_urls: Optional[Dict[str, str]] = None):
        super().__init__(portal_urls)
        self._credentials: List[Credential] = []
        self._next_id = 1
        self._lock = threading.Lock()
        for credential in credentials or []:
            self.save(credential)

    def find_active(self) -> List[Credential]:
        with self._lock:
            return [credential for credential in self._credentials if credential.is_active]

    def find_all(self) -> List[Credential]:
        with self._lock:
            return list(self._credentials)

    def get(self, credential_id: int) -> Optional[Credential]:
        with self._lock:
            return next((c for c in self._credentials if c.id == credential_id), None)

    def delete(self, credential_id: int) -> bool:
        with self._lock:
            remaining = [c for c in self._credentials if c.id != credential_id]
            deleted = len(remaining) < len(self._credentials)
            self._credentials = remaining
        return deleted

    def _store(self, credential: Credential) -> Credential:
        with self._lock:
            credential = replace(credential, id=self._next_id)
            self._next_id += 1
            self._credentials.append(credential)
        logger.info(f"Saved credential for {credential.portal_name} (in memory)")
        return credential

    def _replace(self, credential: Credential) -> Optional[Credential]:
        with self._lock:
            for position, stored in enumerate(self._credentials):
                if stored.id == credential.id:
                    self._credentials[position] = credential
                    return credential
        return None
