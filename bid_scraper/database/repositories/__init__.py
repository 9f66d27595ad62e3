"""
Database repositories package.

Provides the store interfaces used by the orchestrator, their SQLAlchemy and
in-memory implementations, and the factory choosing between them.
"""

import logging
from typing import Optional, Tuple

from ...config import Config, get_config
from ..connection import create_database_engine, create_session_factory, init_database, test_database_connection
from .base import BaseRepository, BidStore, CredentialStore
from .bid_repository import BidRepository
from .credential_repository import CredentialRepository
from .memory import InMemoryBidStore, InMemoryCredentialStore

logger = logging.getLogger(__name__)


def create_stores(config: Optional[Config] = None) -> Tuple[BidStore, CredentialStore]:
    """
    Build the bid and credential stores.

    The database connection is checked once. If it is unreachable and
    ``database.fallback_to_memory`` is set, in-memory stores are returned
    instead; the choice is fixed for the lifetime of the stores.
    """
    config = config or get_config()
    portal_urls = config.scraping.portal_urls

    engine = create_database_engine(config.database)
    if test_database_connection(engine):
        init_database(engine)
        session_factory = create_session_factory(engine)
        logger.info("Using database stores")
        return BidRepository(session_factory), CredentialRepository(session_factory, portal_urls)

    if not config.database.fallback_to_memory:
        raise ConnectionError(f"Database unavailable at {config.database.url}")

    engine.dispose()
    logger.warning("Database not available, using in-memory stores")
    return InMemoryBidStore(), InMemoryCredentialStore(portal_urls=portal_urls)


__all__ = [
    "BaseRepository",
    "BidStore",
    "CredentialStore",
    "BidRepository",
    "CredentialRepository",
    "InMemoryBidStore",
    "InMemoryCredentialStore",
    "create_stores",
]
