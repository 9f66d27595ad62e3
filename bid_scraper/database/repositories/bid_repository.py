"""
Bid Repository

Durable bid storage backed by SQLAlchemy.
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ...scrapers.models import Bid
from ..models.bid import BidRecord
from .base import BaseRepository, BidStore

logger = logging.getLogger(__name__)


class BidRepository(BaseRepository[BidRecord], BidStore):
    """SQLAlchemy implementation of the bid store."""

    store_name = "bid store"

    def __init__(self, session_factory: sessionmaker):
        super().__init__(BidRecord, session_factory)

    def exists_by_id(self, bid_id: str) -> bool:
        return self.exists(bid_id)

    def insert(self, bid: Bid) -> None:
        self.create(
            id=bid.id,
            posted_date=bid.posted_date,
            due_date=bid.due_date,
            title=bid.title,
            quantity=bid.quantity,
            description=bid.description,
            documents=list(bid.documents),
            bid_link=bid.bid_link,
            portal=bid.portal,
        )
        logger.debug(f"Stored bid {bid.id} from {bid.portal}")

    def count_since(self, timestamp: datetime) -> int:
        return self.count_where(BidRecord.created_at >= timestamp)

    def list_recent(self, limit: int = 50) -> List[Bid]:
        with self.session() as session:
            stmt = select(BidRecord).order_by(BidRecord.posted_date.desc()).limit(limit)
            return [self._to_bid(record) for record in session.execute(stmt).scalars().all()]

    @staticmethod
    def _to_bid(record: BidRecord) -> Bid:
        return Bid(
            id=record.id,
            posted_date=record.posted_date,
            due_date=record.due_date,
            title=record.title,
            quantity=record.quantity,
            description=record.description,
            portal=record.portal,
            documents=list(record.documents or []),
            bid_link=record.bid_link,
        )
