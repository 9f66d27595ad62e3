"""
Bid model for procurement solicitations.

One row per solicitation observed on a portal. The primary key is the
portal-scoped identifier assigned at extraction, which makes ingestion
idempotent: an id already present is never inserted again.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class BidRecord(Base):
    """Model for stored bids."""

    __tablename__ = "bids"

    id: Mapped[str] = mapped_column(
        String(200),
        primary_key=True,
        comment="Portal-scoped bid identifier"
    )

    posted_date: Mapped[datetime] = mapped_column(
        nullable=False,
        index=True,
        comment="When the solicitation was posted"
    )

    due_date: Mapped[datetime] = mapped_column(
        nullable=False,
        index=True,
        comment="Submission deadline"
    )

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False
    )

    quantity: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="1"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False
    )

    documents: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered document URLs"
    )

    bid_link: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True
    )

    portal: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True
    )
