"""
Credential model for portal access configuration.
"""

from typing import Optional

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class CredentialRecord(Base):
    """Model for stored portal credentials."""

    __tablename__ = "credentials"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    portal_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="public or authenticated"
    )

    portal_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True
    )

    url: Mapped[str] = mapped_column(
        String(1000),
        nullable=False
    )

    username: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True
    )

    password: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True
    )
