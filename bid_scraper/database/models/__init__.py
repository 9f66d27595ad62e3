"""
Database models for the bid scraper.

This package contains all SQLAlchemy model definitions for the application.
"""

from .base import Base
from .bid import BidRecord
from .credential import CredentialRecord

__all__ = [
    "Base",
    "BidRecord",
    "CredentialRecord",
]
