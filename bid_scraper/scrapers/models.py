"""
Data classes shared by the adapters, the orchestrator and the stores.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_DUE_DAYS = 30


class PortalType(str, Enum):
    """Kinds of portal the engine knows how to scrape."""
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"


@dataclass
class Credential:
    """Stored configuration for one portal."""
    portal_type: PortalType
    portal_name: str
    url: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None

    def __post_init__(self):
        self.portal_type = PortalType(self.portal_type)
        # Public portals never carry secrets
        if self.portal_type is PortalType.PUBLIC:
            self.username = None
            self.password = None

    @property
    def has_secrets(self) -> bool:
        return bool(self.username and self.password)

    def to_dict(self, include_password: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "portal_type": self.portal_type.value,
            "portal_name": self.portal_name,
            "url": self.url,
            "username": self.username,
            "is_active": self.is_active,
        }
        if include_password:
            data["password"] = self.password
        return data


@dataclass(frozen=True)
class Bid:
    """A single solicitation extracted from a portal."""
    id: str
    posted_date: datetime
    due_date: datetime
    title: str
    quantity: str
    description: str
    portal: str
    documents: List[str] = field(default_factory=list)
    bid_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "posted_date": self.posted_date.isoformat(),
            "due_date": self.due_date.isoformat(),
            "title": self.title,
            "quantity": self.quantity,
            "description": self.description,
            "documents": list(self.documents),
            "bid_link": self.bid_link,
            "portal": self.portal,
        }


def default_due_date(posted_date: datetime, days: int = DEFAULT_DUE_DAYS) -> datetime:
    """Due date used when a row exposes no parsable deadline."""
    return posted_date + timedelta(days=days)


@dataclass
class RunResult:
    """Summary of one orchestration run."""
    success: bool
    message: str
    new_bids: int = 0
    total_bids: int = 0
    errors: List[str] = field(default_factory=list)
    portals: Dict[str, int] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "new_bids": self.new_bids,
            "total_bids": self.total_bids,
            "errors": list(self.errors),
            "portals": dict(self.portals),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration_seconds,
        }
