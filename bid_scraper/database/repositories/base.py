"""
Store interfaces and the base SQLAlchemy repository.

The orchestrator only talks to BidStore and CredentialStore. Each has a
durable (SQLAlchemy) and an in-memory implementation; which one is used is
decided once, when the stores are built.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Generator, Generic, List, Optional, Type, TypeVar

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...scrapers.exceptions import StoreUnavailable, ValidationError
from ...scrapers.models import Bid, Credential, PortalType
from ...scrapers.portals import default_url_for
from ..connection import session_scope
from ..models.base import Base

logger = logging.getLogger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=Base)


class BidStore(ABC):
    """Persistent bid storage as seen by the orchestrator."""

    @abstractmethod
    def exists_by_id(self, bid_id: str) -> bool:
        """True if a bid with this id is already stored."""

    @abstractmethod
    def insert(self, bid: Bid) -> None:
        """Store a new bid."""

    @abstractmethod
    def count_since(self, timestamp: datetime) -> int:
        """Number of bids stored at or after ``timestamp``."""

    @abstractmethod
    def list_recent(self, limit: int = 50) -> List[Bid]:
        """Most recently posted bids first."""


class CredentialStore(ABC):
    """Portal credential storage."""

    def __init__(self, portal_urls: Optional[Dict[str, str]] = None):
        self.portal_urls = portal_urls or {}

    @abstractmethod
    def find_active(self) -> List[Credential]:
        """All credentials with ``is_active`` set."""

    @abstractmethod
    def find_all(self) -> List[Credential]:
        """Every stored credential."""

    @abstractmethod
    def get(self, credential_id: int) -> Optional[Credential]:
        """The credential with this id, or None."""

    @abstractmethod
    def delete(self, credential_id: int) -> bool:
        """Remove a credential; False if there was none with this id."""

    @abstractmethod
    def _store(self, credential: Credential) -> Credential:
        """Persist an already validated credential and assign its id."""

    @abstractmethod
    def _replace(self, credential: Credential) -> Optional[Credential]:
        """Overwrite the stored credential carrying ``credential.id``."""

    def save(self, credential: Credential) -> Credential:
        """Validate, normalize and persist ``credential``."""
        return self._store(self.prepare(credential))

    def update(self, credential_id: int, **changes) -> Optional[Credential]:
        """
        Apply ``changes`` to a stored credential.

        Fields not named in ``changes`` keep their stored value. The merged
        credential goes through the same validation as a new one, so turning
        a portal public drops its secrets.

        Returns:
            The updated credential, or None if no credential has this id

        Raises:
            ValidationError: if the merged credential cannot be stored
        """
        existing = self.get(credential_id)
        if existing is None:
            return None
        changes.pop("id", None)
        merged = replace(existing, **changes)
        return self._replace(self.prepare(merged))

    def prepare(self, credential: Credential) -> Credential:
        """
        Apply the credential invariants.

        Public credentials lose any username/password, an empty URL falls back
        to the portal's well-known address, and authenticated credentials must
        carry both secrets.

        Raises:
            ValidationError: if the credential cannot be stored
        """
        if not (credential.portal_name or "").strip():
            raise ValidationError("Portal name is required", "portal_name")

        url = (credential.url or "").strip() or default_url_for(
            credential.portal_type, credential.portal_name, self.portal_urls
        )
        if not url:
            raise ValidationError(
                f"URL is required for portal {credential.portal_name}", "url"
            )

        if credential.portal_type is PortalType.AUTHENTICATED and not credential.has_secrets:
            raise ValidationError(
                "Username and password are required for authenticated portals", "username"
            )

        return Credential(
            portal_type=credential.portal_type,
            portal_name=credential.portal_name.strip(),
            url=url,
            username=credential.username,
            password=credential.password,
            is_active=credential.is_active,
            id=credential.id,
        )


class BaseRepository(Generic[ModelType]):
    """Base repository with common operations over a session factory."""

    store_name = "database"

    def __init__(self, model: Type[ModelType], session_factory: sessionmaker):
        """Initialize repository with model and session factory."""
        self.model = model
        self.session_factory = session_factory

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Open a session, mapping database failures to StoreUnavailable."""
        try:
            with session_scope(self.session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Error accessing {self.model.__name__}: {e}")
            raise StoreUnavailable(f"{self.store_name} unavailable: {e}", self.store_name) from e

    def create(self, **kwargs) -> ModelType:
        """Create a new model instance."""
        with self.session() as session:
            instance = self.model(**kwargs)
            session.add(instance)
            session.flush()
            logger.debug(f"Created {self.model.__name__}")
            return instance

    def get_by_id(self, id: Any) -> Optional[ModelType]:
        """Get model instance by ID."""
        with self.session() as session:
            return session.get(self.model, id)

    def exists(self, id: Any) -> bool:
        """Check if model instance exists by ID."""
        with self.session() as session:
            stmt = select(func.count()).select_from(self.model).where(self.model.id == id)
            return session.execute(stmt).scalar_one() > 0

    def find_by(self, **kwargs) -> List[ModelType]:
        """Find model instances by field values."""
        conditions = []
        for key, value in kwargs.items():
            if hasattr(self.model, key):
                conditions.append(getattr(self.model, key) == value)

        with self.session() as session:
            stmt = select(self.model)
            if conditions:
                stmt = stmt.where(and_(*conditions))
            return list(session.execute(stmt).scalars().all())

    def count_where(self, condition: Any) -> int:
        """Count model instances matching ``condition``."""
        with self.session() as session:
            stmt = select(func.count()).select_from(self.model).where(condition)
            return session.execute(stmt).scalar_one()
