"""
Credential Repository

Durable credential storage backed by SQLAlchemy.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from ...scrapers.models import Credential, PortalType
from ..models.credential import CredentialRecord
from .base import BaseRepository, CredentialStore

logger = logging.getLogger(__name__)


class CredentialRepository(BaseRepository[CredentialRecord], CredentialStore):
    """SQLAlchemy implementation of the credential store."""

    store_name = "credential store"

    def __init__(self, session_factory: sessionmaker, portal_urls: Optional[Dict[str, str]] = None):
        BaseRepository.__init__(self, CredentialRecord, session_factory)
        CredentialStore.__init__(self, portal_urls)

    def find_active(self) -> List[Credential]:
        return [self._to_credential(record) for record in self.find_by(is_active=True)]

    def find_all(self) -> List[Credential]:
        return [self._to_credential(record) for record in self.find_by()]

    def get(self, credential_id: int) -> Optional[Credential]:
        record = self.get_by_id(credential_id)
        return self._to_credential(record) if record is not None else None

    def delete(self, credential_id: int) -> bool:
        with self.session() as session:
            record = session.get(CredentialRecord, credential_id)
            if record is None:
                return False
            session.delete(record)
        logger.info(f"Deleted credential {credential_id}")
        return True

    def _store(self, credential: Credential) -> Credential:
        record = self.create(**self._columns(credential))
        logger.info(f"Saved credential for {credential.portal_name}")
        return self._to_credential(record)

    def _replace(self, credential: Credential) -> Optional[Credential]:
        with self.session() as session:
            record = session.get(CredentialRecord, credential.id)
            if record is None:
                return None
            for column, value in self._columns(credential).items():
                setattr(record, column, value)
        logger.info(f"Updated credential for {credential.portal_name}")
        return self._to_credential(record)

    @staticmethod
    def _columns(credential: Credential) -> Dict[str, object]:
        return {
            "portal_type": credential.portal_type.value,
            "portal_name": credential.portal_name,
            "url": credential.url,
            "username": credential.username,
            "password": credential.password,
            "is_active": credential.is_active,
        }

    @staticmethod
    def _to_credential(record: CredentialRecord) -> Credential:
        return Credential(
            portal_type=PortalType(record.portal_type),
            portal_name=record.portal_name,
            url=record.url,
            username=record.username,
            password=record.password,
            is_active=record.is_active,
            id=record.id,
        )
