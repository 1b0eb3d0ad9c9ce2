"""LegacyCredentials repository implementation using SQLAlchemy."""
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from casework_sync.domain.models.legacy_credentials import LegacyCredentials
from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.credentials_repo import LegacyCredentialsRepository
from casework_sync.infrastructure.db.models import LegacyCredentialsModel


class SQLAlchemyLegacyCredentialsRepository(LegacyCredentialsRepository):
    """SQLAlchemy implementation of LegacyCredentialsRepository."""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_office(self, office_id: OfficeId) -> Optional[LegacyCredentials]:
        """Find an office's legacy credentials."""
        row = await self.session.get(LegacyCredentialsModel, uuid.UUID(str(office_id)))
        return self._to_domain(row) if row else None

    async def update_token(self, office_id: OfficeId, token: str, expires_at: datetime) -> None:
        """Persist a refreshed session token."""
        stmt = update(LegacyCredentialsModel).where(
            LegacyCredentialsModel.office_id == uuid.UUID(str(office_id))
        ).values(token=token, token_expires_at=expires_at, updated_at=utc_now())
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def list_offices(self) -> List[OfficeId]:
        """List offices with legacy credentials configured."""
        result = await self.session.execute(select(LegacyCredentialsModel.office_id))
        return [OfficeId.from_trusted(office_id) for office_id in result.scalars().all()]

    @staticmethod
    def _to_domain(row) -> LegacyCredentials:
        """Convert SQLAlchemy model to domain entity."""
        return LegacyCredentials(
            office_id=OfficeId.from_trusted(row.office_id),
            api_subdomain=row.api_subdomain,
            email=row.email,
            password=row.password,
            token=row.token,
            token_expires_at=row.token_expires_at,
            updated_at=row.updated_at
        )
