"""Reference data repository implementation using SQLAlchemy."""
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.reference_data import ReferenceItem, ReferenceKind
from casework_sync.domain.models.value_objects import ExternalId, OfficeId
from casework_sync.domain.ports.reference_data_repo import ReferenceDataRepository
from casework_sync.infrastructure.db.models import ReferenceDataModel


class SQLAlchemyReferenceDataRepository(ReferenceDataRepository):
    """SQLAlchemy implementation of ReferenceDataRepository."""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def upsert_many(
        self,
        office_id: OfficeId,
        kind: ReferenceKind,
        items: List[ReferenceItem]
    ) -> int:
        """Save or update a whole lookup list in one statement."""
        if not items:
            return 0

        now = utc_now()
        stmt = insert(ReferenceDataModel).values([
            {
                "office_id": uuid.UUID(str(office_id)),
                "kind": kind,
                "external_id": int(item.external_id),
                "name": item.name,
                "type": item.type,
                "email": item.email,
                "is_active": item.is_active,
                "last_synced_at": item.last_synced_at or now,
                "updated_at": now,
            }
            for item in items
        ])
        stmt = stmt.on_conflict_do_update(
            constraint='uq_legacy_reference_data_external_id',
            set_={
                'name': stmt.excluded.name,
                'type': stmt.excluded.type,
                'email': stmt.excluded.email,
                'is_active': stmt.excluded.is_active,
                'last_synced_at': stmt.excluded.last_synced_at,
                'updated_at': stmt.excluded.updated_at
            }
        )

        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return len(items)

    async def list_by_kind(self, office_id: OfficeId, kind: ReferenceKind) -> List[ReferenceItem]:
        """List an office's items of one kind."""
        stmt = select(ReferenceDataModel).where(
            ReferenceDataModel.office_id == uuid.UUID(str(office_id)),
            ReferenceDataModel.kind == kind
        ).order_by(ReferenceDataModel.external_id)
        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    @staticmethod
    def _to_domain(row) -> ReferenceItem:
        """Convert SQLAlchemy model to domain entity."""
        return ReferenceItem(
            office_id=OfficeId.from_trusted(row.office_id),
            kind=row.kind,
            external_id=ExternalId.from_trusted(row.external_id),
            name=row.name,
            type=row.type,
            email=row.email,
            is_active=row.is_active,
            last_synced_at=row.last_synced_at
        )
