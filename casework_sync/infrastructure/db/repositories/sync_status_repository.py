"""SyncStatus repository implementation using SQLAlchemy."""
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.sync_status import EntityType, SyncStatus
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.sync_status_repo import SyncStatusRepository
from casework_sync.infrastructure.db.models import SyncStatusModel


class SQLAlchemySyncStatusRepository(SyncStatusRepository):
    """SQLAlchemy implementation of SyncStatusRepository."""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def save(self, status: SyncStatus) -> SyncStatus:
        """Save or update a sync status using UPSERT."""
        stmt = insert(SyncStatusModel).values(
            office_id=uuid.UUID(str(status.office_id)),
            entity_type=status.entity_type,
            state=status.state,
            last_sync_started_at=status.last_sync_started_at,
            last_sync_completed_at=status.last_sync_completed_at,
            last_sync_success=status.last_sync_success,
            last_sync_error=status.last_sync_error,
            last_sync_cursor=status.last_sync_cursor,
            records_synced=status.records_synced,
            records_failed=status.records_failed,
            run_started_at=status.run_started_at,
            last_success_started_at=status.last_success_started_at,
            updated_at=utc_now()
        )
        stmt = stmt.on_conflict_do_update(
            constraint='uq_legacy_sync_status_office_entity',
            set_={
                'state': stmt.excluded.state,
                'last_sync_started_at': stmt.excluded.last_sync_started_at,
                'last_sync_completed_at': stmt.excluded.last_sync_completed_at,
                'last_sync_success': stmt.excluded.last_sync_success,
                'last_sync_error': stmt.excluded.last_sync_error,
                'last_sync_cursor': stmt.excluded.last_sync_cursor,
                'records_synced': stmt.excluded.records_synced,
                'records_failed': stmt.excluded.records_failed,
                'run_started_at': stmt.excluded.run_started_at,
                'last_success_started_at': stmt.excluded.last_success_started_at,
                'updated_at': stmt.excluded.updated_at
            }
        ).returning(SyncStatusModel.id)

        try:
            result = await self.session.execute(stmt)
            status.id = result.scalar_one()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return status

    async def find(self, office_id: OfficeId, entity_type: EntityType) -> Optional[SyncStatus]:
        """Find status by office and entity type."""
        stmt = select(SyncStatusModel).where(
            SyncStatusModel.office_id == uuid.UUID(str(office_id)),
            SyncStatusModel.entity_type == entity_type
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        return self._to_domain(row) if row else None

    async def list_by_office(self, office_id: OfficeId) -> List[SyncStatus]:
        """List all statuses for an office."""
        stmt = select(SyncStatusModel).where(
            SyncStatusModel.office_id == uuid.UUID(str(office_id))
        ).order_by(SyncStatusModel.entity_type)
        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    @staticmethod
    def _to_domain(row) -> SyncStatus:
        """Convert SQLAlchemy model to domain entity."""
        return SyncStatus(
            id=row.id,
            office_id=OfficeId.from_trusted(row.office_id),
            entity_type=row.entity_type,
            state=row.state,
            last_sync_started_at=row.last_sync_started_at,
            last_sync_completed_at=row.last_sync_completed_at,
            last_sync_success=row.last_sync_success,
            last_sync_error=row.last_sync_error,
            last_sync_cursor=row.last_sync_cursor,
            records_synced=row.records_synced,
            records_failed=row.records_failed,
            run_started_at=row.run_started_at,
            last_success_started_at=row.last_success_started_at
        )
