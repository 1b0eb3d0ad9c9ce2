"""Sync audit log repository implementation using SQLAlchemy."""
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casework_sync.domain.models.sync_audit_entry import AuditOperation, SyncAuditEntry
from casework_sync.domain.models.sync_status import EntityType
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.audit_log_repo import SyncAuditLogRepository
from casework_sync.infrastructure.db.models import SyncAuditLogModel


class SQLAlchemySyncAuditLogRepository(SyncAuditLogRepository):
    """SQLAlchemy implementation of SyncAuditLogRepository."""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def add(self, entry: SyncAuditEntry) -> SyncAuditEntry:
        """Append an audit entry."""
        db_entry = SyncAuditLogModel(
            office_id=uuid.UUID(str(entry.office_id)),
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            external_id=entry.external_id,
            operation=entry.operation,
            old_data=entry.old_data,
            new_data=entry.new_data,
            conflict_resolution=entry.conflict_resolution,
            error_message=entry.error_message,
            created_at=entry.created_at
        )
        self.session.add(db_entry)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        entry.id = db_entry.id
        return entry

    async def list_by_office(
        self,
        office_id: OfficeId,
        entity_type: Optional[EntityType] = None,
        operation: Optional[AuditOperation] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[SyncAuditEntry]:
        """List entries for an office, newest first."""
        stmt = select(SyncAuditLogModel).where(
            SyncAuditLogModel.office_id == uuid.UUID(str(office_id))
        )
        if entity_type:
            stmt = stmt.where(SyncAuditLogModel.entity_type == entity_type)
        if operation:
            stmt = stmt.where(SyncAuditLogModel.operation == operation)

        stmt = stmt.order_by(
            SyncAuditLogModel.created_at.desc(), SyncAuditLogModel.id.desc()
        ).limit(limit).offset(offset)

        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    @staticmethod
    def _to_domain(row) -> SyncAuditEntry:
        """Convert SQLAlchemy model to domain entity."""
        return SyncAuditEntry(
            id=row.id,
            office_id=OfficeId.from_trusted(row.office_id),
            entity_type=row.entity_type,
            operation=row.operation,
            entity_id=row.entity_id,
            external_id=row.external_id,
            old_data=row.old_data,
            new_data=row.new_data,
            conflict_resolution=row.conflict_resolution,
            error_message=row.error_message,
            created_at=row.created_at
        )
