"""Shared FastAPI dependencies."""
from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from temporalio.client import Client

from casework_sync.core.config import settings
from casework_sync.core.database import get_db
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.audit_log_repo import SyncAuditLogRepository
from casework_sync.domain.ports.reference_data_repo import ReferenceDataRepository
from casework_sync.domain.ports.sync_status_repo import SyncStatusRepository
from casework_sync.infrastructure.db.repositories.audit_log_repository import (
    SQLAlchemySyncAuditLogRepository
)
from casework_sync.infrastructure.db.repositories.reference_data_repository import (
    SQLAlchemyReferenceDataRepository
)
from casework_sync.infrastructure.db.repositories.sync_status_repository import (
    SQLAlchemySyncStatusRepository
)


async def get_office_id(x_office_id: str = Header(...)) -> OfficeId:
    """
    Resolve the calling office from the X-Office-Id header.

    Raises:
        HTTPException: 400 if the header is not a valid office id
    """
    try:
        return OfficeId.create(x_office_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def get_status_repo(db: AsyncSession = Depends(get_db)) -> SyncStatusRepository:
    return SQLAlchemySyncStatusRepository(db)


async def get_audit_repo(db: AsyncSession = Depends(get_db)) -> SyncAuditLogRepository:
    return SQLAlchemySyncAuditLogRepository(db)


async def get_reference_repo(db: AsyncSession = Depends(get_db)) -> ReferenceDataRepository:
    return SQLAlchemyReferenceDataRepository(db)


async def get_temporal_client() -> Client:
    return await Client.connect(
        settings.temporal_host,
        namespace=settings.temporal_namespace
    )
