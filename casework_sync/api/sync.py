"""Sync status, trigger and audit log endpoints."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError

from casework_sync.api.dependencies import (
    get_audit_repo,
    get_office_id,
    get_reference_repo,
    get_status_repo,
    get_temporal_client,
)
from casework_sync.core.config import settings
from casework_sync.domain.exceptions import SyncAlreadyRunningError
from casework_sync.domain.models.legacy_credentials import office_workflow_id
from casework_sync.domain.models.reference_data import ReferenceKind
from casework_sync.domain.models.sync_audit_entry import AuditOperation
from casework_sync.domain.models.sync_status import EntityType, SyncMode, SyncStatus
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.audit_log_repo import SyncAuditLogRepository
from casework_sync.domain.ports.reference_data_repo import ReferenceDataRepository
from casework_sync.domain.ports.sync_status_repo import SyncStatusRepository
from casework_sync.temporal.workflows import OfficeSyncWorkflow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sync", tags=["sync"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncStatusResponse(CamelModel):
    """Response model for sync status."""
    entity_type: EntityType
    state: str
    is_running: bool
    last_sync_started_at: Optional[datetime] = None
    last_sync_completed_at: Optional[datetime] = None
    last_sync_success: Optional[bool] = None
    last_sync_error: Optional[str] = None
    last_sync_cursor: Optional[str] = None
    records_synced: int = 0
    records_failed: int = 0


class SyncStartRequest(CamelModel):
    """Request model for triggering a sync."""
    entity_types: Optional[List[EntityType]] = None
    sync_type: SyncMode = SyncMode.INCREMENTAL


class SyncStartResponse(CamelModel):
    message: str
    workflow_id: str
    workflow_started: bool
    entity_types: List[EntityType]
    sync_type: SyncMode


class AuditLogEntryResponse(CamelModel):
    """Response model for one audit log entry."""
    id: Optional[int]
    entity_type: EntityType
    operation: AuditOperation
    entity_id: Optional[UUID] = None
    external_id: Optional[int] = None
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    conflict_resolution: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime


def _status_response(status: SyncStatus) -> SyncStatusResponse:
    return SyncStatusResponse(
        entity_type=status.entity_type,
        state=status.state.value,
        is_running=status.is_running(),
        last_sync_started_at=status.last_sync_started_at,
        last_sync_completed_at=status.last_sync_completed_at,
        last_sync_success=status.last_sync_success,
        last_sync_error=status.last_sync_error,
        last_sync_cursor=status.last_sync_cursor,
        records_synced=status.records_synced,
        records_failed=status.records_failed
    )


@router.get("/status", response_model=List[SyncStatusResponse])
async def list_sync_status(
    office_id: OfficeId = Depends(get_office_id),
    status_repo: SyncStatusRepository = Depends(get_status_repo)
):
    """
    Get sync status of every entity type for the calling office.

    Entity types that never synced are reported as idle.
    """
    recorded = {s.entity_type: s for s in await status_repo.list_by_office(office_id)}
    return [
        _status_response(recorded.get(entity_type) or SyncStatus(office_id, entity_type))
        for entity_type in EntityType
    ]


@router.get("/status/{entity_type}", response_model=SyncStatusResponse)
async def get_sync_status(
    entity_type: str,
    office_id: OfficeId = Depends(get_office_id),
    status_repo: SyncStatusRepository = Depends(get_status_repo)
):
    """
    Get sync status of one entity type.

    Args:
        entity_type: cases, constituents, emails or reference_data
    """
    try:
        entity = EntityType(entity_type)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown entity type: {entity_type}")

    status = await status_repo.find(office_id, entity)
    return _status_response(status or SyncStatus(office_id, entity))


@router.post("/start", response_model=SyncStartResponse, status_code=202)
async def start_sync(
    request: SyncStartRequest,
    office_id: OfficeId = Depends(get_office_id),
    status_repo: SyncStatusRepository = Depends(get_status_repo),
    temporal_client: Client = Depends(get_temporal_client)
):
    """
    Start the office's sync workflow, or trigger a cycle if it is already running.

    Raises:
        SyncAlreadyRunningError: If a requested entity type is mid-sync (409)
    """
    entity_types = request.entity_types or list(EntityType)
    for entity_type in entity_types:
        status = await status_repo.find(office_id, entity_type)
        if status and status.is_running():
            raise SyncAlreadyRunningError(office_id, entity_type)

    workflow_id = office_workflow_id(office_id)
    type_values = [t.value for t in entity_types]

    try:
        await temporal_client.start_workflow(
            OfficeSyncWorkflow.run,
            args=[
                str(office_id),
                settings.sync_interval_minutes,
                type_values,
                request.sync_type.value
            ],
            id=workflow_id,
            task_queue=settings.temporal_task_queue
        )
        workflow_started = True
        logger.info(f"Started sync workflow {workflow_id}")
    except WorkflowAlreadyStartedError:
        handle = temporal_client.get_workflow_handle(workflow_id)
        await handle.signal(
            OfficeSyncWorkflow.trigger_sync,
            args=[type_values, request.sync_type.value]
        )
        workflow_started = False
        logger.info(f"Signalled running sync workflow {workflow_id}")

    return SyncStartResponse(
        message="Sync started" if workflow_started else "Sync triggered",
        workflow_id=workflow_id,
        workflow_started=workflow_started,
        entity_types=entity_types,
        sync_type=request.sync_type
    )


@router.get("/audit-log", response_model=List[AuditLogEntryResponse])
async def list_audit_log(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    entity_type: Optional[EntityType] = Query(None, alias="entityType"),
    operation: Optional[AuditOperation] = Query(None),
    office_id: OfficeId = Depends(get_office_id),
    audit_repo: SyncAuditLogRepository = Depends(get_audit_repo)
):
    """
    List the calling office's audit log, newest first.

    Args:
        limit: Page size
        offset: Entries to skip
        entity_type: Optional entity type filter
        operation: Optional operation filter
    """
    entries = await audit_repo.list_by_office(
        office_id,
        entity_type=entity_type,
        operation=operation,
        limit=limit,
        offset=offset
    )
    return [
        AuditLogEntryResponse(
            id=entry.id,
            entity_type=entry.entity_type,
            operation=entry.operation,
            entity_id=entry.entity_id,
            external_id=entry.external_id,
            old_data=entry.old_data,
            new_data=entry.new_data,
            conflict_resolution=entry.conflict_resolution,
            error_message=entry.error_message,
            created_at=entry.created_at
        )
        for entry in entries
    ]


class ReferenceItemResponse(CamelModel):
    """Response model for one mirrored lookup row."""
    external_id: int
    name: Optional[str] = None
    type: Optional[str] = None
    email: Optional[str] = None
    is_active: bool
    last_synced_at: Optional[datetime] = None


@router.get("/reference-data/{kind}", response_model=List[ReferenceItemResponse])
async def list_reference_data(
    kind: ReferenceKind,
    active_only: bool = Query(True, alias="activeOnly"),
    office_id: OfficeId = Depends(get_office_id),
    reference_repo: ReferenceDataRepository = Depends(get_reference_repo)
):
    """
    List the calling office's mirrored lookup list.

    Args:
        kind: case_types, status_types, category_types, contact_types or caseworkers
        active_only: Hide items legacy marks inactive
    """
    items = await reference_repo.list_by_kind(office_id, kind)
    if active_only:
        items = [item for item in items if item.is_active]
    return [
        ReferenceItemResponse(
            external_id=int(item.external_id),
            name=item.name,
            type=item.type,
            email=item.email,
            is_active=item.is_active,
            last_synced_at=item.last_synced_at
        )
        for item in items
    ]
