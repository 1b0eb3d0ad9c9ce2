"""SyncAuditEntry - durable record of one sync decision."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.sync_status import EntityType
from casework_sync.domain.models.value_objects import OfficeId


class AuditOperation(str, Enum):
    """Audited sync operations."""
    CREATE = "create"
    UPDATE = "update"
    SYNC_FAILED = "sync_failed"


@dataclass
class SyncAuditEntry:
    """
    Append-only audit record.

    Rules:
    - never updated or deleted once written
    - update entries always record legacy_wins as the conflict resolution
    """
    office_id: OfficeId
    entity_type: EntityType
    operation: AuditOperation
    id: Optional[int] = None
    entity_id: Optional[UUID] = None
    external_id: Optional[int] = None
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    conflict_resolution: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
