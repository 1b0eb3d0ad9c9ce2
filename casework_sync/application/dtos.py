"""Application-level data transfer objects."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from casework_sync.domain.models.sync_status import EntityType
from casework_sync.domain.models.value_objects import OfficeId


@dataclass(frozen=True)
class SyncOptions:
    """
    Options for one sync run.

    Attributes:
        full: Sync everything created since the epoch floor instead of recent changes
        modified_since: Start of the incremental window, defaults to a fixed look-back
        cursor: Page number to start from when resuming a failed run
    """
    full: bool = False
    modified_since: Optional[datetime] = None
    cursor: Optional[str] = None


@dataclass
class SyncErrorDto:
    """Failure of one record, or the synthetic failure of a whole run (external_id 0)."""
    external_id: int
    error: str


@dataclass
class SyncResultDto:
    """Summary of one sync run returned to the caller."""
    entity_type: EntityType
    office_id: OfficeId
    success: bool = False
    records_synced: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_failed: int = 0
    duration_ms: int = 0
    errors: Optional[List[SyncErrorDto]] = None
    next_cursor: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used by API consumers."""
        data = {
            "entityType": self.entity_type.value,
            "officeId": str(self.office_id),
            "success": self.success,
            "recordsSynced": self.records_synced,
            "recordsCreated": self.records_created,
            "recordsUpdated": self.records_updated,
            "recordsFailed": self.records_failed,
            "durationMs": self.duration_ms,
            "errors": None,
            "nextCursor": self.next_cursor,
        }
        if self.errors is not None:
            data["errors"] = [
                {"externalId": err.external_id, "error": err.error}
                for err in self.errors
            ]
        return data
