"""SyncStatus entity - tracks the last sync run per office and entity type."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.value_objects import OfficeId


class EntityType(str, Enum):
    """Entity types mirrored from the legacy system."""
    CASES = "cases"
    CONSTITUENTS = "constituents"
    EMAILS = "emails"
    REFERENCE_DATA = "reference_data"


class SyncMode(str, Enum):
    """Sync run mode."""
    FULL = "full"
    INCREMENTAL = "incremental"


class SyncState(str, Enum):
    """Sync run state."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class SyncStatus:
    """
    Entity tracking sync progress per office and entity type.

    Invariants:
    - (office_id, entity_type) is unique
    - last_sync_completed_at only moves on success
    - last_sync_cursor is set only while a failed run can be resumed
    - run_started_at is the first attempt of a run and survives resumed attempts
    """
    office_id: OfficeId
    entity_type: EntityType
    id: Optional[int] = None
    state: SyncState = SyncState.IDLE
    last_sync_started_at: Optional[datetime] = None
    last_sync_completed_at: Optional[datetime] = None
    last_sync_success: Optional[bool] = None
    last_sync_error: Optional[str] = None
    last_sync_cursor: Optional[str] = None
    records_synced: int = 0
    records_failed: int = 0
    run_started_at: Optional[datetime] = None
    last_success_started_at: Optional[datetime] = None

    def mark_started(self, resuming: bool = False) -> None:
        """
        Mark sync run started.

        Args:
            resuming: Whether this attempt continues a failed run from its cursor
        """
        now = utc_now()
        self.last_sync_started_at = now
        if not resuming or self.run_started_at is None:
            self.run_started_at = now
        self.state = SyncState.RUNNING

    def mark_completed(self, result) -> None:
        """
        Record a successful run.

        Args:
            result: SyncResultDto of the run
        """
        self.state = SyncState.SUCCESS
        self.last_sync_completed_at = utc_now()
        self.last_sync_success = True
        self.last_success_started_at = self.run_started_at or self.last_sync_started_at
        self.last_sync_error = None
        self.last_sync_cursor = None
        self.records_synced = result.records_synced
        self.records_failed = result.records_failed

    def mark_failed(self, result, resumable: bool = True) -> None:
        """
        Record a failed run, keeping the page it stopped at.

        Args:
            result: SyncResultDto of the run
            resumable: Whether the next run may start from the failed page
        """
        self.state = SyncState.FAILURE
        self.last_sync_success = False
        self.last_sync_error = result.errors[0].error if result.errors else None
        self.last_sync_cursor = result.next_cursor if resumable else None
        self.records_synced = result.records_synced
        self.records_failed = result.records_failed

    def incremental_since(self) -> Optional[datetime]:
        """
        Start of the window for the next incremental run.

        A resumed run counts from its first attempt, so changes made to pages
        it had already passed are picked up.

        Returns:
            Start of the first attempt of the last successful run, or None
        """
        if self.last_success_started_at is not None:
            return self.last_success_started_at
        return self.last_sync_completed_at

    def is_running(self, stale_after: timedelta = timedelta(hours=1)) -> bool:
        """
        Whether a run is in progress.

        A run marked started longer ago than stale_after is treated as dead
        (its worker crashed without recording an outcome).
        """
        if self.state != SyncState.RUNNING or self.last_sync_started_at is None:
            return False
        return utc_now() - self.last_sync_started_at < stale_after
