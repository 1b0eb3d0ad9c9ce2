"""SyncAuditEntry repository port interface."""
from abc import ABC, abstractmethod
from typing import List, Optional

from casework_sync.domain.models.sync_audit_entry import AuditOperation, SyncAuditEntry
from casework_sync.domain.models.sync_status import EntityType
from casework_sync.domain.models.value_objects import OfficeId


class SyncAuditLogRepository(ABC):
    """Append-only repository for sync audit entries."""

    @abstractmethod
    async def add(self, entry: SyncAuditEntry) -> SyncAuditEntry:
        """
        Append an audit entry.

        Args:
            entry: Entry to write

        Returns:
            Written entry with its ID
        """
        pass

    @abstractmethod
    async def list_by_office(
        self,
        office_id: OfficeId,
        entity_type: Optional[EntityType] = None,
        operation: Optional[AuditOperation] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[SyncAuditEntry]:
        """
        List entries for an office, newest first.

        Args:
            office_id: Office identifier
            entity_type: Optional entity type filter
            operation: Optional operation filter
            limit: Page size
            offset: Entries to skip

        Returns:
            List of audit entries
        """
        pass
