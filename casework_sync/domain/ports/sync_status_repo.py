"""SyncStatus repository port interface."""
from abc import ABC, abstractmethod
from typing import List, Optional

from casework_sync.domain.models.sync_status import EntityType, SyncStatus
from casework_sync.domain.models.value_objects import OfficeId


class SyncStatusRepository(ABC):
    """Repository interface for SyncStatus entity."""

    @abstractmethod
    async def save(self, status: SyncStatus) -> SyncStatus:
        """
        Save or update a sync status (UPSERT on office_id, entity_type).

        Args:
            status: SyncStatus to save

        Returns:
            Saved status with updated ID
        """
        pass

    @abstractmethod
    async def find(self, office_id: OfficeId, entity_type: EntityType) -> Optional[SyncStatus]:
        """
        Find status by office and entity type.

        Returns:
            SyncStatus if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_office(self, office_id: OfficeId) -> List[SyncStatus]:
        """
        List all statuses for an office.

        Args:
            office_id: Office identifier

        Returns:
            List of statuses for the office
        """
        pass
