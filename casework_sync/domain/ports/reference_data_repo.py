"""Reference data repository port interface."""
from abc import ABC, abstractmethod
from typing import List

from casework_sync.domain.models.reference_data import ReferenceItem, ReferenceKind
from casework_sync.domain.models.value_objects import OfficeId


class ReferenceDataRepository(ABC):
    """Repository interface for legacy lookup lists."""

    @abstractmethod
    async def upsert_many(
        self,
        office_id: OfficeId,
        kind: ReferenceKind,
        items: List[ReferenceItem]
    ) -> int:
        """
        Save or update every item (UPSERT on office_id, kind, external_id).

        Returns:
            Number of items written
        """
        pass

    @abstractmethod
    async def list_by_kind(self, office_id: OfficeId, kind: ReferenceKind) -> List[ReferenceItem]:
        """List an office's items of one kind, ordered by external id."""
        pass
