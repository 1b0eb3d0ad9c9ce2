"""Shadow entity repository port interface."""
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from casework_sync.domain.models.value_objects import ExternalId, OfficeId

E = TypeVar("E")


class LegacyEntityRepository(ABC, Generic[E]):
    """Repository interface shared by the shadow entities (Case, Constituent, Email)."""

    @abstractmethod
    async def find_by_external_id(
        self,
        office_id: OfficeId,
        external_id: ExternalId
    ) -> Optional[E]:
        """
        Find entity by its legacy identity within one office.

        Args:
            office_id: Owning office
            external_id: Legacy identifier

        Returns:
            Entity if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(self, entity: E) -> E:
        """
        Save or update an entity (UPSERT on office_id, external_id).

        Args:
            entity: Entity to save

        Returns:
            Saved entity with its internal id assigned
        """
        pass
