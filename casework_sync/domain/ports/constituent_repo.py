"""Constituent repository port interface."""
from casework_sync.domain.models.constituent import Constituent
from casework_sync.domain.ports.entity_repo import LegacyEntityRepository


class ConstituentRepository(LegacyEntityRepository[Constituent]):
    """Repository interface for Constituent entity."""
