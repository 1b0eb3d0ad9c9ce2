"""Case repository port interface."""
from casework_sync.domain.models.case import Case
from casework_sync.domain.ports.entity_repo import LegacyEntityRepository


class CaseRepository(LegacyEntityRepository[Case]):
    """Repository interface for Case entity."""
