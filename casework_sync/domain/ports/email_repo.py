"""Email repository port interface."""
from casework_sync.domain.models.email import Email
from casework_sync.domain.ports.entity_repo import LegacyEntityRepository


class EmailRepository(LegacyEntityRepository[Email]):
    """Repository interface for Email entity."""
