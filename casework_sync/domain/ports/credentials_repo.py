"""LegacyCredentials repository port interface."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from casework_sync.domain.models.legacy_credentials import LegacyCredentials
from casework_sync.domain.models.value_objects import OfficeId


class LegacyCredentialsRepository(ABC):
    """Repository interface for LegacyCredentials aggregate."""

    @abstractmethod
    async def find_by_office(self, office_id: OfficeId) -> Optional[LegacyCredentials]:
        """
        Find an office's legacy credentials.

        Returns:
            LegacyCredentials if configured, None otherwise
        """
        pass

    @abstractmethod
    async def update_token(
        self,
        office_id: OfficeId,
        token: str,
        expires_at: datetime
    ) -> None:
        """
        Persist a refreshed session token.

        Args:
            office_id: Office identifier
            token: New session token
            expires_at: Token expiry
        """
        pass

    @abstractmethod
    async def list_offices(self) -> List[OfficeId]:
        """
        List offices with legacy credentials configured.

        Returns:
            List of office ids
        """
        pass
