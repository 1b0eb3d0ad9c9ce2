"""LegacyCredentials aggregate - an office's login to the legacy API."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.value_objects import OfficeId


@dataclass
class LegacyCredentials:
    """
    Aggregate holding one office's legacy API login and session token.

    Invariants:
    - one credentials row per office
    - a token is only used while it has not expired
    """
    office_id: OfficeId
    api_subdomain: str
    email: str
    password: str
    token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate invariants."""
        if not self.api_subdomain:
            raise ValueError("api_subdomain cannot be empty")
        if not self.email or not self.password:
            raise ValueError("email and password are required")

    def is_expired(self) -> bool:
        """Check if the session token is missing or expired."""
        if not self.token or self.token_expires_at is None:
            return True
        return utc_now() >= self.token_expires_at

    def needs_refresh(self, buffer_minutes: int = 5) -> bool:
        """
        Check if the token needs refresh with buffer time.

        Args:
            buffer_minutes: Refresh buffer in minutes before actual expiry
        """
        if self.is_expired():
            return True
        return utc_now() >= self.token_expires_at - timedelta(minutes=buffer_minutes)

    def update_token(self, token: str, expires_at: datetime) -> None:
        """
        Store a freshly issued session token.

        Args:
            token: Token returned by POST /auth
            expires_at: Absolute expiry timestamp
        """
        self.token = token
        self.token_expires_at = expires_at
        self.updated_at = utc_now()


def office_workflow_id(office_id: OfficeId) -> str:
    """Unique Temporal workflow id for an office's sync loop."""
    return f"office-sync-{office_id}"
