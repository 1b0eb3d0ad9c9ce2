"""Credential policy domain service - manages legacy session token rules."""
from datetime import datetime, timedelta

from casework_sync.domain.models.legacy_credentials import LegacyCredentials
from casework_sync.domain.models.legacy_entity import utc_now


class CredentialPolicy:
    """
    Domain service for legacy token expiration and refresh policies.

    This is pure business logic with no infrastructure dependencies.
    """

    DEFAULT_REFRESH_BUFFER_MINUTES = 5

    @staticmethod
    def should_refresh_token(
        credentials: LegacyCredentials,
        buffer_minutes: int = DEFAULT_REFRESH_BUFFER_MINUTES
    ) -> bool:
        """
        Determine if the session token should be refreshed.

        Args:
            credentials: Office credentials to check
            buffer_minutes: Buffer time before expiry to trigger refresh

        Returns:
            True if a new token should be requested
        """
        return credentials.needs_refresh(buffer_minutes)

    @staticmethod
    def calculate_expiry_time(ttl_minutes: int) -> datetime:
        """
        Calculate expiry timestamp for a token issued now.

        The legacy /auth endpoint returns a bare token with no lifetime, so
        the lifetime is configured.

        Args:
            ttl_minutes: Assumed token lifetime

        Returns:
            Absolute expiry timestamp
        """
        return utc_now() + timedelta(minutes=ttl_minutes)

    @staticmethod
    def validate_credentials(credentials: LegacyCredentials) -> bool:
        """
        Validate that credentials are complete enough to log in.

        Args:
            credentials: Credentials to validate

        Returns:
            True if credentials are usable
        """
        if not credentials.api_subdomain:
            return False
        if not credentials.email:
            return False
        if not credentials.password:
            return False
        return True
