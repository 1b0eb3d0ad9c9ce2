"""Domain and integration exceptions."""
from typing import Optional


class LegacyApiError(Exception):
    """The legacy Caseworker API returned an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LegacyAuthError(LegacyApiError):
    """Credentials were rejected or are missing."""


class LegacyRateLimitError(LegacyApiError):
    """The legacy API kept answering 429 after all retries."""


class LegacyTransportError(LegacyApiError):
    """Network failure or timeout talking to the legacy API."""


class PaginationLimitExceeded(Exception):
    """A sync run fetched more pages than allowed."""

    def __init__(self, max_pages: int):
        super().__init__(f"Pagination limit of {max_pages} pages exceeded")
        self.max_pages = max_pages


class SyncAlreadyRunningError(Exception):
    """A sync for the same office and entity type is already in progress."""

    def __init__(self, office_id, entity_type):
        super().__init__(f"Sync already running for office {office_id}, {entity_type.value}")
        self.office_id = office_id
        self.entity_type = entity_type
