"""Legacy Caseworker API client port interface."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from casework_sync.domain.models.legacy_records import (
    LegacyCaseRecord,
    LegacyConstituentRecord,
    LegacyEmailRecord,
    LegacyPage,
)
from casework_sync.domain.models.reference_data import ReferenceKind
from casework_sync.domain.models.value_objects import OfficeId


class DateRangeType(str, Enum):
    """Which timestamp a case date range filters on."""
    CREATED = "created"
    MODIFIED = "modified"


@dataclass(frozen=True)
class DateRange:
    type: DateRangeType
    from_: datetime
    to: datetime


@dataclass(frozen=True)
class CaseSearchParams:
    date_range: DateRange
    page_no: int = 1
    results_per_page: int = 100


@dataclass(frozen=True)
class ConstituentSearchParams:
    created_after: Optional[datetime] = None
    modified_after: Optional[datetime] = None
    page: int = 1
    limit: int = 100


@dataclass(frozen=True)
class InboxSearchParams:
    actioned: Optional[bool] = None
    type: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = 1
    limit: int = 100


class LegacyApiClient(ABC):
    """
    Office-scoped access to the legacy Caseworker search API.

    Every call raises LegacyApiError (or a subclass) on transport or API
    failure and pydantic.ValidationError on a malformed page envelope.
    """

    @abstractmethod
    async def search_cases(
        self,
        office_id: OfficeId,
        params: CaseSearchParams
    ) -> LegacyPage[LegacyCaseRecord]:
        """
        Search cases created or modified within a date range.

        Args:
            office_id: Office whose legacy instance is queried
            params: Date range and paging

        Returns:
            One page of case records
        """
        pass

    @abstractmethod
    async def search_constituents(
        self,
        office_id: OfficeId,
        params: ConstituentSearchParams
    ) -> LegacyPage[LegacyConstituentRecord]:
        """
        Search constituents created or modified after a point in time.

        Args:
            office_id: Office whose legacy instance is queried
            params: Date filters and paging

        Returns:
            One page of constituent records
        """
        pass

    @abstractmethod
    async def search_inbox(
        self,
        office_id: OfficeId,
        params: InboxSearchParams
    ) -> LegacyPage[LegacyEmailRecord]:
        """
        Search the office inbox.

        Args:
            office_id: Office whose legacy instance is queried
            params: Inbox filters and paging

        Returns:
            One page of email records
        """
        pass

    @abstractmethod
    async def get_reference_data(self, office_id: OfficeId, kind: ReferenceKind) -> List[Any]:
        """
        Fetch a whole legacy lookup list.

        Args:
            office_id: Office whose legacy instance is queried
            kind: Which list

        Returns:
            Raw rows, parsed one by one by the caller
        """
        pass

    @abstractmethod
    async def authenticate(self, office_id: OfficeId) -> str:
        """
        Log in with the office's stored credentials.

        Returns:
            Session token
        """
        pass

    @abstractmethod
    async def refresh_token(self, office_id: OfficeId) -> str:
        """
        Discard any cached token and log in again.

        Returns:
            New session token
        """
        pass
