"""Sync cases application service."""
from casework_sync.application.services.sync_legacy_entities import (
    LegacyEntitySync,
    SyncWindow,
)
from casework_sync.domain.models.case import Case
from casework_sync.domain.models.legacy_records import LegacyCaseRecord, LegacyPage
from casework_sync.domain.models.sync_status import EntityType
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.legacy_api import CaseSearchParams, DateRange, DateRangeType


class SyncCases(LegacyEntitySync[Case]):
    """Mirror legacy cases into the shadow store."""

    entity_type = EntityType.CASES
    entity_class = Case

    async def fetch_page(
        self,
        office_id: OfficeId,
        window: SyncWindow,
        page_no: int
    ) -> LegacyPage[LegacyCaseRecord]:
        range_type = DateRangeType.CREATED if window.by_creation else DateRangeType.MODIFIED
        return await self.api_client.search_cases(
            office_id,
            CaseSearchParams(
                date_range=DateRange(type=range_type, from_=window.start, to=window.end),
                page_no=page_no,
                results_per_page=self.batch_size
            )
        )
