"""Sync constituents application service."""
from casework_sync.application.services.sync_legacy_entities import (
    LegacyEntitySync,
    SyncWindow,
)
from casework_sync.domain.models.constituent import Constituent
from casework_sync.domain.models.legacy_records import LegacyConstituentRecord, LegacyPage
from casework_sync.domain.models.sync_status import EntityType
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.legacy_api import ConstituentSearchParams


class SyncConstituents(LegacyEntitySync[Constituent]):
    """Mirror legacy constituents into the shadow store."""

    entity_type = EntityType.CONSTITUENTS
    entity_class = Constituent

    async def fetch_page(
        self,
        office_id: OfficeId,
        window: SyncWindow,
        page_no: int
    ) -> LegacyPage[LegacyConstituentRecord]:
        if window.by_creation:
            params = ConstituentSearchParams(
                created_after=window.start, page=page_no, limit=self.batch_size
            )
        else:
            params = ConstituentSearchParams(
                modified_after=window.start, page=page_no, limit=self.batch_size
            )
        return await self.api_client.search_constituents(office_id, params)
