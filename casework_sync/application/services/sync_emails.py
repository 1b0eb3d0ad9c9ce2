"""Sync emails application service."""
from casework_sync.application.services.sync_legacy_entities import (
    LegacyEntitySync,
    SyncWindow,
)
from casework_sync.domain.models.email import Email, EmailType
from casework_sync.domain.models.legacy_records import LegacyEmailRecord, LegacyPage
from casework_sync.domain.models.sync_status import EntityType
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.legacy_api import InboxSearchParams


class SyncEmails(LegacyEntitySync[Email]):
    """
    Mirror the legacy inbox into the shadow store.

    Only unactioned received mail is pulled; that is what triage works on.
    The inbox search has a single date filter, so full and incremental runs
    differ only in where the window starts.
    """

    entity_type = EntityType.EMAILS
    entity_class = Email

    async def fetch_page(
        self,
        office_id: OfficeId,
        window: SyncWindow,
        page_no: int
    ) -> LegacyPage[LegacyEmailRecord]:
        return await self.api_client.search_inbox(
            office_id,
            InboxSearchParams(
                actioned=False,
                type=EmailType.RECEIVED.value,
                date_from=window.start,
                date_to=window.end,
                page=page_no,
                limit=self.batch_size
            )
        )
