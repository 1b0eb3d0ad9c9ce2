"""Sync legacy reference data (lookup lists) application service."""
import logging
import time
from typing import List, Optional

from casework_sync.application.dtos import SyncErrorDto, SyncOptions, SyncResultDto
from casework_sync.application.services.sync_lock import SyncLockRegistry, sync_locks
from casework_sync.domain.events import (
    DomainEvent,
    SyncCompletedEvent,
    SyncFailedEvent,
    SyncStartedEvent,
)
from casework_sync.domain.models.legacy_records import LegacyPage, LegacyReferenceRecord
from casework_sync.domain.models.reference_data import ReferenceItem, ReferenceKind
from casework_sync.domain.models.sync_status import EntityType, SyncMode
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.event_publisher import EventPublisher
from casework_sync.domain.ports.legacy_api import LegacyApiClient
from casework_sync.domain.ports.reference_data_repo import ReferenceDataRepository

logger = logging.getLogger(__name__)


class SyncReferenceData:
    """
    Mirror the legacy lookup lists (case types, status types, category
    types, contact types, caseworkers) for one office.

    Lists are small and unpaged, so every run fetches each list whole.
    A list that cannot be fetched fails the run but the remaining lists
    still sync. Unparseable rows are counted and skipped.
    """

    entity_type = EntityType.REFERENCE_DATA

    def __init__(
        self,
        api_client: LegacyApiClient,
        repository: ReferenceDataRepository,
        events: EventPublisher,
        locks: Optional[SyncLockRegistry] = None
    ):
        self.api_client = api_client
        self.repository = repository
        self.events = events
        self.locks = locks if locks is not None else sync_locks

    async def execute(
        self,
        office_id: OfficeId,
        options: Optional[SyncOptions] = None
    ) -> SyncResultDto:
        """
        Sync every lookup list for an office. Options are accepted for
        symmetry with entity syncs; lists are always fetched in full.

        Raises:
            SyncAlreadyRunningError: If reference data is already syncing for this office
        """
        async with self.locks.hold(office_id, self.entity_type):
            return await self._run(office_id)

    async def _run(self, office_id: OfficeId) -> SyncResultDto:
        started = time.monotonic()
        result = SyncResultDto(entity_type=self.entity_type, office_id=office_id)
        list_errors: List[SyncErrorDto] = []
        record_errors: List[SyncErrorDto] = []

        logger.info(f"Starting reference data sync for office {office_id}")
        await self._publish(SyncStartedEvent(office_id, self.entity_type, SyncMode.FULL))

        for kind in ReferenceKind:
            try:
                rows = await self.api_client.get_reference_data(office_id, kind)
            except Exception as e:
                list_errors.append(SyncErrorDto(external_id=0, error=f"{kind.value}: {str(e)}"))
                logger.error(f"Failed to fetch {kind.value} for office {office_id}: {str(e)}")
                continue

            items = self._parse(office_id, kind, rows, result, record_errors)
            try:
                result.records_synced += await self.repository.upsert_many(office_id, kind, items)
            except Exception as e:
                list_errors.append(SyncErrorDto(external_id=0, error=f"{kind.value}: {str(e)}"))
                logger.error(f"Failed to store {kind.value} for office {office_id}: {str(e)}")
                continue

            logger.debug(f"Synced {len(items)} {kind.value} for office {office_id}")

        result.duration_ms = int((time.monotonic() - started) * 1000)
        result.errors = (list_errors + record_errors) or None

        if list_errors:
            result.success = False
            message = "; ".join(err.error for err in list_errors)
            logger.error(f"Reference data sync failed for office {office_id}: {message}")
            await self._publish(SyncFailedEvent(
                office_id, self.entity_type, message, result.records_synced
            ))
            return result

        result.success = True
        logger.info(
            f"Finished reference data sync for office {office_id}: "
            f"{result.records_synced} synced, {result.records_failed} failed in {result.duration_ms}ms"
        )
        await self._publish(SyncCompletedEvent(
            office_id, self.entity_type, result.records_synced, result.duration_ms
        ))
        return result

    def _parse(
        self,
        office_id: OfficeId,
        kind: ReferenceKind,
        rows: List,
        result: SyncResultDto,
        errors: List[SyncErrorDto]
    ) -> List[ReferenceItem]:
        items = []
        for raw in rows:
            try:
                record = LegacyReferenceRecord.model_validate(raw)
            except Exception as e:
                external_id = LegacyPage.raw_external_id(raw)
                result.records_failed += 1
                errors.append(SyncErrorDto(external_id=external_id, error=str(e)))
                logger.warning(
                    f"Skipping {kind.value} row {external_id} for office {office_id}: {str(e)}"
                )
                continue
            items.append(record.to_item(office_id, kind))
        return items

    async def _publish(self, event: DomainEvent) -> None:
        try:
            await self.events.emit(event)
        except Exception as e:
            logger.error(
                f"Failed to publish {event.event_type} for office {event.office_id}: {str(e)}"
            )
