"""Shared sync loop for entities mirrored from the legacy system."""
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Generic, List, Optional, Type, TypeVar

from casework_sync.application.dtos import SyncErrorDto, SyncOptions, SyncResultDto
from casework_sync.application.services.sync_lock import SyncLockRegistry, sync_locks
from casework_sync.core.config import settings
from casework_sync.domain.events import (
    DomainEvent,
    EntityCreatedEvent,
    EntityUpdatedEvent,
    SyncCompletedEvent,
    SyncFailedEvent,
    SyncStartedEvent,
)
from casework_sync.domain.exceptions import PaginationLimitExceeded
from casework_sync.domain.models.legacy_entity import LegacyEntity, utc_now
from casework_sync.domain.models.legacy_records import LegacyPage
from casework_sync.domain.models.sync_status import EntityType, SyncMode
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.entity_repo import LegacyEntityRepository
from casework_sync.domain.ports.event_publisher import EventPublisher
from casework_sync.domain.ports.legacy_api import LegacyApiClient

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=LegacyEntity)

# Full syncs reach back to here; nothing in the legacy system predates it
EPOCH_FLOOR = datetime(2000, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class SyncWindow:
    """Date window of one run. Full runs filter on creation, incremental on modification."""
    mode: SyncMode
    start: datetime
    end: datetime

    @property
    def by_creation(self) -> bool:
        return self.mode == SyncMode.FULL


class LegacyEntitySync(ABC, Generic[E]):
    """
    Application service syncing one entity type from legacy for one office.

    Responsibilities:
    - Pick the date window (full or incremental)
    - Page through the legacy search until a short page, the reported
      total, or the page cap
    - Create or update the shadow entity per record ("legacy wins")
    - Contain per-record failures and keep going
    - Emit progress events and summarize the run

    Subclasses only say how to fetch one page.
    """

    entity_type: ClassVar[EntityType]
    entity_class: ClassVar[Type[LegacyEntity]]

    def __init__(
        self,
        api_client: LegacyApiClient,
        repository: LegacyEntityRepository[E],
        events: EventPublisher,
        locks: Optional[SyncLockRegistry] = None,
        batch_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        incremental_window_hours: Optional[int] = None
    ):
        """
        Initialize service with collaborators.

        Args:
            api_client: Legacy API client
            repository: Shadow repository for the entity type
            events: Event publisher
            locks: Run exclusion registry, defaults to the process-wide one
            batch_size: Records per page, defaults to settings
            max_pages: Page cap per run, defaults to settings
            incremental_window_hours: Default incremental look-back, defaults to settings
        """
        self.api_client = api_client
        self.repository = repository
        self.events = events
        self.locks = locks if locks is not None else sync_locks
        self.batch_size = batch_size or settings.sync_batch_size
        self.max_pages = max_pages or settings.sync_max_pages
        self.incremental_window_hours = (
            incremental_window_hours or settings.sync_incremental_window_hours
        )

    async def execute(
        self,
        office_id: OfficeId,
        options: Optional[SyncOptions] = None
    ) -> SyncResultDto:
        """
        Run one sync for an office.

        Args:
            office_id: Office to sync
            options: Run options, incremental from the default window if omitted

        Returns:
            Run summary; success is False when paging failed

        Raises:
            SyncAlreadyRunningError: If this office and entity type is already syncing
        """
        options = options or SyncOptions()
        async with self.locks.hold(office_id, self.entity_type):
            return await self._run(office_id, options)

    def build_window(self, options: SyncOptions, now: datetime) -> SyncWindow:
        if options.full:
            return SyncWindow(SyncMode.FULL, EPOCH_FLOOR, now)
        since = options.modified_since or now - timedelta(hours=self.incremental_window_hours)
        return SyncWindow(SyncMode.INCREMENTAL, since, now)

    @abstractmethod
    async def fetch_page(
        self,
        office_id: OfficeId,
        window: SyncWindow,
        page_no: int
    ) -> LegacyPage:
        """
        Fetch one page of legacy records.

        Args:
            office_id: Office to query
            window: Date window of the run
            page_no: 1-based page number

        Returns:
            Page of raw records
        """
        pass

    async def _run(self, office_id: OfficeId, options: SyncOptions) -> SyncResultDto:
        started = time.monotonic()
        window = self.build_window(options, utc_now())
        result = SyncResultDto(entity_type=self.entity_type, office_id=office_id)
        errors: List[SyncErrorDto] = []
        page_no: Optional[int] = None

        logger.info(
            f"Starting {window.mode.value} sync of {self.entity_type.value} for office {office_id} "
            f"from {window.start.isoformat()} (cursor {options.cursor or 1})"
        )
        await self._publish(SyncStartedEvent(office_id, self.entity_type, window.mode))

        pages_fetched = 0
        try:
            page_no = self._start_page(options.cursor)
            while True:
                page = await self.fetch_page(office_id, window, page_no)
                pages_fetched += 1

                for raw in page.results:
                    await self._reconcile(office_id, page, raw, result, errors)

                logger.debug(
                    f"Processed page {page_no} of {self.entity_type.value}: {len(page)} records"
                )

                if not self._has_more(page, page_no):
                    break
                if pages_fetched >= self.max_pages:
                    raise PaginationLimitExceeded(self.max_pages)
                page_no += 1

        except Exception as e:
            result.duration_ms = self._elapsed_ms(started)
            result.success = False
            result.errors = [SyncErrorDto(external_id=0, error=str(e))]
            result.next_cursor = str(page_no) if page_no is not None else None
            logger.error(
                f"Sync of {self.entity_type.value} failed for office {office_id} "
                f"at page {page_no}: {str(e)}"
            )
            await self._publish(SyncFailedEvent(
                office_id, self.entity_type, str(e), result.records_synced
            ))
            return result

        result.duration_ms = self._elapsed_ms(started)
        result.success = True
        result.errors = errors or None
        logger.info(
            f"Finished sync of {self.entity_type.value} for office {office_id}: "
            f"{result.records_created} created, {result.records_updated} updated, "
            f"{result.records_failed} failed in {result.duration_ms}ms"
        )
        await self._publish(SyncCompletedEvent(
            office_id, self.entity_type, result.records_synced, result.duration_ms
        ))
        return result

    async def _reconcile(
        self,
        office_id: OfficeId,
        page: LegacyPage,
        raw: Any,
        result: SyncResultDto,
        errors: List[SyncErrorDto]
    ) -> None:
        external_id = 0
        try:
            external_id = page.raw_external_id(raw)
            record = page.parse(raw)
            fields = record.to_fields()
            existing = await self.repository.find_by_external_id(office_id, record.external_id)

            if existing is not None:
                updated = existing.update_from_legacy(fields)
                saved = await self.repository.save(updated)
                event = EntityUpdatedEvent(
                    office_id,
                    self.entity_type,
                    internal_id=saved.id,
                    external_id=record.external_id,
                    changed_fields=existing.changed_fields(updated)
                )
            else:
                entity = self.entity_class.from_legacy(office_id, record.external_id, fields)
                saved = await self.repository.save(entity)
                event = EntityCreatedEvent(
                    office_id,
                    self.entity_type,
                    internal_id=saved.id,
                    external_id=record.external_id
                )

        except Exception as e:
            result.records_failed += 1
            errors.append(SyncErrorDto(external_id=external_id, error=str(e)))
            logger.warning(
                f"Failed to sync {self.entity_type.value} record {external_id} "
                f"for office {office_id}: {str(e)}"
            )
            return

        if existing is not None:
            result.records_updated += 1
        else:
            result.records_created += 1
        result.records_synced += 1
        await self._publish(event)

    async def _publish(self, event: DomainEvent) -> None:
        # Publishing failures never fail the record or the run
        try:
            await self.events.emit(event)
        except Exception as e:
            logger.error(
                f"Failed to publish {event.event_type} for office {event.office_id}: {str(e)}"
            )

    def _has_more(self, page: LegacyPage, page_no: int) -> bool:
        if len(page) < self.batch_size:
            return False
        if page.total is not None and (page_no - 1) * self.batch_size + len(page) >= page.total:
            return False
        return True

    @staticmethod
    def _start_page(cursor: Optional[str]) -> int:
        if not cursor:
            return 1
        page_no = int(cursor)
        if page_no < 1:
            raise ValueError(f"Invalid sync cursor: {cursor!r}")
        return page_no

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
