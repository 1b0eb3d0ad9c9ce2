"""Run office sync application service."""
import logging
from typing import Dict, List, Optional, Union

from casework_sync.application.dtos import SyncErrorDto, SyncOptions, SyncResultDto
from casework_sync.application.services.sync_legacy_entities import LegacyEntitySync
from casework_sync.application.services.sync_reference_data import SyncReferenceData
from casework_sync.domain.exceptions import SyncAlreadyRunningError
from casework_sync.domain.models.sync_status import EntityType, SyncMode, SyncStatus
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.domain.ports.sync_status_repo import SyncStatusRepository

logger = logging.getLogger(__name__)

SyncUseCase = Union[LegacyEntitySync, SyncReferenceData]


class RunOfficeSyncService:
    """
    High-level orchestration service for syncing one office.

    Responsibilities:
    - Run the requested entity types in dependency order
    - Derive each run's options from its recorded status
    - Record status before and after each run
    - Keep one entity type's failure from stopping the others
    """

    # Lookup lists first, then constituents, so cases and emails can reference them
    ENTITY_ORDER = [
        EntityType.REFERENCE_DATA,
        EntityType.CONSTITUENTS,
        EntityType.CASES,
        EntityType.EMAILS,
    ]

    def __init__(
        self,
        status_repo: SyncStatusRepository,
        use_cases: Dict[EntityType, SyncUseCase]
    ):
        """
        Initialize service.

        Args:
            status_repo: Sync status repository
            use_cases: Sync use case per entity type
        """
        self.status_repo = status_repo
        self.use_cases = use_cases

    async def run_sync(
        self,
        office_id: OfficeId,
        entity_types: Optional[List[EntityType]] = None,
        mode: SyncMode = SyncMode.INCREMENTAL
    ) -> dict:
        """
        Run sync for an office.

        Args:
            office_id: Office to sync
            entity_types: Entity types to sync, all when omitted
            mode: Full or incremental

        Returns:
            Result per entity type value
        """
        requested = set(entity_types or self.ENTITY_ORDER)
        ordered = [t for t in self.ENTITY_ORDER if t in requested]
        logger.info(
            f"Running {mode.value} sync for office {office_id}: "
            f"{[t.value for t in ordered]}"
        )

        results = {}
        for entity_type in ordered:
            use_case = self.use_cases[entity_type]
            if use_case.locks.is_running(office_id, entity_type):
                logger.info(f"Skipping {entity_type.value} for office {office_id}: already running")
                results[entity_type.value] = {"status": "skipped"}
                continue

            try:
                results[entity_type.value] = await self._sync_entity_type(
                    office_id, entity_type, use_case, mode
                )
            except SyncAlreadyRunningError:
                logger.info(f"Skipping {entity_type.value} for office {office_id}: already running")
                results[entity_type.value] = {"status": "skipped"}
            except Exception as e:
                logger.error(f"Failed to sync {entity_type.value} for office {office_id}: {str(e)}")
                results[entity_type.value] = {"status": "error", "error": str(e)}

        return results

    async def _sync_entity_type(
        self,
        office_id: OfficeId,
        entity_type: EntityType,
        use_case: SyncUseCase,
        mode: SyncMode
    ) -> dict:
        status = await self.status_repo.find(office_id, entity_type)
        if status is None:
            status = SyncStatus(office_id=office_id, entity_type=entity_type)

        options = self.options_for(status, mode)
        status.mark_started(resuming=options.cursor is not None)
        status = await self.status_repo.save(status)

        try:
            result = await use_case.execute(office_id, options)
        except SyncAlreadyRunningError:
            raise
        except Exception as e:
            # Never leave the status RUNNING
            status.mark_failed(
                SyncResultDto(
                    entity_type=entity_type,
                    office_id=office_id,
                    errors=[SyncErrorDto(external_id=0, error=str(e))]
                ),
                resumable=False
            )
            await self.status_repo.save(status)
            raise

        if result.success:
            status.mark_completed(result)
        else:
            status.mark_failed(result, resumable=options.full)
        await self.status_repo.save(status)

        return {"status": "success" if result.success else "failed", **result.to_dict()}

    @staticmethod
    def options_for(status: SyncStatus, mode: SyncMode) -> SyncOptions:
        """
        Build run options from the recorded status.

        A failed full run resumes from the page it stopped at. Incremental
        runs always start from page 1 because their window moves.

        Args:
            status: Current status for the office and entity type
            mode: Requested mode

        Returns:
            Options for the next run
        """
        if mode == SyncMode.FULL:
            return SyncOptions(full=True, cursor=status.last_sync_cursor)
        return SyncOptions(modified_since=status.incremental_since())
