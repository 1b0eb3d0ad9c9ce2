"""Per office and entity type exclusion for sync runs."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Tuple

from casework_sync.domain.exceptions import SyncAlreadyRunningError
from casework_sync.domain.models.sync_status import EntityType
from casework_sync.domain.models.value_objects import OfficeId


class SyncLockRegistry:
    """
    In-process registry of running syncs.

    A second run for the same (office, entity type) fails fast instead of
    waiting. Runs for different keys never block each other.
    """

    def __init__(self):
        self._locks: Dict[Tuple[OfficeId, EntityType], asyncio.Lock] = {}

    def is_running(self, office_id: OfficeId, entity_type: EntityType) -> bool:
        lock = self._locks.get((office_id, entity_type))
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, office_id: OfficeId, entity_type: EntityType) -> AsyncIterator[None]:
        """
        Hold the lock for one run.

        Raises:
            SyncAlreadyRunningError: If the key is already held
        """
        lock = self._locks.setdefault((office_id, entity_type), asyncio.Lock())
        if lock.locked():
            raise SyncAlreadyRunningError(office_id, entity_type)
        async with lock:
            yield


sync_locks = SyncLockRegistry()
