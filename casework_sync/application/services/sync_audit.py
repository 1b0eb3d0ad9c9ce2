"""Audit log consumer - writes sync decisions to the audit log."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from casework_sync.domain.events import (
    DomainEvent,
    EntityCreatedEvent,
    EntityUpdatedEvent,
    SyncFailedEvent,
)
from casework_sync.domain.models.sync_audit_entry import AuditOperation, SyncAuditEntry
from casework_sync.domain.ports.audit_log_repo import SyncAuditLogRepository

logger = logging.getLogger(__name__)

LEGACY_WINS = "legacy_wins"


class SyncAuditConsumer:
    """
    Event bus subscriber recording creates, updates and failed runs.

    A failure to write one entry is logged and never reaches the sync run.
    """

    def __init__(self, audit_repo: SyncAuditLogRepository):
        self.audit_repo = audit_repo
        self.written = 0

    @staticmethod
    def to_entry(event: DomainEvent) -> Optional[SyncAuditEntry]:
        """
        Map an event to its audit entry.

        Returns:
            Entry to write, or None for events that are not audited
        """
        if isinstance(event, EntityCreatedEvent):
            return SyncAuditEntry(
                office_id=event.office_id,
                entity_type=event.entity_type,
                operation=AuditOperation.CREATE,
                entity_id=event.internal_id,
                external_id=int(event.external_id),
                created_at=event.occurred_at
            )
        if isinstance(event, EntityUpdatedEvent):
            return SyncAuditEntry(
                office_id=event.office_id,
                entity_type=event.entity_type,
                operation=AuditOperation.UPDATE,
                entity_id=event.internal_id,
                external_id=int(event.external_id),
                new_data={"changed_fields": list(event.changed_fields)},
                conflict_resolution=LEGACY_WINS,
                created_at=event.occurred_at
            )
        if isinstance(event, SyncFailedEvent):
            return SyncAuditEntry(
                office_id=event.office_id,
                entity_type=event.entity_type,
                operation=AuditOperation.SYNC_FAILED,
                error_message=event.error,
                created_at=event.occurred_at
            )
        return None

    async def handle(self, event: DomainEvent) -> Optional[SyncAuditEntry]:
        entry = self.to_entry(event)
        if entry is None:
            return None
        try:
            saved = await self.audit_repo.add(entry)
        except Exception as e:
            logger.error(
                f"Failed to write audit entry for {event.event_type} "
                f"(office {event.office_id}): {str(e)}"
            )
            return None
        self.written += 1
        return saved

    async def drain(self, queue: asyncio.Queue) -> int:
        """
        Handle every event currently queued.

        Args:
            queue: Subscriber queue from EventBus.subscribe

        Returns:
            Number of audit entries written
        """
        written = 0
        while not queue.empty():
            event = queue.get_nowait()
            if await self.handle(event) is not None:
                written += 1
            queue.task_done()
        return written

    async def consume(self, queue: asyncio.Queue) -> None:
        """Handle events until cancelled."""
        while True:
            event = await queue.get()
            try:
                await self.handle(event)
            finally:
                queue.task_done()

    @asynccontextmanager
    async def running(self, queue: asyncio.Queue) -> AsyncIterator[None]:
        """
        Consume events in a background task while the block runs.

        On exit, waits for queued events to be written, then stops the task.
        """
        task = asyncio.create_task(self.consume(queue))
        try:
            yield
        finally:
            if not task.done():
                await queue.join()
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
