"""Tests for the audit log consumer."""
import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest

from casework_sync.application.services.sync_audit import SyncAuditConsumer
from casework_sync.application.services.sync_cases import SyncCases
from casework_sync.domain.events import (
    EntityUpdatedEvent,
    SyncFailedEvent,
    SyncStartedEvent,
)
from casework_sync.domain.exceptions import LegacyApiError
from casework_sync.domain.models.sync_audit_entry import AuditOperation
from casework_sync.domain.models.sync_status import EntityType, SyncMode
from casework_sync.domain.models.value_objects import ExternalId

from conftest import ScriptedLegacyApi, case_page, case_record


class TestSyncAuditConsumer:

    @pytest.mark.asyncio
    async def test_records_creates_and_updates_of_a_run(self, office_a, entity_repo, audit_repo, bus, locks):
        queue = bus.subscribe()
        consumer = SyncAuditConsumer(audit_repo)
        sync = SyncCases(ScriptedLegacyApi({office_a: [[case_record(1)]]}), entity_repo, bus, locks=locks)

        await sync.execute(office_a)
        await sync.execute(office_a)
        written = await consumer.drain(queue)

        assert written == 2
        create, update = audit_repo.entries
        assert create.operation == AuditOperation.CREATE
        assert create.external_id == 1
        assert create.entity_id == entity_repo.saved[0].id
        assert update.operation == AuditOperation.UPDATE
        assert update.conflict_resolution == "legacy_wins"
        assert update.new_data == {"changed_fields": []}

    @pytest.mark.asyncio
    async def test_records_failed_run(self, office_a, entity_repo, audit_repo, bus, locks):
        queue = bus.subscribe()
        api = ScriptedLegacyApi({office_a: [LegacyApiError("legacy down", 503)]})

        await SyncCases(api, entity_repo, bus, locks=locks).execute(office_a)
        await SyncAuditConsumer(audit_repo).drain(queue)

        assert len(audit_repo.entries) == 1
        entry = audit_repo.entries[0]
        assert entry.operation == AuditOperation.SYNC_FAILED
        assert entry.error_message == "legacy down"
        assert entry.entity_type == EntityType.CASES

    def test_progress_events_are_not_audited(self, office_a):
        event = SyncStartedEvent(office_a, EntityType.CASES, SyncMode.FULL)
        assert SyncAuditConsumer.to_entry(event) is None

    @pytest.mark.asyncio
    async def test_repository_failure_is_contained(self, office_a):
        audit_repo = AsyncMock()
        audit_repo.add.side_effect = RuntimeError("db gone")
        consumer = SyncAuditConsumer(audit_repo)
        event = EntityUpdatedEvent(
            office_a, EntityType.CASES,
            internal_id=uuid.uuid4(),
            external_id=ExternalId.from_trusted(4),
            changed_fields=["summary"]
        )

        assert await consumer.handle(event) is None
        audit_repo.add.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_entry_lists_changed_fields(self, office_a, audit_repo):
        event = EntityUpdatedEvent(
            office_a, EntityType.EMAILS,
            internal_id=uuid.uuid4(),
            external_id=ExternalId.from_trusted(4),
            changed_fields=["subject", "actioned"]
        )

        entry = await SyncAuditConsumer(audit_repo).handle(event)

        assert entry.new_data == {"changed_fields": ["subject", "actioned"]}
        assert entry.created_at == event.occurred_at

    @pytest.mark.asyncio
    async def test_failed_event_entry_has_no_entity(self, office_a, audit_repo):
        event = SyncFailedEvent(office_a, EntityType.CASES, error="boom", records_synced=0)

        entry = await SyncAuditConsumer(audit_repo).handle(event)

        assert entry.entity_id is None
        assert entry.external_id is None

    @pytest.mark.asyncio
    async def test_running_writes_entries_while_the_run_progresses(
        self, office_a, entity_repo, audit_repo, bus, locks
    ):
        seen_before_page_two = []

        class PagingApi(ScriptedLegacyApi):
            async def search_cases(self, office_id, params):
                for _ in range(3):
                    await asyncio.sleep(0)
                if params.page_no == 2:
                    seen_before_page_two.append(len(audit_repo.entries))
                return await super().search_cases(office_id, params)

        queue = bus.subscribe()
        consumer = SyncAuditConsumer(audit_repo)
        api = PagingApi({office_a: [case_page(1, 100), [case_record(101)]]})

        async with consumer.running(queue):
            result = await SyncCases(api, entity_repo, bus, locks=locks, batch_size=100).execute(office_a)

        assert result.records_synced == 101
        assert seen_before_page_two == [100]
        assert len(audit_repo.entries) == 101
        assert consumer.written == 101
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_running_stops_consumer_when_block_raises(self, office_a, audit_repo, bus):
        queue = bus.subscribe()
        consumer = SyncAuditConsumer(audit_repo)
        event = SyncFailedEvent(office_a, EntityType.CASES, error="boom", records_synced=0)

        with pytest.raises(RuntimeError):
            async with consumer.running(queue):
                await bus.emit(event)
                raise RuntimeError("worker shutting down")

        assert [entry.error_message for entry in audit_repo.entries] == ["boom"]
