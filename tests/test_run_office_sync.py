"""Tests for the office sync orchestration."""
import pytest

from casework_sync.application.dtos import SyncResultDto
from casework_sync.application.services.run_office_sync import RunOfficeSyncService
from casework_sync.application.services.sync_cases import SyncCases
from casework_sync.application.services.sync_constituents import SyncConstituents
from casework_sync.application.services.sync_emails import SyncEmails
from casework_sync.application.services.sync_reference_data import SyncReferenceData
from casework_sync.domain.exceptions import LegacyApiError
from casework_sync.domain.models.sync_status import EntityType, SyncMode, SyncState, SyncStatus

from conftest import (
    InMemoryEntityRepository,
    InMemoryReferenceDataRepository,
    InMemorySyncStatusRepository,
    ScriptedLegacyApi,
)


def _service(api, status_repo, bus, locks) -> RunOfficeSyncService:
    use_cases = {
        EntityType.REFERENCE_DATA: SyncReferenceData(
            api, InMemoryReferenceDataRepository(), bus, locks=locks
        ),
        EntityType.CONSTITUENTS: SyncConstituents(api, InMemoryEntityRepository(), bus, locks=locks),
        EntityType.CASES: SyncCases(api, InMemoryEntityRepository(), bus, locks=locks),
        EntityType.EMAILS: SyncEmails(api, InMemoryEntityRepository(), bus, locks=locks),
    }
    return RunOfficeSyncService(status_repo, use_cases)


class TestRunOfficeSync:

    @pytest.mark.asyncio
    async def test_runs_entity_types_in_dependency_order(self, office_a, status_repo, bus, locks):
        api = ScriptedLegacyApi({office_a: [[{"id": 1}]]})

        results = await _service(api, status_repo, bus, locks).run_sync(
            office_a, [EntityType.EMAILS, EntityType.CASES, EntityType.CONSTITUENTS]
        )

        assert [kind for kind, _, _ in api.calls] == ["constituents", "cases", "emails"]
        assert list(results) == ["constituents", "cases", "emails"]
        assert all(r["status"] == "success" for r in results.values())
        assert results["cases"]["recordsCreated"] == 1

    @pytest.mark.asyncio
    async def test_runs_only_requested_types(self, office_a, status_repo, bus, locks):
        api = ScriptedLegacyApi()

        results = await _service(api, status_repo, bus, locks).run_sync(office_a, [EntityType.CASES])

        assert list(results) == ["cases"]
        assert [kind for kind, _, _ in api.calls] == ["cases"]

    @pytest.mark.asyncio
    async def test_records_status_before_and_after_run(self, office_a, status_repo, bus, locks):
        api = ScriptedLegacyApi({office_a: [[{"id": 1}, {"id": 2}]]})

        await _service(api, status_repo, bus, locks).run_sync(office_a, [EntityType.CASES])

        assert status_repo.saves == [
            (EntityType.CASES, SyncState.RUNNING),
            (EntityType.CASES, SyncState.SUCCESS),
        ]
        status = await status_repo.find(office_a, EntityType.CASES)
        assert status.records_synced == 2
        assert status.last_sync_success is True

    @pytest.mark.asyncio
    async def test_failed_type_does_not_stop_the_others(self, office_a, status_repo, bus, locks):
        class FailingCases(ScriptedLegacyApi):
            async def search_cases(self, office_id, params):
                raise LegacyApiError("cases endpoint down", 500)

        api = FailingCases({office_a: [[{"id": 1}]]})

        results = await _service(api, status_repo, bus, locks).run_sync(office_a)

        assert results["cases"]["status"] == "failed"
        assert results["cases"]["errors"] == [{"externalId": 0, "error": "cases endpoint down"}]
        assert results["constituents"]["status"] == "success"
        assert results["emails"]["status"] == "success"
        status = await status_repo.find(office_a, EntityType.CASES)
        assert status.state == SyncState.FAILURE
        assert status.last_sync_error == "cases endpoint down"

    @pytest.mark.asyncio
    async def test_failed_incremental_run_is_not_resumable(self, office_a, status_repo, bus, locks):
        api = ScriptedLegacyApi({office_a: [LegacyApiError("boom")]})

        await _service(api, status_repo, bus, locks).run_sync(office_a, [EntityType.CASES])

        status = await status_repo.find(office_a, EntityType.CASES)
        assert status.last_sync_cursor is None

    @pytest.mark.asyncio
    async def test_failed_full_run_resumes_from_failed_page(self, office_a, status_repo, bus, locks):
        full_page = [{"id": i} for i in range(1, 101)]
        api = ScriptedLegacyApi({office_a: [full_page, LegacyApiError("timeout")]})
        service = _service(api, status_repo, bus, locks)

        await service.run_sync(office_a, [EntityType.CASES], SyncMode.FULL)
        status = await status_repo.find(office_a, EntityType.CASES)
        assert status.last_sync_cursor == "2"

        api.pages[office_a][1] = [{"id": 101}]
        api.calls.clear()
        results = await service.run_sync(office_a, [EntityType.CASES], SyncMode.FULL)

        assert results["cases"]["status"] == "success"
        assert [params.page_no for _, _, params in api.calls] == [2]
        status = await status_repo.find(office_a, EntityType.CASES)
        assert status.last_sync_cursor is None

    @pytest.mark.asyncio
    async def test_incremental_window_starts_at_last_successful_run(self, office_a, status_repo, bus, locks):
        previous = SyncStatus(office_a, EntityType.CASES)
        previous.mark_started()
        started_at = previous.last_sync_started_at
        previous.mark_completed(SyncResultDto(EntityType.CASES, office_a, success=True))
        await status_repo.save(previous)
        api = ScriptedLegacyApi()

        await _service(api, status_repo, bus, locks).run_sync(office_a, [EntityType.CASES])

        _, _, params = api.calls[0]
        assert params.date_range.from_ == started_at

    @pytest.mark.asyncio
    async def test_incremental_after_resumed_full_run_starts_at_first_attempt(
        self, office_a, status_repo, bus, locks
    ):
        full_page = [{"id": i} for i in range(1, 101)]
        api = ScriptedLegacyApi({office_a: [full_page, LegacyApiError("timeout")]})
        service = _service(api, status_repo, bus, locks)

        await service.run_sync(office_a, [EntityType.CASES], SyncMode.FULL)
        first_start = (await status_repo.find(office_a, EntityType.CASES)).run_started_at

        api.pages[office_a][1] = [{"id": 101}]
        await service.run_sync(office_a, [EntityType.CASES], SyncMode.FULL)
        status = await status_repo.find(office_a, EntityType.CASES)
        assert status.state == SyncState.SUCCESS
        assert status.incremental_since() == first_start

        api.calls.clear()
        await service.run_sync(office_a, [EntityType.CASES])

        _, _, params = api.calls[0]
        assert params.date_range.from_ == first_start

    @pytest.mark.asyncio
    async def test_raising_use_case_leaves_status_failed(self, office_a, status_repo, bus, locks):
        class ExplodingCases(SyncCases):
            async def execute(self, office_id, options=None):
                raise RuntimeError("connection pool exhausted")

        service = _service(ScriptedLegacyApi(), status_repo, bus, locks)
        service.use_cases[EntityType.CASES] = ExplodingCases(
            ScriptedLegacyApi(), InMemoryEntityRepository(), bus, locks=locks
        )

        results = await service.run_sync(office_a, [EntityType.CASES])

        assert results["cases"] == {"status": "error", "error": "connection pool exhausted"}
        status = await status_repo.find(office_a, EntityType.CASES)
        assert status.state == SyncState.FAILURE
        assert status.last_sync_error == "connection pool exhausted"
        assert status.last_sync_cursor is None

    @pytest.mark.asyncio
    async def test_reference_data_runs_first(self, office_a, status_repo, bus, locks):
        api = ScriptedLegacyApi()

        results = await _service(api, status_repo, bus, locks).run_sync(office_a)

        assert list(results) == ["reference_data", "constituents", "cases", "emails"]
        assert api.calls[0][0] == "reference_data"
        status = await status_repo.find(office_a, EntityType.REFERENCE_DATA)
        assert status.state == SyncState.SUCCESS

    @pytest.mark.asyncio
    async def test_skips_type_already_running(self, office_a, status_repo, bus, locks):
        api = ScriptedLegacyApi()
        service = _service(api, status_repo, bus, locks)

        async with locks.hold(office_a, EntityType.CASES):
            results = await service.run_sync(office_a)

        assert results["cases"] == {"status": "skipped"}
        assert results["constituents"]["status"] == "success"
        assert "cases" not in [kind for kind, _, _ in api.calls]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported_per_type(self, office_a, bus, locks):
        class BrokenStatusRepository(InMemorySyncStatusRepository):
            async def find(self, office_id, entity_type):
                if entity_type == EntityType.CONSTITUENTS:
                    raise RuntimeError("status table missing")
                return await super().find(office_id, entity_type)

        results = await _service(ScriptedLegacyApi(), BrokenStatusRepository(), bus, locks).run_sync(office_a)

        assert results["constituents"] == {"status": "error", "error": "status table missing"}
        assert results["cases"]["status"] == "success"


class TestOptionsFor:

    def test_full_mode_carries_cursor(self, office_a):
        status = SyncStatus(office_a, EntityType.CASES, last_sync_cursor="7")
        options = RunOfficeSyncService.options_for(status, SyncMode.FULL)
        assert options.full is True
        assert options.cursor == "7"

    def test_incremental_mode_ignores_cursor(self, office_a):
        status = SyncStatus(office_a, EntityType.CASES, last_sync_cursor="7")
        options = RunOfficeSyncService.options_for(status, SyncMode.INCREMENTAL)
        assert options.full is False
        assert options.cursor is None
        assert options.modified_since is None
