"""Tests for SyncStatus transitions and office workflow ids."""
from datetime import timedelta

from casework_sync.application.dtos import SyncErrorDto, SyncResultDto
from casework_sync.domain.models.legacy_credentials import office_workflow_id
from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.sync_status import EntityType, SyncState, SyncStatus

from conftest import OFFICE_A


def _result(office, success, **kwargs) -> SyncResultDto:
    return SyncResultDto(entity_type=EntityType.CASES, office_id=office, success=success, **kwargs)


class TestSyncStatus:

    def test_completed_run(self, office_a):
        status = SyncStatus(office_a, EntityType.CASES)
        status.mark_started()
        assert status.is_running()

        status.mark_completed(_result(office_a, True, records_synced=10, records_failed=1))

        assert status.state == SyncState.SUCCESS
        assert status.last_sync_success is True
        assert status.records_synced == 10
        assert status.records_failed == 1
        assert status.last_sync_cursor is None
        assert not status.is_running()
        assert status.incremental_since() == status.last_sync_started_at

    def test_failed_run_keeps_cursor_and_previous_completion(self, office_a):
        status = SyncStatus(office_a, EntityType.CASES)
        status.mark_started()
        status.mark_completed(_result(office_a, True))
        completed_at = status.last_sync_completed_at
        first_run_started_at = status.run_started_at

        status.mark_started()
        status.mark_failed(_result(
            office_a, False,
            errors=[SyncErrorDto(external_id=0, error="timeout")],
            next_cursor="4"
        ))

        assert status.state == SyncState.FAILURE
        assert status.last_sync_error == "timeout"
        assert status.last_sync_cursor == "4"
        assert status.last_sync_completed_at == completed_at
        assert status.incremental_since() == first_run_started_at

    def test_resumed_attempt_keeps_first_start(self, office_a):
        status = SyncStatus(office_a, EntityType.CASES)
        status.mark_started()
        status.run_started_at = first_start = utc_now() - timedelta(hours=1)
        status.mark_failed(_result(office_a, False, next_cursor="3"))

        status.mark_started(resuming=True)
        status.mark_completed(_result(office_a, True))

        assert status.run_started_at == first_start
        assert status.last_sync_started_at > first_start
        assert status.incremental_since() == first_start

    def test_fresh_attempt_resets_run_start(self, office_a):
        status = SyncStatus(office_a, EntityType.CASES)
        status.mark_started()
        status.run_started_at = utc_now() - timedelta(days=1)

        status.mark_started()

        assert status.run_started_at == status.last_sync_started_at

    def test_non_resumable_failure_drops_cursor(self, office_a):
        status = SyncStatus(office_a, EntityType.CASES)
        status.mark_failed(_result(office_a, False, next_cursor="4"), resumable=False)
        assert status.last_sync_cursor is None

    def test_never_synced_has_no_incremental_start(self, office_a):
        assert SyncStatus(office_a, EntityType.CASES).incremental_since() is None

    def test_stale_run_is_not_running(self, office_a):
        status = SyncStatus(office_a, EntityType.CASES)
        status.mark_started()
        status.last_sync_started_at = utc_now() - timedelta(hours=2)
        assert not status.is_running()


def test_office_workflow_id(office_a):
    assert office_workflow_id(office_a) == f"office-sync-{OFFICE_A}"
