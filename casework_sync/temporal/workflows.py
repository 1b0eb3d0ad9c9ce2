"""Temporal workflows - orchestration only, no business logic."""
import asyncio
from datetime import timedelta
from typing import List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from casework_sync.temporal.activities import run_office_sync


@workflow.defn
class OfficeSyncWorkflow:
    """
    Temporal workflow for continuous legacy sync of one office.

    One workflow instance per office (id office-sync-<office_id>).

    Responsibilities:
    - Run one sync cycle via activity
    - Sleep between cycles, waking early when trigger_sync is signalled
    - Use continue_as_new() to avoid history bloat

    NO business logic, NO DB access, NO HTTP calls.
    """

    def __init__(self) -> None:
        self._pending: Optional[dict] = None

    @workflow.signal
    def trigger_sync(self, entity_types: Optional[List[str]], sync_type: str) -> None:
        """Request an immediate cycle."""
        self._pending = {"entity_types": entity_types, "sync_type": sync_type}

    @workflow.run
    async def run(
        self,
        office_id: str,
        sync_interval_minutes: int = 5,
        entity_types: Optional[List[str]] = None,
        sync_type: str = "incremental"
    ) -> None:
        """
        Run continuous sync workflow.

        Args:
            office_id: Office to sync
            sync_interval_minutes: Minutes between sync cycles
            entity_types: Entity types for this cycle, all when None
            sync_type: "full" or "incremental" for this cycle
        """
        workflow.logger.info(f"Starting {sync_type} sync cycle for office {office_id}")

        try:
            results = await workflow.execute_activity(
                run_office_sync,
                args=[office_id, entity_types, sync_type],
                start_to_close_timeout=timedelta(minutes=30),
                retry_policy=RetryPolicy(
                    initial_interval=timedelta(seconds=1),
                    maximum_interval=timedelta(minutes=5),
                    maximum_attempts=3,
                    backoff_coefficient=2.0
                )
            )
            workflow.logger.info(f"Sync completed: {results}")

        except Exception as e:
            workflow.logger.error(f"Sync failed: {str(e)}")

        # Sleep until the next cycle unless a trigger arrives first
        if self._pending is None:
            try:
                await workflow.wait_condition(
                    lambda: self._pending is not None,
                    timeout=timedelta(minutes=sync_interval_minutes)
                )
            except asyncio.TimeoutError:
                workflow.logger.debug(f"Sync interval elapsed for office {office_id}")

        next_cycle = self._pending or {"entity_types": None, "sync_type": "incremental"}

        # Continue as new to avoid history bloat
        workflow.continue_as_new(
            args=[
                office_id,
                sync_interval_minutes,
                next_cycle["entity_types"],
                next_cycle["sync_type"]
            ]
        )
