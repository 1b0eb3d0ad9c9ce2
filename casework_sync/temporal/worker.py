"""Temporal worker - executes workflows and activities."""
import asyncio
import logging

from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.worker import Worker

from casework_sync.core.config import settings
from casework_sync.core.database import SessionLocal
from casework_sync.domain.models.legacy_credentials import office_workflow_id
from casework_sync.infrastructure.db.repositories.credentials_repository import (
    SQLAlchemyLegacyCredentialsRepository
)
from casework_sync.temporal.activities import run_office_sync
from casework_sync.temporal.workflows import OfficeSyncWorkflow

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def ensure_office_workflows(client: Client) -> int:
    """
    Start a sync workflow for every office with legacy credentials.

    Offices whose workflow is already running are left alone.

    Returns:
        Number of workflows started
    """
    async with SessionLocal() as db:
        offices = await SQLAlchemyLegacyCredentialsRepository(db).list_offices()

    started = 0
    for office_id in offices:
        workflow_id = office_workflow_id(office_id)
        try:
            await client.start_workflow(
                OfficeSyncWorkflow.run,
                args=[str(office_id), settings.sync_interval_minutes, None, "incremental"],
                id=workflow_id,
                task_queue=settings.temporal_task_queue
            )
            started += 1
            logger.info(f"Started sync workflow {workflow_id}")
        except WorkflowAlreadyStartedError:
            logger.info(f"Workflow {workflow_id} already running")
    return started


async def main():
    """Run Temporal worker."""
    logger.info(f"Connecting to Temporal server at {settings.temporal_host}")

    # Connect to Temporal server
    client = await Client.connect(
        settings.temporal_host,
        namespace=settings.temporal_namespace
    )

    logger.info(f"Starting worker on task queue: {settings.temporal_task_queue}")

    # Create worker
    worker = Worker(
        client,
        task_queue=settings.temporal_task_queue,
        workflows=[OfficeSyncWorkflow],
        activities=[run_office_sync]
    )

    started = await ensure_office_workflows(client)
    logger.info(f"Started {started} office sync workflows")

    # Run worker
    logger.info("Worker started, waiting for tasks...")
    await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
