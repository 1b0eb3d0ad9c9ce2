"""Temporal activities - idempotent, retriable operations."""
from typing import List, Optional

from temporalio import activity

from casework_sync.application.services.event_bus import EventBus
from casework_sync.application.services.run_office_sync import RunOfficeSyncService
from casework_sync.application.services.sync_audit import SyncAuditConsumer
from casework_sync.application.services.sync_cases import SyncCases
from casework_sync.application.services.sync_constituents import SyncConstituents
from casework_sync.application.services.sync_emails import SyncEmails
from casework_sync.application.services.sync_reference_data import SyncReferenceData
from casework_sync.core.database import SessionLocal
from casework_sync.domain.models.sync_status import EntityType, SyncMode
from casework_sync.domain.models.value_objects import OfficeId
from casework_sync.infrastructure.db.repositories.audit_log_repository import (
    SQLAlchemySyncAuditLogRepository
)
from casework_sync.infrastructure.db.repositories.credentials_repository import (
    SQLAlchemyLegacyCredentialsRepository
)
from casework_sync.infrastructure.db.repositories.entity_repositories import (
    SQLAlchemyCaseRepository,
    SQLAlchemyConstituentRepository,
    SQLAlchemyEmailRepository,
)
from casework_sync.infrastructure.db.repositories.reference_data_repository import (
    SQLAlchemyReferenceDataRepository
)
from casework_sync.infrastructure.db.repositories.sync_status_repository import (
    SQLAlchemySyncStatusRepository
)
from casework_sync.infrastructure.integrations.caseworker.client import CaseworkerAPIClient


@activity.defn
async def run_office_sync(
    office_id: str,
    entity_types: Optional[List[str]] = None,
    sync_type: str = "incremental"
) -> dict:
    """
    Activity to run one sync cycle for an office.

    This activity is idempotent and can be safely retried: every write is
    an upsert keyed on the legacy id.

    Args:
        office_id: Office to sync
        entity_types: Entity type values, all when None
        sync_type: "full" or "incremental"

    Returns:
        Sync results per entity type
    """
    activity.logger.info(f"Running {sync_type} sync activity for office {office_id}")

    office = OfficeId.create(office_id)
    types = [EntityType(t) for t in entity_types] if entity_types else None

    # Separate sessions: audit writes must not share a transaction with entity upserts
    async with SessionLocal() as db, SessionLocal() as audit_db:
        events = EventBus()
        audit_queue = events.subscribe()
        audit_consumer = SyncAuditConsumer(SQLAlchemySyncAuditLogRepository(audit_db))

        async with CaseworkerAPIClient(SQLAlchemyLegacyCredentialsRepository(db)) as api_client:
            use_cases = {
                EntityType.REFERENCE_DATA: SyncReferenceData(
                    api_client, SQLAlchemyReferenceDataRepository(db), events
                ),
                EntityType.CONSTITUENTS: SyncConstituents(
                    api_client, SQLAlchemyConstituentRepository(db), events
                ),
                EntityType.CASES: SyncCases(api_client, SQLAlchemyCaseRepository(db), events),
                EntityType.EMAILS: SyncEmails(api_client, SQLAlchemyEmailRepository(db), events),
            }
            service = RunOfficeSyncService(SQLAlchemySyncStatusRepository(db), use_cases)

            # Audit entries are written while the run progresses
            try:
                async with audit_consumer.running(audit_queue):
                    results = await service.run_sync(office, types, SyncMode(sync_type))
            except Exception as e:
                activity.logger.error(f"Sync failed: {str(e)}")
                raise
            finally:
                await audit_consumer.drain(audit_queue)
                events.unsubscribe(audit_queue)
                activity.logger.info(
                    f"Wrote {audit_consumer.written} audit entries for office {office_id}"
                )

    activity.logger.info(f"Sync completed: {results}")
    return results
