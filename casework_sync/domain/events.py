"""Domain events emitted by sync runs."""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List
from uuid import UUID

from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.sync_status import EntityType, SyncMode
from casework_sync.domain.models.value_objects import ExternalId, OfficeId


@dataclass(frozen=True)
class DomainEvent:
    """Base for sync events. Every event is scoped to one office and entity type."""
    office_id: OfficeId
    entity_type: EntityType
    occurred_at: datetime = field(default_factory=utc_now, kw_only=True)

    event_type: ClassVar[str] = "event"

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for logs and progress consumers."""
        data = asdict(self)
        data["event_type"] = self.event_type
        data["office_id"] = str(self.office_id)
        data["entity_type"] = self.entity_type.value
        data["occurred_at"] = self.occurred_at.isoformat()
        if "external_id" in data:
            data["external_id"] = int(self.external_id)
        if "internal_id" in data:
            data["internal_id"] = str(self.internal_id)
        if "mode" in data:
            data["mode"] = self.mode.value
        return data


@dataclass(frozen=True)
class SyncStartedEvent(DomainEvent):
    mode: SyncMode

    event_type: ClassVar[str] = "sync.started"


@dataclass(frozen=True)
class SyncCompletedEvent(DomainEvent):
    records_synced: int
    duration_ms: int

    event_type: ClassVar[str] = "sync.completed"


@dataclass(frozen=True)
class SyncFailedEvent(DomainEvent):
    error: str
    records_synced: int

    event_type: ClassVar[str] = "sync.failed"


@dataclass(frozen=True)
class EntityCreatedEvent(DomainEvent):
    internal_id: UUID
    external_id: ExternalId

    event_type: ClassVar[str] = "entity.created"


@dataclass(frozen=True)
class EntityUpdatedEvent(DomainEvent):
    internal_id: UUID
    external_id: ExternalId
    changed_fields: List[str]

    event_type: ClassVar[str] = "entity.updated"
