"""Case entity - shadow copy of a legacy casework case."""
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional
from uuid import UUID

from casework_sync.domain.models.legacy_entity import LegacyEntity
from casework_sync.domain.models.value_objects import ExternalId, OfficeId


@dataclass(frozen=True)
class Case(LegacyEntity):
    """
    Office-scoped case mirrored from the legacy Caseworker system.

    Invariants:
    - (office_id, external_id) is unique
    - office_id and external_id never change after creation
    - id is None until the shadow store has saved the case
    """
    office_id: OfficeId
    external_id: ExternalId
    id: Optional[UUID] = None
    constituent_external_id: Optional[ExternalId] = None
    case_type_external_id: Optional[ExternalId] = None
    status_external_id: Optional[ExternalId] = None
    category_type_external_id: Optional[ExternalId] = None
    contact_type_external_id: Optional[ExternalId] = None
    assigned_to_external_id: Optional[ExternalId] = None
    summary: Optional[str] = None
    review_date: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    LEGACY_FIELDS: ClassVar[tuple] = (
        "constituent_external_id",
        "case_type_external_id",
        "status_external_id",
        "category_type_external_id",
        "contact_type_external_id",
        "assigned_to_external_id",
        "summary",
        "review_date",
    )
