"""Constituent entity - shadow copy of a legacy constituent."""
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional
from uuid import UUID

from casework_sync.domain.models.legacy_entity import LegacyEntity
from casework_sync.domain.models.value_objects import ExternalId, OfficeId


@dataclass(frozen=True)
class Constituent(LegacyEntity):
    """
    Office-scoped constituent (person or organisation) mirrored from legacy.

    Invariants:
    - (office_id, external_id) is unique
    - office_id and external_id never change after creation
    """
    office_id: OfficeId
    external_id: ExternalId
    id: Optional[UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    organisation_type: Optional[str] = None
    geocode_lat: Optional[float] = None
    geocode_lng: Optional[float] = None
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    LEGACY_FIELDS: ClassVar[tuple] = (
        "first_name",
        "last_name",
        "title",
        "organisation_type",
        "geocode_lat",
        "geocode_lng",
    )
