"""Email entity - shadow copy of a legacy email."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional, Tuple
from uuid import UUID

from casework_sync.domain.models.legacy_entity import LegacyEntity
from casework_sync.domain.models.value_objects import ExternalId, OfficeId


class EmailType(str, Enum):
    """Legacy email kinds."""
    DRAFT = "draft"
    SENT = "sent"
    RECEIVED = "received"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class Email(LegacyEntity):
    """
    Office-scoped email mirrored from the legacy inbox.

    Invariants:
    - (office_id, external_id) is unique
    - office_id and external_id never change after creation
    - address lists are tuples, never mutated in place
    """
    office_id: OfficeId
    external_id: ExternalId
    id: Optional[UUID] = None
    case_external_id: Optional[ExternalId] = None
    constituent_external_id: Optional[ExternalId] = None
    type: Optional[EmailType] = None
    subject: Optional[str] = None
    html_body: Optional[str] = None
    from_address: Optional[str] = None
    to_addresses: Optional[Tuple[str, ...]] = None
    cc_addresses: Optional[Tuple[str, ...]] = None
    bcc_addresses: Optional[Tuple[str, ...]] = None
    actioned: bool = False
    assigned_to_external_id: Optional[ExternalId] = None
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    received_at: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    LEGACY_FIELDS: ClassVar[tuple] = (
        "case_external_id",
        "constituent_external_id",
        "type",
        "subject",
        "html_body",
        "from_address",
        "to_addresses",
        "cc_addresses",
        "bcc_addresses",
        "actioned",
        "assigned_to_external_id",
        "scheduled_at",
        "sent_at",
        "received_at",
    )
