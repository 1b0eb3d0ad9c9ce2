"""Reference data - legacy lookup lists that cases and emails point at."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from casework_sync.domain.models.value_objects import ExternalId, OfficeId


class ReferenceKind(str, Enum):
    """Legacy lookup lists, in sync order."""
    CASE_TYPES = "case_types"
    STATUS_TYPES = "status_types"
    CATEGORY_TYPES = "category_types"
    CONTACT_TYPES = "contact_types"
    CASEWORKERS = "caseworkers"


@dataclass(frozen=True)
class ReferenceItem:
    """
    One row of a legacy lookup list.

    (office_id, kind, external_id) is unique. Case and email *_external_id
    fields resolve against these rows.
    """
    office_id: OfficeId
    kind: ReferenceKind
    external_id: ExternalId
    name: Optional[str] = None
    type: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True
    last_synced_at: Optional[datetime] = None
