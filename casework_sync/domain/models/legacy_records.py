"""Legacy Caseworker record shapes (anti-corruption layer input types)."""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, field_validator

from casework_sync.domain.models.email import EmailType
from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.reference_data import ReferenceItem, ReferenceKind
from casework_sync.domain.models.value_objects import ExternalId, OfficeId


def _reference(value: Optional[int]) -> Optional[ExternalId]:
    # Legacy uses 0 for "no reference"
    if value is None or value == 0:
        return None
    return ExternalId.create(value)


class LegacyRecord(BaseModel):
    """
    Base for records returned by legacy search endpoints.

    Attributes use domain names; aliases carry the legacy wire names.
    Only id is required. Every other field is optional because legacy data
    is routinely partial.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: StrictInt = Field(gt=0)

    # Attributes holding legacy reference ids, mapped through _reference
    REFERENCE_FIELDS: ClassVar[tuple] = ()

    @field_validator("*")
    @classmethod
    def _as_utc(cls, value: Any) -> Any:
        # Legacy sends naive timestamps and bare dates; both are UTC
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        return value

    @property
    def external_id(self) -> ExternalId:
        return ExternalId.from_trusted(self.id)

    def to_fields(self) -> Dict[str, Any]:
        """
        Convert to domain field values for from_legacy / update_from_legacy.

        Only fields present in the legacy payload are returned, so absent
        keys leave existing entity values untouched.

        Raises:
            ValueError: If a reference id is negative
        """
        fields = {}
        for name in self.model_fields_set:
            if name == "id":
                continue
            value = getattr(self, name)
            if name in self.REFERENCE_FIELDS:
                value = _reference(value)
            fields[name] = self._convert(name, value)
        return fields

    def _convert(self, name: str, value: Any) -> Any:
        return value


class LegacyCaseRecord(LegacyRecord):
    """Case as returned by POST /cases/search."""

    constituent_external_id: Optional[int] = Field(default=None, alias="constituentID")
    case_type_external_id: Optional[int] = Field(default=None, alias="caseTypeID")
    status_external_id: Optional[int] = Field(default=None, alias="statusID")
    category_type_external_id: Optional[int] = Field(default=None, alias="categoryTypeID")
    contact_type_external_id: Optional[int] = Field(default=None, alias="contactTypeID")
    assigned_to_external_id: Optional[int] = Field(default=None, alias="assignedToID")
    summary: Optional[str] = None
    review_date: Optional[datetime] = Field(default=None, alias="reviewDate")

    REFERENCE_FIELDS: ClassVar[tuple] = (
        "constituent_external_id",
        "case_type_external_id",
        "status_external_id",
        "category_type_external_id",
        "contact_type_external_id",
        "assigned_to_external_id",
    )


class LegacyConstituentRecord(LegacyRecord):
    """Constituent as returned by POST /constituents/search."""

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    title: Optional[str] = None
    organisation_type: Optional[str] = Field(default=None, alias="organisationType")
    geocode_lat: Optional[float] = Field(default=None, alias="geocodeLat")
    geocode_lng: Optional[float] = Field(default=None, alias="geocodeLng")


class LegacyEmailRecord(LegacyRecord):
    """Email as returned by POST /inbox/search."""

    case_external_id: Optional[int] = Field(default=None, alias="caseID")
    constituent_external_id: Optional[int] = Field(default=None, alias="constituentID")
    type: Optional[EmailType] = None
    subject: Optional[str] = None
    html_body: Optional[str] = Field(default=None, alias="htmlBody")
    from_address: Optional[str] = Field(default=None, alias="from")
    to_addresses: Optional[List[str]] = Field(default=None, alias="to")
    cc_addresses: Optional[List[str]] = Field(default=None, alias="cc")
    bcc_addresses: Optional[List[str]] = Field(default=None, alias="bcc")
    actioned: Optional[bool] = None
    assigned_to_external_id: Optional[int] = Field(default=None, alias="assignedToID")
    scheduled_at: Optional[datetime] = Field(default=None, alias="scheduledAt")
    sent_at: Optional[datetime] = Field(default=None, alias="sentAt")
    received_at: Optional[datetime] = Field(default=None, alias="receivedAt")

    REFERENCE_FIELDS: ClassVar[tuple] = (
        "case_external_id",
        "constituent_external_id",
        "assigned_to_external_id",
    )

    def _convert(self, name: str, value: Any) -> Any:
        if name in ("to_addresses", "cc_addresses", "bcc_addresses") and value is not None:
            return tuple(value)
        if name == "actioned" and value is None:
            return False
        return value


class LegacyReferenceRecord(LegacyRecord):
    """Lookup row from GET /casetype, /statustype, /categorytype, /contacttype or /caseworkers/all."""

    # Type lists name the label after the list itself
    name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("name", "casetype", "statustype", "categorytype")
    )
    type: Optional[str] = None
    email: Optional[str] = None
    is_active: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("isActive", "is_active", "active")
    )

    def to_item(self, office_id: OfficeId, kind: ReferenceKind) -> ReferenceItem:
        """Convert to a reference item; a missing is_active flag means active."""
        return ReferenceItem(
            office_id=office_id,
            kind=kind,
            external_id=self.external_id,
            name=self.name,
            type=self.type,
            email=self.email,
            is_active=self.is_active is not False,
            last_synced_at=utc_now()
        )


R = TypeVar("R", bound=LegacyRecord)


class _PageEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: List[Any]
    total: Optional[int] = None
    page: Optional[int] = None
    limit: Optional[int] = None


@dataclass
class LegacyPage(Generic[R]):
    """
    One page of a legacy search.

    The envelope is validated up front; records stay raw until parse() so a
    single malformed record does not reject the whole page.
    """
    record_type: Type[R]
    results: List[Any]
    total: Optional[int] = None
    page: Optional[int] = None
    limit: Optional[int] = None

    @classmethod
    def from_response(cls, record_type: Type[R], payload: Any) -> "LegacyPage[R]":
        """
        Validate a search response body.

        Raises:
            pydantic.ValidationError: If the envelope is malformed
        """
        envelope = _PageEnvelope.model_validate(payload)
        return cls(
            record_type=record_type,
            results=envelope.results,
            total=envelope.total,
            page=envelope.page,
            limit=envelope.limit
        )

    def parse(self, raw: Any) -> R:
        """
        Raises:
            pydantic.ValidationError: If the record is malformed
        """
        return self.record_type.model_validate(raw)

    @staticmethod
    def raw_external_id(raw: Any) -> int:
        """Best-effort legacy id of a raw record, 0 when unusable."""
        if not isinstance(raw, dict):
            return 0
        value = raw.get("id")
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        return 0

    def __len__(self) -> int:
        return len(self.results)
