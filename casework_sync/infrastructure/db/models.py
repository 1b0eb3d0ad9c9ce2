"""SQLAlchemy ORM models for database persistence."""
import uuid
from sqlalchemy import (
    Boolean, Column, DateTime, Enum as SQLEnum, Float, Index, Integer,
    String, Text, UniqueConstraint, func
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID

from casework_sync.core.database import Base
from casework_sync.domain.models.email import EmailType
from casework_sync.domain.models.reference_data import ReferenceKind
from casework_sync.domain.models.sync_audit_entry import AuditOperation
from casework_sync.domain.models.sync_status import EntityType, SyncState


def _enum(enum_cls, name: str) -> SQLEnum:
    # Store enum values ("cases"), not member names ("CASES")
    return SQLEnum(
        enum_cls,
        name=name,
        schema="legacy",
        values_callable=lambda members: [m.value for m in members]
    )


# ----------------------------------------------------------------------
# Legacy Shadow Schema Models
# ----------------------------------------------------------------------

class CaseModel(Base):
    """SQLAlchemy model for legacy.cases table."""

    __tablename__ = "cases"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    office_id = Column(UUID(as_uuid=True), nullable=False)
    external_id = Column(Integer, nullable=False)
    constituent_external_id = Column(Integer, nullable=True)
    case_type_external_id = Column(Integer, nullable=True)
    status_external_id = Column(Integer, nullable=True)
    category_type_external_id = Column(Integer, nullable=True)
    contact_type_external_id = Column(Integer, nullable=True)
    assigned_to_external_id = Column(Integer, nullable=True)
    summary = Column(Text, nullable=True)
    review_date = Column(DateTime(timezone=True), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('office_id', 'external_id', name='uq_legacy_case_external_id'),
        {'schema': 'legacy'}
    )


class ConstituentModel(Base):
    """SQLAlchemy model for legacy.constituents table."""

    __tablename__ = "constituents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    office_id = Column(UUID(as_uuid=True), nullable=False)
    external_id = Column(Integer, nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    title = Column(String(50), nullable=True)
    organisation_type = Column(String(100), nullable=True)
    geocode_lat = Column(Float, nullable=True)
    geocode_lng = Column(Float, nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('office_id', 'external_id', name='uq_legacy_constituent_external_id'),
        {'schema': 'legacy'}
    )


class EmailModel(Base):
    """SQLAlchemy model for legacy.emails table."""

    __tablename__ = "emails"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    office_id = Column(UUID(as_uuid=True), nullable=False)
    external_id = Column(Integer, nullable=False)
    case_external_id = Column(Integer, nullable=True)
    constituent_external_id = Column(Integer, nullable=True)
    type = Column(_enum(EmailType, "email_type"), nullable=True)
    subject = Column(Text, nullable=True)
    html_body = Column(Text, nullable=True)
    from_address = Column(String(320), nullable=True)
    to_addresses = Column(ARRAY(Text), nullable=True)
    cc_addresses = Column(ARRAY(Text), nullable=True)
    bcc_addresses = Column(ARRAY(Text), nullable=True)
    actioned = Column(Boolean, nullable=False, default=False)
    assigned_to_external_id = Column(Integer, nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    received_at = Column(DateTime(timezone=True), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('office_id', 'external_id', name='uq_legacy_email_external_id'),
        Index('ix_legacy_emails_office_received', 'office_id', 'received_at'),
        {'schema': 'legacy'}
    )


class ReferenceDataModel(Base):
    """SQLAlchemy model for legacy.reference_data table."""

    __tablename__ = "reference_data"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    office_id = Column(UUID(as_uuid=True), nullable=False)
    kind = Column(_enum(ReferenceKind, "reference_kind"), nullable=False)
    external_id = Column(Integer, nullable=False)
    name = Column(String(255), nullable=True)
    type = Column(String(100), nullable=True)
    email = Column(String(320), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('office_id', 'kind', 'external_id', name='uq_legacy_reference_data_external_id'),
        {'schema': 'legacy'}
    )


class SyncStatusModel(Base):
    """SQLAlchemy model for legacy.sync_status table."""

    __tablename__ = "sync_status"

    id = Column(Integer, primary_key=True, autoincrement=True)
    office_id = Column(UUID(as_uuid=True), nullable=False)
    entity_type = Column(_enum(EntityType, "sync_entity_type"), nullable=False)
    state = Column(_enum(SyncState, "sync_state"), nullable=False, default=SyncState.IDLE)
    last_sync_started_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_completed_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_success = Column(Boolean, nullable=True)
    last_sync_error = Column(Text, nullable=True)
    last_sync_cursor = Column(String(255), nullable=True)
    records_synced = Column(Integer, nullable=False, default=0)
    records_failed = Column(Integer, nullable=False, default=0)
    run_started_at = Column(DateTime(timezone=True), nullable=True)
    last_success_started_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('office_id', 'entity_type', name='uq_legacy_sync_status_office_entity'),
        {'schema': 'legacy'}
    )


class SyncAuditLogModel(Base):
    """SQLAlchemy model for legacy.sync_audit_log table."""

    __tablename__ = "sync_audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    office_id = Column(UUID(as_uuid=True), nullable=False)
    entity_type = Column(_enum(EntityType, "audit_entity_type"), nullable=False)
    entity_id = Column(UUID(as_uuid=True), nullable=True)
    external_id = Column(Integer, nullable=True)
    operation = Column(_enum(AuditOperation, "audit_operation"), nullable=False)
    old_data = Column(JSONB, nullable=True)
    new_data = Column(JSONB, nullable=True)
    conflict_resolution = Column(String(50), nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('ix_legacy_sync_audit_office_created', 'office_id', 'created_at'),
        {'schema': 'legacy'}
    )


class LegacyCredentialsModel(Base):
    """SQLAlchemy model for legacy.legacy_credentials table."""

    __tablename__ = "legacy_credentials"

    office_id = Column(UUID(as_uuid=True), primary_key=True)
    api_subdomain = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False)
    password = Column(Text, nullable=False)
    token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        {'schema': 'legacy'},
    )
