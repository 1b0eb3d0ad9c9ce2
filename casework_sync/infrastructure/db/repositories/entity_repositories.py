"""Shadow entity repositories (cases, constituents, emails) using SQLAlchemy."""
import uuid
from dataclasses import replace
from typing import Any, ClassVar, Dict, Tuple, Type

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from casework_sync.domain.models.case import Case
from casework_sync.domain.models.constituent import Constituent
from casework_sync.domain.models.email import Email
from casework_sync.domain.models.legacy_entity import LegacyEntity, utc_now
from casework_sync.domain.models.value_objects import ExternalId, OfficeId
from casework_sync.domain.ports.case_repo import CaseRepository
from casework_sync.domain.ports.constituent_repo import ConstituentRepository
from casework_sync.domain.ports.email_repo import EmailRepository
from casework_sync.infrastructure.db.models import CaseModel, ConstituentModel, EmailModel


class SQLAlchemyLegacyEntityRepository:
    """
    Shared SQLAlchemy upsert/lookup for shadow entities.

    Subclasses name the ORM model, the domain class, the unique constraint
    and which columns hold legacy references or address lists.
    """

    model: ClassVar[Type]
    entity_class: ClassVar[Type[LegacyEntity]]
    constraint: ClassVar[str]
    reference_columns: ClassVar[Tuple[str, ...]] = ()
    list_columns: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_external_id(self, office_id: OfficeId, external_id: ExternalId):
        """Find entity by office and legacy id."""
        stmt = select(self.model).where(
            self.model.office_id == uuid.UUID(str(office_id)),
            self.model.external_id == int(external_id)
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        return self._to_domain(row) if row else None

    async def save(self, entity):
        """Save or update an entity using UPSERT on (office_id, external_id)."""
        values = self._to_row(entity)
        stmt = insert(self.model).values(**values)
        stmt = stmt.on_conflict_do_update(
            constraint=self.constraint,
            set_={
                name: getattr(stmt.excluded, name)
                for name in self.entity_class.LEGACY_FIELDS + ("last_synced_at", "updated_at")
            }
        ).returning(self.model.id, self.model.created_at, self.model.updated_at)

        try:
            result = await self.session.execute(stmt)
            row = result.one()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return replace(entity, id=row.id, created_at=row.created_at, updated_at=row.updated_at)

    def _to_row(self, entity) -> Dict[str, Any]:
        values = {
            "office_id": uuid.UUID(str(entity.office_id)),
            "external_id": int(entity.external_id),
            "last_synced_at": entity.last_synced_at,
            "updated_at": entity.updated_at or utc_now(),
        }
        for name in self.entity_class.LEGACY_FIELDS:
            value = getattr(entity, name)
            if name in self.reference_columns and value is not None:
                value = int(value)
            elif name in self.list_columns and value is not None:
                value = list(value)
            values[name] = value
        return values

    def _to_domain(self, row):
        """Convert SQLAlchemy model to domain entity."""
        fields = {}
        for name in self.entity_class.LEGACY_FIELDS:
            value = getattr(row, name)
            if name in self.reference_columns and value is not None:
                value = ExternalId.from_trusted(value)
            elif name in self.list_columns and value is not None:
                value = tuple(value)
            fields[name] = value
        return self.entity_class(
            id=row.id,
            office_id=OfficeId.from_trusted(row.office_id),
            external_id=ExternalId.from_trusted(row.external_id),
            last_synced_at=row.last_synced_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
            **fields
        )


class SQLAlchemyCaseRepository(SQLAlchemyLegacyEntityRepository, CaseRepository):
    """SQLAlchemy implementation of CaseRepository."""

    model = CaseModel
    entity_class = Case
    constraint = "uq_legacy_case_external_id"
    reference_columns = (
        "constituent_external_id",
        "case_type_external_id",
        "status_external_id",
        "category_type_external_id",
        "contact_type_external_id",
        "assigned_to_external_id",
    )


class SQLAlchemyConstituentRepository(SQLAlchemyLegacyEntityRepository, ConstituentRepository):
    """SQLAlchemy implementation of ConstituentRepository."""

    model = ConstituentModel
    entity_class = Constituent
    constraint = "uq_legacy_constituent_external_id"


class SQLAlchemyEmailRepository(SQLAlchemyLegacyEntityRepository, EmailRepository):
    """SQLAlchemy implementation of EmailRepository."""

    model = EmailModel
    entity_class = Email
    constraint = "uq_legacy_email_external_id"
    reference_columns = (
        "case_external_id",
        "constituent_external_id",
        "assigned_to_external_id",
    )
    list_columns = ("to_addresses", "cc_addresses", "bcc_addresses")
