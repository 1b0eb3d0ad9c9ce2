"""Shared behaviour for shadow entities mirrored from the legacy system."""
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Mapping


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class LegacyEntity:
    """
    Mixin for frozen entity dataclasses whose field values come from legacy.

    Subclasses list the fields the legacy system owns in LEGACY_FIELDS.
    Identity (id, office_id, external_id) is never part of that list, so a
    legacy payload can not move a row to another office or legacy record.
    """

    LEGACY_FIELDS: ClassVar[tuple] = ()

    @classmethod
    def _accept(cls, fields: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = set(fields) - set(cls.LEGACY_FIELDS)
        if unknown:
            raise ValueError(
                f"{cls.__name__} does not accept legacy fields: {sorted(unknown)}"
            )
        return dict(fields)

    @classmethod
    def from_legacy(cls, office_id, external_id, fields: Mapping[str, Any]):
        """
        Build a new, unsaved entity from legacy data.

        Args:
            office_id: Owning office
            external_id: Legacy identity
            fields: Domain-named legacy field values

        Returns:
            Entity with id unset
        """
        return cls(
            office_id=office_id,
            external_id=external_id,
            last_synced_at=utc_now(),
            **cls._accept(fields)
        )

    def update_from_legacy(self, fields: Mapping[str, Any]):
        """
        Overlay a newer legacy snapshot onto this entity.

        Only keys present in fields are applied; absent keys keep their
        current value. Present keys win, including an explicit None.

        Args:
            fields: Domain-named legacy field values

        Returns:
            New entity; self is left untouched
        """
        now = utc_now()
        return replace(
            self,
            last_synced_at=now,
            updated_at=now,
            **self._accept(fields)
        )

    def changed_fields(self, other) -> List[str]:
        """List legacy fields whose value differs between self and other."""
        return [
            name for name in self.LEGACY_FIELDS
            if getattr(self, name) != getattr(other, name)
        ]
