"""Value objects identifying tenants and legacy records."""
import re
from dataclasses import dataclass

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE
)


@dataclass(frozen=True)
class OfficeId:
    """
    Tenant identifier in the multi-tenant system.

    Every entity, repository call and legacy API call is scoped by exactly
    one OfficeId. Compares equal only to another OfficeId.
    """
    value: str

    @classmethod
    def create(cls, value: str) -> "OfficeId":
        """
        Create an OfficeId from untrusted input.

        Args:
            value: UUID string

        Raises:
            ValueError: If the value is not a UUID
        """
        if not isinstance(value, str) or not _UUID_PATTERN.match(value):
            raise ValueError(f"Invalid OfficeId format: {value!r}")
        return cls(value.lower())

    @classmethod
    def from_trusted(cls, value) -> "OfficeId":
        """Create an OfficeId from a known-good source such as the database."""
        return cls(str(value).lower())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExternalId:
    """
    Identifier assigned by the legacy Caseworker system.

    Unique only within one office; (OfficeId, ExternalId) is the join key
    between shadow rows and legacy records.
    """
    value: int

    @classmethod
    def create(cls, value: int) -> "ExternalId":
        """
        Create an ExternalId from untrusted input.

        Raises:
            ValueError: If the value is not a positive integer
        """
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"Invalid ExternalId: {value!r}. Must be a positive integer.")
        return cls(value)

    @classmethod
    def from_trusted(cls, value: int) -> "ExternalId":
        """Create an ExternalId from a value the legacy system itself returned."""
        return cls(value)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)
