"""Shared fixtures: in-memory repositories and a scripted legacy API."""
import asyncio
import uuid
from dataclasses import replace
from typing import Dict, List, Optional

import pytest

from casework_sync.application.services.event_bus import EventBus
from casework_sync.application.services.sync_lock import SyncLockRegistry
from casework_sync.domain.models.legacy_entity import utc_now
from casework_sync.domain.models.legacy_records import (
    LegacyCaseRecord,
    LegacyConstituentRecord,
    LegacyEmailRecord,
    LegacyPage,
)
from casework_sync.domain.models.reference_data import ReferenceItem
from casework_sync.domain.models.sync_audit_entry import SyncAuditEntry
from casework_sync.domain.models.sync_status import SyncStatus
from casework_sync.domain.models.value_objects import ExternalId, OfficeId
from casework_sync.domain.ports.audit_log_repo import SyncAuditLogRepository
from casework_sync.domain.ports.entity_repo import LegacyEntityRepository
from casework_sync.domain.ports.legacy_api import LegacyApiClient
from casework_sync.domain.ports.reference_data_repo import ReferenceDataRepository
from casework_sync.domain.ports.sync_status_repo import SyncStatusRepository

OFFICE_A = "11111111-1111-4111-8111-111111111111"
OFFICE_B = "22222222-2222-4222-8222-222222222222"


class InMemoryEntityRepository(LegacyEntityRepository):
    """Shadow store keyed on (office, external id), mirroring the SQL upsert."""

    def __init__(self):
        self.rows: Dict[tuple, object] = {}
        self.find_calls: List[tuple] = []
        self.saved: List[object] = []
        self.fail_on_save: set = set()

    async def find_by_external_id(self, office_id, external_id):
        self.find_calls.append((office_id, external_id))
        return self.rows.get((office_id, external_id))

    async def save(self, entity):
        if int(entity.external_id) in self.fail_on_save:
            raise RuntimeError(f"constraint violation on {entity.external_id}")
        key = (entity.office_id, entity.external_id)
        existing = self.rows.get(key)
        now = utc_now()
        saved = replace(
            entity,
            id=existing.id if existing else uuid.uuid4(),
            created_at=existing.created_at if existing else now,
            updated_at=entity.updated_at or now
        )
        self.rows[key] = saved
        self.saved.append(saved)
        return saved


class InMemorySyncStatusRepository(SyncStatusRepository):
    def __init__(self):
        self.rows: Dict[tuple, SyncStatus] = {}
        self.saves: List[tuple] = []

    async def save(self, status):
        if status.id is None:
            status.id = len(self.rows) + 1
        self.rows[(status.office_id, status.entity_type)] = replace(status)
        self.saves.append((status.entity_type, status.state))
        return status

    async def find(self, office_id, entity_type):
        row = self.rows.get((office_id, entity_type))
        return replace(row) if row else None

    async def list_by_office(self, office_id):
        return [replace(s) for (office, _), s in self.rows.items() if office == office_id]


class InMemoryAuditLogRepository(SyncAuditLogRepository):
    def __init__(self):
        self.entries: List[SyncAuditEntry] = []

    async def add(self, entry):
        entry.id = len(self.entries) + 1
        self.entries.append(entry)
        return entry

    async def list_by_office(self, office_id, entity_type=None, operation=None, limit=50, offset=0):
        matching = [
            e for e in reversed(self.entries)
            if e.office_id == office_id
            and (entity_type is None or e.entity_type == entity_type)
            and (operation is None or e.operation == operation)
        ]
        return matching[offset:offset + limit]


class InMemoryReferenceDataRepository(ReferenceDataRepository):
    """Lookup rows keyed on (office, kind, external id)."""

    def __init__(self):
        self.rows: Dict[tuple, ReferenceItem] = {}

    async def upsert_many(self, office_id, kind, items):
        for item in items:
            self.rows[(office_id, kind, item.external_id)] = item
        return len(items)

    async def list_by_kind(self, office_id, kind):
        return sorted(
            (item for (office, k, _), item in self.rows.items() if office == office_id and k == kind),
            key=lambda item: int(item.external_id)
        )


class ScriptedLegacyApi(LegacyApiClient):
    """
    Legacy API returning scripted pages per office.

    pages[office][n] is the list of raw records for page n + 1; a page that
    is an Exception instance is raised instead. Pages past the script are empty.
    reference[kind] is the raw lookup list returned for every office, or an
    Exception to raise. Kinds not scripted return an empty list.
    """

    def __init__(
        self,
        pages: Optional[Dict[OfficeId, list]] = None,
        total: Optional[int] = None,
        reference: Optional[dict] = None
    ):
        self.pages = pages or {}
        self.total = total
        self.reference = reference or {}
        self.calls: List[tuple] = []

    def _page(self, record_type, office_id, page_no):
        script = self.pages.get(office_id, [])
        results = script[page_no - 1] if page_no <= len(script) else []
        if isinstance(results, Exception):
            raise results
        return LegacyPage(
            record_type=record_type,
            results=list(results),
            total=self.total,
            page=page_no,
            limit=100
        )

    async def search_cases(self, office_id, params):
        self.calls.append(("cases", office_id, params))
        return self._page(LegacyCaseRecord, office_id, params.page_no)

    async def search_constituents(self, office_id, params):
        self.calls.append(("constituents", office_id, params))
        return self._page(LegacyConstituentRecord, office_id, params.page)

    async def search_inbox(self, office_id, params):
        self.calls.append(("emails", office_id, params))
        return self._page(LegacyEmailRecord, office_id, params.page)

    async def get_reference_data(self, office_id, kind):
        self.calls.append(("reference_data", office_id, kind))
        rows = self.reference.get(kind, [])
        if isinstance(rows, Exception):
            raise rows
        return list(rows)

    async def authenticate(self, office_id):
        return "token"

    async def refresh_token(self, office_id):
        return "token"


def case_record(external_id: int, **fields) -> dict:
    """Raw legacy case as it appears on the wire."""
    record = {"id": external_id, "statusID": 3, "summary": f"Case {external_id}"}
    record.update(fields)
    return record


def case_page(start: int, count: int) -> List[dict]:
    return [case_record(i) for i in range(start, start + count)]


def drain(queue: asyncio.Queue) -> list:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


@pytest.fixture
def office_a() -> OfficeId:
    return OfficeId.create(OFFICE_A)


@pytest.fixture
def office_b() -> OfficeId:
    return OfficeId.create(OFFICE_B)


@pytest.fixture
def locks() -> SyncLockRegistry:
    return SyncLockRegistry()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def entity_repo() -> InMemoryEntityRepository:
    return InMemoryEntityRepository()


@pytest.fixture
def status_repo() -> InMemorySyncStatusRepository:
    return InMemorySyncStatusRepository()


@pytest.fixture
def audit_repo() -> InMemoryAuditLogRepository:
    return InMemoryAuditLogRepository()


@pytest.fixture
def ext():
    return ExternalId.from_trusted


@pytest.fixture
def reference_repo() -> InMemoryReferenceDataRepository:
    return InMemoryReferenceDataRepository()
