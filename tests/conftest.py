"""
Shared fixtures.

Components are built against in-memory stores and a fixed clock.
Nothing here touches the network; file-backed tests use tmp_path.

Async code is driven with asyncio.run() from plain test functions,
one event loop per test.
"""

import asyncio
from datetime import date
from typing import Optional

import pytest

from fortress.allocation import AllocationEngine
from fortress.audit import AuditLogger
from fortress.config import get_settings
from fortress.ledger import LedgerModel
from fortress.milestones import (
    MilestoneScheduler,
    NotificationSurface,
    PermissionState,
)
from fortress.models.ledger import LedgerDocument
from fortress.services.clock import FixedClock
from fortress.services.storage import (
    BackendKind,
    DEFAULT_DOCUMENT_KEY,
    DocumentStoreInterface,
    DurableStoreAdapter,
    MemoryBlobStore,
)


TODAY = date(2026, 1, 14)


class RecordingNotifier(NotificationSurface):
    """Collects notifications instead of showing them."""

    def __init__(self, permission: PermissionState = PermissionState.GRANTED):
        self.permission = permission
        self.sent: list[tuple[str, str]] = []
        self.permission_requests = 0
        self.fail_next = 0

    async def request_permission(self) -> PermissionState:
        self.permission_requests += 1
        return self.permission

    async def notify(self, title: str, body: str) -> None:
        if self.fail_next:
            self.fail_next -= 1
            raise RuntimeError("notification surface unavailable")
        self.sent.append((title, body))


class SlowDocumentStore(DocumentStoreInterface):
    """Document store whose saves take a while and track overlap."""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.saved: list[LedgerDocument] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def backend_kind(self) -> BackendKind:
        return BackendKind.PRIMARY

    async def load(self) -> LedgerDocument:
        return LedgerDocument.empty()

    async def save(self, document: LedgerDocument) -> bool:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            self.saved.append(document)
            return True
        finally:
            self.in_flight -= 1

    async def clear(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Point settings at a temp dir and reset the settings cache."""
    monkeypatch.setenv("FORTRESS_STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("FORTRESS_STORAGE_FALLBACK_PATH", raising=False)
    monkeypatch.delenv("FORTRESS_STORAGE_DOCUMENT_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def primary() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def fallback() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def adapter(primary, fallback, audit_logger) -> DurableStoreAdapter:
    return DurableStoreAdapter(primary, fallback, audit_logger=audit_logger)


@pytest.fixture
def model(adapter, audit_logger) -> LedgerModel:
    return LedgerModel(adapter, audit_logger=audit_logger)


@pytest.fixture
def engine(model, clock, audit_logger) -> AllocationEngine:
    return AllocationEngine(model, clock=clock, audit_logger=audit_logger)


@pytest.fixture
def scheduler(model) -> MilestoneScheduler:
    return MilestoneScheduler(model)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def stored_document(store: MemoryBlobStore, key: Optional[str] = None) -> LedgerDocument:
    """Parse what a memory store currently holds for the ledger."""
    return LedgerDocument.from_json(store.blobs[key or DEFAULT_DOCUMENT_KEY])


@pytest.fixture
def denied_notifier() -> RecordingNotifier:
    return RecordingNotifier(permission=PermissionState.DENIED)


@pytest.fixture
def slow_store() -> SlowDocumentStore:
    return SlowDocumentStore()


@pytest.fixture
def read_stored():
    return stored_document
