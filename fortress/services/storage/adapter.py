"""
Durable Store Adapter

Persists the single ledger document on top of a tiered blob store:
a high-capacity primary (sandboxed file store) and a capacity-limited
fallback (key-value store).

TIER SELECTION:
- initialize() tries to acquire the primary exactly once
- Any failure downgrades to the fallback for the rest of the session
- The primary is never retried mid-session

FAILURE CONTRACT:
- load() never raises: absent, unreadable or corrupt documents all
  yield the empty default document
- save()/clear() return False on failure and leave the previous
  persisted content untouched
"""

from typing import Optional

from pydantic import ValidationError as SchemaError

from fortress.audit import AuditLogger
from fortress.models.audit import AuditEventBuilder
from fortress.models.ledger import LedgerDocument
from fortress.services.storage.interface import (
    BackendKind,
    BlobStore,
    DocumentStoreInterface,
    ParseError,
    StorageError,
)


DEFAULT_DOCUMENT_KEY = "fortress_ledger"


def parse_document(text: str) -> LedgerDocument:
    """
    Parse a persisted document.

    Raises:
        ParseError: If the text is not a valid ledger document
    """
    try:
        return LedgerDocument.from_json(text)
    except (SchemaError, ValueError) as e:
        raise ParseError(f"Corrupt ledger document: {e}")


class DurableStoreAdapter(DocumentStoreInterface):
    """
    Tiered single-document store.

    Usage:
        adapter = DurableStoreAdapter(primary, fallback)
        await adapter.initialize()
        doc = await adapter.load()
    """

    def __init__(
        self,
        primary: BlobStore,
        fallback: BlobStore,
        document_key: str = DEFAULT_DOCUMENT_KEY,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._primary = primary
        self._fallback = fallback
        self._key = document_key
        self._audit_logger = audit_logger or AuditLogger()
        self._active: Optional[BlobStore] = None
        self._kind = BackendKind.PRIMARY
        self._downgrade_reason: Optional[str] = None

    @property
    def backend_kind(self) -> BackendKind:
        return self._kind

    @property
    def downgrade_reason(self) -> Optional[str]:
        return self._downgrade_reason

    @property
    def initialized(self) -> bool:
        return self._active is not None

    async def initialize(self) -> BackendKind:
        """Select the backend for this session. Safe to call more than once."""
        if self._active is not None:
            return self._kind

        try:
            await self._primary.acquire()
            self._active = self._primary
            self._kind = BackendKind.PRIMARY
            return self._kind
        except (StorageError, OSError) as e:
            self._downgrade_reason = str(e)

        self._active = self._fallback
        self._kind = BackendKind.FALLBACK
        self._audit_logger.log(AuditEventBuilder.backend_downgraded(self._downgrade_reason))

        try:
            await self._fallback.acquire()
        except (StorageError, OSError) as e:
            # Keep going: reads return the default document and
            # saves report failure, but the ledger stays usable.
            self._audit_logger.log(AuditEventBuilder.storage_read_failed(
                BackendKind.FALLBACK.value, str(e),
            ))

        return self._kind

    async def _store(self) -> BlobStore:
        if self._active is None:
            await self.initialize()
        return self._active

    async def load(self) -> LedgerDocument:
        store = await self._store()
        backend = self._kind.value

        try:
            text = await store.read(self._key)
        except (StorageError, OSError) as e:
            self._audit_logger.log(AuditEventBuilder.storage_read_failed(backend, str(e)))
            return LedgerDocument.empty()

        if text is None or not text.strip():
            return LedgerDocument.empty()

        try:
            document = parse_document(text)
        except ParseError as e:
            self._audit_logger.log(AuditEventBuilder.document_parse_failed(backend, str(e)))
            return LedgerDocument.empty()

        self._audit_logger.log(AuditEventBuilder.document_loaded(
            backend,
            fund_count=len(document.allocations),
            entry_count=len(document.history),
        ))
        return document

    async def save(self, document: LedgerDocument) -> bool:
        store = await self._store()
        backend = self._kind.value
        text = document.to_json()

        try:
            await store.write(self._key, text)
        except (StorageError, OSError) as e:
            self._audit_logger.log(AuditEventBuilder.save_failed(backend, str(e)))
            return False

        self._audit_logger.log(AuditEventBuilder.document_saved(
            backend, size_bytes=len(text.encode("utf-8")),
        ))
        return True

    async def clear(self) -> bool:
        store = await self._store()
        try:
            await store.clear(self._key)
        except (StorageError, OSError) as e:
            self._audit_logger.log(AuditEventBuilder.save_failed(self._kind.value, str(e)))
            return False
        return True
