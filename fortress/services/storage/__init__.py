"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
a sandboxed file store (primary), a capacity-limited key-value store
(fallback), an in-memory store, and the tiered document adapter on top.
"""

from fortress.services.storage.interface import (
    BackendKind,
    BackendUnavailableError,
    BlobStore,
    DocumentStoreInterface,
    ParseError,
    QuotaExceededError,
    StorageError,
)
from fortress.services.storage.file_store import SandboxedFileStore
from fortress.services.storage.kv_store import KeyValueBlobStore
from fortress.services.storage.memory import MemoryBlobStore
from fortress.services.storage.adapter import (
    DEFAULT_DOCUMENT_KEY,
    DurableStoreAdapter,
    parse_document,
)

__all__ = [
    # Interfaces
    "BackendKind",
    "BlobStore",
    "DocumentStoreInterface",
    # Exceptions
    "BackendUnavailableError",
    "ParseError",
    "QuotaExceededError",
    "StorageError",
    # Implementations
    "DEFAULT_DOCUMENT_KEY",
    "DurableStoreAdapter",
    "KeyValueBlobStore",
    "MemoryBlobStore",
    "SandboxedFileStore",
    "parse_document",
]
