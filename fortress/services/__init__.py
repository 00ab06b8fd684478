"""Services package."""

from fortress.services.clock import Clock, FixedClock, SystemClock
from fortress.services.storage import (
    BackendKind,
    BackendUnavailableError,
    BlobStore,
    DocumentStoreInterface,
    DurableStoreAdapter,
    KeyValueBlobStore,
    MemoryBlobStore,
    ParseError,
    QuotaExceededError,
    SandboxedFileStore,
    StorageError,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "BackendKind",
    "BackendUnavailableError",
    "BlobStore",
    "DocumentStoreInterface",
    "DurableStoreAdapter",
    "KeyValueBlobStore",
    "MemoryBlobStore",
    "ParseError",
    "QuotaExceededError",
    "SandboxedFileStore",
    "StorageError",
]
