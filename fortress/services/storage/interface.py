"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Pick the primary file store or the fallback key-value store once,
   at startup, and never branch on backend kind afterwards
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from how bytes reach the disk

Two layers:
- BlobStore: the raw collaborator (acquire/read/write/clear of text blobs)
- DocumentStoreInterface: one ledger document on top of a blob store
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from fortress.models.ledger import LedgerDocument


class BackendKind(str, Enum):
    """Which tier of storage is serving the session."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class BlobStore(ABC):
    """
    Abstract durable key-value blob store.

    Implementations must make write() atomic from the caller's point of
    view: after a failed write, read() returns the previous content.
    """

    @abstractmethod
    async def acquire(self) -> None:
        """
        Make the store ready for use.

        Raises:
            BackendUnavailableError: If the store cannot be used in
                this environment
        """
        pass

    @abstractmethod
    async def read(self, key: str) -> Optional[str]:
        """
        Read a blob.

        Returns:
            The stored text, or None if nothing is stored under key

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def write(self, key: str, text: str) -> None:
        """
        Replace the blob stored under key.

        Raises:
            StorageError: If the write fails (previous content is kept)
        """
        pass

    @abstractmethod
    async def clear(self, key: str) -> None:
        """
        Remove the blob stored under key. Missing keys are not an error.

        Raises:
            StorageError: If the removal fails
        """
        pass


class DocumentStoreInterface(ABC):
    """
    Abstract interface for persisting the single ledger document.

    load() never raises; save() and clear() report failure by
    returning False so that callers can keep working from memory.
    """

    @property
    @abstractmethod
    def backend_kind(self) -> BackendKind:
        pass

    @abstractmethod
    async def load(self) -> LedgerDocument:
        """Load the document, or an empty default if absent or unreadable."""
        pass

    @abstractmethod
    async def save(self, document: LedgerDocument) -> bool:
        """Overwrite the persisted document. Returns True on success."""
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """Remove the persisted document. Returns True on success."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class BackendUnavailableError(StorageError):
    """Storage backend cannot be used in this environment."""
    pass


class QuotaExceededError(StorageError):
    """Write would exceed the store's capacity."""
    pass


class ParseError(StorageError):
    """Persisted document is corrupt or does not match the schema."""
    pass
