"""
In-Memory Blob Store

Used in tests and for ephemeral sessions. It can simulate an
unavailable backend, a capacity limit, and failing writes.
"""

from typing import Optional

from fortress.services.storage.interface import (
    BackendUnavailableError,
    BlobStore,
    QuotaExceededError,
    StorageError,
)


class MemoryBlobStore(BlobStore):

    def __init__(
        self,
        capacity_bytes: Optional[int] = None,
        available: bool = True,
        fail_writes: bool = False,
    ):
        self.blobs: dict[str, str] = {}
        self.capacity_bytes = capacity_bytes
        self.available = available
        self.fail_writes = fail_writes
        self.acquire_calls = 0
        self.write_calls = 0

    async def acquire(self) -> None:
        self.acquire_calls += 1
        if not self.available:
            raise BackendUnavailableError("Memory store marked unavailable")

    async def read(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    async def write(self, key: str, text: str) -> None:
        self.write_calls += 1
        if self.fail_writes:
            raise StorageError("Simulated write failure")
        if self.capacity_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self.blobs.items() if k != key)
            if others + len(text.encode("utf-8")) > self.capacity_bytes:
                raise QuotaExceededError("Memory store capacity exceeded")
        self.blobs[key] = text

    async def clear(self, key: str) -> None:
        if self.fail_writes:
            raise StorageError("Simulated clear failure")
        self.blobs.pop(key, None)
