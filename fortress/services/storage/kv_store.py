"""
Capacity-Limited Key-Value Store (fallback backend)

Used when the primary file store cannot be acquired. All keys live in
a single JSON object file with a hard size cap, the way a browser's
local storage holds a few megabytes per origin.

A write that would push the store past its capacity is rejected with
QuotaExceededError before anything on disk changes.
"""

import json
from pathlib import Path
from typing import Optional

import structlog

from fortress.services.storage.file_store import write_text_atomic
from fortress.services.storage.interface import (
    BackendUnavailableError,
    BlobStore,
    QuotaExceededError,
    StorageError,
)


logger = structlog.get_logger(__name__)


def encoded_size(data: dict[str, str]) -> int:
    """Size in bytes of the store as it would be written to disk."""
    return len(json.dumps(data, ensure_ascii=False).encode("utf-8"))


class KeyValueBlobStore(BlobStore):
    """
    Single-file key-value store with a capacity limit.

    The whole store is mirrored in memory after acquire(); every write
    rewrites the file atomically.
    """

    def __init__(self, path: Path, capacity_bytes: int = 5 * 1024 * 1024):
        self._path = Path(path).expanduser()
        self._capacity = capacity_bytes
        self._data: dict[str, str] = {}
        self._acquired = False

    @property
    def capacity_bytes(self) -> int:
        return self._capacity

    @property
    def used_bytes(self) -> int:
        return encoded_size(self._data)

    async def acquire(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            raw = self._path.read_text(encoding="utf-8") if self._path.exists() else ""
        except UnicodeDecodeError as e:
            logger.warning("kv_store_corrupt", path=str(self._path), error=str(e))
            raw = ""
        except OSError as e:
            raise BackendUnavailableError(
                f"Key-value store at {self._path} is not usable: {e}"
            )

        data: dict[str, str] = {}
        if raw:
            try:
                loaded = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning("kv_store_corrupt", path=str(self._path), error=str(e))
                loaded = {}
            if isinstance(loaded, dict):
                data = {k: v for k, v in loaded.items() if isinstance(v, str)}

        self._data = data
        self._acquired = True

    def _require_acquired(self) -> None:
        if not self._acquired:
            raise StorageError("Key-value store used before acquire()")

    def _persist(self, data: dict[str, str]) -> None:
        try:
            write_text_atomic(self._path, json.dumps(data, ensure_ascii=False))
        except OSError as e:
            raise StorageError(f"Failed to write key-value store: {e}")

    async def read(self, key: str) -> Optional[str]:
        self._require_acquired()
        return self._data.get(key)

    async def write(self, key: str, text: str) -> None:
        self._require_acquired()
        updated = dict(self._data)
        updated[key] = text

        size = encoded_size(updated)
        if size > self._capacity:
            raise QuotaExceededError(
                f"Key-value store capacity exceeded ({size} > {self._capacity} bytes)"
            )

        self._persist(updated)
        self._data = updated

    async def clear(self, key: str) -> None:
        self._require_acquired()
        if key not in self._data:
            return
        updated = {k: v for k, v in self._data.items() if k != key}
        self._persist(updated)
        self._data = updated
