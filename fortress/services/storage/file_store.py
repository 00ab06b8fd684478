"""
Sandboxed File Store (primary backend)

Each key is stored as one JSON file inside a private data directory.

DESIGN DECISION: Writes go to a temporary file in the same directory
and are then moved over the target with os.replace. A crash or a
failed write leaves either the old file or the new file on disk,
never a half-written one, so load() can never observe a partial write.

Transient OS errors (busy file, flaky network drive) are retried a few
times with a short backoff before the failure is reported.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fortress.services.storage.interface import (
    BackendUnavailableError,
    BlobStore,
    StorageError,
)


logger = structlog.get_logger(__name__)

PROBE_FILENAME = ".fortress_probe"


def validate_key(key: str) -> str:
    """Keys become file names, so they must stay inside the sandbox."""
    if not key or "/" in key or "\\" in key or key in {".", ".."}:
        raise StorageError(f"Invalid storage key: {key!r}")
    return key


def write_text_atomic(path: Path, text: str) -> None:
    """Write text to path via a temp file and os.replace."""
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            dir=path.parent,
            prefix=f".{path.stem}.",
            suffix=".tmp",
            encoding="utf-8",
            delete=False,
        ) as tmp_file:
            tmp_name = tmp_file.name
            tmp_file.write(text)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass


class SandboxedFileStore(BlobStore):
    """
    File-backed blob store confined to one directory.

    Usage:
        store = SandboxedFileStore(Path("~/.fortress").expanduser())
        await store.acquire()
        await store.write("fortress_ledger", text)
    """

    def __init__(self, root_dir: Path, write_attempts: int = 3):
        self._root = Path(root_dir).expanduser()
        self._write_attempts = max(1, write_attempts)
        self._acquired = False

    @property
    def root_dir(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path:
        return self._root / f"{validate_key(key)}.json"

    def _require_acquired(self) -> None:
        if not self._acquired:
            raise StorageError("File store used before acquire()")

    async def acquire(self) -> None:
        """Create the sandbox directory and check that it is writable."""
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            probe = self._root / PROBE_FILENAME
            probe.write_text("ok", encoding="utf-8")
            probe.unlink()
        except OSError as e:
            raise BackendUnavailableError(
                f"File store at {self._root} is not usable: {e}"
            )
        self._acquired = True
        logger.debug("file_store_acquired", root=str(self._root))

    async def read(self, key: str) -> Optional[str]:
        self._require_acquired()
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {path.name}: {e}")

    async def write(self, key: str, text: str) -> None:
        self._require_acquired()
        path = self._path_for(key)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._write_attempts),
                wait=wait_exponential(multiplier=0.05, max=0.5),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    write_text_atomic(path, text)
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}")

    async def clear(self, key: str) -> None:
        self._require_acquired()
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path.name}: {e}")
