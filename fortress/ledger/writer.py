"""
Serialized Persistence Writer

DESIGN DECISION: The ledger is always written in full, so there is no
point queueing one write per mutation. At most one save() is in flight
at a time; mutations that arrive while it runs bump a generation
counter, and the next write picks up whatever the document looks like
by then (latest wins, queue depth 1).

Every caller gets the result of the write that covered its change.
"""

import asyncio
from typing import Callable

from fortress.models.ledger import LedgerDocument
from fortress.services.storage.interface import DocumentStoreInterface


class PersistenceWriter:
    """
    Single-writer front for a document store.

    Args:
        store: Where the document is persisted
        snapshot: Returns the current in-memory document at write time
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        snapshot: Callable[[], LedgerDocument],
    ):
        self._store = store
        self._snapshot = snapshot
        self._lock = asyncio.Lock()
        self._generation = 0
        self._written_generation = 0
        self._last_result = True

    @property
    def has_unsaved_changes(self) -> bool:
        """True when memory is ahead of the last successful write."""
        return self._generation > self._written_generation or not self._last_result

    def mark_dirty(self) -> int:
        """Record an in-memory change and return its generation."""
        self._generation += 1
        return self._generation

    async def write(self) -> bool:
        """
        Persist the current document.

        Returns True once a write covering every change made before this
        call has succeeded.
        """
        target = self.mark_dirty()

        async with self._lock:
            if self._written_generation >= target:
                # A write that started after our change already covered it
                return self._last_result

            generation = self._generation
            document = self._snapshot()
            ok = await self._store.save(document)

            self._written_generation = generation
            self._last_result = ok
            return ok
