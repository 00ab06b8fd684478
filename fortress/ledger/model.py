"""
Ledger Model

The single owner of the ledger document. Every read and every change
goes through this class; no other component ever holds a mutable
reference to the document.

MUTATION CONTRACT:
1. Validate input (a rejected mutation leaves the document untouched)
2. Apply the change in memory
3. Write the full document through the persistence writer
4. Return a LedgerUpdate with a copy of the new state

If the write fails the in-memory change is KEPT. The update carries
saved=False and an "unsaved changes" warning; nothing is reverted.

Confirmation for destructive actions (remove fund, clear history) is a
caller concern. The model does not ask.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from fortress.audit import AuditLogger
from fortress.ledger.writer import PersistenceWriter
from fortress.models.audit import AuditEvent, AuditEventBuilder
from fortress.models.ledger import (
    FundAllocation,
    HistoryEntry,
    LedgerDocument,
    LedgerUpdate,
    Milestone,
)
from fortress.services.storage.interface import DocumentStoreInterface
from fortress.validation import LedgerValidator, NotFoundError, ValidationError


UNSAVED_CHANGES_WARNING = (
    "Changes are kept in memory but could not be saved to storage yet"
)


class LedgerModel:
    """
    Owns the ledger document and exposes its mutators.

    Usage:
        model = LedgerModel(adapter)
        await model.open()
        update = await model.add_fund("ICICI Savings", 50)
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or LedgerValidator()
        self._document = LedgerDocument.empty()
        self._writer = PersistenceWriter(store, self._snapshot)

    def _snapshot(self) -> LedgerDocument:
        return self._document.model_copy(deep=True)

    async def open(self) -> LedgerDocument:
        """Load the persisted document into memory."""
        self._document = await self._store.load()
        return self.document

    async def _commit(self, event: Optional[AuditEvent] = None) -> LedgerUpdate:
        if event is not None:
            self._audit_logger.log(event)

        saved = await self._writer.write()
        warnings = [] if saved else [UNSAVED_CHANGES_WARNING]
        return LedgerUpdate(document=self._snapshot(), saved=saved, warnings=warnings)

    async def flush(self) -> LedgerUpdate:
        """Write the current document again (e.g. after a failed save)."""
        return await self._commit()

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def document(self) -> LedgerDocument:
        return self._snapshot()

    @property
    def surplus(self) -> Decimal:
        return self._document.surplus

    @property
    def funds(self) -> list[FundAllocation]:
        return list(self._document.allocations)

    @property
    def history(self) -> list[HistoryEntry]:
        """History in chronological (insertion) order."""
        return list(self._document.history)

    @property
    def milestones(self) -> list[Milestone]:
        """Milestones in insertion order."""
        return list(self._document.todos)

    @property
    def has_unsaved_changes(self) -> bool:
        return self._writer.has_unsaved_changes

    @property
    def total_ratio(self) -> float:
        return sum(fund.ratio for fund in self._document.allocations)

    @property
    def unallocated_ratio(self) -> float:
        """Share of surplus left as a safety net (never negative)."""
        return max(0.0, 100.0 - self.total_ratio)

    def find_fund(self, name: str) -> Optional[FundAllocation]:
        for fund in self._document.allocations:
            if fund.name == name:
                return fund
        return None

    def calculate_total_saved(self) -> Decimal:
        return sum((entry.total for entry in self._document.history), Decimal("0"))

    def history_newest_first(self) -> list[HistoryEntry]:
        return list(reversed(self._document.history))

    def cumulative_totals(self) -> list[tuple[date, Decimal]]:
        """Running total after each entry, oldest first."""
        running = Decimal("0")
        totals = []
        for entry in self._document.history:
            running += entry.total
            totals.append((entry.entry_date, running))
        return totals

    # =========================================================================
    # FUNDS
    # =========================================================================

    async def add_fund(self, name: str, ratio: float) -> LedgerUpdate:
        existing = [fund.name for fund in self._document.allocations]
        clean_name, clean_ratio = self._validator.validate_new_fund(name, ratio, existing)

        fund = FundAllocation(name=clean_name, ratio=clean_ratio)
        self._document.allocations.append(fund)

        return await self._commit(AuditEventBuilder.fund_added(fund.name, fund.ratio))

    async def update_fund_ratio(self, name: str, ratio: float) -> LedgerUpdate:
        index = self._fund_index(name)
        clean_ratio = self._validator.validate_ratio(ratio)

        old = self._document.allocations[index]
        self._document.allocations[index] = old.model_copy(update={"ratio": clean_ratio})

        return await self._commit(
            AuditEventBuilder.fund_ratio_updated(old.name, old.ratio, clean_ratio)
        )

    async def remove_fund(self, name: str) -> LedgerUpdate:
        """Remove a fund from the active set. History is not touched."""
        index = self._fund_index(name)
        removed = self._document.allocations.pop(index)

        return await self._commit(AuditEventBuilder.fund_removed(removed.name))

    def _fund_index(self, name: str) -> int:
        for index, fund in enumerate(self._document.allocations):
            if fund.name == name:
                return index
        raise NotFoundError(f"Fund not found: {name}")

    async def set_surplus(self, amount: object) -> LedgerUpdate:
        value = self._validator.validate_amount(amount, field="surplus", allow_zero=True)
        self._document.surplus = value

        return await self._commit(AuditEventBuilder.surplus_set(value))

    # =========================================================================
    # HISTORY
    # =========================================================================

    async def append_history(self, entry: HistoryEntry) -> LedgerUpdate:
        """Append an entry to the log. Entries are never edited afterwards."""
        if not isinstance(entry, HistoryEntry):
            raise ValidationError.single(
                "entry", "invalid_type", "Only HistoryEntry objects can be logged",
            )
        self._document.history.append(entry)
        return await self._commit()

    async def clear_history(self) -> LedgerUpdate:
        """Remove every history entry. Irreversible."""
        count = len(self._document.history)
        self._document.history.clear()

        return await self._commit(AuditEventBuilder.history_cleared(count))

    # =========================================================================
    # MILESTONES
    # =========================================================================

    async def add_milestone(self, title: str, target_date: object) -> LedgerUpdate:
        clean_title, parsed = self._validator.validate_milestone(title, target_date)

        milestone = Milestone(title=clean_title, target_date=parsed)
        self._document.todos.append(milestone)

        return await self._commit(AuditEventBuilder.milestone_added(
            milestone.id, milestone.title, milestone.target_date.isoformat(),
        ))

    async def toggle_milestone(self, milestone_id: str) -> LedgerUpdate:
        index = self._milestone_index(milestone_id)
        current = self._document.todos[index]
        toggled = current.model_copy(update={"completed": not current.completed})
        self._document.todos[index] = toggled

        return await self._commit(
            AuditEventBuilder.milestone_toggled(toggled.id, toggled.completed)
        )

    async def remove_milestone(self, milestone_id: str) -> LedgerUpdate:
        index = self._milestone_index(milestone_id)
        removed = self._document.todos.pop(index)

        return await self._commit(AuditEventBuilder.milestone_removed(removed.id))

    def _milestone_index(self, milestone_id: str) -> int:
        for index, milestone in enumerate(self._document.todos):
            if milestone.id == milestone_id:
                return index
        raise NotFoundError(f"Milestone not found: {milestone_id}")

    # =========================================================================
    # WHOLE DOCUMENT
    # =========================================================================

    async def replace_document(self, document: LedgerDocument) -> LedgerUpdate:
        """Replace the whole ledger, e.g. when restoring an exported snapshot."""
        if not isinstance(document, LedgerDocument):
            raise ValidationError.single(
                "document", "invalid_type", "Only LedgerDocument objects can be restored",
            )
        self._document = document.model_copy(deep=True)

        return await self._commit(AuditEventBuilder.document_replaced(
            fund_count=len(document.allocations),
            entry_count=len(document.history),
        ))
