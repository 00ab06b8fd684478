"""
Allocation Engine

Splits a surplus across the active funds and logs the split as a new
history entry.

ROUNDING:
Each fund's share is rounded half-up to 2 decimal places on its own.
There is NO residual-distribution step, so the rounded amounts may
differ from the surplus by up to 0.005 per fund. That is accepted:
the unrounded shares always add back up to surplus * sum(ratios) / 100,
and the entry's total is the validated surplus (rounded to 0.01).

Ratios are copied verbatim into the entry; they are never rescaled to
force a 100% sum.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fortress.audit import AuditLogger
from fortress.ledger.model import LedgerModel
from fortress.models.audit import AuditEventBuilder
from fortress.models.ledger import (
    EMPTY_BREAKDOWN_SUMMARY,
    SUMMARY_SEPARATOR,
    BreakdownLine,
    FundAllocation,
    HistoryEntry,
)
from fortress.services.clock import Clock, SystemClock
from fortress.validation import LedgerValidator


MINOR_UNIT = Decimal("0.01")
HUNDRED = Decimal("100")


def round_half_up(amount: Decimal) -> Decimal:
    """Round to the currency's minor unit, halves away from zero."""
    return amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def unrounded_shares(
    surplus: Decimal,
    allocations: list[FundAllocation],
) -> list[Decimal]:
    """Exact per-fund shares, in fund order."""
    return [surplus * Decimal(str(fund.ratio)) / HUNDRED for fund in allocations]


def split_surplus(
    surplus: Decimal,
    allocations: list[FundAllocation],
) -> list[BreakdownLine]:
    """Rounded per-fund breakdown, in fund order."""
    return [
        BreakdownLine(fund_name=fund.name, ratio=fund.ratio, amount=round_half_up(share))
        for fund, share in zip(allocations, unrounded_shares(surplus, allocations))
    ]


def build_summary(allocations: list[FundAllocation]) -> str:
    """'ICICI Savings (50%) | Axis Short Duration (30%)'"""
    if not allocations:
        return EMPTY_BREAKDOWN_SUMMARY
    return SUMMARY_SEPARATOR.join(fund.label for fund in allocations)


class AllocationEngine:
    """
    Computes and commits surplus splits.

    Usage:
        engine = AllocationEngine(model)
        entry = await engine.log_investment(50000)
    """

    def __init__(
        self,
        model: LedgerModel,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        self._model = model
        self._clock = clock or SystemClock()
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or LedgerValidator()

    def preview(self, surplus: object) -> list[BreakdownLine]:
        """The split log_investment would record, without recording it."""
        amount = self._validator.validate_amount(surplus, field="surplus")
        return split_surplus(amount, self._model.funds)

    async def log_investment(
        self,
        surplus: object,
        today: Optional[date] = None,
    ) -> HistoryEntry:
        """
        Split surplus across the active funds and append it to history.

        The entry is returned even if the write to storage failed; the
        model keeps it in memory and reports the unsaved state.

        Raises:
            ValidationError: If surplus is not a finite number > 0
        """
        amount = self._validator.validate_amount(surplus, field="surplus")
        funds = self._model.funds

        entry = HistoryEntry(
            entry_date=today or self._clock.now(),
            total=amount,
            summary=build_summary(funds),
            breakdown=tuple(split_surplus(amount, funds)),
        )

        await self._model.append_history(entry)

        self._audit_logger.log(AuditEventBuilder.investment_logged(
            total=amount,
            fund_count=len(funds),
            summary=entry.summary,
        ))
        return entry
