"""
Core Data Models for Fortress Ledger

These models define the strict schemas for the ledger document and
everything inside it. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to exactly the JSON shape that is persisted and exported

DESIGN DECISION: Entities that must never change after creation
(fund definitions, history entries, milestones) are frozen. Changing
one means replacing it with an updated copy, which keeps history
entries truly immutable once written.

Money is held as Decimal and written to JSON as a plain number.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)


Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]

EMPTY_BREAKDOWN_SUMMARY = "No allocations configured"
SUMMARY_SEPARATOR = " | "
MAX_FUND_NAME_LENGTH = 200
MAX_TITLE_LENGTH = 300


def format_ratio(ratio: float) -> str:
    """Render a ratio in plain notation (50.0 -> '50', 1e-05 -> '0.00001')."""
    return format(Decimal(str(ratio)).normalize(), "f")


# =============================================================================
# FUNDS & HISTORY
# =============================================================================

class FundAllocation(BaseModel):
    """
    A named fund and the percentage of surplus directed to it.

    Ratios across funds are NOT required to sum to 100. Whatever is
    left over stays unallocated as a safety net.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    name: str = Field(
        ...,
        alias="fundName",
        min_length=1,
        max_length=MAX_FUND_NAME_LENGTH,
        description="Fund name (unique among active funds)"
    )
    ratio: float = Field(
        ...,
        ge=0,
        le=100,
        allow_inf_nan=False,
        description="Percentage of surplus (0-100)"
    )

    @property
    def label(self) -> str:
        return f"{self.name} ({format_ratio(self.ratio)}%)"


class BreakdownLine(BaseModel):
    """One fund's share of a logged surplus, frozen at logging time."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    fund_name: str = Field(..., alias="fundName")
    ratio: float = Field(..., ge=0, le=100, allow_inf_nan=False)
    amount: Money = Field(..., ge=0)


class HistoryEntry(BaseModel):
    """
    An immutable record of one completed allocation.

    The summary string is built once, when the entry is created, so
    later edits to fund definitions never change what history says.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    entry_date: date = Field(
        ...,
        alias="date",
        description="Calendar day the entry was logged"
    )
    total: Money = Field(
        ...,
        gt=0,
        description="Surplus amount that was split"
    )
    summary: str = Field(
        ...,
        description="Human-readable fund breakdown"
    )
    breakdown: tuple[BreakdownLine, ...] = Field(
        default=(),
        description="Per-fund amounts in display order"
    )

    @property
    def allocated_amount(self) -> Decimal:
        """Sum of the rounded per-fund amounts."""
        return sum((line.amount for line in self.breakdown), Decimal("0"))


# =============================================================================
# MILESTONES
# =============================================================================

class Milestone(BaseModel):
    """A dated todo item with an optional reminder on its target day."""
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        min_length=1,
        description="Stable handle used to toggle or remove the milestone"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=MAX_TITLE_LENGTH,
    )
    target_date: date = Field(
        ...,
        alias="date",
        description="Target calendar day"
    )
    completed: bool = False


# =============================================================================
# ROOT DOCUMENT
# =============================================================================

class LedgerDocument(BaseModel):
    """
    The root aggregate and the sole unit of persistence.

    Every mutation of any entity inside it is followed by a write of
    the whole document.
    """
    model_config = ConfigDict(populate_by_name=True)

    surplus: Money = Field(
        default=Decimal("0"),
        ge=0,
        description="Current monthly surplus"
    )
    allocations: list[FundAllocation] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)
    todos: list[Milestone] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_unique_names(self) -> 'LedgerDocument':
        """Fund names and milestone ids must be unique."""
        names = [fund.name for fund in self.allocations]
        if len(names) != len(set(names)):
            raise ValueError("Duplicate fund names in allocations")

        ids = [todo.id for todo in self.todos]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate milestone ids in todos")

        return self

    @classmethod
    def empty(cls) -> 'LedgerDocument':
        return cls()

    def to_json(self) -> str:
        """Serialize to the persisted/exported JSON form."""
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, text: str | bytes) -> 'LedgerDocument':
        """
        Parse the persisted/exported JSON form.

        Raises:
            pydantic.ValidationError: If the text is not valid JSON
                or does not match the schema
        """
        return cls.model_validate_json(text)


class LedgerUpdate(BaseModel):
    """
    Result of a ledger mutation.

    The in-memory change has always been applied. `saved` tells the
    caller whether it also reached durable storage.
    """

    document: LedgerDocument
    saved: bool
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings (e.g. unsaved changes)"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )
