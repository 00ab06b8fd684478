"""Surplus allocation package."""

from fortress.allocation.engine import (
    AllocationEngine,
    build_summary,
    round_half_up,
    split_surplus,
    unrounded_shares,
)

__all__ = [
    "AllocationEngine",
    "build_summary",
    "round_half_up",
    "split_surplus",
    "unrounded_shares",
]
