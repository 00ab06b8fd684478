"""Input validation package."""

from fortress.validation.validator import (
    DATE_PATTERN,
    LedgerError,
    LedgerValidator,
    NotFoundError,
    ValidationError,
    to_decimal,
)

__all__ = [
    "DATE_PATTERN",
    "LedgerError",
    "LedgerValidator",
    "NotFoundError",
    "ValidationError",
    "to_decimal",
]
