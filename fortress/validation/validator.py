"""
Input Validation for Ledger Mutations

DESIGN DECISION: Every user-supplied value is checked here before it
touches the ledger document. The ledger model never "fixes" bad input:
a rejected mutation leaves the document exactly as it was, and the
caller gets a ValidationError listing every issue found.

Checks:
- Fund names: non-empty, at most 200 characters, unique among active
  funds (exact match)
- Ratios: finite numbers in [0, 100]
- Amounts: finite, positive (or non-negative for the surplus), rounded
  to cents and capped so they survive a JSON round trip
- Milestones: title of 1-300 characters, target date exactly YYYY-MM-DD
"""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

from fortress.models.ledger import (
    MAX_FUND_NAME_LENGTH,
    MAX_TITLE_LENGTH,
    ValidationIssue,
)


DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

MIN_RATIO = Decimal("0")
MAX_RATIO = Decimal("100")
MINOR_UNIT = Decimal("0.01")
# 13 integer digits + 2 decimals stays exact through a JSON float
MAX_AMOUNT = Decimal("9999999999999.99")


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """
    User input was rejected.

    The caller should surface the issues to the user. Retrying with
    the same input will fail the same way.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))

    @classmethod
    def single(cls, field: str, issue_type: str, message: str) -> 'ValidationError':
        return cls([ValidationIssue(field=field, issue_type=issue_type, message=message)])


class NotFoundError(LedgerError):
    """Referenced fund or milestone does not exist."""
    pass


def to_decimal(value: object) -> Optional[Decimal]:
    """
    Convert user input to a Decimal.

    Returns None for anything that is not a number (booleans included).
    Floats go through str() so 0.1 stays 0.1.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None
    return None


class LedgerValidator:
    """
    Validates ledger mutations.

    All methods either return the normalized value or raise
    ValidationError with every issue found in one pass.
    """

    def _raise_if_issues(self, issues: list[ValidationIssue]) -> None:
        if issues:
            raise ValidationError(issues)

    def _check_ratio(self, ratio: object) -> tuple[Optional[float], list[ValidationIssue]]:
        value = to_decimal(ratio)
        if value is None or not value.is_finite():
            return None, [ValidationIssue(
                field="ratio",
                issue_type="invalid_value",
                message=f"Ratio must be a finite number, got {ratio!r}",
            )]
        if value < MIN_RATIO or value > MAX_RATIO:
            return None, [ValidationIssue(
                field="ratio",
                issue_type="out_of_range",
                message=f"Ratio must be between 0 and 100, got {value}",
            )]
        return float(value), []

    def validate_ratio(self, ratio: object) -> float:
        value, issues = self._check_ratio(ratio)
        self._raise_if_issues(issues)
        return value

    def validate_new_fund(
        self,
        name: object,
        ratio: object,
        existing_names: Iterable[str],
    ) -> tuple[str, float]:
        """
        Validate a fund before it is added.

        Name matching is case-sensitive and exact after trimming
        surrounding whitespace, so "icici" and "ICICI" are distinct funds.
        """
        issues = []
        clean_name = name.strip() if isinstance(name, str) else ""

        if not clean_name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Fund name is required",
            ))
        elif clean_name in set(existing_names):
            issues.append(ValidationIssue(
                field="name",
                issue_type="duplicate",
                message=f"A fund named '{clean_name}' already exists",
            ))
        elif len(clean_name) > MAX_FUND_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Fund name must be at most {MAX_FUND_NAME_LENGTH} characters",
            ))

        clean_ratio, ratio_issues = self._check_ratio(ratio)
        issues.extend(ratio_issues)

        self._raise_if_issues(issues)
        return clean_name, clean_ratio

    def validate_amount(
        self,
        amount: object,
        field: str = "surplus",
        allow_zero: bool = False,
    ) -> Decimal:
        """
        Validate a money amount (> 0, or >= 0 when allow_zero).

        The result is rounded half-up to the minor unit (0.01). Amounts
        above MAX_AMOUNT are rejected so they survive a JSON round trip.
        """
        value = to_decimal(amount)
        if value is None or not value.is_finite():
            raise ValidationError.single(
                field,
                "invalid_value",
                f"{field.capitalize()} must be a finite number, got {amount!r}",
            )
        if value > MAX_AMOUNT:
            raise ValidationError.single(
                field,
                "out_of_range",
                f"{field.capitalize()} must be at most {MAX_AMOUNT}, got {value}",
            )

        # Sub-cent inputs like 0.004 round to zero and are judged as zero
        rounded = value.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP) if value > 0 else value
        if rounded < 0 or (rounded == 0 and not allow_zero):
            bound = "zero or more" if allow_zero else "greater than zero"
            raise ValidationError.single(
                field,
                "out_of_range",
                f"{field.capitalize()} must be {bound}, got {value}",
            )
        return rounded

    def parse_target_date(self, value: object) -> date:
        """
        Parse a milestone target date.

        Strings must match YYYY-MM-DD exactly; no locale-dependent
        formats are accepted.
        """
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
            raise ValidationError.single(
                "date",
                "invalid_format",
                f"Date must be in YYYY-MM-DD format, got {value!r}",
            )
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValidationError.single(
                "date",
                "invalid_value",
                f"{value} is not a real calendar date",
            )

    def validate_milestone(self, title: object, target_date: object) -> tuple[str, date]:
        issues = []
        clean_title = title.strip() if isinstance(title, str) else ""
        if not clean_title:
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Milestone title is required",
            ))
        elif len(clean_title) > MAX_TITLE_LENGTH:
            issues.append(ValidationIssue(
                field="title",
                issue_type="too_long",
                message=f"Milestone title must be at most {MAX_TITLE_LENGTH} characters",
            ))

        parsed = None
        try:
            parsed = self.parse_target_date(target_date)
        except ValidationError as e:
            issues.extend(e.issues)

        self._raise_if_issues(issues)
        return clean_title, parsed
