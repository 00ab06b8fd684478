"""
Data Models Package

This package contains all Pydantic models used in Fortress Ledger.
All data flowing through the system must conform to these schemas.
"""

from fortress.models.ledger import (
    EMPTY_BREAKDOWN_SUMMARY,
    SUMMARY_SEPARATOR,
    BreakdownLine,
    FundAllocation,
    HistoryEntry,
    LedgerDocument,
    LedgerUpdate,
    Milestone,
    Money,
    ValidationIssue,
    format_ratio,
)
from fortress.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "EMPTY_BREAKDOWN_SUMMARY",
    "SUMMARY_SEPARATOR",
    "BreakdownLine",
    "FundAllocation",
    "HistoryEntry",
    "LedgerDocument",
    "LedgerUpdate",
    "Milestone",
    "Money",
    "ValidationIssue",
    "format_ratio",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
