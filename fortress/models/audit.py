"""
Audit Models for Fortress Ledger

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every change to the ledger
2. Debugging information when storage misbehaves
3. A visible record of silent recoveries (fallback store, default document)

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Funds
    FUND_ADDED = "fund_added"
    FUND_RATIO_UPDATED = "fund_ratio_updated"
    FUND_REMOVED = "fund_removed"
    SURPLUS_SET = "surplus_set"

    # History
    INVESTMENT_LOGGED = "investment_logged"
    HISTORY_CLEARED = "history_cleared"

    # Milestones
    MILESTONE_ADDED = "milestone_added"
    MILESTONE_TOGGLED = "milestone_toggled"
    MILESTONE_REMOVED = "milestone_removed"
    REMINDER_SENT = "reminder_sent"
    NOTIFICATION_PERMISSION_DENIED = "notification_permission_denied"

    # Persistence
    DOCUMENT_LOADED = "document_loaded"
    DOCUMENT_SAVED = "document_saved"
    DOCUMENT_REPLACED = "document_replaced"
    SAVE_FAILED = "save_failed"
    BACKEND_DOWNGRADED = "backend_downgraded"
    DOCUMENT_PARSE_FAILED = "document_parse_failed"
    STORAGE_READ_FAILED = "storage_read_failed"

    # Export
    SNAPSHOT_EXPORTED = "snapshot_exported"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'fund', 'milestone', 'document')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Name or id of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.fund_added("ICICI Savings", 50)
        event = AuditEventBuilder.save_failed("fallback", "quota exceeded")
    """

    @staticmethod
    def fund_added(name: str, ratio: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FUND_ADDED,
            entity_type="fund",
            entity_id=name,
            description=f"Fund added: {name} ({ratio}%)",
            details={"ratio": ratio},
            is_user_action=True,
        )

    @staticmethod
    def fund_ratio_updated(name: str, old_ratio: float, new_ratio: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FUND_RATIO_UPDATED,
            entity_type="fund",
            entity_id=name,
            description=f"Fund ratio updated: {name} {old_ratio}% -> {new_ratio}%",
            details={"old_ratio": old_ratio, "new_ratio": new_ratio},
            is_user_action=True,
        )

    @staticmethod
    def fund_removed(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FUND_REMOVED,
            entity_type="fund",
            entity_id=name,
            description=f"Fund removed: {name}",
            is_user_action=True,
        )

    @staticmethod
    def surplus_set(amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SURPLUS_SET,
            entity_type="document",
            description=f"Surplus set to {amount}",
            details={"surplus": str(amount)},
            is_user_action=True,
        )

    @staticmethod
    def investment_logged(total: Decimal, fund_count: int, summary: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVESTMENT_LOGGED,
            entity_type="history",
            description=f"Investment logged: {total} across {fund_count} funds",
            details={
                "total": str(total),
                "fund_count": fund_count,
                "summary": summary,
            },
            is_user_action=True,
        )

    @staticmethod
    def history_cleared(entry_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="history",
            description=f"History cleared ({entry_count} entries removed)",
            details={"entry_count": entry_count},
            is_user_action=True,
        )

    @staticmethod
    def milestone_added(milestone_id: str, title: str, target: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MILESTONE_ADDED,
            entity_type="milestone",
            entity_id=milestone_id,
            description=f"Milestone added: {title} on {target}",
            details={"title": title, "date": target},
            is_user_action=True,
        )

    @staticmethod
    def milestone_toggled(milestone_id: str, completed: bool) -> AuditEvent:
        state = "completed" if completed else "reopened"
        return AuditEvent(
            event_type=AuditEventType.MILESTONE_TOGGLED,
            entity_type="milestone",
            entity_id=milestone_id,
            description=f"Milestone {state}",
            details={"completed": completed},
            is_user_action=True,
        )

    @staticmethod
    def milestone_removed(milestone_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MILESTONE_REMOVED,
            entity_type="milestone",
            entity_id=milestone_id,
            description="Milestone removed",
            is_user_action=True,
        )

    @staticmethod
    def reminder_sent(milestone_id: str, title: str, target: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMINDER_SENT,
            entity_type="milestone",
            entity_id=milestone_id,
            description=f"Reminder sent: {title}",
            details={"date": target},
        )

    @staticmethod
    def notification_permission_denied() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            description="Notification permission denied; reminders disabled",
        )

    @staticmethod
    def document_loaded(backend: str, fund_count: int, entry_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_LOADED,
            entity_type="document",
            description=f"Ledger loaded from {backend} store",
            details={
                "backend": backend,
                "fund_count": fund_count,
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def document_saved(backend: str, size_bytes: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="document",
            description=f"Ledger saved to {backend} store",
            details={"backend": backend, "size_bytes": size_bytes},
        )

    @staticmethod
    def document_replaced(fund_count: int, entry_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_REPLACED,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            description="Ledger replaced from snapshot",
            details={"fund_count": fund_count, "entry_count": entry_count},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(backend: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            description=f"Save to {backend} store failed; changes kept in memory",
            error_message=error_message,
            details={"backend": backend},
        )

    @staticmethod
    def backend_downgraded(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_DOWNGRADED,
            severity=AuditSeverity.WARNING,
            description="Primary store unavailable; using fallback store",
            error_message=reason,
        )

    @staticmethod
    def document_parse_failed(backend: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_PARSE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            description=f"Stored ledger in {backend} store is corrupt; starting empty",
            error_message=error_message,
            details={"backend": backend},
        )

    @staticmethod
    def storage_read_failed(backend: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_READ_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="document",
            description=f"Could not read ledger from {backend} store; starting empty",
            error_message=error_message,
            details={"backend": backend},
        )

    @staticmethod
    def snapshot_exported(filename: str, size_bytes: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_EXPORTED,
            entity_type="document",
            entity_id=filename,
            description=f"Snapshot exported: {filename}",
            details={"filename": filename, "size_bytes": size_bytes},
            is_user_action=True,
        )
