"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of every change to the ledger
2. A visible record of silent recoveries (fallback store, empty document)
3. Recent events the UI can show in a status panel

The audit logger:
- Writes structured JSON logs through structlog
- Keeps a bounded buffer of recent events in memory
- Never raises (logging must not break the ledger)
"""

from collections import deque
from typing import Optional

import structlog

from fortress.models.audit import AuditEvent, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory ring of recent events (for status display and tests)
    """

    def __init__(self, buffer_size: int = 200):
        self._logger = structlog.get_logger("fortress.audit")
        self._recent: deque[AuditEvent] = deque(maxlen=buffer_size or None)
        self._buffer_enabled = buffer_size > 0

    def log(self, event: AuditEvent) -> None:
        """Log an audit event locally and remember it."""
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            structlog.get_logger("fortress.audit").error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )

        if self._buffer_enabled:
            self._recent.append(event)

    def recent_events(self, limit: Optional[int] = None) -> list[AuditEvent]:
        """Most recent events, newest first."""
        events = list(reversed(self._recent))
        if limit is not None:
            return events[:limit]
        return events
