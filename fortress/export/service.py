"""
Export Service

Produces a portable, dated backup of the whole ledger.

The snapshot content is exactly what the store persists, so a backup
can be restored with parse_snapshot() + LedgerModel.replace_document().
Producing a snapshot has no side effects; writing it to disk is an
explicit, separate call.
"""

from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from fortress.audit import AuditLogger
from fortress.models.audit import AuditEventBuilder
from fortress.models.ledger import LedgerDocument
from fortress.services.storage.adapter import parse_document
from fortress.services.storage.file_store import write_text_atomic


DEFAULT_EXPORT_PREFIX = "fortress_backup_"


class ExportSnapshot(BaseModel):
    """A backup ready to be saved or downloaded."""

    filename: str = Field(..., min_length=1)
    content: str


class ExportService:

    def __init__(
        self,
        prefix: str = DEFAULT_EXPORT_PREFIX,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._prefix = prefix
        self._audit_logger = audit_logger

    def filename_for(self, now: date) -> str:
        return f"{self._prefix}{now.isoformat()}.json"

    def export_snapshot(self, document: LedgerDocument, now: date) -> ExportSnapshot:
        """Serialize the document; filename depends only on `now`."""
        snapshot = ExportSnapshot(
            filename=self.filename_for(now),
            content=document.to_json(),
        )

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.snapshot_exported(
                snapshot.filename, size_bytes=len(snapshot.content.encode("utf-8")),
            ))
        return snapshot

    def parse_snapshot(self, content: str) -> LedgerDocument:
        """
        Read a snapshot back.

        Raises:
            ParseError: If the content is not a valid ledger document
        """
        return parse_document(content)

    def write_snapshot(self, snapshot: ExportSnapshot, directory: Path) -> Path:
        """Save a snapshot into directory and return its path."""
        directory = Path(directory).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / snapshot.filename
        write_text_atomic(path, snapshot.content)
        return path
