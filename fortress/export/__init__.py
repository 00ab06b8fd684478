"""Snapshot export package."""

from fortress.export.service import DEFAULT_EXPORT_PREFIX, ExportService, ExportSnapshot

__all__ = ["DEFAULT_EXPORT_PREFIX", "ExportService", "ExportSnapshot"]
