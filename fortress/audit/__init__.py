"""Audit logging package."""

from fortress.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
