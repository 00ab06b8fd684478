"""Ledger model package."""

from fortress.ledger.model import UNSAVED_CHANGES_WARNING, LedgerModel
from fortress.ledger.writer import PersistenceWriter

__all__ = ["LedgerModel", "PersistenceWriter", "UNSAVED_CHANGES_WARNING"]
