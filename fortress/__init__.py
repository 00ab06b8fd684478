"""
Fortress Ledger - Source Package

A personal finance ledger that splits a monthly surplus across
user-defined funds, keeps an append-only history of every split,
and reminds the user about dated milestones.

DESIGN PRINCIPLES:
1. The in-memory document is the source of truth
2. Every mutation is followed by a full-document write
3. History is append-only
4. Nothing in the core is fatal
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Fortress Ledger Team"
