"""Shared SQLAlchemy models registry for the local ledger database.

Currently includes the ledger models read by ``finance_tracker``.
"""

from .ledger import Base, LedgerAccount, LedgerBudget, LedgerCategory, LedgerTransaction

__all__ = [
    "Base",
    "LedgerAccount",
    "LedgerBudget",
    "LedgerCategory",
    "LedgerTransaction",
]
