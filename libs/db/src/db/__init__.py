"""db: shared database library (SQLAlchemy) for the local ledger.

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``db.models.ledger`` (re-exported for convenience)
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from .models.ledger import (
    Base,
    LedgerAccount,
    LedgerBudget,
    LedgerCategory,
    LedgerTransaction,
)

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "LedgerAccount",
    "LedgerBudget",
    "LedgerCategory",
    "LedgerTransaction",
]
