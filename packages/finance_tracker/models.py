"""Data models for ``finance_tracker``.

Value objects crossing module boundaries are frozen dataclasses. Untrusted
payloads (model output) are validated with Pydantic in
:mod:`finance_tracker.validation` before they are turned into these types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


class ParseSource(StrEnum):
    """Which tier produced a :class:`ParsedTransaction`."""

    RULES = "rules"
    MODEL = "model"


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryDefinition:
    """A category the parser may assign.

    ``keywords`` is an ordered tuple; the rule-based matcher checks keywords in
    this order and stops at the first one found in the input.
    """

    id: str
    name: str
    type: TransactionType
    group: str
    keywords: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedTransaction:
    """The structured result of parsing one free-text transaction.

    Attributes
    ----------
    amount:
        Magnitude of the transaction; never negative. Direction lives only in
        ``type``. ``0`` means no amount was found and the result must not be
        stored (see :attr:`is_persistable`).
    type:
        Income or expense.
    category:
        Display name of a catalog category of the same ``type`` (or the
        type's fallback category).
    merchant:
        Merchant/location when one could be identified.
    description:
        Short human description with its first character capitalized.
    date:
        ISO calendar date (``YYYY-MM-DD``).
    confidence:
        Score in ``[0, 1]``.
    source:
        Tier that produced the result.
    """

    amount: Decimal
    type: TransactionType
    category: str
    merchant: str | None
    description: str
    date: str
    confidence: float
    source: ParseSource = ParseSource.RULES

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("ParsedTransaction.amount must be non-negative")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("ParsedTransaction.confidence must be within [0,1]")

    @property
    def is_persistable(self) -> bool:
        """``False`` when no amount was found; callers must reject such parses."""

        return self.amount > 0

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the storage sign convention (expenses negative)."""

        return -self.amount if self.type is TransactionType.EXPENSE else self.amount


# ---------------------------------------------------------------------------
# Ledger views (read-only snapshots from the persistence layer)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AccountBalance:
    id: str
    name: str
    balance: Decimal


@dataclass(frozen=True, slots=True)
class BudgetDefinition:
    id: str
    category_id: str
    category_name: str
    amount: Decimal
    period: str = "monthly"


@dataclass(frozen=True, slots=True)
class DateWindow:
    """Inclusive calendar window ``[start, end]``."""

    start: date
    end: date


class InsightKind(StrEnum):
    SPENDING = "spending"
    SAVING = "saving"
    ANOMALY = "anomaly"
    RECOMMENDATION = "recommendation"


class InsightPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class Insight:
    id: str
    kind: InsightKind
    title: str
    description: str
    priority: InsightPriority


__all__ = [
    "AccountBalance",
    "BudgetDefinition",
    "CategoryDefinition",
    "DateWindow",
    "Insight",
    "InsightKind",
    "InsightPriority",
    "ParseSource",
    "ParsedTransaction",
    "TransactionType",
]
