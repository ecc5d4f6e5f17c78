"""Read-only ledger access for query answering and insights.

:class:`LedgerReader` states the logical requests the analytics layer makes
("sum expense amounts by category in a window", "list account balances").
:class:`SqlLedger` answers them with SQLAlchemy over the ``db`` models.
Aggregates are computed over ``ABS(amount)`` because stored amounts are
signed.
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import NamedTuple, Protocol

from db.models.ledger import LedgerAccount, LedgerBudget, LedgerCategory, LedgerTransaction
from sqlalchemy import Numeric, func, select
from sqlalchemy.orm import Session

from .models import AccountBalance, BudgetDefinition, DateWindow, TransactionType

_CENTS = Decimal("0.01")


class CategoryTotal(NamedTuple):
    category_id: str
    category_name: str
    total: Decimal


class LedgerReader(Protocol):
    def total(self, kind: TransactionType, start: date, end: date) -> Decimal: ...

    def totals_by_category(
        self, kind: TransactionType, start: date, end: date
    ) -> Sequence[CategoryTotal]: ...

    def accounts(self) -> Sequence[AccountBalance]: ...

    def budgets(self) -> Sequence[BudgetDefinition]: ...

    def category_names(self) -> Mapping[str, str]: ...


def to_money(value: object) -> Decimal:
    """Coerce a driver value (``Decimal``, ``float``, ``int``, ``None``) to cents."""

    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENTS)


def month_window(today: date) -> DateWindow:
    """First and last calendar day of ``today``'s month."""

    last_day = calendar.monthrange(today.year, today.month)[1]
    return DateWindow(start=today.replace(day=1), end=today.replace(day=last_day))


def previous_month_window(today: date) -> DateWindow:
    """The full calendar month before ``today``'s month."""

    return month_window(today.replace(day=1) - timedelta(days=1))


class SqlLedger:
    """:class:`LedgerReader` backed by an open SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def total(self, kind: TransactionType, start: date, end: date) -> Decimal:
        stmt = select(
            func.coalesce(func.sum(func.abs(LedgerTransaction.amount, type_=Numeric(18, 2))), 0)
        ).where(
            LedgerTransaction.type == kind.value,
            LedgerTransaction.date >= start,
            LedgerTransaction.date <= end,
        )
        return to_money(self.session.execute(stmt).scalar_one())

    def totals_by_category(
        self, kind: TransactionType, start: date, end: date
    ) -> list[CategoryTotal]:
        """Per-category sums, largest first (ties broken by category name)."""

        total_col = func.sum(func.abs(LedgerTransaction.amount, type_=Numeric(18, 2)))
        stmt = (
            select(LedgerTransaction.category_id, LedgerCategory.name, total_col)
            .outerjoin(LedgerCategory, LedgerCategory.id == LedgerTransaction.category_id)
            .where(
                LedgerTransaction.type == kind.value,
                LedgerTransaction.date >= start,
                LedgerTransaction.date <= end,
            )
            .group_by(LedgerTransaction.category_id, LedgerCategory.name)
        )
        rows = [
            CategoryTotal(cid, name or "Unknown", to_money(total))
            for cid, name, total in self.session.execute(stmt).all()
        ]
        rows.sort(key=lambda r: (-r.total, r.category_name))
        return rows

    def accounts(self) -> list[AccountBalance]:
        stmt = (
            select(LedgerAccount)
            .where(LedgerAccount.is_active.is_(True))
            .order_by(LedgerAccount.name, LedgerAccount.id)
        )
        return [
            AccountBalance(id=a.id, name=a.name, balance=to_money(a.balance))
            for a in self.session.execute(stmt).scalars()
        ]

    def budgets(self) -> list[BudgetDefinition]:
        stmt = (
            select(LedgerBudget, LedgerCategory.name)
            .outerjoin(LedgerCategory, LedgerCategory.id == LedgerBudget.category_id)
            .order_by(LedgerBudget.id)
        )
        return [
            BudgetDefinition(
                id=b.id,
                category_id=b.category_id,
                category_name=name or "Unknown",
                amount=to_money(b.amount),
                period=b.period,
            )
            for b, name in self.session.execute(stmt).all()
        ]

    def category_names(self) -> dict[str, str]:
        stmt = select(LedgerCategory.id, LedgerCategory.name)
        return {cid: name for cid, name in self.session.execute(stmt).all()}


__all__ = [
    "CategoryTotal",
    "LedgerReader",
    "SqlLedger",
    "month_window",
    "previous_month_window",
    "to_money",
]
