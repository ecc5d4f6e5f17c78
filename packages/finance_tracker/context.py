"""Compact financial context for narrative answers.

A :class:`FinancialContext` is recomputed on demand (per query cache miss)
from a :class:`~finance_tracker.ledger.LedgerReader`; it is never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .formatting import money
from .ledger import CategoryTotal, LedgerReader
from .models import AccountBalance, TransactionType

TOP_CATEGORY_LIMIT = 5


@dataclass(frozen=True, slots=True)
class BudgetStatus:
    budget_id: str
    category_name: str
    amount: Decimal
    spent: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.spent

    @property
    def percent_used(self) -> int:
        """Spent as a whole percentage of the budget (0 when the budget is 0)."""

        if self.amount <= 0:
            return 0
        return int((self.spent / self.amount * 100).quantize(Decimal("1"), ROUND_HALF_UP))


@dataclass(frozen=True, slots=True)
class FinancialContext:
    start: date
    end: date
    income: Decimal
    expenses: Decimal
    top_categories: tuple[CategoryTotal, ...]
    budgets: tuple[BudgetStatus, ...]
    accounts: tuple[AccountBalance, ...]

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses

    @property
    def savings_rate(self) -> Decimal:
        """Net as a percentage of income; ``0`` without income."""

        if self.income <= 0:
            return Decimal("0")
        return self.net / self.income * 100

    @property
    def total_balance(self) -> Decimal:
        return sum((a.balance for a in self.accounts), Decimal("0.00"))

    def to_prompt_text(self, currency: str = "€") -> str:
        """Render the few lines the narrative prompt carries."""

        top = ", ".join(
            f"{c.category_name}: {money(c.total, currency)}" for c in self.top_categories
        )
        return (
            f"Period: {self.start.isoformat()} to {self.end.isoformat()}\n"
            f"Income: {money(self.income, currency)}, "
            f"Expenses: {money(self.expenses, currency)}, "
            f"Net: {money(self.net, currency)}, "
            f"Savings rate: {self.savings_rate:.1f}%, "
            f"Balance: {money(self.total_balance, currency)}\n"
            f"Top categories: {top or 'None'}\n"
            f"Budgets: {len(self.budgets)}, Accounts: {len(self.accounts)}"
        )


def budget_statuses(
    ledger: LedgerReader, start: date, end: date
) -> tuple[BudgetStatus, ...]:
    """Spent-in-window against every configured budget."""

    spent_by_category = {
        c.category_id: c.total
        for c in ledger.totals_by_category(TransactionType.EXPENSE, start, end)
    }
    return tuple(
        BudgetStatus(
            budget_id=b.id,
            category_name=b.category_name,
            amount=b.amount,
            spent=spent_by_category.get(b.category_id, Decimal("0.00")),
        )
        for b in ledger.budgets()
    )


def compute_financial_context(ledger: LedgerReader, start: date, end: date) -> FinancialContext:
    by_category = ledger.totals_by_category(TransactionType.EXPENSE, start, end)
    return FinancialContext(
        start=start,
        end=end,
        income=ledger.total(TransactionType.INCOME, start, end),
        expenses=ledger.total(TransactionType.EXPENSE, start, end),
        top_categories=tuple(by_category[:TOP_CATEGORY_LIMIT]),
        budgets=budget_statuses(ledger, start, end),
        accounts=tuple(ledger.accounts()),
    )


__all__ = [
    "TOP_CATEGORY_LIMIT",
    "BudgetStatus",
    "FinancialContext",
    "budget_statuses",
    "compute_financial_context",
]
