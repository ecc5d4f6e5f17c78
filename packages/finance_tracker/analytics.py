"""Local answers to canonical financial questions.

:class:`LocalQueryAnswerer` recognizes a fixed set of intents by trigger-word
containment and computes the answer directly from the ledger. Intents are
checked in priority order and the first match answers:

1. spending (with a top-5 category breakdown when the query asks "where",
   "top", "most" or mentions categories)
2. income
3. balance
4. budget status
5. savings
6. summary

An unrecognized query yields ``None``; the query pipeline then falls back to a
narrative answer.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum

from .context import TOP_CATEGORY_LIMIT, BudgetStatus, budget_statuses
from .formatting import money
from .ledger import LedgerReader
from .logging_setup import get_logger, log_event
from .models import TransactionType

_logger = get_logger("finance_tracker.analytics")

NO_BUDGETS_MESSAGE = "You haven't set up any budgets yet."
NO_EXPENSES_MESSAGE = "No expenses recorded this month."

_NEAR_BUDGET_RATIO = Decimal("0.8")


class QueryIntent(StrEnum):
    SPENDING = "spending"
    INCOME = "income"
    BALANCE = "balance"
    BUDGET = "budget"
    SAVINGS = "savings"
    SUMMARY = "summary"


# Priority order matters: first intent whose trigger occurs in the query wins.
INTENT_TRIGGERS: tuple[tuple[QueryIntent, tuple[str, ...]], ...] = (
    (QueryIntent.SPENDING, ("spent", "spending", "expense")),
    (QueryIntent.INCOME, ("income", "earn")),
    (QueryIntent.BALANCE, ("balance", "have", "total")),
    (QueryIntent.BUDGET, ("budget",)),
    (QueryIntent.SAVINGS, ("save", "saving")),
    (QueryIntent.SUMMARY, ("summary", "overview")),
)

_BREAKDOWN_TRIGGERS: tuple[str, ...] = ("category", "where", "top", "most")


def detect_intent(query: str) -> QueryIntent | None:
    """First intent (in priority order) triggered by the lowercased ``query``."""

    for intent, triggers in INTENT_TRIGGERS:
        if any(t in query for t in triggers):
            return intent
    return None


def budget_marker(status: BudgetStatus) -> str:
    """🔴 over budget, 🟡 above 80% of it, 🟢 otherwise."""

    if status.spent > status.amount:
        return "🔴"
    if status.spent > status.amount * _NEAR_BUDGET_RATIO:
        return "🟡"
    return "🟢"


class LocalQueryAnswerer:
    def __init__(self, ledger: LedgerReader, *, currency: str = "€") -> None:
        self.ledger = ledger
        self.currency = currency

    def answer(self, query: str, start: date, end: date) -> str | None:
        """Answer ``query`` (already lowercased) over ``[start, end]``, or ``None``."""

        intent = detect_intent(query)
        if intent is None:
            return None
        log_event(_logger, "query:local_answer", intent=intent)

        if intent is QueryIntent.SPENDING:
            if any(t in query for t in _BREAKDOWN_TRIGGERS):
                return self._spending_breakdown(start, end)
            return self._spending_total(start, end)
        if intent is QueryIntent.INCOME:
            return self._income(start, end)
        if intent is QueryIntent.BALANCE:
            return self._balance()
        if intent is QueryIntent.BUDGET:
            return self._budgets(start, end)
        if intent is QueryIntent.SAVINGS:
            return self._savings(start, end)
        return self._summary(start, end)

    # ---- Intents -------------------------------------------------------------

    def _m(self, value: Decimal) -> str:
        return money(value, self.currency)

    def _spending_total(self, start: date, end: date) -> str:
        total = self.ledger.total(TransactionType.EXPENSE, start, end)
        return f"You've spent {self._m(total)} this month."

    def _spending_breakdown(self, start: date, end: date) -> str:
        ranked = list(self.ledger.totals_by_category(TransactionType.EXPENSE, start, end))
        if not ranked:
            return NO_EXPENSES_MESSAGE
        total = self.ledger.total(TransactionType.EXPENSE, start, end)
        lines = [
            f"{i}. {c.category_name}: {self._m(c.total)}"
            for i, c in enumerate(ranked[:TOP_CATEGORY_LIMIT], start=1)
        ]
        return "Top spending this month:\n" + "\n".join(lines) + f"\n\nTotal: {self._m(total)}"

    def _income(self, start: date, end: date) -> str:
        total = self.ledger.total(TransactionType.INCOME, start, end)
        return f"Your income this month: {self._m(total)}"

    def _balance(self) -> str:
        accounts = list(self.ledger.accounts())
        total = sum((a.balance for a in accounts), Decimal("0.00"))
        head = f"Total balance: {self._m(total)}"
        if not accounts:
            return head
        breakdown = "\n".join(f"{a.name}: {self._m(a.balance)}" for a in accounts)
        return f"{head}\n\n{breakdown}"

    def _budgets(self, start: date, end: date) -> str:
        statuses = budget_statuses(self.ledger, start, end)
        if not statuses:
            return NO_BUDGETS_MESSAGE
        lines = [
            f"{budget_marker(s)} {s.category_name}: {self._m(s.spent)} / {self._m(s.amount)} "
            f"({s.percent_used}%)"
            for s in statuses
        ]
        return "Budget Status:\n" + "\n".join(lines)

    def _savings(self, start: date, end: date) -> str:
        income = self.ledger.total(TransactionType.INCOME, start, end)
        expenses = self.ledger.total(TransactionType.EXPENSE, start, end)
        net = income - expenses
        if net >= 0:
            rate = net / income * 100 if income > 0 else Decimal("0")
            return f"You've saved {self._m(net)} this month ({rate:.1f}% savings rate)."
        return f"You're spending {self._m(-net)} more than you earn this month."

    def _summary(self, start: date, end: date) -> str:
        income = self.ledger.total(TransactionType.INCOME, start, end)
        expenses = self.ledger.total(TransactionType.EXPENSE, start, end)
        net = income - expenses
        balance = sum((a.balance for a in self.ledger.accounts()), Decimal("0.00"))
        net_line = f"✅ Net: +{self._m(net)}" if net >= 0 else f"⚠️ Net: {self._m(net)}"
        return "\n".join(
            [
                "📊 Monthly Summary:",
                f"💰 Income: {self._m(income)}",
                f"💸 Expenses: {self._m(expenses)}",
                net_line,
                f"🏦 Balance: {self._m(balance)}",
            ]
        )


__all__ = [
    "INTENT_TRIGGERS",
    "NO_BUDGETS_MESSAGE",
    "NO_EXPENSES_MESSAGE",
    "LocalQueryAnswerer",
    "QueryIntent",
    "budget_marker",
    "detect_intent",
]
