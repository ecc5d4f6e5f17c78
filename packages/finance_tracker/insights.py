"""Rule-based monthly insights.

Three families, in output order:

- spending change versus last month (more than 10% either way; high priority
  above 25%);
- savings rate this month (praise at 20% or more, nudge between 0% and 10%);
- budget alerts (over at 100%, warning at 80%).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from .context import budget_statuses
from .formatting import money
from .ledger import LedgerReader, month_window, previous_month_window
from .models import Insight, InsightKind, InsightPriority, TransactionType

_CHANGE_THRESHOLD_PCT = Decimal("10")
_HIGH_CHANGE_PCT = Decimal("25")
_GOOD_SAVINGS_PCT = Decimal("20")
_LOW_SAVINGS_PCT = Decimal("10")


def _spending_change(this_month: Decimal, last_month: Decimal) -> Insight | None:
    if last_month <= 0:
        return None
    change = (this_month - last_month) / last_month * 100
    if abs(change) <= _CHANGE_THRESHOLD_PCT:
        return None
    up = change > 0
    return Insight(
        id="spending-change",
        kind=InsightKind.ANOMALY if up else InsightKind.SAVING,
        title="Spending Up" if up else "Spending Down",
        description=(
            f"You're spending {abs(change):.0f}% {'more' if up else 'less'} than last month."
        ),
        priority=InsightPriority.HIGH if abs(change) > _HIGH_CHANGE_PCT else InsightPriority.MEDIUM,
    )


def _savings(income: Decimal, expenses: Decimal) -> Insight | None:
    if income <= 0:
        return None
    rate = (income - expenses) / income * 100
    if rate >= _GOOD_SAVINGS_PCT:
        return Insight(
            id="great-savings",
            kind=InsightKind.SAVING,
            title="Great Savings!",
            description=f"You're saving {rate:.0f}% of your income.",
            priority=InsightPriority.LOW,
        )
    if 0 <= rate < _LOW_SAVINGS_PCT:
        return Insight(
            id="low-savings",
            kind=InsightKind.RECOMMENDATION,
            title="Consider Saving More",
            description=f"Your savings rate is {rate:.0f}%. Aim for 20%.",
            priority=InsightPriority.MEDIUM,
        )
    return None


def generate_insights(
    ledger: LedgerReader, today: date, *, currency: str = "€"
) -> list[Insight]:
    current = month_window(today)
    previous = previous_month_window(today)

    expenses = ledger.total(TransactionType.EXPENSE, current.start, current.end)
    last_expenses = ledger.total(TransactionType.EXPENSE, previous.start, previous.end)
    income = ledger.total(TransactionType.INCOME, current.start, current.end)

    out: list[Insight] = []
    for insight in (_spending_change(expenses, last_expenses), _savings(income, expenses)):
        if insight is not None:
            out.append(insight)

    for status in budget_statuses(ledger, current.start, current.end):
        if status.amount <= 0:
            continue
        pct = status.spent / status.amount * 100
        if pct >= 100:
            out.append(
                Insight(
                    id=f"budget-over-{status.budget_id}",
                    kind=InsightKind.ANOMALY,
                    title=f"Over Budget: {status.category_name}",
                    description=f"Exceeded by {money(status.spent - status.amount, currency)}.",
                    priority=InsightPriority.HIGH,
                )
            )
        elif pct >= 80:
            out.append(
                Insight(
                    id=f"budget-warning-{status.budget_id}",
                    kind=InsightKind.SPENDING,
                    title=f"Budget Alert: {status.category_name}",
                    description=f"{pct:.0f}% used.",
                    priority=InsightPriority.MEDIUM,
                )
            )
    return out


__all__ = ["generate_insights"]
