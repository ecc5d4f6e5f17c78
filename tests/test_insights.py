from __future__ import annotations

from datetime import date
from decimal import Decimal

from finance_tracker.insights import generate_insights
from finance_tracker.models import BudgetDefinition, InsightKind, InsightPriority, TransactionType
from tests.helpers.ledger import FakeLedger

TODAY = date(2026, 3, 18)
EXP = TransactionType.EXPENSE
INC = TransactionType.INCOME


def _ledger(*, feb: str, mar: str, income: str | None = None) -> FakeLedger:
    led = FakeLedger(names={"groceries": "Groceries", "salary": "Salary"})
    led.add(date(2026, 2, 10), feb, EXP, "groceries")
    led.add(date(2026, 3, 10), mar, EXP, "groceries")
    if income is not None:
        led.add(date(2026, 3, 1), income, INC, "salary")
    return led


def _by_id(insights):
    return {i.id: i for i in insights}


def test_sharp_rise_with_good_savings_and_budget_overrun():
    led = _ledger(feb="100", mar="150", income="1000")
    led.budget_rows = [BudgetDefinition("b1", "groceries", "Groceries", Decimal("140"))]

    insights = generate_insights(led, TODAY)

    assert [i.id for i in insights] == ["spending-change", "great-savings", "budget-over-b1"]
    found = _by_id(insights)
    assert found["spending-change"].title == "Spending Up"
    assert found["spending-change"].kind is InsightKind.ANOMALY
    assert found["spending-change"].priority is InsightPriority.HIGH
    assert found["spending-change"].description == "You're spending 50% more than last month."
    assert found["great-savings"].description == "You're saving 85% of your income."
    assert found["budget-over-b1"].description == "Exceeded by €10.00."
    assert found["budget-over-b1"].priority is InsightPriority.HIGH


def test_moderate_drop_with_low_savings_and_budget_warning():
    led = _ledger(feb="100", mar="85", income="90")
    led.budget_rows = [BudgetDefinition("b1", "groceries", "Groceries", Decimal("100"))]

    found = _by_id(generate_insights(led, TODAY))

    change = found["spending-change"]
    assert (change.title, change.kind, change.priority) == (
        "Spending Down",
        InsightKind.SAVING,
        InsightPriority.MEDIUM,
    )
    assert found["low-savings"].kind is InsightKind.RECOMMENDATION
    assert found["low-savings"].description == "Your savings rate is 6%. Aim for 20%."
    assert found["budget-warning-b1"].description == "85% used."
    assert found["budget-warning-b1"].kind is InsightKind.SPENDING


def test_small_change_without_income_yields_nothing():
    assert generate_insights(_ledger(feb="100", mar="105"), TODAY) == []


def test_middling_savings_rate_is_silent():
    found = _by_id(generate_insights(_ledger(feb="100", mar="85", income="100"), TODAY))
    assert "great-savings" not in found
    assert "low-savings" not in found


def test_zero_budget_is_skipped():
    led = _ledger(feb="100", mar="100")
    led.budget_rows = [BudgetDefinition("b0", "groceries", "Groceries", Decimal("0"))]
    assert generate_insights(led, TODAY) == []
