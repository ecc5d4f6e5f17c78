from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.analytics import (
    NO_BUDGETS_MESSAGE,
    NO_EXPENSES_MESSAGE,
    LocalQueryAnswerer,
    QueryIntent,
    budget_marker,
    detect_intent,
)
from finance_tracker.context import BudgetStatus
from finance_tracker.models import AccountBalance, BudgetDefinition, TransactionType
from tests.helpers.ledger import FakeLedger

EXP = TransactionType.EXPENSE
INC = TransactionType.INCOME
MARCH = (date(2026, 3, 1), date(2026, 3, 31))

NAMES = {
    "groceries": "Groceries",
    "dining": "Dining Out",
    "transit": "Public Transit",
    "shopping": "Shopping",
    "fuel": "Fuel",
    "health": "Health",
    "salary": "Salary",
}


@pytest.fixture
def ledger() -> FakeLedger:
    led = FakeLedger(names=dict(NAMES))
    led.add(date(2026, 3, 2), "30.00", EXP, "groceries")
    led.add(date(2026, 3, 9), "20.50", EXP, "groceries")
    led.add(date(2026, 3, 10), "45.00", EXP, "dining")
    led.add(date(2026, 3, 31), "5.00", EXP, "transit")
    led.add(date(2026, 4, 1), "99.00", EXP, "dining")
    led.add(date(2026, 3, 1), "2500.00", INC, "salary")
    led.account_rows = [
        AccountBalance("bank", "Bank", Decimal("1000.00")),
        AccountBalance("cash", "Cash", Decimal("120.00")),
    ]
    return led


def _ask(ledger: FakeLedger, query: str) -> str | None:
    return LocalQueryAnswerer(ledger).answer(query, *MARCH)


@pytest.mark.parametrize(
    "query, intent",
    [
        ("how much have i spent", QueryIntent.SPENDING),
        ("what did i earn", QueryIntent.INCOME),
        ("what's my total", QueryIntent.BALANCE),
        ("how's my budget?", QueryIntent.BUDGET),
        ("am i saving money", QueryIntent.SAVINGS),
        ("give me an overview", QueryIntent.SUMMARY),
        ("tell me a joke", None),
    ],
)
def test_detect_intent(query, intent):
    assert detect_intent(query) is intent


def test_spending_wins_over_later_intents():
    # "have" (balance) and "budget" also occur; spending is checked first.
    assert detect_intent("have i spent my budget") is QueryIntent.SPENDING


def test_spending_total(ledger):
    assert _ask(ledger, "how much have i spent") == "You've spent €100.50 this month."


def test_spending_breakdown(ledger):
    assert _ask(ledger, "where am i spending the most") == (
        "Top spending this month:\n"
        "1. Groceries: €50.50\n"
        "2. Dining Out: €45.00\n"
        "3. Public Transit: €5.00\n"
        "\n"
        "Total: €100.50"
    )


def test_spending_breakdown_caps_at_five_categories(ledger):
    for cid, amount in [("shopping", "4"), ("fuel", "3"), ("health", "2")]:
        ledger.add(date(2026, 3, 15), amount, EXP, cid)
    text = _ask(ledger, "top spending categories")
    assert "4. Shopping: €4.00" in text
    assert "5. Fuel: €3.00" in text
    assert "Health" not in text
    assert text.endswith("Total: €109.50")


def test_spending_breakdown_without_expenses():
    assert _ask(FakeLedger(), "top spending") == NO_EXPENSES_MESSAGE


def test_income(ledger):
    assert _ask(ledger, "what is my income") == "Your income this month: €2500.00"


def test_balance_lists_accounts(ledger):
    assert _ask(ledger, "what's my balance") == "Total balance: €1120.00\n\nBank: €1000.00\nCash: €120.00"


def test_balance_without_accounts():
    assert _ask(FakeLedger(), "balance") == "Total balance: €0.00"


def test_budget_status_markers(ledger):
    ledger.budget_rows = [
        BudgetDefinition("b1", "groceries", "Groceries", Decimal("50.00")),
        BudgetDefinition("b2", "dining", "Dining Out", Decimal("50.00")),
        BudgetDefinition("b3", "transit", "Public Transit", Decimal("100.00")),
    ]
    assert _ask(ledger, "how's my budget?") == (
        "Budget Status:\n"
        "🔴 Groceries: €50.50 / €50.00 (101%)\n"
        "🟡 Dining Out: €45.00 / €50.00 (90%)\n"
        "🟢 Public Transit: €5.00 / €100.00 (5%)"
    )


def test_no_budgets_message(ledger):
    assert _ask(ledger, "how's my budget?") == NO_BUDGETS_MESSAGE


def test_savings_positive(ledger):
    assert _ask(ledger, "am i saving") == "You've saved €2399.50 this month (96.0% savings rate)."


def test_savings_negative():
    led = FakeLedger(names=dict(NAMES))
    led.add(date(2026, 3, 3), "100", INC, "salary")
    led.add(date(2026, 3, 4), "130", EXP, "groceries")
    assert _ask(led, "am i saving") == "You're spending €30.00 more than you earn this month."


def test_savings_without_income_reports_zero_rate():
    assert _ask(FakeLedger(), "saving") == "You've saved €0.00 this month (0.0% savings rate)."


def test_summary(ledger):
    assert _ask(ledger, "monthly summary") == (
        "📊 Monthly Summary:\n"
        "💰 Income: €2500.00\n"
        "💸 Expenses: €100.50\n"
        "✅ Net: +€2399.50\n"
        "🏦 Balance: €1120.00"
    )


def test_summary_negative_net():
    led = FakeLedger(names=dict(NAMES))
    led.add(date(2026, 3, 4), "12.5", EXP, "groceries")
    assert "⚠️ Net: -€12.50" in _ask(led, "overview")


def test_unrecognized_query_returns_none_without_reading(ledger):
    assert _ask(ledger, "tell me a joke") is None
    assert ledger.reads == 0


def test_currency_symbol_is_configurable(ledger):
    answerer = LocalQueryAnswerer(ledger, currency="$")
    assert answerer.answer("income", *MARCH) == "Your income this month: $2500.00"


@pytest.mark.parametrize(
    "spent, marker",
    [("0", "🟢"), ("80", "🟢"), ("80.01", "🟡"), ("100", "🟡"), ("100.01", "🔴")],
)
def test_budget_marker_thresholds(spent, marker):
    status = BudgetStatus("b", "X", Decimal("100"), Decimal(spent))
    assert budget_marker(status) == marker


def test_percent_used_of_zero_budget_is_zero():
    assert BudgetStatus("b", "X", Decimal("0"), Decimal("10")).percent_used == 0
