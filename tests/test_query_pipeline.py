from __future__ import annotations

from datetime import date

import pytest

from finance_tracker.analytics import NO_BUDGETS_MESSAGE
from finance_tracker.cache import ResponseCache
from finance_tracker.errors import GenerationError
from finance_tracker.models import TransactionType
from finance_tracker.query import HELP_MESSAGE, QueryAnsweringPipeline
from tests.helpers.ledger import FakeLedger
from tests.helpers.llm_stub import StubGenerator

OPEN_QUESTION = "Should I buy a new car?"


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def ledger() -> FakeLedger:
    led = FakeLedger(names={"groceries": "Groceries", "salary": "Salary"})
    led.add(date(2026, 3, 2), "40.00", TransactionType.EXPENSE, "groceries")
    led.add(date(2026, 3, 1), "1000.00", TransactionType.INCOME, "salary")
    # Outside the current month; must not reach the narrative context.
    led.add(date(2026, 2, 27), "500.00", TransactionType.EXPENSE, "groceries")
    return led


def _pipeline(ledger, generator=None, *, clock=None, today=date(2026, 3, 18)):
    cache = ResponseCache(300, clock=clock or FakeClock())
    return QueryAnsweringPipeline(ledger, generator, cache=cache, today=lambda: today)


def test_local_intent_never_calls_model(ledger):
    stub = StubGenerator(text="unused")
    answer = _pipeline(ledger, stub).answer("How's my budget?")
    assert answer == NO_BUDGETS_MESSAGE
    assert stub.calls == 0


def test_local_answer_uses_current_month_window(ledger):
    assert _pipeline(ledger).answer("How much have I spent?") == "You've spent €40.00 this month."


def test_open_question_goes_to_narrative_once_and_is_cached(ledger):
    stub = StubGenerator(text="  A car would cost more than you save.  ")
    pipeline = _pipeline(ledger, stub)

    first = pipeline.answer(OPEN_QUESTION)
    second = pipeline.answer("  should i BUY a new car?")

    assert first == second == "A car would cost more than you save."
    assert len(stub.text_calls) == 1


def test_narrative_prompt_carries_question_and_month_context(ledger):
    stub = StubGenerator(text="ok")
    _pipeline(ledger, stub).answer(OPEN_QUESTION)

    (prompt,) = stub.text_calls
    assert f"Question: {OPEN_QUESTION}" in prompt
    assert "Period: 2026-03-01 to 2026-03-31" in prompt
    assert "Expenses: €40.00" in prompt
    assert "Top categories: Groceries: €40.00" in prompt
    assert "€500.00" not in prompt


def test_local_answers_are_cached_within_ttl(ledger):
    clock = FakeClock()
    pipeline = _pipeline(ledger, clock=clock)
    assert pipeline.answer("income") == "Your income this month: €1000.00"

    ledger.add(date(2026, 3, 5), "200.00", TransactionType.INCOME, "salary")
    clock.now += 299
    assert pipeline.answer("income") == "Your income this month: €1000.00"

    clock.now += 1
    assert pipeline.answer("income") == "Your income this month: €1200.00"


def test_expired_narrative_is_regenerated(ledger):
    clock = FakeClock()
    stub = StubGenerator(text="narrative")
    pipeline = _pipeline(ledger, stub, clock=clock)
    pipeline.answer(OPEN_QUESTION)
    clock.now += 301
    pipeline.answer(OPEN_QUESTION)
    assert len(stub.text_calls) == 2


@pytest.mark.parametrize(
    "failure",
    [GenerationError("rate limited"), RuntimeError("socket closed"), "   "],
)
def test_narrative_failure_returns_help_and_is_not_cached(ledger, failure):
    stub = StubGenerator(text=failure)
    pipeline = _pipeline(ledger, stub)
    assert pipeline.answer(OPEN_QUESTION) == HELP_MESSAGE
    assert pipeline.answer(OPEN_QUESTION) == HELP_MESSAGE
    assert len(stub.text_calls) == 2
    assert len(pipeline.cache) == 0


def test_without_generator_open_question_gets_help(ledger):
    pipeline = _pipeline(ledger)
    assert pipeline.answer(OPEN_QUESTION) == HELP_MESSAGE
    assert len(pipeline.cache) == 0


class BrokenLedger(FakeLedger):
    def total(self, kind, start, end):
        raise RuntimeError("database is locked")


def test_local_failure_degrades_to_help():
    stub = StubGenerator(text="unused")
    assert _pipeline(BrokenLedger(), stub).answer("income") == HELP_MESSAGE
    assert stub.calls == 0


def test_answer_is_never_empty(ledger):
    for q in ["", "   ", "?", OPEN_QUESTION, "summary"]:
        assert _pipeline(ledger).answer(q)
