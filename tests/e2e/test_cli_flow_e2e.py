"""End-to-end: init a SQLite ledger, record transactions, ask questions.

Runs with the model provider disabled, so every answer comes from the rule
parser and the local answerer; no network access is needed.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest
from db.client import session_scope
from db.models.ledger import LedgerAccount, LedgerTransaction
from sqlalchemy import select
from typer.testing import CliRunner

from finance_tracker.cli import app, cmd_ask, cmd_insights, cmd_parse
from finance_tracker.settings import AIProvider, Settings
from tests.helpers.db import add_budget, add_transaction, bootstrap_sqlite_db


@pytest.fixture
def settings(tmp_path) -> Settings:
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    return Settings(ai_provider=AIProvider.NONE, database_url=url)


def test_parse_and_save_books_against_cash(settings, capsys):
    assert cmd_parse("lunch 12.50 at cafe", settings, save=True) == 0
    assert cmd_parse("+3000, salary", settings, save=True) == 0

    out = capsys.readouterr().out
    assert "💸 -€12.50" in out
    assert "📁 Dining Out" in out
    assert out.count("Saved.") == 2

    with session_scope(database_url=settings.database_url) as s:
        amounts = sorted(s.execute(select(LedgerTransaction.amount)).scalars())
        cash = s.get(LedgerAccount, "cash")
        assert amounts == [Decimal("-12.50"), Decimal("3000.00")]
        assert cash.balance == Decimal("2987.50")


def test_parse_json_without_database(capsys):
    settings = Settings(ai_provider=AIProvider.NONE)
    assert cmd_parse("-45, groceries, Lidl", settings, as_json=True) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["amount"] == "45.00"
    assert payload["type"] == "expense"
    assert payload["category"] == "Groceries"
    assert payload["merchant"] == "Lidl"
    assert payload["source"] == "rules"


def test_parse_without_amount_fails(settings, capsys):
    assert cmd_parse("coffee with friends", settings) == 1
    assert "no amount" in capsys.readouterr().err


def test_save_requires_database(capsys):
    settings = Settings(ai_provider=AIProvider.NONE)
    assert cmd_parse("-5 coffee", settings, save=True) == 1
    assert "DATABASE_URL" in capsys.readouterr().err


def test_ask_answers_from_current_month(settings, capsys):
    add_transaction(settings.database_url, when=date.today(), amount="-20", category_id="dining")
    assert cmd_ask("How much have I spent?", settings) == 0
    assert "You've spent €20.00 this month." in capsys.readouterr().out


def test_ask_open_question_without_model_returns_help(settings, capsys):
    assert cmd_ask("Should I buy a boat?", settings) == 0
    assert "Ask me about" in capsys.readouterr().out


def test_insights_table(settings, capsys):
    url = settings.database_url
    add_transaction(url, when=date(2026, 3, 5), amount="-95", category_id="groceries")
    add_budget(url, budget_id="b1", category_id="groceries", amount="100")
    assert cmd_insights(settings, today=date(2026, 3, 18)) == 0
    out = capsys.readouterr().out
    assert "Budget Alert: Groceries" in out
    assert "95% used." in out


def test_typer_app_init_db_then_parse(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    url = f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"
    runner = CliRunner()

    first = runner.invoke(app, ["--database-url", url, "--provider", "none", "init-db"])
    assert first.exit_code == 0, first.output
    assert "Database ready (defaults seeded)." in first.output

    again = runner.invoke(app, ["--database-url", url, "--provider", "none", "init-db"])
    assert "Database ready." in again.output

    parsed = runner.invoke(
        app, ["--database-url", url, "--provider", "none", "parse", "--save", "metro ticket 3"]
    )
    assert parsed.exit_code == 0, parsed.output
    assert "Public Transit" in parsed.output


def test_typer_app_rejects_bad_threshold(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("FT_CONFIDENCE_THRESHOLD", "2")
    result = CliRunner().invoke(app, ["--provider", "none", "parse", "coffee 5"])
    assert result.exit_code == 1
