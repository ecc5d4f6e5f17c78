"""CLI for the ``finance_tracker`` package.

This module exposes callable command handlers (``cmd_parse``, ``cmd_ask``,
...) and a Typer-based console interface. Environment variables (``FT_*``,
``DATABASE_URL``, provider API keys) are loaded from a local ``.env`` using
``python-dotenv`` in the root callback before any command runs. Business logic
lives in the pipelines; handlers only wire settings, database sessions and
output.
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from db.client import create_schema, session_scope
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .cache import ResponseCache
from .catalog import CategoryCatalog, load_catalog_from_db
from .errors import ConfigError, FinanceTrackerError
from .formatting import format_transaction
from .ledger import SqlLedger
from .logging_setup import configure_logging
from .models import ParsedTransaction
from .parsing import TransactionParsingPipeline
from .persistence import record_parsed_transaction, seed_defaults
from .providers import create_generator
from .query import QueryAnsweringPipeline
from .settings import AIProvider, Settings

console = Console()


def _error(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def _require_database(settings: Settings) -> str:
    if not settings.database_url:
        raise ConfigError("DATABASE_URL is not set (use --database-url or the env var)")
    return settings.database_url


def _parsed_to_json(parsed: ParsedTransaction) -> str:
    payload = asdict(parsed)
    payload["amount"] = f"{parsed.amount:.2f}"
    payload["type"] = parsed.type.value
    payload["source"] = parsed.source.value
    return json.dumps(payload, ensure_ascii=False)


# ---- Command handlers ---------------------------------------------------------


def cmd_parse(
    text: str,
    settings: Settings,
    *,
    save: bool = False,
    account_id: str | None = None,
    as_json: bool = False,
) -> int:
    """Parse ``text``; print the confirmation (or JSON) and optionally store it."""

    try:
        generator = create_generator(settings)
        if settings.database_url:
            with session_scope(database_url=settings.database_url) as session:
                catalog = load_catalog_from_db(session)
        else:
            catalog = CategoryCatalog.default()
    except Exception as e:
        return _error(f"setup failed: {e}")

    pipeline = TransactionParsingPipeline(
        catalog, generator, threshold=settings.confidence_threshold
    )
    parsed = pipeline.parse(text)
    if not parsed.is_persistable:
        return _error("no amount found in the transaction text")

    if save:
        try:
            with session_scope(database_url=_require_database(settings)) as session:
                record_parsed_transaction(
                    session,
                    parsed,
                    catalog=catalog,
                    account_id=account_id,
                    source="cli",
                    raw_text=text,
                )
        except FinanceTrackerError as e:
            return _error(str(e))
        except Exception as e:
            return _error(f"persistence failed: {e}")

    if as_json:
        print(_parsed_to_json(parsed))
    else:
        print(format_transaction(parsed, settings.currency_symbol))
        if save:
            print("Saved.")
    return 0


def cmd_ask(question: str, settings: Settings) -> int:
    try:
        url = _require_database(settings)
        generator = create_generator(settings)
    except ConfigError as e:
        return _error(str(e))

    try:
        with session_scope(database_url=url) as session:
            pipeline = QueryAnsweringPipeline(
                SqlLedger(session),
                generator,
                cache=ResponseCache(settings.query_cache_ttl_seconds),
                currency=settings.currency_symbol,
            )
            answer = pipeline.answer(question)
    except Exception as e:
        return _error(f"query failed: {e}")

    console.print(Panel(answer, title="Answer", border_style="green"))
    return 0


def cmd_insights(settings: Settings, *, today: date | None = None) -> int:
    from .insights import generate_insights

    try:
        url = _require_database(settings)
        with session_scope(database_url=url) as session:
            insights = generate_insights(
                SqlLedger(session), today or date.today(), currency=settings.currency_symbol
            )
    except ConfigError as e:
        return _error(str(e))
    except Exception as e:
        return _error(f"insights failed: {e}")

    if not insights:
        console.print("No insights for this month yet.")
        return 0
    table = Table(title="Insights")
    table.add_column("Priority")
    table.add_column("Title")
    table.add_column("Details")
    for insight in insights:
        table.add_row(insight.priority.value, insight.title, insight.description)
    console.print(table)
    return 0


def cmd_init_db(settings: Settings) -> int:
    try:
        url = _require_database(settings)
        create_schema(database_url=url)
        with session_scope(database_url=url) as session:
            inserted = seed_defaults(session)
    except ConfigError as e:
        return _error(str(e))
    except Exception as e:
        return _error(f"database initialization failed: {e}")

    print("Database ready." if not inserted else "Database ready (defaults seeded).")
    return 0


def cmd_chat(settings: Settings, *, save: bool = True) -> int:
    from .term_ui import run_chat

    try:
        url = _require_database(settings)
        generator = create_generator(settings)
    except ConfigError as e:
        return _error(str(e))

    try:
        with session_scope(database_url=url) as session:
            catalog = load_catalog_from_db(session)
            parser = TransactionParsingPipeline(
                catalog, generator, threshold=settings.confidence_threshold
            )
            answerer = QueryAnsweringPipeline(
                SqlLedger(session),
                generator,
                cache=ResponseCache(settings.query_cache_ttl_seconds),
                currency=settings.currency_symbol,
            )

            def _store(parsed: ParsedTransaction) -> str:
                record_parsed_transaction(session, parsed, catalog=catalog, source="chat")
                session.commit()
                return "Saved."

            run_chat(
                parser=parser,
                answerer=answerer,
                on_transaction=_store if save else None,
                currency=settings.currency_symbol,
            )
    except Exception as e:
        return _error(f"chat failed: {e}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Record transactions from free text and ask questions about your ledger. "
        "Loads FT_* settings, DATABASE_URL and provider API keys from a local .env."
    ),
)


def _settings(ctx: typer.Context) -> Settings:
    settings = ctx.obj
    if not isinstance(settings, Settings):  # pragma: no cover - callback always sets it
        raise typer.Exit(_error("settings were not initialized"))
    return settings


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("parse")
def parse_cmd(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="Free-text transaction, e.g. '-12.50 lunch @ cafe'")],
    save: Annotated[bool, typer.Option(help="Store the parsed transaction.")] = False,
    account: Annotated[
        str | None, typer.Option(help="Account id to book against (default: Cash).")
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the parse as JSON.")] = False,
) -> None:
    """Parse one transaction and print the result."""

    _exit(cmd_parse(text, _settings(ctx), save=save, account_id=account, as_json=as_json))


@app.command("ask")
def ask_cmd(
    ctx: typer.Context,
    question: Annotated[str, typer.Argument(help="Question, e.g. 'where did I spend most?'")],
) -> None:
    """Answer a question about the current month."""

    _exit(cmd_ask(question, _settings(ctx)))


@app.command("insights")
def insights_cmd(ctx: typer.Context) -> None:
    """Show spending, savings and budget insights for this month."""

    _exit(cmd_insights(_settings(ctx)))


@app.command("init-db")
def init_db_cmd(ctx: typer.Context) -> None:
    """Create ledger tables and seed default categories and the Cash account."""

    _exit(cmd_init_db(_settings(ctx)))


@app.command("chat")
def chat_cmd(
    ctx: typer.Context,
    save: Annotated[bool, typer.Option(help="Store parsed transactions.")] = True,
) -> None:
    """Interactive session: type transactions or questions; Ctrl-D to quit."""

    _exit(cmd_chat(_settings(ctx), save=save))


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    database_url: Annotated[
        str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
    ] = None,
    provider: Annotated[
        AIProvider | None, typer.Option(help="Model provider (falls back to FT_AI_PROVIDER).")
    ] = None,
    model: Annotated[
        str | None, typer.Option(help="Model name (falls back to FT_AI_MODEL).")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option(help="Log level (falls back to FINANCE_TRACKER_LOG_LEVEL).")
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables), resolves :class:`Settings` for the
    subcommand and configures logging at ``Settings.log_level``.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    try:
        settings = Settings.from_env().with_overrides(
            database_url=database_url, ai_provider=provider, ai_model=model, log_level=log_level
        )
    except ConfigError as e:
        raise typer.Exit(_error(str(e))) from None
    configure_logging(settings.log_level)
    ctx.obj = settings


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m finance_tracker.cli`
    app()
