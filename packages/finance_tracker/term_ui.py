"""Interactive terminal chat (prompt_toolkit-based).

One loop serves both halves of the system: a line that reads like a
transaction (it carries an amount and is not phrased as a question) is parsed
and confirmed; anything else is answered as a financial question. The loop is
kept free of database wiring so it can be driven in tests with a pipe input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

from .analytics import INTENT_TRIGGERS
from .errors import FinanceTrackerError
from .extractors import extract_amount
from .formatting import format_transaction
from .logging_setup import get_logger, log_event
from .models import ParsedTransaction
from .parsing import TransactionParsingPipeline
from .query import QueryAnsweringPipeline

_logger = get_logger("finance_tracker.term_ui")

EXIT_WORDS = frozenset({"exit", "quit", ":q"})
NO_AMOUNT_MESSAGE = "I couldn't find an amount in that. Try something like '-12.50 lunch @ cafe'."

_QUESTION_START_RE = re.compile(r"^(?:how|what|where|when|which|why)\b", re.IGNORECASE)


def looks_like_question(text: str) -> bool:
    """Questions end with ``?``, start with a wh-word, or carry no amount.

    Words such as "show" or "can" also begin transactions ("can of paint 5"),
    so they count only through the no-amount rule.
    """

    stripped = text.strip()
    if stripped.endswith("?") or _QUESTION_START_RE.match(stripped):
        return True
    return not extract_amount(stripped).amount > 0


def _vocabulary(category_names: Iterable[str]) -> list[str]:
    words = [t for _, triggers in INTENT_TRIGGERS for t in triggers]
    words += ["summary", "overview", "budget", "savings"]
    words += list(category_names)
    return list(dict.fromkeys(words))


def run_chat(
    *,
    parser: TransactionParsingPipeline,
    answerer: QueryAnsweringPipeline,
    on_transaction: Callable[[ParsedTransaction], str | None] | None = None,
    session: PromptSession | None = None,
    echo: Callable[[str], None] = print,
    currency: str = "€",
    message: str = "> ",
) -> int:
    """Run the chat loop until EOF, Ctrl-C or an exit word.

    ``on_transaction`` receives every parse that carries an amount (for
    example to store it) and may return a short status line to print. Returns
    the number of lines handled.
    """

    if session is None:
        session = PromptSession()
    completer = WordCompleter(
        _vocabulary(parser.catalog.names()), ignore_case=True, match_middle=True
    )

    handled = 0
    while True:
        try:
            line = session.prompt(message, completer=completer)
        except (EOFError, KeyboardInterrupt):
            break
        text = line.strip()
        if not text:
            continue
        if text.lower() in EXIT_WORDS:
            break
        handled += 1

        if looks_like_question(text):
            echo(answerer.answer(text))
            continue

        parsed = parser.parse(text)
        if not parsed.is_persistable:
            echo(NO_AMOUNT_MESSAGE)
            continue
        echo(format_transaction(parsed, currency))
        if on_transaction is None:
            continue
        try:
            status = on_transaction(parsed)
        except FinanceTrackerError as e:
            log_event(
                _logger,
                "chat:transaction_rejected",
                level=logging.WARNING,
                error=e.__class__.__name__,
            )
            echo(f"Error: {e}")
            continue
        # Stored data changed; cached answers may be stale.
        answerer.cache.clear()
        if status:
            echo(status)

    log_event(_logger, "chat:done", handled=handled)
    return handled


__all__ = ["EXIT_WORDS", "NO_AMOUNT_MESSAGE", "looks_like_question", "run_chat"]
