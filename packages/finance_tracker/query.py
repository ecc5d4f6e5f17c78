"""Answer free-text financial questions.

Order of resolution for ``QueryAnsweringPipeline.answer``:

1. cached answer for the normalized query (within the TTL);
2. :class:`~finance_tracker.analytics.LocalQueryAnswerer` over the current
   month;
3. one narrative-generation call over a compact
   :class:`~finance_tracker.context.FinancialContext`.

Answers from 2 and 3 are cached. When 3 fails (or no generator is
configured) the fixed :data:`HELP_MESSAGE` is returned and not cached.
``answer`` always returns a non-empty string and never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from .analytics import LocalQueryAnswerer
from .cache import ResponseCache, normalize_query
from .context import compute_financial_context
from .errors import GenerationError
from .ledger import LedgerReader, month_window
from .logging_setup import get_logger, log_event
from .prompting import build_answer_prompt
from .providers import TextGenerator

_logger = get_logger("finance_tracker.query")

HELP_MESSAGE = "Ask me about: spending, income, balance, budgets, savings, or get a summary!"


class QueryAnsweringPipeline:
    def __init__(
        self,
        ledger: LedgerReader,
        generator: TextGenerator | None = None,
        *,
        cache: ResponseCache | None = None,
        currency: str = "€",
        today: Callable[[], date] = date.today,
    ) -> None:
        self.ledger = ledger
        self.generator = generator
        self.cache = cache if cache is not None else ResponseCache()
        self.currency = currency
        self._today = today
        self._local = LocalQueryAnswerer(ledger, currency=currency)

    def answer(self, query: str) -> str:
        key = normalize_query(query)
        cached = self.cache.get(key)
        if cached is not None:
            log_event(_logger, "query:cache_hit")
            return cached

        window = month_window(self._today())
        try:
            local = self._local.answer(key, window.start, window.end)
        except Exception as e:  # noqa: BLE001 - callers always get an answer
            log_event(
                _logger, "query:local_failed", level=logging.WARNING, error=e.__class__.__name__
            )
            return HELP_MESSAGE
        if local is not None:
            self.cache.put(key, local)
            return local

        if self.generator is None:
            log_event(_logger, "query:no_generator")
            return HELP_MESSAGE

        try:
            text = self._narrative(query, window.start, window.end)
        except Exception as e:  # noqa: BLE001 - narrative failures degrade to help text
            log_event(
                _logger,
                "query:narrative_failed",
                level=logging.WARNING,
                error=e.__class__.__name__,
            )
            return HELP_MESSAGE
        self.cache.put(key, text)
        return text

    def _narrative(self, query: str, start: date, end: date) -> str:
        assert self.generator is not None
        context = compute_financial_context(self.ledger, start, end)
        prompt = build_answer_prompt(
            query.strip(),
            context_text=context.to_prompt_text(self.currency),
            currency=self.currency,
        )
        log_event(_logger, "query:narrative", window_start=start)
        text = (self.generator.generate_text(prompt) or "").strip()
        if not text:
            raise GenerationError("narrative generation returned empty text")
        return text


__all__ = ["HELP_MESSAGE", "QueryAnsweringPipeline"]
