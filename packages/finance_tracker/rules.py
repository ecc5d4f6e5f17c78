"""Rule-based transaction parser.

Composes the extractors in :mod:`finance_tracker.extractors` into a single
:class:`~finance_tracker.models.ParsedTransaction`. The result is fully
deterministic for a given text, catalog and date.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date

from .catalog import CategoryCatalog
from .extractors import (
    classify_direction,
    extract_amount,
    extract_merchant,
    match_category,
    resolve_date,
)
from .logging_setup import get_logger, log_event
from .models import ParsedTransaction, ParseSource

_logger = get_logger("finance_tracker.rules")

_AMOUNT_TOKEN_RE = re.compile(
    r"[+-]?\s*[$€£]?\s*\d+(?:[.,]\d{1,2})?\s*[$€£]?(?:\s*(?:euros?|eur|usd|dollars?)\b)?",
    re.IGNORECASE,
)
_AT_SIGN_TOKEN_RE = re.compile(r"@\s*[^,]+")
_DATE_WORDS_RE = re.compile(r"\b(?:yesterday|today|last week)\b", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

_MIN_DESCRIPTION_LEN = 2


def build_description(
    text: str, *, positional_merchant: str | None, fallback: str | None
) -> str:
    """Human description: ``text`` minus amount, ``@merchant`` and date words.

    Comma fields left empty by the stripping are dropped, as is the field that
    supplied a positional merchant. Residue shorter than two characters is
    replaced by ``fallback`` (the category name) or ``"Transaction"``. The
    first character is upper-cased.
    """

    residue = _AMOUNT_TOKEN_RE.sub(" ", text)
    residue = _AT_SIGN_TOKEN_RE.sub(" ", residue)
    residue = _DATE_WORDS_RE.sub(" ", residue)

    parts = [p.strip() for p in residue.split(",")]
    parts = [p for p in parts if p and p != positional_merchant]
    description = _WHITESPACE_RE.sub(" ", ", ".join(parts)).strip()

    if len(description) < _MIN_DESCRIPTION_LEN:
        description = fallback or "Transaction"
    return description[:1].upper() + description[1:]


class RuleBasedParser:
    """Fast keyword/regex parser.

    Parameters
    ----------
    catalog:
        Categories to match against.
    today:
        Callable returning the current date; relative dates are resolved
        against it. Defaults to :meth:`datetime.date.today`.
    """

    def __init__(
        self, catalog: CategoryCatalog, *, today: Callable[[], date] = date.today
    ) -> None:
        self.catalog = catalog
        self._today = today

    def parse(self, text: str) -> ParsedTransaction:
        lowered = text.lower().strip()

        amount = extract_amount(text)
        kind = classify_direction(lowered, amount.sign)
        when = resolve_date(lowered, self._today())
        match = match_category(lowered, kind, self.catalog)
        merchant = extract_merchant(text)

        description = build_description(
            text,
            positional_merchant=merchant.merchant if merchant.positional else None,
            fallback=match.category.name,
        )

        log_event(
            _logger,
            "rules:parsed",
            level=logging.DEBUG,
            amount=amount.amount,
            type=kind,
            category=match.category.name,
            keyword=match.keyword,
        )
        return ParsedTransaction(
            amount=abs(amount.amount),
            type=kind,
            category=match.category.name,
            merchant=merchant.merchant,
            description=description,
            date=when,
            confidence=match.confidence,
            source=ParseSource.RULES,
        )


__all__ = ["RuleBasedParser", "build_description"]
