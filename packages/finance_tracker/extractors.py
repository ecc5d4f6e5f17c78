"""Deterministic extractors used by the rule-based transaction parser.

Each extractor is a pure function over the input text. They are composed by
:class:`finance_tracker.rules.RuleBasedParser`; keeping them separate lets the
behavior of every step be tested on its own.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Literal, NamedTuple, TypeAlias

from .catalog import CategoryCatalog
from .models import CategoryDefinition, TransactionType

Sign: TypeAlias = Literal["+", "-"]

KEYWORD_MATCH_CONFIDENCE = 0.85
FALLBACK_CONFIDENCE = 0.5

_NUMBER = r"\d+(?:[.,]\d{1,2})?"

# Amount patterns in priority order; only the first that matches is used.
_SIGNED_AMOUNT_RE = re.compile(rf"([+-])\s*[$€£]?\s*({_NUMBER})")
_SYMBOL_FIRST_RE = re.compile(rf"[$€£]\s*({_NUMBER})")
_SYMBOL_LAST_RE = re.compile(rf"({_NUMBER})\s*[$€£]")
_BARE_AMOUNT_RE = re.compile(rf"({_NUMBER})\s*(?:eur|usd|euro|dollar)?", re.IGNORECASE)

INCOME_KEYWORDS: tuple[str, ...] = (
    "salary",
    "paycheck",
    "income",
    "received",
    "got paid",
    "earned",
    "bonus",
    "refund",
    "dividend",
    "gift from",
    "sent me",
)

_YESTERDAY_RE = re.compile(r"\byesterday\b", re.IGNORECASE)
_LAST_WEEK_RE = re.compile(r"\blast week\b", re.IGNORECASE)

_AT_SIGN_MERCHANT_RE = re.compile(r"@\s*([^,]+)")
_AT_WORD_MERCHANT_RE = re.compile(r"\bat\s+([^,]+)", re.IGNORECASE)


class AmountMatch(NamedTuple):
    """Magnitude found in the text plus the explicit sign token, if any.

    ``amount`` is ``Decimal("0")`` when nothing numeric was found.
    """

    amount: Decimal
    sign: Sign | None


class CategoryMatch(NamedTuple):
    category: CategoryDefinition
    confidence: float
    keyword: str | None


class MerchantMatch(NamedTuple):
    """Merchant token and whether it came from the third comma-separated field."""

    merchant: str | None
    positional: bool


def _to_decimal(raw: str) -> Decimal:
    return Decimal(raw.replace(",", "."))


def extract_amount(text: str) -> AmountMatch:
    """Locate the transaction amount in ``text``.

    Patterns are tried in this order, first match wins:

    1. explicit sign, optional currency symbol, digits (``-30``, ``+$50``)
    2. currency symbol then digits (``$30``, ``€ 45``)
    3. digits then currency symbol (``30$``, ``45€``)
    4. bare digits with an optional currency word (``30 eur``, ``12.50``)

    A ``,`` decimal separator is read as ``.``. The returned amount is always
    non-negative; the sign only travels in :attr:`AmountMatch.sign`.
    """

    m = _SIGNED_AMOUNT_RE.search(text)
    if m is not None:
        sign: Sign = "+" if m.group(1) == "+" else "-"
        return AmountMatch(_to_decimal(m.group(2)), sign)

    for pattern in (_SYMBOL_FIRST_RE, _SYMBOL_LAST_RE, _BARE_AMOUNT_RE):
        m = pattern.search(text)
        if m is not None:
            return AmountMatch(_to_decimal(m.group(1)), None)

    return AmountMatch(Decimal("0"), None)


def classify_direction(text: str, sign: Sign | None) -> TransactionType:
    """Income or expense; an explicit sign always beats keyword inference."""

    if sign == "+":
        return TransactionType.INCOME
    if sign == "-":
        return TransactionType.EXPENSE
    lowered = text.lower()
    if any(kw in lowered for kw in INCOME_KEYWORDS):
        return TransactionType.INCOME
    return TransactionType.EXPENSE


def resolve_date(text: str, today: date) -> str:
    """Resolve ``yesterday`` / ``last week`` relative to ``today`` (ISO string).

    ``yesterday`` is checked first; anything else resolves to ``today``.
    """

    if _YESTERDAY_RE.search(text):
        return (today - timedelta(days=1)).isoformat()
    if _LAST_WEEK_RE.search(text):
        return (today - timedelta(days=7)).isoformat()
    return today.isoformat()


def match_category(
    lowered_text: str, kind: TransactionType, catalog: CategoryCatalog
) -> CategoryMatch:
    """First keyword hit in catalog order, else the fallback for ``kind``.

    Categories are walked in declared order and each category's keywords in
    declared order; the first keyword that occurs as a substring of
    ``lowered_text`` decides. This is first-match, not longest-match.
    """

    for category in catalog.for_type(kind):
        for keyword in category.keywords:
            if keyword in lowered_text:
                return CategoryMatch(category, KEYWORD_MATCH_CONFIDENCE, keyword)
    return CategoryMatch(catalog.fallback(kind), FALLBACK_CONFIDENCE, None)


def extract_merchant(text: str) -> MerchantMatch:
    """Merchant from ``@ name``, then ``at name``, then the third comma field."""

    m = _AT_SIGN_MERCHANT_RE.search(text) or _AT_WORD_MERCHANT_RE.search(text)
    if m is not None:
        return MerchantMatch(m.group(1).strip() or None, False)

    parts = [p.strip() for p in text.split(",")]
    if len(parts) >= 3:
        return MerchantMatch(parts[2] or None, True)
    return MerchantMatch(None, False)


__all__ = [
    "FALLBACK_CONFIDENCE",
    "INCOME_KEYWORDS",
    "KEYWORD_MATCH_CONFIDENCE",
    "AmountMatch",
    "CategoryMatch",
    "MerchantMatch",
    "Sign",
    "classify_direction",
    "extract_amount",
    "extract_merchant",
    "match_category",
    "resolve_date",
]
