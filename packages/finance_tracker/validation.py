"""Validation and repair of model-produced transaction parses.

Model output is untrusted. :class:`ParseResultValidator` turns the raw JSON
mapping into a :class:`~finance_tracker.models.ParsedTransaction` using
deterministic repair rules:

- category: exact case-insensitive match among catalog categories of the
  parsed type, else the first such category whose name contains the returned
  text, else the type's fallback category;
- amount: absolute value rounded to cents;
- date: must be a real ``YYYY-MM-DD`` date, else today;
- confidence: clamped into ``[0, 1]``; missing means ``0.5``.

Shapes that cannot be repaired (missing amount, unknown type) raise
``ValueError`` (Pydantic's ``ValidationError`` is a subclass); the parsing
pipeline treats that as a failed escalation.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from .catalog import CategoryCatalog
from .models import CategoryDefinition, ParsedTransaction, ParseSource, TransactionType

DEFAULT_MODEL_CONFIDENCE = 0.5

_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def resolve_category_name(
    raw: str | None, kind: TransactionType, catalog: CategoryCatalog
) -> CategoryDefinition:
    """Map a free-form category string onto a catalog category of ``kind``."""

    wanted = (raw or "").strip().casefold()
    if not wanted:
        return catalog.fallback(kind)
    exact = catalog.find(wanted, kind)
    if exact is not None:
        return exact
    for category in catalog.for_type(kind):
        if wanted in category.name.casefold():
            return category
    return catalog.fallback(kind)


def _is_iso_date(value: str) -> bool:
    if not _ISO_DATE_RE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


class _ModelTransaction(BaseModel):
    """Typed view of a model's transaction payload.

    The validators rely on ``ValidationInfo.context`` to receive:
      - ``catalog``: the :class:`CategoryCatalog` to resolve against
      - ``today``: ``datetime.date`` used when the date is unusable
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    amount: Decimal
    type: TransactionType
    category: str | None = None
    merchant: str | None = None
    description: str | None = None
    date: str | None = None
    confidence: float | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_magnitude(cls, v: Any) -> Decimal:
        if isinstance(v, bool):
            raise ValueError("amount must be a number")
        try:
            value = Decimal(str(v).strip().replace(",", "."))
        except InvalidOperation as e:
            raise ValueError(f"amount is not numeric: {v!r}") from e
        if not value.is_finite():
            raise ValueError("amount must be finite")
        return abs(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("category")
    @classmethod
    def _category_in_catalog(cls, v: str | None, info: ValidationInfo) -> str:
        catalog: CategoryCatalog | None = info.context.get("catalog") if info.context else None
        kind = info.data.get("type")
        if catalog is None or kind is None:
            raise ValueError("category cannot be resolved without catalog and type")
        return resolve_category_name(v, kind, catalog).name

    @field_validator("merchant")
    @classmethod
    def _blank_merchant_is_none(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("date")
    @classmethod
    def _iso_date_or_today(cls, v: str | None, info: ValidationInfo) -> str:
        if v and _is_iso_date(v):
            return v
        today: date | None = info.context.get("today") if info.context else None
        return (today or date.today()).isoformat()

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, v: float | None) -> float:
        if v is None or math.isnan(v):
            return DEFAULT_MODEL_CONFIDENCE
        return max(0.0, min(1.0, float(v)))


class ParseResultValidator:
    """Repairs model output into a catalog-consistent ``ParsedTransaction``."""

    def __init__(
        self, catalog: CategoryCatalog, *, today: Callable[[], date] = date.today
    ) -> None:
        self.catalog = catalog
        self._today = today

    def validate(self, payload: Mapping[str, Any]) -> ParsedTransaction:
        if not isinstance(payload, Mapping):
            raise ValueError("model payload must be a JSON object")
        today = self._today()
        # Defaulted fields skip validators; fill them so repairs always run.
        data = {
            "category": None,
            "date": None,
            "confidence": None,
            **payload,
        }
        item = _ModelTransaction.model_validate(
            data, context={"catalog": self.catalog, "today": today}
        )
        category = item.category or self.catalog.fallback(item.type).name
        return ParsedTransaction(
            amount=item.amount,
            type=item.type,
            category=category,
            merchant=item.merchant,
            description=item.description or category,
            date=item.date or today.isoformat(),
            confidence=(
                item.confidence if item.confidence is not None else DEFAULT_MODEL_CONFIDENCE
            ),
            source=ParseSource.MODEL,
        )


__all__ = ["DEFAULT_MODEL_CONFIDENCE", "ParseResultValidator", "resolve_category_name"]
