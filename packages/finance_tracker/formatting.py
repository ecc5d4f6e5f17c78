"""Text rendering of amounts and parsed transactions for chat/CLI surfaces."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .models import ParsedTransaction, TransactionType

_CENTS = Decimal("0.01")


def money(value: Decimal, currency: str = "€") -> str:
    """``€12.50``; negative values render as ``-€12.50``."""

    q = Decimal(value).quantize(_CENTS, ROUND_HALF_UP)
    if q < 0:
        return f"-{currency}{-q:.2f}"
    return f"{currency}{q:.2f}"


def format_transaction(parsed: ParsedTransaction, currency: str = "€") -> str:
    """One confirmation message: signed amount, category, description, merchant, date."""

    is_income = parsed.type is TransactionType.INCOME
    sign = "+" if is_income else "-"
    icon = "💰" if is_income else "💸"
    lines = [
        f"{icon} {sign}{money(parsed.amount, currency)}",
        f"📁 {parsed.category}",
        f"📝 {parsed.description}",
    ]
    if parsed.merchant:
        lines.append(f"📍 {parsed.merchant}")
    lines.append(f"📅 {parsed.date}")
    return "\n".join(lines)


__all__ = ["format_transaction", "money"]
