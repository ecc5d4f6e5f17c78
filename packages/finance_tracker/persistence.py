"""Persistence integration for finance_tracker.

Functions here write parse results and reference data to the ledger database
owned by ``libs/db``. They rely on SQLAlchemy ORM models defined in
``db.models.ledger`` and a session provided by ``db.client``; committing is
the caller's job (``session_scope`` does it).

Scope:
- Store a :class:`~finance_tracker.models.ParsedTransaction` with the signed
  amount convention (expense negative) and adjust the account balance.
- Seed the built-in category catalog and a default ``Cash`` account.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from db.models.ledger import LedgerAccount, LedgerCategory, LedgerTransaction
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .catalog import DEFAULT_CATEGORIES, CategoryCatalog
from .errors import RejectedTransactionError
from .logging_setup import get_logger, log_event
from .models import ParsedTransaction

DEFAULT_ACCOUNT_ID = "cash"
DEFAULT_ACCOUNT_NAME = "Cash"
DEFAULT_CURRENCY_CODE = "EUR"

_logger = get_logger("finance_tracker.persistence")


def _to_decimal_2(value: Decimal | float) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def seed_defaults(session: Session) -> bool:
    """Insert the built-in categories and the ``Cash`` account into empty tables.

    Returns ``True`` when anything was inserted. Tables that already hold rows
    are left untouched.
    """

    inserted = False
    if not session.execute(select(func.count()).select_from(LedgerCategory)).scalar_one():
        for order, c in enumerate(DEFAULT_CATEGORIES):
            session.add(
                LedgerCategory(
                    id=c.id,
                    name=c.name,
                    type=c.type.value,
                    group_name=c.group,
                    keywords=list(c.keywords),
                    sort_order=order,
                    is_system=True,
                )
            )
        inserted = True

    if not session.execute(select(func.count()).select_from(LedgerAccount)).scalar_one():
        session.add(
            LedgerAccount(
                id=DEFAULT_ACCOUNT_ID,
                name=DEFAULT_ACCOUNT_NAME,
                type="cash",
                balance=Decimal("0.00"),
                currency=DEFAULT_CURRENCY_CODE,
            )
        )
        inserted = True

    session.flush()
    log_event(_logger, "persistence:seed_defaults", inserted=inserted)
    return inserted


def _resolve_account(session: Session, account_id: str | None) -> LedgerAccount | None:
    if account_id is not None:
        account = session.get(LedgerAccount, account_id)
        if account is None:
            raise RejectedTransactionError(f"unknown account id {account_id!r}")
        return account
    default = session.get(LedgerAccount, DEFAULT_ACCOUNT_ID)
    if default is not None and default.is_active:
        return default
    return session.execute(
        select(LedgerAccount)
        .where(LedgerAccount.is_active.is_(True))
        .order_by(LedgerAccount.created_at, LedgerAccount.id)
        .limit(1)
    ).scalar_one_or_none()


def record_parsed_transaction(
    session: Session,
    parsed: ParsedTransaction,
    *,
    catalog: CategoryCatalog,
    account_id: str | None = None,
    source: str = "cli",
    raw_text: str | None = None,
) -> LedgerTransaction:
    """Store ``parsed`` and return the new row (flushed, not committed).

    Raises ``RejectedTransactionError`` when no amount was found (or it rounds
    to zero cents), the date is
    not ISO, or the category does not resolve to a stored category of the
    parsed type. The target account (explicit, else ``Cash``, else the oldest
    active account) has its balance moved by the signed amount.
    """

    signed = _to_decimal_2(parsed.signed_amount)
    if not parsed.is_persistable or signed == 0:
        raise RejectedTransactionError("no amount found in the transaction text")

    category = catalog.find(parsed.category, parsed.type)
    if category is None or session.get(LedgerCategory, category.id) is None:
        raise RejectedTransactionError(
            f"category {parsed.category!r} is not a stored {parsed.type.value} category"
        )

    try:
        when = date.fromisoformat(parsed.date)
    except ValueError:
        raise RejectedTransactionError(f"invalid transaction date {parsed.date!r}") from None

    account = _resolve_account(session, account_id)

    row = LedgerTransaction(
        date=when,
        amount=signed,
        type=parsed.type.value,
        category_id=category.id,
        account_id=account.id if account is not None else None,
        merchant=parsed.merchant,
        description=parsed.description,
        confidence=_to_decimal_2(parsed.confidence),
        source=source,
        raw_text=raw_text,
    )
    session.add(row)
    if account is not None:
        account.balance = _to_decimal_2(account.balance) + signed
    session.flush()

    log_event(
        _logger,
        "persistence:recorded",
        id=row.id,
        type=row.type,
        category=row.category_id,
        account=row.account_id,
    )
    return row


__all__ = [
    "DEFAULT_ACCOUNT_ID",
    "DEFAULT_ACCOUNT_NAME",
    "record_parsed_transaction",
    "seed_defaults",
]
