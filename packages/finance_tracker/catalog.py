"""Category catalog: the reference set of categories the parser can assign.

The catalog is read-only once built and is shared by the rule-based matcher
and by validation of model output. Declared order matters: the matcher walks
categories (and each category's keywords) in order and stops at the first hit.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from db.models.ledger import LedgerCategory
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import CategoryDefinition, TransactionType

OTHER_EXPENSE_ID = "other-expense"
OTHER_INCOME_ID = "other-income"

_FALLBACK_IDS: dict[TransactionType, str] = {
    TransactionType.EXPENSE: OTHER_EXPENSE_ID,
    TransactionType.INCOME: OTHER_INCOME_ID,
}


def _cat(
    id: str, name: str, type: TransactionType, group: str, keywords: Iterable[str] = ()
) -> CategoryDefinition:
    return CategoryDefinition(id=id, name=name, type=type, group=group, keywords=tuple(keywords))


_E = TransactionType.EXPENSE
_I = TransactionType.INCOME

DEFAULT_CATEGORIES: tuple[CategoryDefinition, ...] = (
    # Transportation
    _cat("gas", "Gas", _E, "transportation",
         ["gas", "fuel", "petrol", "diesel", "gasoline", "shell", "bp", "esso", "tank"]),
    _cat("transit", "Public Transit", _E, "transportation",
         ["bus", "train", "metro", "subway", "tram", "transit", "ticket"]),
    _cat("parking", "Parking", _E, "transportation", ["parking", "park"]),
    _cat("uber", "Rideshare", _E, "transportation", ["uber", "lyft", "bolt", "taxi", "cab"]),
    _cat("car", "Car Maintenance", _E, "transportation",
         ["car wash", "oil change", "tire", "mechanic", "repair", "service"]),
    # Essential
    _cat("rent", "Rent/Mortgage", _E, "essential", ["rent", "mortgage", "lease", "housing"]),
    _cat("utilities", "Utilities", _E, "essential",
         ["electric", "electricity", "water", "utility", "internet", "phone", "bill"]),
    _cat("groceries", "Groceries", _E, "essential",
         ["grocery", "groceries", "supermarket", "lidl", "aldi", "tesco", "kaufland", "billa",
          "whole foods"]),
    _cat("healthcare", "Healthcare", _E, "essential",
         ["doctor", "pharmacy", "medicine", "hospital", "dental", "dentist", "health"]),
    _cat("insurance", "Insurance", _E, "essential", ["insurance"]),
    # Lifestyle
    _cat("dining", "Dining Out", _E, "lifestyle",
         ["restaurant", "lunch", "dinner", "breakfast", "coffee", "cafe", "starbucks",
          "mcdonald", "pizza", "burger", "food", "eat"]),
    _cat("entertainment", "Entertainment", _E, "lifestyle",
         ["movie", "netflix", "spotify", "game", "concert", "tickets", "cinema", "theater",
          "bar", "club"]),
    _cat("shopping", "Shopping", _E, "lifestyle",
         ["amazon", "shopping", "clothes", "target", "walmart", "ebay", "ikea", "zara"]),
    _cat("subscriptions", "Subscriptions", _E, "lifestyle",
         ["subscription", "membership", "premium", "plan", "netflix", "spotify"]),
    # Income
    _cat("salary", "Salary", _I, "income", ["salary", "paycheck", "wage", "income", "pay"]),
    _cat("freelance", "Freelance", _I, "income",
         ["freelance", "client", "project", "invoice", "gig"]),
    _cat("investments", "Investments", _I, "income",
         ["invest", "dividend", "stock", "crypto", "trading", "interest"]),
    _cat("gifts", "Gifts", _I, "income", ["gift", "present", "birthday", "received"]),
    _cat("refund", "Refund", _I, "income", ["refund", "return", "cashback", "reimbursement"]),
    # Fallbacks
    _cat(OTHER_EXPENSE_ID, "Other", _E, "other"),
    _cat(OTHER_INCOME_ID, "Other Income", _I, "other"),
)

_DEFAULT_FALLBACKS: dict[str, CategoryDefinition] = {
    c.id: c for c in DEFAULT_CATEGORIES if c.id in _FALLBACK_IDS.values()
}


class CategoryCatalog:
    """Immutable, ordered collection of :class:`CategoryDefinition`.

    Every catalog carries one fallback category per transaction type
    (``Other`` and ``Other Income``); when the supplied definitions lack one,
    the built-in fallback is appended.
    """

    __slots__ = ("_by_id", "_definitions")

    def __init__(self, definitions: Iterable[CategoryDefinition]) -> None:
        defs = list(definitions)
        present = {d.id for d in defs}
        for fallback_id in _FALLBACK_IDS.values():
            if fallback_id not in present:
                defs.append(_DEFAULT_FALLBACKS[fallback_id])
        self._definitions: tuple[CategoryDefinition, ...] = tuple(defs)
        self._by_id: dict[str, CategoryDefinition] = {d.id: d for d in self._definitions}

    @classmethod
    def default(cls) -> CategoryCatalog:
        return cls(DEFAULT_CATEGORIES)

    def __iter__(self) -> Iterator[CategoryDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def for_type(self, kind: TransactionType) -> tuple[CategoryDefinition, ...]:
        """Categories of ``kind`` in catalog order."""

        return tuple(d for d in self._definitions if d.type is kind)

    def fallback(self, kind: TransactionType) -> CategoryDefinition:
        return self._by_id[_FALLBACK_IDS[kind]]

    def get(self, category_id: str) -> CategoryDefinition | None:
        return self._by_id.get(category_id)

    def names(self) -> list[str]:
        """Display names in catalog order (duplicates across types collapsed)."""

        return list(dict.fromkeys(d.name for d in self._definitions))

    def find(self, name: str, kind: TransactionType) -> CategoryDefinition | None:
        """Exact, case-insensitive lookup of ``name`` among categories of ``kind``."""

        wanted = name.strip().casefold()
        if not wanted:
            return None
        for d in self.for_type(kind):
            if d.name.casefold() == wanted:
                return d
        return None


def load_catalog_from_db(session: Session) -> CategoryCatalog:
    """Build a catalog from the ``categories`` table.

    Rows are ordered by ``sort_order`` (unset last) then name. Rows without
    stored keywords reuse the built-in keywords of the same id, so a database
    seeded by another client still drives the rule-based matcher.
    """

    rows: Sequence[LedgerCategory] = (
        session.execute(
            select(LedgerCategory).order_by(
                func.coalesce(LedgerCategory.sort_order, 10_000), LedgerCategory.name
            )
        )
        .scalars()
        .all()
    )
    builtin_keywords = {d.id: d.keywords for d in DEFAULT_CATEGORIES}

    defs: list[CategoryDefinition] = []
    for row in rows:
        try:
            kind = TransactionType(row.type)
        except ValueError:
            continue
        keywords = row.keywords if row.keywords else builtin_keywords.get(row.id, ())
        defs.append(
            CategoryDefinition(
                id=row.id,
                name=row.name,
                type=kind,
                group=row.group_name,
                keywords=tuple(str(k).lower() for k in keywords),
            )
        )
    if not defs:
        raise RuntimeError("no valid categories present in the categories table")
    return CategoryCatalog(defs)


__all__ = [
    "DEFAULT_CATEGORIES",
    "OTHER_EXPENSE_ID",
    "OTHER_INCOME_ID",
    "CategoryCatalog",
    "load_catalog_from_db",
]
