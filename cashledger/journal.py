from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Mapping

from .formatting import to_decimal
from .models import INCOME

UNCLASSIFIED = "Non classé(e)"
KIND_LABELS = {"income": "Revenu", "expense": "Dépense"}


@dataclass(frozen=True)
class JournalEntry:
    transaction: object
    category_name: str
    balance: Decimal

    @property
    def income(self) -> Decimal:
        return to_decimal(self.transaction.amount) if self.transaction.kind == INCOME else Decimal(0)

    @property
    def expense(self) -> Decimal:
        return Decimal(0) if self.transaction.kind == INCOME else to_decimal(self.transaction.amount)

    @property
    def kind_label(self) -> str:
        return KIND_LABELS.get(self.transaction.kind, self.transaction.kind)


def category_name(transaction, categories_by_id: Mapping) -> str:
    category = categories_by_id.get(transaction.category_id)
    return category.name if category else UNCLASSIFIED


def build_journal(transactions: Iterable, categories_by_id: Mapping) -> List[JournalEntry]:
    """Running balance in date order, returned newest first."""
    balance = Decimal(0)
    entries = []
    for t in sorted(transactions, key=lambda t: (t.date, t.id or 0)):
        amount = to_decimal(t.amount)
        balance += amount if t.kind == INCOME else -amount
        entries.append(JournalEntry(t, category_name(t, categories_by_id), balance))
    entries.reverse()
    return entries
