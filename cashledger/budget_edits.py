"""
In-place editing of planned amounts on the cash statement.

Typing updates the pending map right away so the row can be recomputed;
nothing reaches the database until the field loses focus.
"""
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from flask import current_app

from .models import KINDS
from .stores import BudgetStore, Result

NEGATIVE_AMOUNT = "Le montant prévu doit être un nombre positif ou nul."


def parse_amount(raw) -> Decimal:
    """Like ``parseFloat(x) || 0``: anything unusable counts as zero."""
    if raw is None:
        return Decimal(0)
    if isinstance(raw, Decimal):
        value = raw
    else:
        try:
            value = Decimal(str(raw).strip().replace(" ", "").replace(",", "."))
        except InvalidOperation:
            return Decimal(0)
    if not value.is_finite():
        return Decimal(0)
    return value


class PendingEdits:
    """Unsaved planned amounts, one map per kind, keyed by category id."""

    def __init__(self, state: Optional[Dict[str, Dict[str, str]]] = None):
        self._edits: Dict[str, Dict[int, Decimal]] = {kind: {} for kind in KINDS}
        for kind, values in (state or {}).items():
            if kind in self._edits:
                for category_id, amount in values.items():
                    self._edits[kind][int(category_id)] = parse_amount(amount)

    def for_kind(self, kind: str) -> Dict[int, Decimal]:
        return self._edits[kind]

    def set(self, kind: str, category_id: int, amount: Decimal):
        self._edits[kind][category_id] = amount

    def get(self, kind: str, category_id: int) -> Optional[Decimal]:
        return self._edits[kind].get(category_id)

    def discard(self, kind: str, category_id: int):
        self._edits[kind].pop(category_id, None)

    def clear(self):
        for values in self._edits.values():
            values.clear()

    def to_state(self) -> Dict[str, Dict[str, str]]:
        return {kind: {str(k): str(v) for k, v in values.items()} for kind, values in self._edits.items()}


class BudgetEditor:
    def __init__(self, store: BudgetStore, pending: PendingEdits):
        self.store = store
        self.pending = pending

    def change(self, kind: str, category_id: int, raw) -> Decimal:
        amount = parse_amount(raw)
        self.pending.set(kind, category_id, amount)
        return amount

    def commit(self, kind: str, category_id: int, month: date, raw=None) -> Result:
        if raw is not None:
            self.change(kind, category_id, raw)
        amount = self.pending.get(kind, category_id)
        if amount is None:
            return Result(True)
        if amount < 0:
            return Result(False, message=NEGATIVE_AMOUNT)
        result = self.store.upsert(category_id, month, amount, kind)
        if result.ok:
            self.pending.discard(kind, category_id)
        else:
            # the edited value stays on screen; the user can retry on next blur
            current_app.logger.warning("Budget for category %s kept pending after failed save", category_id)
        return result
