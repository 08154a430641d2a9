from datetime import date
from decimal import Decimal

import pytest

from cashledger.budget_edits import NEGATIVE_AMOUNT, BudgetEditor, PendingEdits, parse_amount
from cashledger.models import BudgetEntry, EXPENSE
from cashledger.stores import BudgetStore, Result

from .conftest import make_category

MARCH = date(2024, 3, 1)


@pytest.mark.parametrize("raw, expected", [
    ("1500", Decimal("1500")),
    ("1 234,5", Decimal("1234.5")),
    ("", Decimal(0)),
    ("abc", Decimal(0)),
    (None, Decimal(0)),
    ("nan", Decimal(0)),
    ("-20", Decimal("-20")),
])
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_pending_state_survives_serialisation():
    pending = PendingEdits()
    pending.set(EXPENSE, 3, Decimal("12.5"))
    restored = PendingEdits(pending.to_state())
    assert restored.get(EXPENSE, 3) == Decimal("12.5")
    assert restored.for_kind("income") == {}


def test_blur_saves_and_clears_pending(ctx, user_id):
    rent = make_category(user_id, "Loyer", EXPENSE)
    pending = PendingEdits()
    editor = BudgetEditor(BudgetStore(user_id), pending)

    editor.change(EXPENSE, rent, "1500")
    assert pending.get(EXPENSE, rent) == 1500
    assert BudgetEntry.query.count() == 0

    assert editor.commit(EXPENSE, rent, MARCH).ok
    assert pending.get(EXPENSE, rent) is None
    assert BudgetEntry.query.one().amount == Decimal("1500")


def test_blur_without_edit_is_a_no_op(ctx, user_id):
    rent = make_category(user_id, "Loyer", EXPENSE)
    editor = BudgetEditor(BudgetStore(user_id), PendingEdits())
    assert editor.commit(EXPENSE, rent, MARCH).ok
    assert BudgetEntry.query.count() == 0


def test_negative_amount_is_rejected(ctx, user_id):
    rent = make_category(user_id, "Loyer", EXPENSE)
    pending = PendingEdits()
    editor = BudgetEditor(BudgetStore(user_id), pending)
    result = editor.commit(EXPENSE, rent, MARCH, "-5")
    assert not result.ok
    assert result.message == NEGATIVE_AMOUNT
    assert BudgetEntry.query.count() == 0
    assert pending.get(EXPENSE, rent) == Decimal(-5)


class FailingStore:
    def upsert(self, category_id, any_day, amount, kind):
        return Result(False, message="Erreur lors de la sauvegarde du budget.")


def test_failed_save_keeps_value_pending(ctx):
    pending = PendingEdits()
    editor = BudgetEditor(FailingStore(), pending)
    result = editor.commit(EXPENSE, 4, MARCH, "300")
    assert not result.ok
    assert pending.get(EXPENSE, 4) == Decimal(300)
