"""
Budget-vs-actual reconciliation for the cash statement ("Etat de Caisse").

Rows are rebuilt from scratch on every pass from the current categories,
the period's transactions and the month's budget entries; nothing here is
persisted.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from .formatting import to_decimal
from .models import INCOME, EXPENSE
from .periods import Period, budget_month, report_title

ZERO = Decimal(0)
HUNDRED = Decimal(100)

ETAT_TITLE = "Etat de la Caisse"


@dataclass(frozen=True)
class ReportRow:
    id: int
    number: int
    label: str
    planned: Decimal
    realized: Decimal
    percentage: Decimal
    variance: Decimal

    def figures(self):
        return (self.number, self.label, self.planned, self.realized, self.percentage, self.variance)


@dataclass(frozen=True)
class KindTotals:
    planned: Decimal = ZERO
    realized: Decimal = ZERO


@dataclass
class CashReport:
    recettes: List[ReportRow]
    depenses: List[ReportRow]
    totals: Dict[str, KindTotals]
    solde_realise: Decimal
    period: Optional[Period] = None
    title: str = ETAT_TITLE
    budget_month: Optional[date] = None

    def rows(self, kind):
        return self.recettes if kind == INCOME else self.depenses

    def is_empty(self, kind):
        return not self.rows(kind)

    def as_dict(self):
        return {
            "recettes": self.recettes,
            "depenses": self.depenses,
            "totals": self.totals,
            "soldeRealise": self.solde_realise,
        }


def realization_percentage(planned, realized):
    planned, realized = to_decimal(planned), to_decimal(realized)
    if planned > 0:
        return realized / planned * HUNDRED
    return HUNDRED if realized > 0 else ZERO


def realized_by_category(transactions, kind=None):
    sums = defaultdict(lambda: ZERO)
    for t in transactions:
        # unclassified transactions belong to no row
        if t.category_id is None or (kind is not None and t.kind != kind):
            continue
        sums[t.category_id] += to_decimal(t.amount)
    return sums


def build_rows(categories, transactions, budgets, pending, kind):
    pending = pending or {}
    realized_sums = realized_by_category(transactions, kind)
    planned_by_category = {b.category_id: to_decimal(b.amount) for b in budgets}

    rows = []
    for number, category in enumerate((c for c in categories if c.kind == kind), start=1):
        realized = realized_sums.get(category.id, ZERO)
        if category.id in pending:
            planned = to_decimal(pending[category.id])
        else:
            planned = planned_by_category.get(category.id, ZERO)
        rows.append(ReportRow(
            id=category.id,
            number=number,
            label=category.name,
            planned=planned,
            realized=realized,
            percentage=realization_percentage(planned, realized),
            variance=realized - planned,
        ))
    return rows


def totals_for(rows):
    rows = list(rows)
    return KindTotals(
        planned=sum((r.planned for r in rows), ZERO),
        realized=sum((r.realized for r in rows), ZERO),
    )


def build_cash_report(categories, transactions, budgets, pending_income=None, pending_expense=None,
                      period=None):
    categories = list(categories)
    transactions = list(transactions)
    budgets = list(budgets)
    recettes = build_rows(categories, transactions, budgets, pending_income, INCOME)
    depenses = build_rows(categories, transactions, budgets, pending_expense, EXPENSE)
    totals = {INCOME: totals_for(recettes), EXPENSE: totals_for(depenses)}
    return CashReport(
        recettes=recettes,
        depenses=depenses,
        totals=totals,
        solde_realise=totals[INCOME].realized - totals[EXPENSE].realized,
        period=period,
        title=report_title(ETAT_TITLE, period) if period else ETAT_TITLE,
        budget_month=budget_month(period) if period else None,
    )
