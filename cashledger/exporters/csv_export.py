import csv
from decimal import Decimal
from io import StringIO

from ..formatting import to_decimal
from ..journal import KIND_LABELS, category_name

BOM = "\ufeff"
CENTS = Decimal("0.01")
UNITS = Decimal("1")


def _write(header, rows) -> str:
    output = StringIO()
    # text fields are double-quoted, amounts stay bare numbers
    writer = csv.writer(output, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return BOM + output.getvalue()


def journal_csv(entries, suffix="F CFA") -> str:
    header = ["Date", "Description", "Catégorie", "Type",
              f"Revenu ({suffix})", f"Dépense ({suffix})", f"Solde ({suffix})"]
    rows = []
    for entry in entries:
        t = entry.transaction
        rows.append([
            t.date.isoformat(),
            t.description or "",
            entry.category_name,
            entry.kind_label,
            entry.income.quantize(CENTS),
            entry.expense.quantize(CENTS),
            entry.balance.quantize(CENTS),
        ])
    return _write(header, rows)


def transactions_csv(transactions, categories_by_id, suffix="F CFA") -> str:
    header = ["Date", "Description", "Catégorie", "Type", f"Montant ({suffix})"]
    rows = [
        [
            t.date.isoformat(),
            t.description or "",
            category_name(t, categories_by_id),
            KIND_LABELS.get(t.kind, t.kind),
            to_decimal(t.amount).quantize(UNITS),
        ]
        for t in transactions
    ]
    return _write(header, rows)
