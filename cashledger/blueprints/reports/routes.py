from datetime import datetime
from decimal import Decimal

from flask import Blueprint, current_app, flash, make_response, redirect, render_template, request, url_for
from flask_login import login_required

from ...exporters import (
    ExportUnavailable,
    Letterhead,
    render_transactions_pdf,
    render_transactions_print,
    render_transactions_xlsx,
    transactions_csv,
)
from ...exporters.common import TRANSACTIONS_REPORT_NAME
from ...formatting import currency_suffix, export_filename, to_decimal
from ...journal import category_name
from ...ledger import get_ledger
from ...models import INCOME, EXPENSE, KINDS
from ...periods import PRESETS, filter_transactions, period_from_args, report_title

reports_bp = Blueprint("reports", __name__, url_prefix="/reports")

REPORT_TITLE = "Rapport des Transactions"


@reports_bp.errorhandler(ExportUnavailable)
def export_unavailable(e):
    current_app.logger.info("Report export refused: %s", e)
    flash(str(e), "info")
    return redirect(url_for("reports.index", **request.args))


def _filtered(args):
    ledger = get_ledger()
    ledger.categories.fetch()
    ledger.transactions.fetch()
    period, preset, error = period_from_args(args)
    if error:
        flash(error, "warning")

    categories_by_id = ledger.categories.by_id()
    transactions = filter_transactions(ledger.transactions.items, period)

    category_filter = args.get("category", "all")
    if category_filter != "all":
        try:
            wanted = int(category_filter)
        except ValueError:
            wanted = None
        transactions = [t for t in transactions if t.category_id == wanted]
    kind_filter = args.get("kind", "all")
    if kind_filter in KINDS:
        transactions = [t for t in transactions if t.kind == kind_filter]

    title = report_title(REPORT_TITLE, period)
    if category_filter != "all":
        category = categories_by_id.get(wanted)
        title += f" pour {category.name if category else 'Catégorie inconnue'}"
    if kind_filter in KINDS:
        title += " (Revenus)" if kind_filter == INCOME else " (Dépenses)"

    filters = {"preset": preset, "period": period, "category": category_filter, "kind": kind_filter}
    return ledger, categories_by_id, transactions, title, filters


def by_category(transactions, categories_by_id, kind):
    sums = {}
    for t in transactions:
        if t.kind != kind:
            continue
        name = category_name(t, categories_by_id)
        sums[name] = sums.get(name, Decimal(0)) + to_decimal(t.amount)
    return sorted(sums.items(), key=lambda item: item[1], reverse=True)


def summary(transactions):
    income = sum((to_decimal(t.amount) for t in transactions if t.kind == INCOME), Decimal(0))
    expense = sum((to_decimal(t.amount) for t in transactions if t.kind == EXPENSE), Decimal(0))
    return {"income": income, "expense": expense, "net": income - expense}


@reports_bp.route("/")
@login_required
def index():
    ledger, categories_by_id, transactions, title, filters = _filtered(request.args)
    return render_template(
        "reports/index.html",
        title=title,
        totals=summary(transactions),
        spending=by_category(transactions, categories_by_id, EXPENSE),
        earnings=by_category(transactions, categories_by_id, INCOME),
        rows=[(t, category_name(t, categories_by_id)) for t in transactions],
        categories=ledger.categories.items,
        presets=[(name, label) for name, (label, _) in PRESETS.items()],
        filters=filters,
    )


def _attachment(body, filename, mimetype):
    response = make_response(body)
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    response.headers["Content-Type"] = mimetype
    return response


def _letterhead(ledger):
    ledger.settings.fetch()
    return Letterhead.from_settings(ledger.settings)


@reports_bp.route("/export.csv")
@login_required
def export_csv():
    _, categories_by_id, transactions, _, _ = _filtered(request.args)
    output = transactions_csv(transactions, categories_by_id, currency_suffix())
    filename = export_filename(TRANSACTIONS_REPORT_NAME, "csv", datetime.now())
    return _attachment(output.encode("utf-8"), filename, "text/csv; charset=utf-8")


@reports_bp.route("/print")
@login_required
def print_view():
    ledger, categories_by_id, transactions, title, _ = _filtered(request.args)
    letterhead = _letterhead(ledger)
    return render_transactions_print(
        [(t, category_name(t, categories_by_id)) for t in transactions],
        letterhead,
        datetime.now(),
        title,
        totals=summary(transactions),
        spending=by_category(transactions, categories_by_id, EXPENSE),
        earnings=by_category(transactions, categories_by_id, INCOME),
    )


@reports_bp.route("/export.pdf")
@login_required
def export_pdf():
    ledger, categories_by_id, transactions, title, _ = _filtered(request.args)
    letterhead = _letterhead(ledger)
    now = datetime.now()
    rows = [(t, category_name(t, categories_by_id)) for t in transactions]
    body = render_transactions_pdf(rows, letterhead, now, title)
    return _attachment(body, export_filename(TRANSACTIONS_REPORT_NAME, "pdf", now), "application/pdf")


@reports_bp.route("/export.xlsx")
@login_required
def export_xlsx():
    ledger, categories_by_id, transactions, title, _ = _filtered(request.args)
    letterhead = _letterhead(ledger)
    now = datetime.now()
    rows = [(t, category_name(t, categories_by_id)) for t in transactions]
    body = render_transactions_xlsx(rows, letterhead, now, title)
    return _attachment(
        body,
        export_filename(TRANSACTIONS_REPORT_NAME, "xlsx", now),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
