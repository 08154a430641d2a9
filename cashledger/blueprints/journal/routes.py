from datetime import datetime

from flask import Blueprint, current_app, flash, make_response, redirect, render_template, url_for
from flask_login import login_required

from ...exporters import (
    ExportUnavailable,
    Letterhead,
    journal_csv,
    render_journal_pdf,
    render_journal_print,
    render_journal_xlsx,
)
from ...exporters.common import JOURNAL_REPORT_NAME
from ...formatting import currency_suffix, export_filename
from ...journal import build_journal
from ...ledger import get_ledger

journal_bp = Blueprint("journal", __name__, url_prefix="/journal")


@journal_bp.errorhandler(ExportUnavailable)
def export_unavailable(e):
    current_app.logger.info("Journal export refused: %s", e)
    flash(str(e), "info")
    return redirect(url_for("journal.index"))


def _entries():
    ledger = get_ledger()
    ledger.categories.fetch()
    ledger.transactions.fetch()
    for store in (ledger.categories, ledger.transactions):
        if store.error:
            flash(store.error, "danger")
    return ledger, build_journal(ledger.transactions.items, ledger.categories.by_id())


def _attachment(body, filename, mimetype):
    response = make_response(body)
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    response.headers["Content-Type"] = mimetype
    return response


@journal_bp.route("/")
@login_required
def index():
    _, entries = _entries()
    return render_template("journal/index.html", entries=entries)


@journal_bp.route("/print")
@login_required
def print_view():
    ledger, entries = _entries()
    ledger.settings.fetch()
    return render_journal_print(entries, Letterhead.from_settings(ledger.settings), datetime.now())


@journal_bp.route("/export.csv")
@login_required
def export_csv():
    _, entries = _entries()
    now = datetime.now()
    body = journal_csv(entries, currency_suffix())
    return _attachment(body.encode("utf-8"), export_filename(JOURNAL_REPORT_NAME, "csv", now),
                       "text/csv; charset=utf-8")


@journal_bp.route("/export.pdf")
@login_required
def export_pdf():
    ledger, entries = _entries()
    ledger.settings.fetch()
    letterhead = Letterhead.from_settings(ledger.settings)
    now = datetime.now()
    body = render_journal_pdf(entries, letterhead, now)
    return _attachment(body, export_filename(JOURNAL_REPORT_NAME, "pdf", now), "application/pdf")


@journal_bp.route("/export.xlsx")
@login_required
def export_xlsx():
    ledger, entries = _entries()
    ledger.settings.fetch()
    letterhead = Letterhead.from_settings(ledger.settings)
    now = datetime.now()
    body = render_journal_xlsx(entries, letterhead, now)
    return _attachment(
        body,
        export_filename(JOURNAL_REPORT_NAME, "xlsx", now),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
