from datetime import datetime

from flask import Blueprint, current_app, flash, jsonify, make_response, redirect, render_template, request, url_for
from flask_login import login_required

from ...exporters import ExportUnavailable, Letterhead, render_etat_pdf, render_etat_print, render_etat_xlsx
from ...exporters.common import ETAT_REPORT_NAME
from ...formatting import export_filename, format_currency, format_percentage
from ...ledger import apply_period, get_ledger, save_pending
from ...models import KINDS
from ...periods import ETAT_PRESETS, PRESETS

etats_bp = Blueprint("etats", __name__, url_prefix="/etats")


@etats_bp.errorhandler(ExportUnavailable)
def export_unavailable(e):
    current_app.logger.info("Export refused: %s", e)
    flash(str(e), "info")
    return redirect(url_for("etats.index"))


def _load_report(args):
    ledger = get_ledger()
    error = apply_period(ledger, args)
    if error:
        flash(error, "warning")
    ledger.load()
    for store in ledger.stores:
        if store.error:
            flash(store.error, "danger")
    return ledger, ledger.cash_report()


@etats_bp.route("/")
@login_required
def index():
    ledger, report = _load_report(request.args)
    return render_template(
        "etats/index.html",
        report=report,
        print_mode=False,
        presets=[(name, PRESETS[name][0]) for name in ETAT_PRESETS],
        selected_preset=ledger.period.preset,
        period=ledger.period.period,
        period_args=ledger.period.to_args(),
        settings_loaded=ledger.settings.loaded,
    )


def _row_payload(report, kind, category_id):
    row = next((r for r in report.rows(kind) if r.id == category_id), None)
    totals = report.totals[kind]
    payload = {
        "totals": {
            "planned": format_currency(totals.planned),
            "realized": format_currency(totals.realized),
        },
        "solde": format_currency(report.solde_realise),
    }
    if row is not None:
        payload["row"] = {
            "id": row.id,
            "planned": str(row.planned),
            "percentage": format_percentage(row.percentage),
            "variance": format_currency(row.variance),
            "variance_negative": row.variance < 0,
        }
    return payload


@etats_bp.route("/budget", methods=["POST"])
@login_required
def edit_budget():
    """Planned-amount field events: ``change`` recomputes the row, ``blur`` saves it."""
    data = request.get_json(silent=True) or request.form
    kind = data.get("kind")
    event = data.get("event", "blur")
    try:
        category_id = int(data.get("category_id"))
    except (TypeError, ValueError):
        return jsonify({"ok": False, "message": "Catégorie invalide."}), 400
    if kind not in KINDS:
        return jsonify({"ok": False, "message": "Type invalide."}), 400

    ledger = get_ledger()
    apply_period(ledger, {}, remember=False)
    ledger.categories.fetch()
    category = ledger.categories.by_id().get(category_id)
    if category is None or category.kind != kind:
        return jsonify({"ok": False, "message": "Catégorie introuvable."}), 404

    status = 200
    if event == "change":
        # never written to the session: only blur outcomes are remembered
        ledger.budget_editor.change(kind, category_id, data.get("value"))
        ok, message = True, ""
    else:
        result = ledger.budget_editor.commit(kind, category_id, ledger.period.budget_month, data.get("value"))
        ok, message = result.ok, result.message
        if not ok:
            status = 422 if ledger.budgets.error is None else 502
        save_pending(ledger)

    if not request.is_json:
        if not ok:
            flash(message, "danger")
        return redirect(url_for("etats.index"))

    ledger.load()
    payload = _row_payload(ledger.cash_report(), kind, category_id)
    payload.update(ok=ok, message=message)
    return jsonify(payload), status


def _export_inputs():
    ledger, report = _load_report(request.args)
    letterhead = Letterhead.from_settings(ledger.settings)
    return ledger, report, letterhead


def _attachment(body, filename, mimetype):
    response = make_response(body)
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    response.headers["Content-Type"] = mimetype
    return response


@etats_bp.route("/print")
@login_required
def print_view():
    ledger, report, letterhead = _export_inputs()
    return render_etat_print(report, letterhead, datetime.now(), period_args=ledger.period.to_args())


@etats_bp.route("/export.pdf")
@login_required
def export_pdf():
    _, report, letterhead = _export_inputs()
    now = datetime.now()
    body = render_etat_pdf(report, letterhead, now)
    return _attachment(body, export_filename(ETAT_REPORT_NAME, "pdf", now), "application/pdf")


@etats_bp.route("/export.xlsx")
@login_required
def export_xlsx():
    _, report, letterhead = _export_inputs()
    now = datetime.now()
    body = render_etat_xlsx(report, letterhead, now)
    return _attachment(
        body,
        export_filename(ETAT_REPORT_NAME, "xlsx", now),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
