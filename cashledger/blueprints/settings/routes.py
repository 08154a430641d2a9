from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import login_required

from ...ledger import get_ledger

settings_bp = Blueprint("settings", __name__, url_prefix="/settings")

FIELDS = {
    "company_name": 200,
    "company_address": 255,
    "company_contact": 120,
    "company_logo_url": 500,
    "rccm": 100,
    "niu": 100,
}


@settings_bp.route("/", methods=["GET", "POST"])
@login_required
def edit_settings():
    ledger = get_ledger()
    if request.method == "POST":
        values = {name: (request.form.get(name) or "").strip() for name in FIELDS}
        errors = {name: f"{limit} caractères maximum." for name, limit in FIELDS.items() if len(values[name]) > limit}
        logo = values["company_logo_url"]
        if logo and not logo.startswith(("http://", "https://")):
            errors["company_logo_url"] = "L'URL du logo doit commencer par http:// ou https://."
        if errors:
            return render_template("settings/form.html", values=values, errors=errors), 400
        result = ledger.settings.save(**values)
        if result.ok:
            flash("Paramètres enregistrés.", "success")
            return redirect(url_for("settings.edit_settings"))
        flash(result.message, "danger")
        return render_template("settings/form.html", values=values, errors={}), 500

    settings = ledger.settings.fetch()
    if ledger.settings.error:
        flash(ledger.settings.error, "danger")
    values = {name: (getattr(settings, name, None) or "") if settings else "" for name in FIELDS}
    return render_template("settings/form.html", values=values, errors={})
