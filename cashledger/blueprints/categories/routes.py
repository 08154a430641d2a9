from flask import Blueprint, render_template, request, redirect, url_for, flash, abort
from flask_login import login_required

from ...ledger import get_ledger
from ...models import KINDS, INCOME, EXPENSE
from ...stores import CATEGORY_KIND_LOCKED

categories_bp = Blueprint("categories", __name__, url_prefix="/categories")


def read_category_form(form):
    errors = {}
    name = (form.get("name") or "").strip()
    if not name:
        errors["name"] = "Le nom de la catégorie est requis."
    elif len(name) > 50:
        errors["name"] = "Le nom de la catégorie est trop long."
    kind = form.get("kind")
    if kind not in KINDS:
        errors["kind"] = "Le type de catégorie est requis."
    return {"name": name, "kind": kind}, errors


@categories_bp.route("/", methods=["GET", "POST"])
@login_required
def manage_categories():
    ledger = get_ledger()
    errors, values, status = {}, {"kind": EXPENSE}, 200
    if request.method == "POST":
        fields, errors = read_category_form(request.form)
        if not errors:
            result = ledger.categories.create(**fields)
            if result.ok:
                flash("Catégorie ajoutée.", "success")
                return redirect(url_for("categories.manage_categories"))
            flash(result.message, "danger")
            status = 500
        else:
            status = 400
        values = request.form

    ledger.categories.fetch()
    if ledger.categories.error:
        flash(ledger.categories.error, "danger")
    return render_template(
        "categories/list.html",
        income=ledger.categories.of_kind(INCOME),
        expense=ledger.categories.of_kind(EXPENSE),
        errors=errors,
        values=values,
        kinds=KINDS,
    ), status


@categories_bp.route("/<int:category_id>/edit", methods=["GET", "POST"])
@login_required
def edit_category(category_id):
    ledger = get_ledger()
    cat = ledger.categories.get(category_id)
    if cat is None:
        abort(404)
    errors, values, status = {}, {"name": cat.name, "kind": cat.kind}, 200
    if request.method == "POST":
        fields, errors = read_category_form(request.form)
        if not errors:
            result = ledger.categories.update(category_id, **fields)
            if result.ok:
                flash("Catégorie modifiée.", "success")
                return redirect(url_for("categories.manage_categories"))
            if result.message == CATEGORY_KIND_LOCKED:
                errors["kind"] = result.message
            else:
                flash(result.message, "danger")
        values, status = request.form, 400
    return render_template("categories/form.html", category=cat, errors=errors, values=values,
                           kinds=KINDS), status


@categories_bp.route("/<int:category_id>/delete", methods=["POST"])
@login_required
def delete_category(category_id):
    ledger = get_ledger()
    if ledger.categories.get(category_id) is None:
        abort(404)
    result = ledger.categories.delete(category_id)
    if result.ok:
        flash("Catégorie supprimée.", "info")
    else:
        flash(result.message, "danger")
    return redirect(url_for("categories.manage_categories"))
