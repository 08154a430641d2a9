from decimal import Decimal, InvalidOperation

from flask import Blueprint, render_template, request, redirect, url_for, flash, abort
from flask_login import login_required

from ...formatting import parse_date
from ...journal import category_name
from ...ledger import get_ledger
from ...models import KINDS, EXPENSE

transactions_bp = Blueprint("transactions", __name__, url_prefix="/transactions")


def read_transaction_form(form, categories_by_id):
    """Validate a submitted transaction; returns ``(fields, errors)``."""
    errors = {}

    order_number = (form.get("order_number") or "").strip() or None
    if order_number and len(order_number) > 50:
        errors["order_number"] = "Le N° d'ordre ne peut pas dépasser 50 caractères."

    on_date = parse_date(form.get("date"))
    if on_date is None:
        errors["date"] = "Une date est requise."

    description = (form.get("description") or "").strip()
    if not description:
        errors["description"] = "La description est requise."
    elif len(description) > 100:
        errors["description"] = "La description est trop longue."

    reference = (form.get("reference") or "").strip() or None
    if reference and len(reference) > 50:
        errors["reference"] = "La référence ne peut pas dépasser 50 caractères."

    amount = None
    try:
        amount = Decimal((form.get("amount") or "").replace(",", ".").strip())
        if not amount.is_finite() or amount <= 0:
            raise InvalidOperation
    except InvalidOperation:
        errors["amount"] = "Le montant doit être positif."

    kind = form.get("kind")
    if kind not in KINDS:
        errors["kind"] = "Le type de transaction est requis."

    category_id = None
    raw_category = form.get("category_id")
    if raw_category:
        try:
            category_id = int(raw_category)
        except ValueError:
            category_id = -1
        category = categories_by_id.get(category_id)
        if category is None or category.kind != kind:
            errors["category_id"] = "Choisissez une catégorie correspondant au type de transaction."

    fields = dict(
        order_number=order_number,
        date=on_date,
        description=description,
        reference=reference,
        amount=amount,
        kind=kind,
        category_id=category_id,
    )
    return fields, errors


@transactions_bp.route("/")
@login_required
def list_transactions():
    ledger = get_ledger()
    ledger.transactions.fetch()
    ledger.categories.fetch()
    if ledger.transactions.error:
        flash(ledger.transactions.error, "danger")
    categories_by_id = ledger.categories.by_id()
    rows = [(t, category_name(t, categories_by_id)) for t in ledger.transactions.items]
    return render_template("transactions/list.html", rows=rows)


def _render_form(transaction=None, values=None, errors=None, status=200):
    ledger = get_ledger()
    return render_template(
        "transactions/form.html",
        transaction=transaction,
        values=values or {},
        errors=errors or {},
        categories=ledger.categories.items,
        kinds=KINDS,
    ), status


@transactions_bp.route("/create", methods=["GET", "POST"])
@login_required
def create_transaction():
    ledger = get_ledger()
    ledger.categories.fetch()
    if request.method == "POST":
        fields, errors = read_transaction_form(request.form, ledger.categories.by_id())
        if errors:
            return _render_form(values=request.form, errors=errors, status=400)
        result = ledger.transactions.create(**fields)
        if not result.ok:
            flash(result.message, "danger")
            return _render_form(values=request.form, status=500)
        flash("Transaction ajoutée.", "success")
        return redirect(url_for("transactions.list_transactions"))
    return _render_form(values={"kind": EXPENSE})


@transactions_bp.route("/<int:transaction_id>/edit", methods=["GET", "POST"])
@login_required
def edit_transaction(transaction_id):
    ledger = get_ledger()
    tx = ledger.transactions.get(transaction_id)
    if tx is None:
        abort(404)
    ledger.categories.fetch()
    if request.method == "POST":
        fields, errors = read_transaction_form(request.form, ledger.categories.by_id())
        if errors:
            return _render_form(tx, values=request.form, errors=errors, status=400)
        result = ledger.transactions.update(transaction_id, **fields)
        if not result.ok:
            flash(result.message, "danger")
            return _render_form(tx, values=request.form, status=500)
        flash("Transaction modifiée.", "success")
        return redirect(url_for("transactions.list_transactions"))
    values = {
        "order_number": tx.order_number or "",
        "date": tx.date.isoformat(),
        "description": tx.description,
        "reference": tx.reference or "",
        "amount": tx.amount,
        "kind": tx.kind,
        "category_id": tx.category_id or "",
    }
    return _render_form(tx, values=values)


@transactions_bp.route("/<int:transaction_id>/delete", methods=["POST"])
@login_required
def delete_transaction(transaction_id):
    ledger = get_ledger()
    if ledger.transactions.get(transaction_id) is None:
        abort(404)
    result = ledger.transactions.delete(transaction_id)
    if result.ok:
        flash("Transaction supprimée.", "info")
    else:
        flash(result.message, "danger")
    return redirect(url_for("transactions.list_transactions"))
