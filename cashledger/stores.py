"""Actor-scoped collections over the database; failures are logged and reported, never raised."""
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .formatting import to_decimal
from .models import AppSettings, BudgetEntry, Category, Transaction
from .observable import Subject
from .periods import start_of_month

CATEGORY_IN_USE = "Impossible de supprimer la catégorie car elle est utilisée dans des transactions."
CATEGORY_KIND_LOCKED = "Impossible de changer le type d'une catégorie utilisée dans des transactions."


@dataclass
class Result:
    ok: bool
    value: Any = None
    message: str = ""


class Store:
    model = None
    noun = "éléments"

    def __init__(self, user_id: int):
        self.user_id = user_id
        self.items = []
        self.is_loading = False
        self.error = None
        self.changed = Subject()

    def query(self):
        return self.model.query.filter_by(user_id=self.user_id)

    def ordered(self, query):
        return query

    def get(self, row_id):
        return self.query().filter_by(id=row_id).first()

    def fetch(self):
        self.is_loading = True
        self.error = None
        try:
            self.items = self.ordered(self.query()).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            self._failed(f"Erreur de chargement des {self.noun}.", e)
        finally:
            self.is_loading = False
        self.changed.notify()
        return self.items

    def create(self, **fields) -> Result:
        row = self.model(user_id=self.user_id, **fields)
        db.session.add(row)
        result = self._commit(row, f"Impossible d'ajouter ({self.noun}).")
        if result.ok:
            self.items.append(row)
            self.changed.notify()
        return result

    def update(self, row_id, **partial) -> Result:
        row = self.get(row_id)
        if row is None:
            return Result(False, message="Élément introuvable.")
        for key, value in partial.items():
            setattr(row, key, value)
        result = self._commit(row, f"Impossible de modifier ({self.noun}).")
        if result.ok:
            self._replace(row)
            self.changed.notify()
        return result

    def delete(self, row_id) -> Result:
        row = self.get(row_id)
        if row is None:
            return Result(False, message="Élément introuvable.")
        db.session.delete(row)
        result = self._commit(row, f"Impossible de supprimer ({self.noun}).")
        if result.ok:
            self.items = [item for item in self.items if item.id != row_id]
            self.changed.notify()
        return result

    def _replace(self, row, key="id"):
        for index, item in enumerate(self.items):
            if getattr(item, key) == getattr(row, key):
                self.items[index] = row
                return
        self.items.append(row)

    def _commit(self, row, failure_message) -> Result:
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            return self._failed(failure_message, e)
        self.error = None
        return Result(True, row)

    def _failed(self, message, exc) -> Result:
        current_app.logger.error("%s (user=%s): %s", message, self.user_id, exc)
        self.error = message
        return Result(False, message=message)


class TransactionStore(Store):
    model = Transaction
    noun = "transactions"

    def ordered(self, query):
        return query.order_by(Transaction.date.desc(), Transaction.id.desc())


class CategoryStore(Store):
    model = Category
    noun = "catégories"

    def ordered(self, query):
        return query.order_by(Category.name)

    def of_kind(self, kind):
        return [c for c in self.items if c.kind == kind]

    def by_id(self):
        return {c.id: c for c in self.items}

    def in_use(self, category_id) -> bool:
        return Transaction.query.filter_by(user_id=self.user_id, category_id=category_id).first() is not None

    def update(self, row_id, **partial) -> Result:
        row = self.get(row_id)
        if row is not None and "kind" in partial and partial["kind"] != row.kind:
            try:
                used = self.in_use(row_id)
            except SQLAlchemyError as e:
                db.session.rollback()
                return self._failed(f"Impossible de modifier ({self.noun}).", e)
            if used:
                current_app.logger.warning("Refused to change kind of category %s still referenced (user=%s)",
                                           row_id, self.user_id)
                self.error = CATEGORY_KIND_LOCKED
                return Result(False, message=CATEGORY_KIND_LOCKED)
        return super().update(row_id, **partial)

    def delete(self, row_id) -> Result:
        try:
            used = self.in_use(row_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            return self._failed(f"Impossible de supprimer ({self.noun}).", e)
        if used:
            current_app.logger.warning("Refused to delete category %s still referenced (user=%s)", row_id, self.user_id)
            self.error = CATEGORY_IN_USE
            return Result(False, message=CATEGORY_IN_USE)
        return super().delete(row_id)


class BudgetStore(Store):
    """Budget entries of one calendar month at a time."""

    model = BudgetEntry
    noun = "budgets"

    def __init__(self, user_id: int):
        super().__init__(user_id)
        self.month: Optional[date] = None

    def fetch_for_month(self, any_day):
        self.month = start_of_month(any_day)
        return self.fetch()

    def query(self):
        query = super().query()
        if self.month is not None:
            query = query.filter_by(period_start=self.month)
        return query

    def upsert(self, category_id: int, any_day: date, amount, kind: str) -> Result:
        period_start = start_of_month(any_day)
        amount = to_decimal(amount)
        try:
            entry = BudgetEntry.query.filter_by(
                user_id=self.user_id, category_id=category_id, period_start=period_start
            ).first()
            if entry:
                entry.amount = amount
                entry.kind = kind
            else:
                entry = BudgetEntry(user_id=self.user_id, category_id=category_id,
                                    period_start=period_start, amount=amount, kind=kind)
                db.session.add(entry)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            return self._failed("Erreur lors de la sauvegarde du budget.", e)
        self.error = None
        if self.month == period_start:
            self._replace(entry, key="category_id")
            self.changed.notify()
        return Result(True, entry)


class SettingsStore(Store):
    """The actor's settings singleton; absent fields fall back to defaults."""

    model = AppSettings
    noun = "paramètres"

    def __init__(self, user_id: int):
        super().__init__(user_id)
        self.loaded = False
        self.settings: Optional[AppSettings] = None

    def get(self, row_id=None):
        return db.session.get(AppSettings, self.user_id)

    def defaults(self) -> AppSettings:
        config = current_app.config
        return AppSettings(
            user_id=self.user_id,
            company_name=config.get("DEFAULT_COMPANY_NAME"),
            company_address=config.get("DEFAULT_COMPANY_ADDRESS"),
        )

    def fetch(self):
        self.is_loading = True
        self.error = None
        try:
            self.settings = self.get() or self.defaults()
            self.items = [self.settings]
            self.loaded = True
        except SQLAlchemyError as e:
            db.session.rollback()
            self._failed("Erreur de chargement des paramètres.", e)
        finally:
            self.is_loading = False
        self.changed.notify()
        return self.settings

    def save(self, **fields) -> Result:
        try:
            row = self.get()
            if row is None:
                row = AppSettings(user_id=self.user_id)
                db.session.add(row)
            for key, value in fields.items():
                setattr(row, key, value or None)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            return self._failed("Erreur lors de la sauvegarde des paramètres.", e)
        self.error = None
        self.settings = row
        self.items = [row]
        self.loaded = True
        self.changed.notify()
        return Result(True, row)
