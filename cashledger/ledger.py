"""
The per-actor ledger session.

Built lazily for the authenticated actor on ``flask.g`` and disposed when the
application context tears down or the actor signs out, which drops every
listener registered on its stores.
"""
from typing import Callable, List, Optional

from flask import g, session
from flask_login import current_user

from .budget_edits import BudgetEditor, PendingEdits
from .periods import PeriodModel, filter_transactions, period_from_args
from .reconciliation import CashReport, build_cash_report
from .models import INCOME, EXPENSE
from .stores import BudgetStore, CategoryStore, SettingsStore, TransactionStore

PENDING_KEY = "pending_budgets"
PERIOD_KEY = "etat_period"


class LedgerSession:
    def __init__(self, user_id: int, pending_state=None, period: Optional[PeriodModel] = None):
        self.user_id = user_id
        self.transactions = TransactionStore(user_id)
        self.categories = CategoryStore(user_id)
        self.budgets = BudgetStore(user_id)
        self.settings = SettingsStore(user_id)
        self.period = period or PeriodModel()
        self.pending = PendingEdits(pending_state)
        self.budget_editor = BudgetEditor(self.budgets, self.pending)
        self._unsubscribers: List[Callable[[], None]] = [
            self.period.changed.subscribe(self._refetch_budgets),
        ]
        self.disposed = False

    @property
    def stores(self):
        return (self.transactions, self.categories, self.budgets, self.settings)

    def load(self):
        self.categories.fetch()
        self.transactions.fetch()
        self.settings.fetch()
        if self.budgets.month != self.period.budget_month:
            self._refetch_budgets()
        return self

    def _refetch_budgets(self):
        self.budgets.fetch_for_month(self.period.budget_month)

    def watch(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` whenever a store or the period changes."""
        unsubscribers = [s.changed.subscribe(listener) for s in self.stores]
        unsubscribers.append(self.period.changed.subscribe(listener))

        def unwatch():
            for unsubscribe in unsubscribers:
                unsubscribe()

        self._unsubscribers.append(unwatch)
        return unwatch

    def period_transactions(self):
        return filter_transactions(self.transactions.items, self.period.period)

    def cash_report(self) -> CashReport:
        return build_cash_report(
            self.categories.items,
            self.period_transactions(),
            self.budgets.items,
            pending_income=self.pending.for_kind(INCOME),
            pending_expense=self.pending.for_kind(EXPENSE),
            period=self.period.period,
        )

    def dispose(self):
        if self.disposed:
            return
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        for store in self.stores:
            store.changed.clear()
        self.period.changed.clear()
        self.disposed = True


def get_ledger() -> LedgerSession:
    if "ledger" not in g:
        g.ledger = LedgerSession(current_user.id, pending_state=session.get(PENDING_KEY))
    return g.ledger


def apply_period(ledger: LedgerSession, args, remember=True):
    """Commit the period requested in ``args`` (or the remembered one) to the ledger.

    Returns a validation message when the requested interval was unusable.
    """
    period, preset, error = period_from_args(args, session.get(PERIOD_KEY))
    if preset:
        ledger.period.select_preset(preset)
    else:
        ledger.period.set_custom(period.start, period.end)
    if remember:
        session[PERIOD_KEY] = ledger.period.to_args()
    return error


def save_pending(ledger: LedgerSession):
    session[PENDING_KEY] = ledger.pending.to_state()


def end_ledger_session():
    """Sign-out: drop the actor's session state and listeners."""
    ledger = g.pop("ledger", None)
    if ledger is not None:
        ledger.dispose()
    session.pop(PENDING_KEY, None)
    session.pop(PERIOD_KEY, None)


def init_app(app):
    @app.teardown_appcontext
    def dispose_ledger(exc):
        ledger = g.pop("ledger", None)
        if ledger is not None:
            ledger.dispose()
