from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from .formatting import format_date, parse_date
from .observable import Subject


@dataclass(frozen=True)
class Period:
    start: date
    end: date
    label: str = "Période personnalisée"

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError("La date de début doit précéder la date de fin.")

    @property
    def lower_bound(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def upper_bound(self) -> datetime:
        return datetime.combine(self.end, time.max)


def start_of_month(d):
    return d.replace(day=1)


def end_of_month(d):
    next_month = (d.replace(day=28) + timedelta(days=4)).replace(day=1)
    return next_month - timedelta(days=1)


def start_of_week(d):
    # weeks start on Monday (fr locale)
    return d - timedelta(days=d.weekday())


def _this_month(today):
    return start_of_month(today), end_of_month(today)


def _last_month(today):
    previous = start_of_month(today) - timedelta(days=1)
    return start_of_month(previous), end_of_month(previous)


def _this_week(today):
    monday = start_of_week(today)
    return monday, monday + timedelta(days=6)


def _last_week(today):
    monday = start_of_week(today) - timedelta(days=7)
    return monday, monday + timedelta(days=6)


def _today(today):
    return today, today


def _yesterday(today):
    day = today - timedelta(days=1)
    return day, day


PRESETS = {
    "this_month": ("Ce Mois-ci", _this_month),
    "last_month": ("Mois Dernier", _last_month),
    "this_week": ("Cette Semaine", _this_week),
    "today": ("Aujourd'hui", _today),
    "yesterday": ("Hier", _yesterday),
    "last_week": ("Semaine Dernière", _last_week),
}

# Presets offered on the cash statement screen
ETAT_PRESETS = ("this_month", "last_month", "this_week", "today")
DEFAULT_PRESET = "this_month"


def resolve_preset(name: str, today: Optional[date] = None) -> Period:
    if name not in PRESETS:
        raise KeyError(name)
    label, resolver = PRESETS[name]
    start, end = resolver(today or date.today())
    return Period(start, end, label)


def custom_period(start, end):
    return Period(start, end)


def _read_period(source, today):
    preset = source.get("preset")
    if preset in PRESETS:
        return resolve_preset(preset, today), preset, None
    raw_start, raw_end = source.get("start"), source.get("end")
    if not raw_start and not raw_end:
        return None, None, None
    start, end = parse_date(raw_start), parse_date(raw_end)
    if start is None or end is None:
        return None, None, "Période invalide."
    try:
        return custom_period(start, end), None, None
    except ValueError as e:
        return None, None, str(e)


def period_from_args(args, fallback=None, today=None):
    """Read ``preset`` or ``start``/``end`` from a mapping (query string, session).

    Returns ``(period, preset, error)``. Unusable input yields a message in
    ``error`` and falls back to ``fallback``, then to the default preset.
    """
    period, preset, error = _read_period(args, today)
    if period is None and fallback:
        period, preset, _ = _read_period(fallback, today)
    if period is None:
        period, preset = resolve_preset(DEFAULT_PRESET, today), DEFAULT_PRESET
    return period, preset, error


def period_to_args(period, preset=None):
    if preset:
        return {"preset": preset}
    return {"start": period.start.isoformat(), "end": period.end.isoformat()}


def in_period(moment, period):
    if not isinstance(moment, datetime):
        moment = datetime.combine(moment, time.min)
    return period.lower_bound <= moment <= period.upper_bound


def filter_transactions(transactions, period):
    return [t for t in transactions if in_period(t.date, period)]


def budget_month(period: Period) -> date:
    """First day of the month holding the period start.

    Budgets are kept per calendar month; a period spanning several months is
    reconciled against the first one only.
    """
    return start_of_month(period.start)


def report_title(base, period):
    if period.start == period.end:
        return f"{base} du {format_date(period.start)}"
    return f"{base} du {format_date(period.start)} au {format_date(period.end)}"


class PeriodModel:
    """Holds the selected period and notifies once a change is committed."""

    def __init__(self, period: Optional[Period] = None, preset: Optional[str] = None):
        if period is None:
            preset = preset or DEFAULT_PRESET
            period = resolve_preset(preset)
        self.period = period
        self.preset = preset
        self.changed = Subject()

    def select_preset(self, name: str, today: Optional[date] = None) -> Period:
        self._commit(resolve_preset(name, today), name)
        return self.period

    def set_custom(self, start: date, end: date) -> Period:
        self._commit(custom_period(start, end), None)
        return self.period

    def _commit(self, period, preset):
        self.period = period
        self.preset = preset
        self.changed.notify()

    @property
    def budget_month(self) -> date:
        return budget_month(self.period)

    def to_args(self):
        return period_to_args(self.period, self.preset)
