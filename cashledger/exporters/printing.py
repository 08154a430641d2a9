from datetime import datetime

from flask import render_template

from ..formatting import export_timestamp
from .common import Letterhead


def _render_print(template, letterhead: Letterhead, generated_at: datetime, **context) -> str:
    """A screen template in its print variant: static figures, black text, print dialog on load."""
    return render_template(
        template,
        letterhead=letterhead,
        printed_at=export_timestamp(generated_at),
        print_mode=True,
        **context,
    )


def render_etat_print(report, letterhead, generated_at, period_args=None) -> str:
    return _render_print("etats/index.html", letterhead, generated_at, report=report, period_args=period_args or {})


def render_journal_print(entries, letterhead, generated_at) -> str:
    return _render_print("journal/index.html", letterhead, generated_at, entries=entries)


def render_transactions_print(rows, letterhead, generated_at, title, totals, spending, earnings) -> str:
    return _render_print("reports/index.html", letterhead, generated_at, rows=rows, title=title, totals=totals,
                         spending=spending, earnings=earnings)
