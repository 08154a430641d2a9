from .common import ExportUnavailable, Letterhead
from .csv_export import journal_csv, transactions_csv
from .pdf import render_etat_pdf, render_journal_pdf, render_transactions_pdf
from .printing import render_etat_print, render_journal_print, render_transactions_print
from .spreadsheet import render_etat_xlsx, render_journal_xlsx, render_transactions_xlsx

__all__ = [
    "ExportUnavailable",
    "Letterhead",
    "journal_csv",
    "transactions_csv",
    "render_etat_pdf",
    "render_journal_pdf",
    "render_transactions_pdf",
    "render_etat_print",
    "render_journal_print",
    "render_transactions_print",
    "render_etat_xlsx",
    "render_journal_xlsx",
    "render_transactions_xlsx",
]
