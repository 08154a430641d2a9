"""
Workbook rendering with openpyxl.

Amounts are written as numbers with a display format; percentages are
stored as fractions (1.11 shown as 111%).
"""
from datetime import datetime
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..formatting import currency_suffix, to_decimal
from ..journal import KIND_LABELS
from ..models import INCOME, EXPENSE
from .common import (
    EMPTY_STATES, SHEET_SECTIONS, Letterhead, balance_lines, generated_label, report_table, table_header, totals_row,
)

PERCENT_FORMAT = "0%"
ETAT_SHEET = "Etat de Caisse"
JOURNAL_SHEET = "Journal"
TRANSACTIONS_SHEET = "Rapport Détail"
ETAT_WIDTHS = (6, 32, 18, 18, 10, 18)
JOURNAL_WIDTHS = (12, 40, 22, 12, 16, 16, 16)
TRANSACTION_WIDTHS = (12, 40, 25, 15, 20)

BOLD = Font(bold=True)
TITLE = Font(bold=True, size=14)
HEADER_FILL = PatternFill("solid", fgColor="DCDCDC")
THIN = Side(style="thin", color="808080")
BOX = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)


def currency_format() -> str:
    return f'#,##0 "{currency_suffix()}"'


class SheetWriter:
    """Appends rows top to bottom, tracking the current row number."""

    def __init__(self, sheet, width):
        self.sheet = sheet
        self.width = width
        self.row = 0

    def blank(self):
        self.row += 1

    def merged(self, text, font=None):
        self.row += 1
        cell = self.sheet.cell(row=self.row, column=1, value=text)
        if font:
            cell.font = font
        cell.alignment = Alignment(horizontal="center")
        self.sheet.merge_cells(start_row=self.row, start_column=1, end_row=self.row, end_column=self.width)
        return cell

    def values(self, values, font=None, fill=None, border=True, formats=None):
        self.row += 1
        formats = formats or {}
        for column, value in enumerate(values, start=1):
            cell = self.sheet.cell(row=self.row, column=column, value=value)
            if font:
                cell.font = font
            if fill:
                cell.fill = fill
            if border:
                cell.border = BOX
            if column in formats and value is not None:
                cell.number_format = formats[column]
        return self.row


def _set_widths(sheet, widths):
    for index, width in enumerate(widths, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width


def _letterhead_rows(writer, letterhead: Letterhead, title, generated_at):
    writer.merged(letterhead.title, TITLE)
    for line in letterhead.lines():
        writer.merged(line)
    writer.merged(title, BOLD)
    writer.merged(generated_label(generated_at))
    writer.blank()


def _section(writer, report, kind, money):
    formats = {3: money, 4: money, 5: PERCENT_FORMAT, 6: money}
    writer.merged(SHEET_SECTIONS[kind], BOLD)
    writer.values(table_header(kind), font=BOLD, fill=HEADER_FILL)
    rows = report_table(report, kind)
    if not rows:
        writer.merged(EMPTY_STATES[kind])
    for row in rows:
        writer.values(
            [row.number, row.label, row.planned, row.realized, to_decimal(row.percentage) / 100, row.variance],
            formats=formats,
        )
    label, planned, realized = totals_row(report, kind)
    writer.values([None, label, planned, realized, None, None], font=BOLD, formats=formats)
    writer.blank()


def build_etat_workbook(report, letterhead: Letterhead, generated_at: datetime) -> Workbook:
    money = currency_format()
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = ETAT_SHEET
    writer = SheetWriter(sheet, len(ETAT_WIDTHS))

    _letterhead_rows(writer, letterhead, report.title, generated_at)
    for kind in (INCOME, EXPENSE):
        _section(writer, report, kind, money)

    writer.merged("BALANCE", BOLD)
    for label, amount in balance_lines(report):
        writer.values([None, label, amount], font=BOLD if label == "SOLDE" else None, formats={3: money})
    writer.blank()
    writer.merged(letterhead.footer)

    _set_widths(sheet, ETAT_WIDTHS)
    return workbook


def build_journal_workbook(entries, letterhead: Letterhead, generated_at: datetime,
                           title="Journal de Caisse") -> Workbook:
    money = currency_format()
    formats = {5: money, 6: money, 7: money}
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = JOURNAL_SHEET
    writer = SheetWriter(sheet, len(JOURNAL_WIDTHS))

    _letterhead_rows(writer, letterhead, title, generated_at)
    writer.values(["Date", "Description", "Catégorie", "Type", "Revenu", "Dépense", "Solde"],
                  font=BOLD, fill=HEADER_FILL)
    for entry in entries:
        t = entry.transaction
        writer.values(
            [t.date, t.description, entry.category_name, entry.kind_label,
             entry.income or None, entry.expense or None, entry.balance],
            formats=formats,
        )
        sheet.cell(row=writer.row, column=1).number_format = "DD/MM/YYYY"
    writer.blank()
    writer.merged(letterhead.footer)

    _set_widths(sheet, JOURNAL_WIDTHS)
    return workbook


def build_transactions_workbook(rows, letterhead: Letterhead, generated_at: datetime, title) -> Workbook:
    money = currency_format()
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = TRANSACTIONS_SHEET
    writer = SheetWriter(sheet, len(TRANSACTION_WIDTHS))

    _letterhead_rows(writer, letterhead, title, generated_at)
    writer.values(["Date", "Description", "Catégorie", "Type", f"Montant ({currency_suffix()})"],
                  font=BOLD, fill=HEADER_FILL)
    for t, category in rows:
        writer.values([t.date, t.description, category, KIND_LABELS.get(t.kind, t.kind), to_decimal(t.amount)],
                      formats={5: money})
        sheet.cell(row=writer.row, column=1).number_format = "DD/MM/YYYY"
    if not rows:
        writer.merged("Aucune transaction sur cette période.")
    writer.blank()
    writer.merged(letterhead.footer)

    _set_widths(sheet, TRANSACTION_WIDTHS)
    return workbook


def to_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def render_etat_xlsx(report, letterhead, generated_at) -> bytes:
    return to_bytes(build_etat_workbook(report, letterhead, generated_at))


def render_journal_xlsx(entries, letterhead, generated_at) -> bytes:
    return to_bytes(build_journal_workbook(entries, letterhead, generated_at))


def render_transactions_xlsx(rows, letterhead, generated_at, title) -> bytes:
    return to_bytes(build_transactions_workbook(rows, letterhead, generated_at, title))
