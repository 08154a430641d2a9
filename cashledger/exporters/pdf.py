"""
PDF rendering with reportlab.

The cash statement is laid out on portrait A4, the transaction log on
landscape A4. Both carry a footer with the fiscal identifiers and
"Page X sur Y" on every page.
"""
from datetime import datetime
from functools import partial
from io import BytesIO
from xml.sax.saxutils import escape

import requests
from flask import current_app
from PIL import Image as PILImage
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..formatting import format_currency, format_date, format_percentage, pdf_safe
from ..journal import KIND_LABELS
from ..models import INCOME, EXPENSE
from .common import (
    EMPTY_STATES, SECTION_TITLES, Letterhead, balance_lines, generated_label, report_table, table_header, totals_row,
)

LOGO_BOX = (40 * mm, 15 * mm)
MARGIN = 14 * mm

# N°, label, planned, realized, %, variance
ETAT_COLUMNS = [12 * mm, 62 * mm, 30 * mm, 30 * mm, 16 * mm, 32 * mm]
JOURNAL_COLUMNS = [24 * mm, 88 * mm, 40 * mm, 22 * mm, 30 * mm, 30 * mm, 33 * mm]
TRANSACTION_COLUMNS = [20 * mm, 70 * mm, 35 * mm, 22 * mm, 35 * mm]
REPORT_HEADER_FILL = colors.Color(22 / 255, 160 / 255, 133 / 255)

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
HEADER_FILL = colors.Color(220 / 255, 220 / 255, 220 / 255)

GRID_STYLE = [
    ("FONT", (0, 0), (-1, -1), FONT, 8),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ("TOPPADDING", (0, 0), (-1, -1), 3),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
]


def money(value) -> str:
    return pdf_safe(format_currency(value))


class NumberedCanvas(canvas.Canvas):
    """Defers page output until the page count is known."""

    def __init__(self, *args, footer="", **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._footer = footer
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_footer(page_count)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def draw_footer(self, page_count):
        width, _ = self._pagesize
        self.setFont(FONT, 7)
        self.setFillColor(colors.black)
        self.drawString(MARGIN, 8 * mm, self._footer)
        self.drawRightString(width - MARGIN, 8 * mm, f"Page {self._pageNumber} sur {page_count}")


def fetch_logo(url):
    """Download and fully decode the logo, aspect-fit in LOGO_BOX; ``None`` on any failure."""
    if not url:
        return None
    try:
        response = requests.get(url, timeout=current_app.config.get("LOGO_FETCH_TIMEOUT"))
        response.raise_for_status()
        data = response.content
        with PILImage.open(BytesIO(data)) as decoded:
            # open() only reads the header
            decoded.load()
            width, height = decoded.size
    except (requests.RequestException, OSError, ValueError, PILImage.DecompressionBombError) as e:
        current_app.logger.warning("Logo unavailable for PDF export (%s): %s", url, e)
        return None
    if not width or not height:
        current_app.logger.warning("Logo at %s has no size, skipped", url)
        return None
    scale = min(LOGO_BOX[0] / width, LOGO_BOX[1] / height)
    return Image(BytesIO(data), width=width * scale, height=height * scale)


def _letterhead_block(letterhead: Letterhead, styles, logo):
    text = [Paragraph(f"<b>{escape(letterhead.company_name)}</b>", styles["Normal"])]
    for line in (letterhead.company_address, letterhead.company_contact):
        if line:
            text.append(Paragraph(escape(line), styles["Normal"]))
    if logo is None:
        return Table([[text]], colWidths=[None], hAlign="LEFT")
    block = Table([[logo, text]], colWidths=[LOGO_BOX[0] + 4 * mm, None], hAlign="LEFT")
    block.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP"), ("LEFTPADDING", (0, 0), (0, 0), 0)]))
    return block


def _title_block(title, letterhead: Letterhead, generated_at, styles):
    centered = ParagraphStyle("Centered", parent=styles["Normal"], alignment=TA_CENTER)
    return [
        Paragraph(escape(letterhead.title), styles["Title"]),
        Paragraph(escape(title), styles["Heading2"]),
        Paragraph(generated_label(generated_at), centered),
        Spacer(1, 6 * mm),
    ]


def etat_section(report, kind):
    """Bordered figures table and its bold totals row for one kind."""
    data = [table_header(kind)]
    rows = report_table(report, kind)
    for row in rows:
        data.append([
            str(row.number),
            row.label,
            money(row.planned),
            money(row.realized),
            format_percentage(row.percentage),
            money(row.variance),
        ])
    style = GRID_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
        ("FONT", (0, 0), (-1, 0), FONT_BOLD, 8),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
        ("ALIGN", (0, 1), (0, -1), "CENTER"),
        ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
    ]
    if not rows:
        data.append([EMPTY_STATES[kind], "", "", "", "", ""])
        style += [("SPAN", (0, 1), (-1, 1)), ("ALIGN", (0, 1), (-1, 1), "CENTER")]
    figures = Table(data, colWidths=ETAT_COLUMNS, repeatRows=1)
    figures.setStyle(TableStyle(style))

    label, planned, realized = totals_row(report, kind)
    total = Table([[label, "", money(planned), money(realized), "", ""]], colWidths=ETAT_COLUMNS)
    total.setStyle(TableStyle(GRID_STYLE + [
        ("FONT", (0, 0), (-1, -1), FONT_BOLD, 8),
        ("SPAN", (0, 0), (1, 0)),
        ("ALIGN", (2, 0), (-1, 0), "RIGHT"),
    ]))
    return figures, total


def balance_table(report):
    (income_label, income), (expense_label, expense), (net_label, net) = balance_lines(report)
    table = Table([[
        "BALANCE",
        f"{income_label}: {money(income)}",
        f"{expense_label}: {money(expense)}",
        f"{net_label}: {money(net)}",
    ]], colWidths=[30 * mm, 52 * mm, 52 * mm, 48 * mm])
    table.setStyle(TableStyle(GRID_STYLE + [
        ("FONT", (0, 0), (0, 0), FONT_BOLD, 8),
        ("FONT", (3, 0), (3, 0), FONT_BOLD, 8),
        ("ALIGN", (1, 0), (-1, 0), "RIGHT"),
    ]))
    return table


def _build(story, letterhead, pagesize, compress):
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=12 * mm,
        bottomMargin=16 * mm,
        title=letterhead.title,
        author=letterhead.company_name,
        pageCompression=1 if compress else 0,
    )
    doc.build(story, canvasmaker=partial(NumberedCanvas, footer=pdf_safe(letterhead.footer)))
    return buffer.getvalue()


def render_etat_pdf(report, letterhead: Letterhead, generated_at: datetime, compress=True) -> bytes:
    styles = getSampleStyleSheet()
    styles["Heading2"].alignment = 1
    styles["Title"].fontSize = 16

    story = [_letterhead_block(letterhead, styles, fetch_logo(letterhead.logo_url)), Spacer(1, 4 * mm)]
    story += _title_block(report.title, letterhead, generated_at, styles)
    for kind in (INCOME, EXPENSE):
        figures, total = etat_section(report, kind)
        story += [Paragraph(f"<b>{SECTION_TITLES[kind]}</b>", styles["Normal"]), Spacer(1, 2 * mm),
                  figures, Spacer(1, 1 * mm), total, Spacer(1, 6 * mm)]
    story.append(balance_table(report))
    return _build(story, letterhead, A4, compress)


def render_journal_pdf(entries, letterhead: Letterhead, generated_at: datetime, title="Journal de Caisse",
                       compress=True) -> bytes:
    styles = getSampleStyleSheet()
    styles["Heading2"].alignment = 1
    cell = styles["BodyText"]
    cell.fontSize = 8
    cell.leading = 10

    data = [["Date", "Description", "Catégorie", "Type", "Revenu", "Dépense", "Solde"]]
    for entry in entries:
        t = entry.transaction
        data.append([
            format_date(t.date),
            Paragraph(escape(t.description or ""), cell),
            entry.category_name,
            entry.kind_label,
            money(entry.income) if entry.income else "-",
            money(entry.expense) if entry.expense else "-",
            money(entry.balance),
        ])
    table = Table(data, colWidths=JOURNAL_COLUMNS, repeatRows=1)
    table.setStyle(TableStyle(GRID_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), REPORT_HEADER_FILL),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONT", (0, 0), (-1, 0), FONT_BOLD, 8),
        ("ALIGN", (4, 1), (-1, -1), "RIGHT"),
    ]))

    story = [_letterhead_block(letterhead, styles, None), Spacer(1, 4 * mm)]
    story += _title_block(title, letterhead, generated_at, styles)
    story.append(table)
    return _build(story, letterhead, landscape(A4), compress)


def render_transactions_pdf(rows, letterhead: Letterhead, generated_at: datetime, title, compress=True) -> bytes:
    """Detailed transactions of a report; ``rows`` are ``(transaction, category name)`` pairs."""
    styles = getSampleStyleSheet()
    styles["Heading2"].alignment = 1
    cell = styles["BodyText"]
    cell.fontSize = 8
    cell.leading = 10

    data = [["Date", "Description", "Catégorie", "Type", "Montant"]]
    for t, category in rows:
        data.append([
            format_date(t.date),
            Paragraph(escape(t.description or ""), cell),
            category,
            KIND_LABELS.get(t.kind, t.kind),
            money(t.amount),
        ])
    style = GRID_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), REPORT_HEADER_FILL),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONT", (0, 0), (-1, 0), FONT_BOLD, 8),
        ("ALIGN", (4, 1), (4, -1), "RIGHT"),
    ]
    if not rows:
        data.append(["Aucune transaction sur cette période.", "", "", "", ""])
        style += [("SPAN", (0, 1), (-1, 1)), ("ALIGN", (0, 1), (-1, 1), "CENTER")]
    table = Table(data, colWidths=TRANSACTION_COLUMNS, repeatRows=1)
    table.setStyle(TableStyle(style))

    story = [_letterhead_block(letterhead, styles, None), Spacer(1, 4 * mm)]
    story += _title_block(title, letterhead, generated_at, styles)
    story.append(table)
    return _build(story, letterhead, A4, compress)
