import re
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from types import SimpleNamespace

import pytest
import requests
from openpyxl import load_workbook
from PIL import Image

from cashledger.exporters import ExportUnavailable, Letterhead, journal_csv, render_etat_pdf, render_etat_print
from cashledger.exporters import render_etat_xlsx, render_journal_pdf, render_journal_print, render_journal_xlsx
from cashledger.exporters import render_transactions_pdf, render_transactions_print, render_transactions_xlsx
from cashledger.exporters import transactions_csv
from cashledger.exporters import pdf as pdf_module
from cashledger.formatting import format_currency, format_percentage, pdf_safe
from cashledger.journal import build_journal
from cashledger.models import INCOME, EXPENSE
from cashledger.periods import Period
from cashledger.reconciliation import build_cash_report

GENERATED = datetime(2024, 3, 31, 18, 45)


@pytest.fixture
def report(salary_rent):
    categories, transactions, budgets = salary_rent
    return build_cash_report(categories, transactions, budgets,
                             period=Period(date(2024, 3, 1), date(2024, 3, 31)))


@pytest.fixture
def letterhead():
    return Letterhead(title="GESTION CAISSE", company_name="Boutique Awa", company_address="Dakar",
                      rccm="RC-2024-B-17")


@pytest.fixture
def entries(salary_rent):
    categories, transactions, _ = salary_rent
    return build_journal(transactions, {c.id: c for c in categories})


def test_letterhead_requires_loaded_settings():
    with pytest.raises(ExportUnavailable):
        Letterhead.from_settings(SimpleNamespace(loaded=False, settings=None))


def test_letterhead_footer_marks_missing_identifiers(letterhead):
    assert letterhead.footer == "RCCM: RC-2024-B-17 - NIU: N/A"


def test_print_view_shows_the_same_figures(app, report, letterhead):
    with app.test_request_context():
        html = render_etat_print(report, letterhead, GENERATED)
    for row in report.recettes + report.depenses:
        assert format_currency(row.planned) in html
        assert format_currency(row.realized) in html
        assert format_percentage(row.percentage) in html
        assert format_currency(row.variance) in html
    assert format_currency(report.solde_realise) in html
    assert "Imprimé le 31/03/2024 18:45" in html
    assert "window.print()" in html
    assert "<input" not in html


def test_pdf_shows_the_same_figures(ctx, report, letterhead):
    body = render_etat_pdf(report, letterhead, GENERATED, compress=False)
    assert body.startswith(b"%PDF")
    for row in report.recettes + report.depenses:
        for text in (pdf_safe(format_currency(row.planned)), pdf_safe(format_currency(row.realized)),
                     format_percentage(row.percentage), pdf_safe(format_currency(row.variance))):
            assert text.encode("latin-1") in body
    assert b"SOLDE: 1 200 F CFA" in body
    assert b"Page 1 sur 1" in body
    assert b"RCCM: RC-2024-B-17 - NIU: N/A" in body


def test_pdf_logo_failure_is_not_fatal(ctx, report, monkeypatch):
    def unreachable(url, timeout=None):
        raise requests.ConnectionError("no route to host")

    monkeypatch.setattr(pdf_module.requests, "get", unreachable)
    letterhead = Letterhead(title="GESTION CAISSE", company_name="Boutique Awa",
                            logo_url="https://logo.invalid/logo.png")
    assert pdf_module.fetch_logo(letterhead.logo_url) is None
    assert render_etat_pdf(report, letterhead, GENERATED).startswith(b"%PDF")


def _sheet_rows(body):
    sheet = load_workbook(BytesIO(body)).active
    return sheet, {row[1].value: row for row in sheet.iter_rows() if len(row) > 1 and row[1].value}


def test_workbook_shows_the_same_figures(ctx, report, letterhead):
    sheet, by_label = _sheet_rows(render_etat_xlsx(report, letterhead, GENERATED))
    assert sheet.title == "Etat de Caisse"
    for row in report.recettes + report.depenses:
        cells = by_label[row.label]
        assert cells[0].value == row.number
        assert cells[2].value == row.planned
        assert cells[3].value == row.realized
        assert cells[4].value == pytest.approx(float(row.percentage) / 100)
        assert cells[4].number_format == "0%"
        assert cells[5].value == row.variance
        assert cells[2].number_format == '#,##0 "F CFA"'
    assert by_label["SOLDE"][2].value == 1200
    assert by_label["Total Recettes"][3].value == 2000


def test_workbook_is_deterministic(ctx, report, letterhead):
    def values():
        sheet = load_workbook(BytesIO(render_etat_xlsx(report, letterhead, GENERATED))).active
        return [[c.value for c in row] for row in sheet.iter_rows()]

    assert values() == values()


def test_empty_sections_say_so(ctx, letterhead):
    report = build_cash_report([], [], [])
    sheet = load_workbook(BytesIO(render_etat_xlsx(report, letterhead, GENERATED))).active
    texts = [row[0].value for row in sheet.iter_rows()]
    assert "Aucune catégorie de recette." in texts
    assert "Aucune catégorie de dépense." in texts
    assert b"Page 1 sur 1" in render_etat_pdf(report, letterhead, GENERATED, compress=False)


def test_journal_running_balance(entries):
    assert [e.transaction.id for e in entries] == [2, 1]
    assert [e.balance for e in entries] == [Decimal(1200), Decimal(2000)]
    assert entries[0].kind_label == "Dépense"


def test_journal_csv_quotes_text_only(entries):
    text = journal_csv(entries)
    lines = text.split("\n")
    assert text.startswith("\ufeff")
    assert lines[0] == ('\ufeff"Date","Description","Catégorie","Type",'
                        '"Revenu (F CFA)","Dépense (F CFA)","Solde (F CFA)"')
    assert lines[1] == '"2024-03-06","Loyer mars","Rent","Dépense",0.00,800.00,1200.00'


def test_transactions_csv_marks_unclassified():
    tx = SimpleNamespace(date=date(2024, 3, 2), description="Divers", category_id=None,
                         kind=EXPENSE, amount=Decimal("15.40"))
    lines = transactions_csv([tx], {}).split("\n")
    assert lines[1] == '"2024-03-02","Divers","Non classé(e)","Dépense",15'


def test_journal_pdf_and_workbook(ctx, entries, letterhead):
    body = render_journal_pdf(entries, letterhead, GENERATED, compress=False)
    assert b"Page 1 sur 1" in body
    assert b"1 200 F CFA" in body
    sheet = load_workbook(BytesIO(render_journal_xlsx(entries, letterhead, GENERATED))).active
    values = [row[6].value for row in sheet.iter_rows() if row[6].value is not None]
    assert values[-2:] == [1200, 2000]


def _png(size=(400, 150)):
    buffer = BytesIO()
    Image.effect_noise(size, 64).save(buffer, format="PNG")
    return buffer.getvalue()


def _serve_logo(monkeypatch, body):
    def get(url, timeout=None):
        return SimpleNamespace(content=body, raise_for_status=lambda: None)

    monkeypatch.setattr(pdf_module.requests, "get", get)


def test_logo_is_scaled_into_the_letterhead(ctx, report, monkeypatch):
    _serve_logo(monkeypatch, _png())
    logo = pdf_module.fetch_logo("https://cdn.example.com/logo.png")
    assert logo is not None
    assert logo.drawWidth <= pdf_module.LOGO_BOX[0] + 0.01
    assert logo.drawHeight <= pdf_module.LOGO_BOX[1] + 0.01


def test_truncated_logo_is_skipped(ctx, report, monkeypatch):
    _serve_logo(monkeypatch, _png()[:120])
    letterhead = Letterhead(title="GESTION CAISSE", company_name="Boutique Awa",
                            logo_url="https://cdn.example.com/logo.png")
    assert pdf_module.fetch_logo(letterhead.logo_url) is None
    body = render_etat_pdf(report, letterhead, GENERATED, compress=False)
    assert b"Page 1 sur 1" in body


def test_garbage_logo_is_skipped(ctx, report, monkeypatch):
    _serve_logo(monkeypatch, b"<html>not found</html>")
    assert pdf_module.fetch_logo("https://cdn.example.com/logo.png") is None


def _pdf_strings(body):
    """Text runs drawn on the pages of an uncompressed PDF, in drawing order."""
    return [s.decode("latin-1") for s in re.findall(rb"\((.*?)\) Tj", body)]


def test_repeated_exports_are_identical(app, report, letterhead):
    with app.test_request_context():
        first = render_etat_print(report, letterhead, GENERATED)
        second = render_etat_print(report, letterhead, GENERATED)
    assert first == second
    assert (_pdf_strings(render_etat_pdf(report, letterhead, GENERATED, compress=False))
            == _pdf_strings(render_etat_pdf(report, letterhead, GENERATED, compress=False)))


def test_statement_figures_match_across_formats(app, report, letterhead):
    with app.test_request_context():
        html = render_etat_print(report, letterhead, GENERATED)
    printed = {}
    for row in re.findall(r'<tr data-category="\d+">(.*?)</tr>', html, re.S):
        cells = tuple(pdf_safe(c.strip()) for c in re.findall(r"<td[^>]*>(.*?)</td>", row, re.S))
        printed[cells[1]] = cells
    assert set(printed) == {"Salary", "Rent"}

    strings = _pdf_strings(render_etat_pdf(report, letterhead, GENERATED, compress=False))
    drawn = {}
    for label in printed:
        at = strings.index(label)
        drawn[label] = tuple(strings[at - 1:at + 5])

    _, by_label = _sheet_rows(render_etat_xlsx(report, letterhead, GENERATED))
    written = {}
    for label in printed:
        number, name, planned, realized, ratio, variance = (c.value for c in by_label[label][:6])
        written[label] = (
            str(number),
            name,
            pdf_safe(format_currency(planned)),
            pdf_safe(format_currency(realized)),
            format_percentage(Decimal(str(ratio)) * 100),
            pdf_safe(format_currency(variance)),
        )

    assert printed == drawn == written
    assert printed["Rent"] == ("1", "Rent", "1 000 F CFA", "800 F CFA", "80%", "-200 F CFA")


@pytest.fixture
def detail_rows(salary_rent):
    categories, transactions, _ = salary_rent
    names = {c.id: c.name for c in categories}
    return [(t, names[t.category_id]) for t in transactions]


def test_transactions_pdf_lists_every_line(ctx, detail_rows, letterhead):
    body = render_transactions_pdf(detail_rows, letterhead, GENERATED, "Rapport des Transactions", compress=False)
    strings = _pdf_strings(body)
    assert strings.index("05/03/2024") < strings.index("Salary") < strings.index("Revenu") < strings.index(
        "2 000 F CFA")
    assert "06/03/2024" in strings
    assert "800 F CFA" in strings
    assert "Montant" in strings
    assert b"Page 1 sur 1" in body

    empty = render_transactions_pdf([], letterhead, GENERATED, "Rapport des Transactions", compress=False)
    assert b"Aucune transaction sur cette p" in empty


def test_transactions_workbook_layout(ctx, detail_rows, letterhead):
    sheet, by_label = _sheet_rows(render_transactions_xlsx(detail_rows, letterhead, GENERATED,
                                                           "Rapport des Transactions"))
    assert sheet.title == "Rapport Détail"
    assert [c.value for c in by_label["Description"]] == ["Date", "Description", "Catégorie", "Type",
                                                          "Montant (F CFA)"]
    rent = by_label["Loyer mars"]
    assert rent[0].value.date() == date(2024, 3, 6)
    assert rent[0].number_format == "DD/MM/YYYY"
    assert [c.value for c in rent[2:]] == ["Rent", "Dépense", 800]
    assert rent[4].number_format == '#,##0 "F CFA"'
    texts = [row[0].value for row in sheet.iter_rows()]
    assert "Rapport des Transactions" in texts
    assert "RCCM: RC-2024-B-17 - NIU: N/A" in texts


def test_transactions_print_view(app, detail_rows, letterhead):
    with app.test_request_context():
        html = render_transactions_print(
            detail_rows, letterhead, GENERATED, "Rapport des Transactions",
            totals={"income": Decimal(2000), "expense": Decimal(800), "net": Decimal(1200)},
            spending=[("Rent", Decimal(800))],
            earnings=[("Salary", Decimal(2000))],
        )
    assert "window.print()" in html
    assert "Imprimé le 31/03/2024 18:45" in html
    assert "<form" not in html
    assert "Exporter en CSV" not in html
    assert "Loyer mars" in html
    assert format_currency(1200) in html


def test_journal_print_view(app, entries, letterhead):
    with app.test_request_context():
        html = render_journal_print(entries, letterhead, GENERATED)
    assert "window.print()" in html
    assert "Exporter en CSV" not in html
    assert "RCCM: RC-2024-B-17 - NIU: N/A" in html
    assert html.index("Loyer mars") < html.index("Salaire mars")
    assert format_currency(1200) in html
