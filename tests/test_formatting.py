from datetime import date, datetime
from decimal import Decimal

from cashledger.formatting import (
    export_filename, format_currency, format_date, format_number, format_percentage, parse_date, pdf_safe,
    to_decimal,
)

NNBSP = "\u202f"


def test_currency_groups_thousands_with_narrow_space():
    assert format_currency(1234) == f"1{NNBSP}234 F CFA"
    assert format_currency(Decimal("1234567.5")) == f"1{NNBSP}234{NNBSP}568 F CFA"
    assert format_currency(0) == "0 F CFA"


def test_currency_rounds_half_up_and_keeps_sign():
    assert format_currency(Decimal("-200")) == "-200 F CFA"
    assert format_number(Decimal("2.5")) == "3"
    assert format_number(Decimal("-1999.5")) == f"-2{NNBSP}000"


def test_currency_suffix_comes_from_config(ctx):
    ctx.config["CURRENCY_SUFFIX"] = "XAF"
    assert format_currency(10) == "10 XAF"
    assert format_currency(10, suffix="EUR") == "10 EUR"


def test_pdf_safe_replaces_special_spaces():
    assert pdf_safe(format_currency(1234)) == "1 234 F CFA"
    assert pdf_safe("a\u00a0b") == "a b"


def test_percentage_is_rounded_integer():
    assert format_percentage(Decimal("111.111")) == "111%"
    assert format_percentage(Decimal("99.5")) == "100%"
    assert format_percentage(0) == "0%"


def test_dates_and_filenames():
    assert format_date(date(2024, 3, 5)) == "05/03/2024"
    assert format_date(None) == ""
    assert export_filename("etat_de_caisse", "pdf", datetime(2024, 3, 5, 9, 7)) == "etat_de_caisse_202403050907.pdf"


def test_parse_date_and_to_decimal():
    assert parse_date("2024-02-29") == date(2024, 2, 29)
    assert parse_date("29/02/2024") is None
    assert parse_date("") is None
    assert to_decimal(None) == 0
    assert to_decimal(1.5) == Decimal("1.5")
    assert to_decimal("abc") == 0
