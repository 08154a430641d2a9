"""French-locale money, percentage and date formatting shared by every renderer."""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from flask import current_app, has_app_context

DEFAULT_CURRENCY_SUFFIX = "F CFA"

# fr-FR groups thousands with a narrow no-break space
GROUP_SEPARATOR = "\u202f"
NBSP = "\u00a0"


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)


def currency_suffix() -> str:
    if has_app_context():
        return current_app.config.get("CURRENCY_SUFFIX", DEFAULT_CURRENCY_SUFFIX)
    return DEFAULT_CURRENCY_SUFFIX


def round_half_up(value) -> int:
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_number(value) -> str:
    """Integer with French digit grouping, e.g. ``-1 234 567``."""
    n = round_half_up(value)
    grouped = f"{abs(n):,}".replace(",", GROUP_SEPARATOR)
    return f"-{grouped}" if n < 0 else grouped


def format_currency(amount, suffix=None) -> str:
    suffix = currency_suffix() if suffix is None else suffix
    return f"{format_number(amount)} {suffix}"


def pdf_safe(text: str) -> str:
    """Swap the non-ASCII spaces the PDF base fonts cannot lay out for plain spaces."""
    return text.replace(NBSP, " ").replace(GROUP_SEPARATOR, " ")


def format_percentage(value) -> str:
    return f"{round_half_up(value)}%"


def format_date(value) -> str:
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def export_timestamp(now: datetime) -> str:
    return now.strftime("%d/%m/%Y %H:%M")


def timestamp_suffix(now: datetime) -> str:
    return now.strftime("%Y%m%d%H%M")


def export_filename(report_name: str, extension: str, now: datetime) -> str:
    return f"{report_name}_{timestamp_suffix(now)}.{extension}"


def parse_date(raw):
    """ISO ``YYYY-MM-DD`` to ``date``; ``None`` when empty or malformed."""
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def register_filters(app):
    app.add_template_filter(format_currency, "currency")
    app.add_template_filter(format_percentage, "percentage")
    app.add_template_filter(format_date, "frdate")
