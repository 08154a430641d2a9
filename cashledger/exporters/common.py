"""
Pieces shared by the print, PDF and spreadsheet renderers.

Every renderer takes its headings, per-row figures, totals and balance lines
from here so the three outputs always carry the same numbers.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from flask import current_app

from ..formatting import export_timestamp
from ..models import INCOME, EXPENSE
from ..reconciliation import CashReport, ReportRow

SETTINGS_NOT_LOADED = "Les paramètres de l'entreprise ne sont pas encore chargés. Réessayez dans un instant."

SECTION_TITLES = {INCOME: "I- Les Recettes", EXPENSE: "II- Les Dépenses"}
SHEET_SECTIONS = {INCOME: "RECETTES", EXPENSE: "DEPENSES"}
LABEL_HEADINGS = {INCOME: "Types de recettes", EXPENSE: "Types de dépenses"}
TOTAL_LABELS = {INCOME: "Total Recettes", EXPENSE: "Total Dépenses"}
EMPTY_STATES = {INCOME: "Aucune catégorie de recette.", EXPENSE: "Aucune catégorie de dépense."}

ETAT_REPORT_NAME = "etat_de_caisse"
JOURNAL_REPORT_NAME = "journal_caisse"
TRANSACTIONS_REPORT_NAME = "rapport_transactions_detaillees"


class ExportUnavailable(Exception):
    """An export was requested before its inputs were ready."""


@dataclass(frozen=True)
class Letterhead:
    title: str
    company_name: str
    company_address: str = ""
    company_contact: str = ""
    logo_url: Optional[str] = None
    rccm: Optional[str] = None
    niu: Optional[str] = None

    @classmethod
    def from_settings(cls, store) -> "Letterhead":
        if not store.loaded or store.settings is None:
            raise ExportUnavailable(SETTINGS_NOT_LOADED)
        s = store.settings
        config = current_app.config
        return cls(
            title=config.get("APP_TITLE", "GESTION CAISSE"),
            company_name=s.company_name or config.get("DEFAULT_COMPANY_NAME", ""),
            company_address=s.company_address or config.get("DEFAULT_COMPANY_ADDRESS", ""),
            company_contact=s.company_contact or "",
            logo_url=s.company_logo_url or None,
            rccm=s.rccm,
            niu=s.niu,
        )

    @property
    def footer(self) -> str:
        return f"RCCM: {self.rccm or 'N/A'} - NIU: {self.niu or 'N/A'}"

    def lines(self) -> List[str]:
        return [line for line in (self.company_name, self.company_address, self.company_contact) if line]


def table_header(kind: str) -> List[str]:
    return ["N°", LABEL_HEADINGS[kind], "Montant Prévu", "Montant Réalisé", "% Réal.", "Ecart"]


def report_table(report: CashReport, kind: str) -> List[ReportRow]:
    return report.rows(kind)


def totals_row(report: CashReport, kind: str) -> Tuple[str, object, object]:
    totals = report.totals[kind]
    return TOTAL_LABELS[kind], totals.planned, totals.realized


def balance_lines(report: CashReport):
    return [
        ("Total Recettes Réalisées", report.totals[INCOME].realized),
        ("Total Dépenses Réalisées", report.totals[EXPENSE].realized),
        ("SOLDE", report.solde_realise),
    ]


def generated_label(generated_at: datetime) -> str:
    return f"Date d'export: {export_timestamp(generated_at)}"
