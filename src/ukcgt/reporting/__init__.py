from .aggregate import RateChangeSplit, TaxYearSummary, summarize_tax_year
from .domain import (
    Acquisition,
    Diagnostic,
    DiagnosticType,
    Disposal,
    MatchDetail,
    MatchRule,
    PoolSnapshot,
    Transaction,
    TransactionType,
)
from .engine import CGTCalculator, calculate
from .load import load_transactions_csv
from .matcher import ShareMatcher
from .normalize import normalize_transactions
from .pool import PoolLedger, Section104Pool
from .report_builder import CGTReport, ReportBuilder
from .report_sink import ExcelReportSink, JsonReportSink, ReportSink
from .tax_years import TaxYearRates, TaxYearTable

__all__ = [
    "RateChangeSplit",
    "TaxYearSummary",
    "summarize_tax_year",
    "Acquisition",
    "Diagnostic",
    "DiagnosticType",
    "Disposal",
    "MatchDetail",
    "MatchRule",
    "PoolSnapshot",
    "Transaction",
    "TransactionType",
    "CGTCalculator",
    "calculate",
    "load_transactions_csv",
    "ShareMatcher",
    "normalize_transactions",
    "PoolLedger",
    "Section104Pool",
    "CGTReport",
    "ReportBuilder",
    "ExcelReportSink",
    "JsonReportSink",
    "ReportSink",
    "TaxYearRates",
    "TaxYearTable",
]
