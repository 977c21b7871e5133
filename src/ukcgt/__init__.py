"""UK Capital Gains Tax calculations for shares (HMRC share identification rules)."""

from .reporting import CGTCalculator, CGTReport, TaxYearTable, calculate

__all__ = ["CGTCalculator", "CGTReport", "TaxYearTable", "calculate"]

__version__ = "0.1.0"
