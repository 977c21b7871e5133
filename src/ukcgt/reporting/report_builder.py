from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from .aggregate import TaxYearSummary
from .domain import Acquisition, Diagnostic, Disposal, PoolSnapshot
from .money import ZERO_MONEY, decimal_str, quantize_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportSummary:
    total_disposals: int
    total_symbols_traded: int
    overall_gain: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalDisposals": self.total_disposals,
            "totalSymbolsTraded": self.total_symbols_traded,
            "overallGain": decimal_str(self.overall_gain),
        }


@dataclass
class CGTReport:
    tax_years: list[TaxYearSummary]
    section104_pools: list[PoolSnapshot]
    all_disposals: list[Disposal]
    acquisitions: list[Acquisition]
    errors: list[Diagnostic]
    warnings: list[Diagnostic]
    summary: ReportSummary
    tax_years_version: str = ""

    def tax_year(self, label: str) -> TaxYearSummary | None:
        for summary in self.tax_years:
            if summary.tax_year == label:
                return summary
        return None

    def only_tax_year(self, label: str) -> CGTReport:
        """Same report narrowed to one tax year; pools and diagnostics are kept whole."""
        disposals = [d for d in self.all_disposals if d.tax_year == label]
        return replace(
            self,
            tax_years=[y for y in self.tax_years if y.tax_year == label],
            all_disposals=disposals,
            summary=_summarize(disposals),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "taxYears": [y.to_dict() for y in self.tax_years],
            "section104Pools": [p.to_dict() for p in self.section104_pools],
            "allDisposals": [d.to_dict() for d in self.all_disposals],
            "acquisitions": [a.to_dict() for a in self.acquisitions],
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "summary": self.summary.to_dict(),
            "taxYearsVersion": self.tax_years_version,
        }


@dataclass
class ReportBuilder:
    """Collect computed pieces and assemble them into a CGTReport; no tax math here."""

    tax_years_version: str = ""

    def __post_init__(self) -> None:
        self.disposals: list[Disposal] = []
        self.acquisitions: list[Acquisition] = []
        self.year_summaries: list[TaxYearSummary] = []
        self.final_pools: list[PoolSnapshot] = []
        self.errors: list[Diagnostic] = []
        self.warnings: list[Diagnostic] = []

    def add_disposals(self, disposals: list[Disposal]) -> None:
        self.disposals.extend(disposals)

    def add_acquisitions(self, acquisitions: list[Acquisition]) -> None:
        self.acquisitions.extend(acquisitions)

    def add_year(self, summary: TaxYearSummary) -> None:
        self.year_summaries.append(summary)

    def set_pools(self, pools: list[PoolSnapshot]) -> None:
        self.final_pools = list(pools)

    def set_diagnostics(self, errors: list[Diagnostic], warnings: list[Diagnostic]) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings)

    def sorted_disposals(self) -> list[Disposal]:
        return sorted(self.disposals, key=lambda d: (d.date, d.symbol, d.seq))

    def build(self) -> CGTReport:
        disposals = self.sorted_disposals()
        summary = _summarize(disposals)
        logger.info(
            "Report: %d disposal(s) across %d symbol(s) in %d tax year(s), %d error(s)",
            summary.total_disposals,
            summary.total_symbols_traded,
            len(self.year_summaries),
            len(self.errors),
        )
        return CGTReport(
            tax_years=sorted(self.year_summaries, key=lambda y: y.tax_year, reverse=True),
            section104_pools=list(self.final_pools),
            all_disposals=disposals,
            acquisitions=sorted(self.acquisitions, key=lambda a: (a.date, a.symbol, a.seq)),
            errors=list(self.errors),
            warnings=list(self.warnings),
            summary=summary,
            tax_years_version=self.tax_years_version,
        )


def _summarize(disposals: list[Disposal]) -> ReportSummary:
    return ReportSummary(
        total_disposals=len(disposals),
        total_symbols_traded=len({d.symbol for d in disposals}),
        overall_gain=quantize_money(sum((d.gain for d in disposals), ZERO_MONEY)),
    )
