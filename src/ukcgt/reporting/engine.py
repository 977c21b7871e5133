from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .aggregate import summarize_tax_year
from .domain import Diagnostic, DiagnosticType, Disposal
from .events import DiagnosticRecorder
from .gap_policy import GapPolicy
from .matcher import ShareMatcher
from .normalize import NormalizeResult, group_by_symbol, normalize_transactions
from .pool import PoolLedger
from .report_builder import CGTReport, ReportBuilder
from .tax_years import TaxYearRates, TaxYearTable

logger = logging.getLogger(__name__)


class CGTCalculator:
    """Run the whole pipeline: normalize, match per symbol, summarize, assemble.

    Every ``calculate`` call starts from an empty pool ledger and an empty
    diagnostics recorder, so repeated calls with the same records produce
    the same report.
    """

    def __init__(
        self,
        tax_years: TaxYearTable | None = None,
        gap_policy: GapPolicy | None = None,
    ) -> None:
        self.tax_years = tax_years or TaxYearTable.default()
        self.gap_policy = gap_policy

    def calculate(self, records: Iterable[Any]) -> CGTReport:
        ledger = PoolLedger()
        recorder = DiagnosticRecorder()

        normalized = normalize_transactions(records)
        recorder.record_many(_rejection_warnings(normalized))

        matcher = ShareMatcher(
            ledger,
            tax_years=self.tax_years,
            gap_policy=self.gap_policy,
            recorder=recorder,
        )
        builder = ReportBuilder(tax_years_version=self.tax_years.version)

        by_symbol = group_by_symbol(normalized.transactions)
        logger.info(
            "Matching %d transaction(s) across %d symbol(s)",
            len(normalized.transactions),
            len(by_symbol),
        )
        for symbol in sorted(by_symbol):
            result = matcher.process_symbol(symbol, by_symbol[symbol])
            builder.add_disposals(result.disposals)
            builder.add_acquisitions(result.acquisitions)

        for rates, disposals in self._years(builder.sorted_disposals(), recorder):
            builder.add_year(
                summarize_tax_year(
                    rates,
                    disposals,
                    section104_start=ledger.snapshot(rates.start, inclusive=False),
                    section104_end=ledger.snapshot(rates.end, inclusive=True),
                )
            )

        builder.set_pools(ledger.holdings())
        builder.set_diagnostics(recorder.errors, recorder.warnings)
        return builder.build()

    def _years(
        self, disposals: list[Disposal], recorder: DiagnosticRecorder
    ) -> list[tuple[TaxYearRates, list[Disposal]]]:
        """Group date-ordered disposals by tax year, flagging years missing from the table."""
        groups: dict[str, tuple[TaxYearRates, list[Disposal]]] = {}
        for disposal in disposals:
            rates, known = self.tax_years.for_date(disposal.date)
            if rates.label not in groups:
                groups[rates.label] = (rates, [])
                if not known:
                    logger.warning(
                        "No rates configured for tax year %s; using defaults "
                        "(exemption %s, rates %s/%s)",
                        rates.label,
                        rates.annual_exemption,
                        rates.basic_rate,
                        rates.higher_rate,
                    )
                    recorder.record(
                        Diagnostic(
                            type=DiagnosticType.UNKNOWN_TAX_YEAR,
                            message=(
                                f"Tax year {rates.label} is not in the rates table; "
                                "default exemption and rates were used."
                            ),
                            extra={"taxYear": rates.label},
                        )
                    )
            groups[rates.label][1].append(disposal)
        return list(groups.values())


def _rejection_warnings(normalized: NormalizeResult) -> list[Diagnostic]:
    return [
        Diagnostic(
            type=DiagnosticType.INVALID_TRANSACTION,
            message=f"Transaction #{r.index} skipped: {r.reason}",
            record_index=r.index,
        )
        for r in normalized.rejected
    ]


def calculate(records: Iterable[Any], tax_years: TaxYearTable | None = None) -> CGTReport:
    """Compute the full CGT report for a batch of transaction records."""
    return CGTCalculator(tax_years=tax_years).calculate(records)
