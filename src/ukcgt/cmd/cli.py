"""
Compute a UK Capital Gains Tax report for shares from normalized transaction CSVs.

Disposals are matched with HMRC share identification rules (same day, 30-day
bed and breakfast, Section 104 pool) and summarized per tax year.

Usage
-----
    # Whole history, JSON report
    python -m ukcgt.cmd.cli --output ./cgt_report.json trades_2022.csv trades_2023.csv

    # One tax year as a workbook, failing if any disposal lacks acquisitions
    python -m ukcgt.cmd.cli \
        --tax-year 2024/25 \
        --output ./cgt_2024_25.xlsx \
        --strict \
        /path/broker_a.csv /path/broker_b.csv

Transaction CSV schema:
    date,type,symbol,quantity,price_per_unit,total_amount,fees,currency,exchange_rate,broker[,asset_name]
    2024-05-01,BUY,VOD,100,75.50,7550.00,5.00,GBP,1,Broker A
"""

from __future__ import annotations

import argparse
import logging
from decimal import ROUND_HALF_UP, getcontext
from pathlib import Path

from ukcgt.logging import configure_logging
from ukcgt.reporting import (
    CGTCalculator,
    ExcelReportSink,
    JsonReportSink,
    ReportSink,
    TaxYearTable,
    load_transactions_csv,
)

# Monetary precision and rounding
getcontext().prec = 28
getcontext().rounding = ROUND_HALF_UP


def _sink_for(out_path: Path) -> ReportSink:
    suffix = out_path.suffix.lower()
    if suffix == ".xlsx":
        return ExcelReportSink(out_path=out_path)
    if suffix == ".json":
        return JsonReportSink(out_path=out_path)
    raise ValueError(f"Unsupported output format {suffix!r}; use .json or .xlsx")


def process_files(args: argparse.Namespace) -> Path:
    logger = logging.getLogger(__name__)

    inputs = args.input if isinstance(args.input, list) else [args.input]
    logger.info("Reading %d file(s): %s", len(inputs), ", ".join(inputs))

    records = []
    for p in inputs:
        rows = load_transactions_csv(p)
        logger.debug("Parsed %s: %d row(s)", p, len(rows))
        records.extend(rows)

    tax_years = TaxYearTable.from_csv(args.tax_years) if args.tax_years else None
    report = CGTCalculator(tax_years=tax_years).calculate(records)

    logger.info(
        "Matched %d disposal(s) across %d symbol(s); %d error(s), %d warning(s)",
        report.summary.total_disposals,
        report.summary.total_symbols_traded,
        len(report.errors),
        len(report.warnings),
    )

    # With --strict, unmatched disposals abort before anything is written
    if args.strict and report.errors:
        for err in report.errors:
            logger.error(
                "Unmatched disposal: symbol=%s date=%s qty=%s | %s",
                err.symbol,
                err.date,
                err.unmatched_quantity,
                err.message,
            )
        logger.error(
            "Encountered %d unmatched disposal(s). Include earlier transaction "
            "history so every disposal has acquisitions to match.",
            len(report.errors),
        )
        raise SystemExit(2)

    if args.tax_year:
        if report.tax_year(args.tax_year) is None:
            logger.warning("No disposals in tax year %s", args.tax_year)
        report = report.only_tax_year(args.tax_year)

    out_path = Path(args.output)
    out_path = _sink_for(out_path).write(report)
    logger.info("Wrote report to %s", out_path)
    return out_path


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="UK Capital Gains Tax report for shares from transaction CSVs"
    )
    p.add_argument(
        "input",
        type=str,
        nargs="+",
        help="One or more transaction CSV paths (include earlier years for the pool)",
    )
    p.add_argument(
        "--tax-year",
        type=str,
        default=None,
        help="Only report this tax year, e.g. 2024/25",
    )
    p.add_argument(
        "--output",
        type=str,
        default="cgt_report.json",
        help="Output filename ending in .json or .xlsx (default: cgt_report.json)",
    )
    p.add_argument(
        "--tax-years",
        type=str,
        default=None,
        help=(
            "CSV of tax-year rates: 'tax_year,start,end,annual_exemption,"
            "basic_rate,higher_rate[,rate_change_date,basic_rate_post,higher_rate_post]'"
        ),
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 if any disposal cannot be fully matched",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity: -v (INFO), -vv (DEBUG)",
    )
    return p


def main(argv: list[str] | None = None) -> None:
    parser = build_argparser()
    args = parser.parse_args(argv)

    # Configure logging based on verbosity
    verbosity_map = {
        0: logging.WARNING,  # Default: quiet
        1: logging.INFO,  # -v: informational
        2: logging.DEBUG,  # -vv and above: debug
    }
    level = verbosity_map.get(min(args.verbose, 2), logging.WARNING)
    configure_logging(level=level)

    out_path = Path(args.output)
    if out_path.suffix.lower() not in (".json", ".xlsx"):
        parser.error("--output must end in .json or .xlsx")

    process_files(args)


if __name__ == "__main__":
    main()
