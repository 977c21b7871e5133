"""UK tax-year constants for shares: annual exempt amount and CGT rates.

The built-in table is configuration data and is versioned with
``TAX_YEARS_VERSION``; bump it whenever a figure changes. Alternative
tables can be loaded from CSV:

    tax_year,start,end,annual_exemption,basic_rate,higher_rate[,rate_change_date,basic_rate_post,higher_rate_post]
    2024/25,2024-04-06,2025-04-05,3000,0.10,0.20,2024-10-30,0.18,0.24
"""

from __future__ import annotations

import csv
import datetime as dt
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path

from ukcgt.conv import parse_trade_date, to_dec_strict

TAX_YEARS_VERSION = "2026.1"

# Used for years missing from the table.
DEFAULT_ANNUAL_EXEMPTION = Decimal("11300")
DEFAULT_BASIC_RATE = Decimal("0.10")
DEFAULT_HIGHER_RATE = Decimal("0.20")

_REQUIRED_COLUMNS = {
    "tax_year",
    "start",
    "end",
    "annual_exemption",
    "basic_rate",
    "higher_rate",
}


@dataclass(frozen=True)
class RateChange:
    """Rates in force from ``date`` (inclusive) to the end of the tax year."""

    date: dt.date
    basic_rate: Decimal
    higher_rate: Decimal


@dataclass(frozen=True)
class TaxYearRates:
    label: str
    start: dt.date
    end: dt.date
    annual_exemption: Decimal
    basic_rate: Decimal  # in force from the start of the year
    higher_rate: Decimal
    rate_change: RateChange | None = None
    derived: bool = False  # True when not taken from the table

    def contains(self, date: dt.date) -> bool:
        return self.start <= date <= self.end


def tax_year_start(date: dt.date) -> int:
    """Calendar year in which the tax year containing ``date`` starts (6 April)."""
    if (date.month, date.day) < (4, 6):
        return date.year - 1
    return date.year


def tax_year_label(date: dt.date) -> str:
    start = tax_year_start(date)
    return f"{start}/{str(start + 1)[-2:]}"


def _rates(
    start_year: int,
    exemption: str,
    basic: str = "0.10",
    higher: str = "0.20",
    rate_change: RateChange | None = None,
) -> TaxYearRates:
    return TaxYearRates(
        label=tax_year_label(dt.date(start_year, 4, 6)),
        start=dt.date(start_year, 4, 6),
        end=dt.date(start_year + 1, 4, 5),
        annual_exemption=Decimal(exemption),
        basic_rate=Decimal(basic),
        higher_rate=Decimal(higher),
        rate_change=rate_change,
    )


_BUILTIN = (
    _rates(2017, "11300"),
    _rates(2018, "11700"),
    _rates(2019, "12000"),
    _rates(2020, "12300"),
    _rates(2021, "12300"),
    _rates(2022, "12300"),
    _rates(2023, "6000"),
    # Autumn Budget 2024: share rates rose for disposals from 30 October 2024.
    _rates(
        2024,
        "3000",
        rate_change=RateChange(
            date=dt.date(2024, 10, 30),
            basic_rate=Decimal("0.18"),
            higher_rate=Decimal("0.24"),
        ),
    ),
    _rates(2025, "3000", "0.18", "0.24"),
    _rates(2026, "3000", "0.18", "0.24"),
)


class TaxYearTable:
    """Tax-year label -> rates, resolved once when the table is built."""

    def __init__(self, years: list[TaxYearRates] | tuple[TaxYearRates, ...] = ()):
        self.years: dict[str, TaxYearRates] = {y.label: y for y in years}
        self.version = TAX_YEARS_VERSION

    @classmethod
    def default(cls) -> TaxYearTable:
        return cls(_BUILTIN)

    @classmethod
    def from_csv(cls, path: str | Path) -> TaxYearTable:
        years: list[TaxYearRates] = []
        with open(path, encoding="utf-8", newline="") as fp:
            reader = csv.DictReader(fp)
            fields = set(reader.fieldnames or [])
            missing = _REQUIRED_COLUMNS - fields
            if missing:
                raise ValueError(f"Tax-year table missing columns: {sorted(missing)}")

            for row in reader:
                years.append(_row_to_rates(row))

        inst = cls(years)
        inst.version = f"file:{Path(path).name}"
        return inst

    def get(self, label: str) -> TaxYearRates | None:
        return self.years.get(label)

    def for_date(self, date: dt.date) -> tuple[TaxYearRates, bool]:
        """Rates for the tax year containing ``date`` and whether the table knew it.

        Years absent from the table get a derived record with the older
        exemption amount and the standard 10%/20% rates.
        """
        for rates in self.years.values():
            if rates.contains(date):
                return rates, True
        return self.derived(date), False

    @staticmethod
    def derived(date: dt.date) -> TaxYearRates:
        rates = _rates(
            tax_year_start(date),
            str(DEFAULT_ANNUAL_EXEMPTION),
            str(DEFAULT_BASIC_RATE),
            str(DEFAULT_HIGHER_RATE),
        )
        return replace(rates, derived=True)


def _required_date(row: dict[str, str], column: str) -> dt.date:
    value = parse_trade_date(row.get(column))
    if value is None:
        raise ValueError(f"Tax-year row {row.get('tax_year')!r}: bad {column} {row.get(column)!r}")
    return value


def _row_to_rates(row: dict[str, str]) -> TaxYearRates:
    label = (row.get("tax_year") or "").strip()
    if not label:
        raise ValueError("Tax-year row missing tax_year label")

    start = _required_date(row, "start")
    end = _required_date(row, "end")
    if end <= start:
        raise ValueError(f"Tax-year row {label!r}: end {end} is not after start {start}")

    rate_change = None
    if (row.get("rate_change_date") or "").strip():
        change_date = _required_date(row, "rate_change_date")
        if not start < change_date <= end:
            raise ValueError(
                f"Tax-year row {label!r}: rate change {change_date} outside the year"
            )
        rate_change = RateChange(
            date=change_date,
            basic_rate=to_dec_strict(row.get("basic_rate_post")),
            higher_rate=to_dec_strict(row.get("higher_rate_post")),
        )

    return TaxYearRates(
        label=label,
        start=start,
        end=end,
        annual_exemption=to_dec_strict(row["annual_exemption"]),
        basic_rate=to_dec_strict(row["basic_rate"]),
        higher_rate=to_dec_strict(row["higher_rate"]),
        rate_change=rate_change,
    )
