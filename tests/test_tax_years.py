import datetime as dt
from decimal import Decimal

import pytest

from ukcgt.reporting.tax_years import (
    TAX_YEARS_VERSION,
    TaxYearTable,
    tax_year_label,
    tax_year_start,
)


@pytest.mark.parametrize(
    "date, label",
    [
        (dt.date(2024, 4, 5), "2023/24"),
        (dt.date(2024, 4, 6), "2024/25"),
        (dt.date(2025, 4, 5), "2024/25"),
        (dt.date(2000, 1, 1), "1999/00"),
    ],
)
def test_tax_year_boundaries(date, label):
    assert tax_year_label(date) == label


def test_tax_year_start_year():
    assert tax_year_start(dt.date(2024, 1, 1)) == 2023
    assert tax_year_start(dt.date(2024, 12, 31)) == 2024


def test_default_table_figures():
    table = TaxYearTable.default()
    assert table.version == TAX_YEARS_VERSION

    y2324 = table.get("2023/24")
    assert y2324.annual_exemption == Decimal("6000")
    assert y2324.rate_change is None

    y2425 = table.get("2024/25")
    assert y2425.annual_exemption == Decimal("3000")
    assert (y2425.basic_rate, y2425.higher_rate) == (Decimal("0.10"), Decimal("0.20"))
    assert y2425.rate_change.date == dt.date(2024, 10, 30)
    assert y2425.rate_change.basic_rate == Decimal("0.18")
    assert y2425.rate_change.higher_rate == Decimal("0.24")

    y2526 = table.get("2025/26")
    assert (y2526.basic_rate, y2526.higher_rate) == (Decimal("0.18"), Decimal("0.24"))


def test_for_date_known_and_unknown_years():
    table = TaxYearTable.default()

    rates, known = table.for_date(dt.date(2020, 6, 1))
    assert known is True
    assert rates.label == "2020/21"
    assert rates.annual_exemption == Decimal("12300")

    rates, known = table.for_date(dt.date(2015, 6, 1))
    assert known is False
    assert rates.derived is True
    assert rates.label == "2015/16"
    assert rates.annual_exemption == Decimal("11300")
    assert (rates.basic_rate, rates.higher_rate) == (Decimal("0.10"), Decimal("0.20"))


def test_from_csv_loads_rate_change(tmp_path):
    path = tmp_path / "rates.csv"
    path.write_text(
        "tax_year,start,end,annual_exemption,basic_rate,higher_rate,"
        "rate_change_date,basic_rate_post,higher_rate_post\n"
        "2024/25,2024-04-06,2025-04-05,3000,0.10,0.20,2024-10-30,0.18,0.24\n"
        "2030/31,2030-04-06,2031-04-05,5000,0.20,0.28,,,\n",
        encoding="utf-8",
    )

    table = TaxYearTable.from_csv(path)
    assert table.version == "file:rates.csv"
    assert table.get("2024/25").rate_change.basic_rate == Decimal("0.18")
    future = table.get("2030/31")
    assert future.rate_change is None
    assert future.higher_rate == Decimal("0.28")
    # years outside the file are derived, not borrowed from the built-in table
    assert table.for_date(dt.date(2023, 6, 1))[1] is False


def test_from_csv_missing_columns(tmp_path):
    path = tmp_path / "rates.csv"
    path.write_text("tax_year,start,end\n2024/25,2024-04-06,2025-04-05\n", encoding="utf-8")
    with pytest.raises(ValueError, match="missing columns"):
        TaxYearTable.from_csv(path)


def test_from_csv_rejects_bad_rows(tmp_path):
    header = "tax_year,start,end,annual_exemption,basic_rate,higher_rate,rate_change_date,basic_rate_post,higher_rate_post\n"

    bad_end = tmp_path / "end.csv"
    bad_end.write_text(header + "2024/25,2024-04-06,2024-04-01,3000,0.1,0.2,,,\n", encoding="utf-8")
    with pytest.raises(ValueError, match="is not after start"):
        TaxYearTable.from_csv(bad_end)

    bad_change = tmp_path / "change.csv"
    bad_change.write_text(
        header + "2024/25,2024-04-06,2025-04-05,3000,0.1,0.2,2026-01-01,0.18,0.24\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="outside the year"):
        TaxYearTable.from_csv(bad_change)

    bad_rate = tmp_path / "rate.csv"
    bad_rate.write_text(header + "2024/25,2024-04-06,2025-04-05,3000,N/A,0.2,,,\n", encoding="utf-8")
    with pytest.raises(ValueError, match="placeholder"):
        TaxYearTable.from_csv(bad_rate)
