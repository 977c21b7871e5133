import datetime as dt
import json
from decimal import Decimal

from openpyxl import load_workbook

from ukcgt import calculate
from ukcgt.reporting.report_builder import ReportBuilder
from ukcgt.reporting.report_sink import ExcelReportSink, JsonReportSink

from fixtures import buy, sell


def _report():
    return calculate(
        [
            buy("2023-01-01", "XYZ", "100", "10"),
            sell("2024-01-01", "XYZ", "40", "25"),
            buy("2024-01-15", "XYZ", "10", "22"),
            sell("2024-07-01", "ABC", "5", "10"),
        ]
    )


def test_report_builder_sorts_and_totals():
    rb = ReportBuilder(tax_years_version="test")
    report = rb.build()
    assert report.summary.total_disposals == 0
    assert report.summary.overall_gain == Decimal("0.00")
    assert report.tax_years_version == "test"


def test_json_sink_writes_sorted_report(tmp_path):
    out = JsonReportSink(out_path=tmp_path / "nested" / "report.json").write(_report())

    text = out.read_text(encoding="utf-8")
    data = json.loads(text)
    assert data["summary"]["totalDisposals"] == 2
    assert data["taxYearsVersion"] == "2026.1"
    assert [e["type"] for e in data["errors"]] == ["UNMATCHED_DISPOSAL"]
    # keys are written sorted so the file is stable between runs
    assert text.index('"acquisitions"') < text.index('"allDisposals"')
    assert text.endswith("\n")


def test_excel_sink_writes_expected_sheets(tmp_path):
    out = ExcelReportSink(out_path=tmp_path / "report.xlsx").write(_report())

    wb = load_workbook(out)
    assert wb.sheetnames == [
        "Tax Years",
        "Disposals",
        "Match Details",
        "Section 104 Pools",
        "Acquisitions",
        "Diagnostics",
    ]

    ws = wb["Disposals"]
    assert ws.cell(row=1, column=1).value == "Date"
    assert ws.cell(row=2, column=2).value == "XYZ"
    assert ws.cell(row=2, column=1).value.date() == dt.date(2024, 1, 1)
    assert ws.cell(row=2, column=8).value == 480.0
    assert ws.cell(row=2, column=6).number_format == "£#,##0.00"

    ws = wb["Match Details"]
    rules = [ws.cell(row=r, column=3).value for r in range(2, ws.max_row + 1)]
    assert rules == ["Bed and breakfast (30 days)", "Section 104 pool"]

    ws = wb["Section 104 Pools"]
    assert ws.cell(row=2, column=1).value == "XYZ"
    assert ws.cell(row=2, column=2).value == 70.0

    ws = wb["Diagnostics"]
    assert ws.cell(row=2, column=1).value == "Error"
    assert ws.cell(row=2, column=2).value == "UNMATCHED_DISPOSAL"

    ws = wb["Tax Years"]
    assert [ws.cell(row=r, column=1).value for r in (2, 3)] == ["2024/25", "2023/24"]
    assert ws.column_dimensions["A"].width >= 10
