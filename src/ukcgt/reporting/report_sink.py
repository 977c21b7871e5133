from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Protocol

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from .domain import MatchRule
from .report_builder import CGTReport

DATE_FMT = "YYYY-MM-DD"
QTY_FMT = "0.########"
GBP_FMT = "£#,##0.00"
RATE_FMT = "0.00%"

_RULE_LABELS = {
    MatchRule.SAME_DAY: "Same day",
    MatchRule.BED_AND_BREAKFAST: "Bed and breakfast (30 days)",
    MatchRule.SECTION_104: "Section 104 pool",
}


class ReportSink(Protocol):
    def write(self, report: CGTReport) -> Path:  # returns written file path
        ...


@dataclass
class JsonReportSink:
    out_path: Path

    def write(self, report: CGTReport) -> Path:
        out_path = Path(self.out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as fp:
            json.dump(report.to_dict(), fp, indent=2, sort_keys=True, ensure_ascii=False)
            fp.write("\n")
        return out_path


def _num(value: Decimal | None) -> float | None:
    return None if value is None else float(value)


def _formats(sheet, row: int, formats: dict[int, str]) -> None:
    for col, fmt in formats.items():
        sheet.cell(row=row, column=col).number_format = fmt


def _autosize(sheet, max_width: int = 60, min_width: int = 10) -> None:
    for col in range(1, sheet.max_column + 1):
        max_len = 0
        for row in range(1, sheet.max_row + 1):
            v = sheet.cell(row=row, column=col).value
            if v is None:
                continue
            s = v.strftime("%Y-%m-%d") if hasattr(v, "strftime") else str(v)
            max_len = max(max_len, len(s))
        width = min(max_width, max(min_width, max_len + 2))
        sheet.column_dimensions[get_column_letter(col)].width = width


@dataclass
class ExcelReportSink:
    out_path: Path

    def write(self, report: CGTReport) -> Path:
        out_path = Path(self.out_path)
        wb = Workbook()

        # Remove the default sheet
        wb.remove(wb.active)

        self._tax_years(wb, report)
        self._disposals(wb, report)
        self._match_details(wb, report)
        self._pools(wb, report)
        self._acquisitions(wb, report)
        self._diagnostics(wb, report)

        for ws in wb.worksheets:
            _autosize(ws)

        out_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(out_path)
        return out_path

    def _tax_years(self, wb: Workbook, report: CGTReport) -> None:
        ws = wb.create_sheet(title="Tax Years")
        ws.append(
            [
                "Tax Year",
                "Disposals",
                "Total Proceeds (GBP)",
                "Total Cost (GBP)",
                "Gains (GBP)",
                "Losses (GBP)",
                "Net Gain (GBP)",
                "Annual Exemption (GBP)",
                "Taxable Gain (GBP)",
                "Estimated Tax, Basic Rate (GBP)",
                "Estimated Tax, Higher Rate (GBP)",
                "Rate Change Date",
            ]
        )
        for y in report.tax_years:
            ws.append(
                [
                    y.tax_year,
                    y.number_of_disposals,
                    _num(y.total_proceeds),
                    _num(y.total_cost),
                    _num(y.total_gains),
                    _num(y.total_losses),
                    _num(y.net_gain),
                    _num(y.annual_exemption),
                    _num(y.taxable_gain),
                    _num(y.estimated_tax_basic_rate),
                    _num(y.estimated_tax_higher_rate),
                    y.rate_change.date if y.rate_change else None,
                ]
            )
            formats = {c: GBP_FMT for c in range(3, 12)}
            formats[12] = DATE_FMT
            _formats(ws, ws.max_row, formats)

    def _disposals(self, wb: Workbook, report: CGTReport) -> None:
        ws = wb.create_sheet(title="Disposals")
        ws.append(
            [
                "Date",
                "Symbol",
                "Asset",
                "Tax Year",
                "Quantity",
                "Proceeds (GBP)",
                "Cost (GBP)",
                "Gain/Loss (GBP)",
                "Unmatched Quantity",
                "Broker",
            ]
        )
        for d in report.all_disposals:
            ws.append(
                [
                    d.date,
                    d.symbol,
                    d.asset_name,
                    d.tax_year,
                    _num(d.quantity),
                    _num(d.proceeds),
                    _num(d.cost),
                    _num(d.gain),
                    _num(d.unmatched_quantity),
                    d.broker,
                ]
            )
            _formats(
                ws,
                ws.max_row,
                {1: DATE_FMT, 5: QTY_FMT, 6: GBP_FMT, 7: GBP_FMT, 8: GBP_FMT, 9: QTY_FMT},
            )

    def _match_details(self, wb: Workbook, report: CGTReport) -> None:
        ws = wb.create_sheet(title="Match Details")
        ws.append(
            [
                "Disposal Date",
                "Symbol",
                "Rule",
                "Quantity",
                "Cost (GBP)",
                "Cost per Share (GBP)",
                "Proceeds per Share (GBP)",
                "Gain per Share (GBP)",
                "Acquisition Date",
                "Days After Sale",
                "Pool Quantity After",
                "Note",
            ]
        )
        for d in report.all_disposals:
            for m in d.match_details:
                ws.append(
                    [
                        d.date,
                        d.symbol,
                        _RULE_LABELS[m.rule],
                        _num(m.quantity),
                        _num(m.cost),
                        _num(m.cost_per_share),
                        _num(m.proceeds_per_share),
                        _num(m.gain_per_share),
                        m.acquisition_date,
                        m.days_after_sale,
                        _num(m.pool_quantity_after),
                        m.bnb_impact.explanation if m.bnb_impact else None,
                    ]
                )
                _formats(
                    ws,
                    ws.max_row,
                    {
                        1: DATE_FMT,
                        4: QTY_FMT,
                        5: GBP_FMT,
                        6: GBP_FMT,
                        7: GBP_FMT,
                        8: GBP_FMT,
                        9: DATE_FMT,
                        11: QTY_FMT,
                    },
                )

    def _pools(self, wb: Workbook, report: CGTReport) -> None:
        ws = wb.create_sheet(title="Section 104 Pools")
        ws.append(["Symbol", "Quantity", "Total Cost (GBP)", "Average Cost (GBP)"])
        for p in report.section104_pools:
            ws.append([p.symbol, _num(p.quantity), _num(p.total_cost), _num(p.average_cost)])
            _formats(ws, ws.max_row, {2: QTY_FMT, 3: GBP_FMT, 4: GBP_FMT})

    def _acquisitions(self, wb: Workbook, report: CGTReport) -> None:
        ws = wb.create_sheet(title="Acquisitions")
        ws.append(
            [
                "Date",
                "Symbol",
                "Quantity",
                "Total Cost (GBP)",
                "Cost per Share (GBP)",
                "Currency",
                "Broker",
            ]
        )
        for a in report.acquisitions:
            ws.append(
                [
                    a.date,
                    a.symbol,
                    _num(a.quantity),
                    _num(a.total_cost),
                    _num(a.cost_per_share),
                    a.currency,
                    a.broker,
                ]
            )
            _formats(ws, ws.max_row, {1: DATE_FMT, 3: QTY_FMT, 4: GBP_FMT, 5: GBP_FMT})

    def _diagnostics(self, wb: Workbook, report: CGTReport) -> None:
        ws = wb.create_sheet(title="Diagnostics")
        ws.append(["Severity", "Type", "Symbol", "Date", "Message"])
        for severity, items in (("Error", report.errors), ("Warning", report.warnings)):
            for diag in items:
                ws.append([severity, diag.type.value, diag.symbol, diag.date, diag.message])
                _formats(ws, ws.max_row, {4: DATE_FMT})
