import datetime as dt
from decimal import Decimal

from ukcgt.reporting.domain import Diagnostic, DiagnosticType
from ukcgt.reporting.events import DiagnosticRecorder
from ukcgt.reporting.gap_policy import ZeroCostGapPolicy

from fixtures import dispose


def _diag(type_: DiagnosticType, symbol: str = "XYZ") -> Diagnostic:
    return Diagnostic(type=type_, message="test", symbol=symbol)


def test_recorder_collects_and_exposes_list_reference():
    recorder = DiagnosticRecorder()
    diag = _diag(DiagnosticType.UNMATCHED_DISPOSAL)
    recorder.record(diag)

    assert recorder.diagnostics[-1] is diag


def test_recorder_splits_errors_and_warnings():
    recorder = DiagnosticRecorder()
    recorder.record_many(
        [
            _diag(DiagnosticType.INVALID_TRANSACTION),
            _diag(DiagnosticType.UNMATCHED_DISPOSAL),
            _diag(DiagnosticType.UNKNOWN_TAX_YEAR),
        ]
    )

    assert [d.type for d in recorder.errors] == [DiagnosticType.UNMATCHED_DISPOSAL]
    assert [d.type for d in recorder.warnings] == [
        DiagnosticType.INVALID_TRANSACTION,
        DiagnosticType.UNKNOWN_TAX_YEAR,
    ]

    recorder.clear()
    assert recorder.diagnostics == []


def test_zero_cost_gap_policy_keeps_cost_and_reports_shortfall():
    sale = dispose(3, dt.date(2024, 5, 1), "100", "12")
    cost, diag = ZeroCostGapPolicy().resolve(sale, Decimal("40"), Decimal("600.00"))

    assert cost == Decimal("600.00")
    assert diag.type is DiagnosticType.UNMATCHED_DISPOSAL
    assert diag.unmatched_quantity == Decimal("40")
    assert diag.symbol == "XYZ"
    assert diag.date == dt.date(2024, 5, 1)
    assert "40 shares of XYZ sold on 2024-05-01" in diag.message


def test_diagnostic_to_dict_is_camel_case():
    diag = Diagnostic(
        type=DiagnosticType.INVALID_TRANSACTION,
        message="bad",
        record_index=7,
    )
    assert diag.to_dict() == {
        "type": "INVALID_TRANSACTION",
        "symbol": None,
        "date": None,
        "message": "bad",
        "recordIndex": 7,
    }
