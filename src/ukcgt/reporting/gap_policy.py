from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from .domain import Diagnostic, DiagnosticType, Transaction


class GapPolicy(Protocol):
    def resolve(
        self,
        disposal: Transaction,
        qty_remaining: Decimal,
        cost_so_far: Decimal,
    ) -> tuple[Decimal, Diagnostic | None]:  # pragma: no cover - protocol
        ...


class ZeroCostGapPolicy:
    """Record the shortfall and give the unmatched quantity a zero cost.

    The resulting gain is overstated, never understated; the diagnostic tells
    the caller the stock record is incomplete.
    """

    def resolve(
        self,
        disposal: Transaction,
        qty_remaining: Decimal,
        cost_so_far: Decimal,
    ) -> tuple[Decimal, Diagnostic]:
        date = disposal.date.isoformat()
        message = (
            f"Warning: {qty_remaining} shares of {disposal.symbol} sold on {date} "
            "could not be matched to any acquisition; zero cost was used for them."
        )
        return cost_so_far, Diagnostic(
            type=DiagnosticType.UNMATCHED_DISPOSAL,
            message=message,
            symbol=disposal.symbol,
            date=disposal.date,
            unmatched_quantity=qty_remaining,
        )
