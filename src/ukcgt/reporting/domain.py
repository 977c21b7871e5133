from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from .money import ZERO, decimal_str


class TransactionType(str, Enum):
    ACQUIRE = "ACQUIRE"
    DISPOSE = "DISPOSE"


class MatchRule(str, Enum):
    SAME_DAY = "SAME_DAY"
    BED_AND_BREAKFAST = "BED_AND_BREAKFAST"  # 30-day rule
    SECTION_104 = "SECTION_104"  # pool


class DiagnosticType(str, Enum):
    UNMATCHED_DISPOSAL = "UNMATCHED_DISPOSAL"
    INVALID_TRANSACTION = "INVALID_TRANSACTION"
    UNKNOWN_TAX_YEAR = "UNKNOWN_TAX_YEAR"


@dataclass(frozen=True)
class Transaction:
    id: str
    seq: int  # position in the caller's input
    symbol: str
    type: TransactionType
    date: dt.date
    quantity: Decimal  # always positive
    price_per_unit: Decimal
    total_amount: Decimal | None
    fees: Decimal
    currency: str
    exchange_rate: Decimal  # foreign units per GBP; divide to get GBP
    broker: str
    asset_name: str

    @property
    def is_acquisition(self) -> bool:
        return self.type is TransactionType.ACQUIRE


@dataclass(frozen=True)
class BnbImpact:
    s104_cost_per_share_would_be: Decimal
    actual_cost_per_share: Decimal
    cost_difference: Decimal
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "s104CostPerShareWouldBe": decimal_str(self.s104_cost_per_share_would_be),
            "actualCostPerShare": decimal_str(self.actual_cost_per_share),
            "costDifference": decimal_str(self.cost_difference),
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class MatchDetail:
    rule: MatchRule
    quantity: Decimal
    cost: Decimal
    cost_per_share: Decimal
    proceeds_per_share: Decimal
    gain_per_share: Decimal
    # same-day and bed-and-breakfast
    acquisition_date: dt.date | None = None
    broker: str | None = None
    # bed-and-breakfast only
    days_after_sale: int | None = None
    original_currency: str | None = None
    original_cost_per_share: Decimal | None = None
    exchange_rate: Decimal | None = None
    bnb_impact: BnbImpact | None = None
    # section 104 only
    average_cost: Decimal | None = None
    pool_quantity_before: Decimal | None = None
    pool_quantity_after: Decimal | None = None
    pool_cost_before: Decimal | None = None
    pool_cost_after: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "rule": self.rule.value,
            "quantity": decimal_str(self.quantity),
            "cost": decimal_str(self.cost),
            "costPerShare": decimal_str(self.cost_per_share),
            "proceedsPerShare": decimal_str(self.proceeds_per_share),
            "gainPerShare": decimal_str(self.gain_per_share),
        }
        if self.rule in (MatchRule.SAME_DAY, MatchRule.BED_AND_BREAKFAST):
            out["acquisitionDate"] = _iso(self.acquisition_date)
            out["broker"] = self.broker
        if self.rule is MatchRule.BED_AND_BREAKFAST:
            out["daysAfterSale"] = self.days_after_sale
            out["originalCurrency"] = self.original_currency
            out["originalCostPerShare"] = decimal_str(self.original_cost_per_share)
            out["exchangeRate"] = decimal_str(self.exchange_rate)
            out["bnbImpact"] = self.bnb_impact.to_dict() if self.bnb_impact else None
        if self.rule is MatchRule.SECTION_104:
            out["averageCost"] = decimal_str(self.average_cost)
            out["poolQuantityBefore"] = decimal_str(self.pool_quantity_before)
            out["poolQuantityAfter"] = decimal_str(self.pool_quantity_after)
            out["poolCostBefore"] = decimal_str(self.pool_cost_before)
            out["poolCostAfter"] = decimal_str(self.pool_cost_after)
        return out


@dataclass(frozen=True)
class Disposal:
    id: str
    seq: int
    symbol: str
    asset_name: str
    date: dt.date
    quantity: Decimal
    proceeds: Decimal
    proceeds_per_share: Decimal
    cost: Decimal  # sum of match detail costs; unmatched remainder costs zero
    cost_per_share: Decimal
    gain: Decimal
    gain_per_share: Decimal
    tax_year: str
    broker: str
    match_details: tuple[MatchDetail, ...] = ()
    unmatched_quantity: Decimal = ZERO

    @property
    def matched_quantity(self) -> Decimal:
        return sum((d.quantity for d in self.match_details), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "assetName": self.asset_name,
            "date": self.date.isoformat(),
            "quantity": decimal_str(self.quantity),
            "proceeds": decimal_str(self.proceeds),
            "proceedsPerShare": decimal_str(self.proceeds_per_share),
            "cost": decimal_str(self.cost),
            "costPerShare": decimal_str(self.cost_per_share),
            "gain": decimal_str(self.gain),
            "gainPerShare": decimal_str(self.gain_per_share),
            "taxYear": self.tax_year,
            "broker": self.broker,
            "unmatchedQuantity": decimal_str(self.unmatched_quantity),
            "matchDetails": [d.to_dict() for d in self.match_details],
        }


@dataclass(frozen=True)
class Acquisition:
    seq: int
    symbol: str
    date: dt.date
    quantity: Decimal
    total_cost: Decimal
    cost_per_share: Decimal
    broker: str
    currency: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "date": self.date.isoformat(),
            "quantity": decimal_str(self.quantity),
            "totalCost": decimal_str(self.total_cost),
            "costPerShare": decimal_str(self.cost_per_share),
            "broker": self.broker,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class PoolSnapshot:
    symbol: str
    quantity: Decimal
    total_cost: Decimal
    average_cost: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "quantity": decimal_str(self.quantity),
            "totalCost": decimal_str(self.total_cost),
            "averageCost": decimal_str(self.average_cost),
        }


@dataclass(frozen=True)
class Diagnostic:
    type: DiagnosticType
    message: str
    symbol: str | None = None
    date: dt.date | None = None
    unmatched_quantity: Decimal | None = None
    record_index: int | None = None
    extra: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type.value,
            "symbol": self.symbol,
            "date": _iso(self.date),
            "message": self.message,
        }
        if self.unmatched_quantity is not None:
            out["unmatchedQuantity"] = decimal_str(self.unmatched_quantity)
        if self.record_index is not None:
            out["recordIndex"] = self.record_index
        out.update(self.extra)
        return out


def _iso(d: dt.date | None) -> str | None:
    return d.isoformat() if d is not None else None
