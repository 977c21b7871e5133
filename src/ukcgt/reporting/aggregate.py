from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .domain import Disposal, PoolSnapshot
from .money import ZERO_MONEY, abs_decimal, decimal_str, quantize_money
from .tax_years import TaxYearRates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateChangeSide:
    gains: Decimal
    losses: Decimal
    net_gain: Decimal
    basic_rate: Decimal
    higher_rate: Decimal
    disposal_count: int
    exemption: Decimal
    taxable_gain: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "gains": decimal_str(self.gains),
            "losses": decimal_str(self.losses),
            "netGain": decimal_str(self.net_gain),
            "basicRate": decimal_str(self.basic_rate),
            "higherRate": decimal_str(self.higher_rate),
            "disposalCount": self.disposal_count,
            "exemption": decimal_str(self.exemption),
            "taxableGain": decimal_str(self.taxable_gain),
        }


@dataclass(frozen=True)
class RateChangeSplit:
    date: dt.date
    pre_change: RateChangeSide
    post_change: RateChangeSide

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "preChange": self.pre_change.to_dict(),
            "postChange": self.post_change.to_dict(),
        }


@dataclass
class TaxYearSummary:
    tax_year: str
    number_of_disposals: int
    total_proceeds: Decimal
    total_cost: Decimal
    total_gains: Decimal
    total_losses: Decimal
    net_gain: Decimal
    annual_exemption: Decimal
    taxable_gain: Decimal
    estimated_tax_basic_rate: Decimal
    estimated_tax_higher_rate: Decimal
    disposals: list[Disposal] = field(default_factory=list)
    section104_start: list[PoolSnapshot] = field(default_factory=list)
    section104_end: list[PoolSnapshot] = field(default_factory=list)
    rate_change: RateChangeSplit | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "taxYear": self.tax_year,
            "numberOfDisposals": self.number_of_disposals,
            "totalProceeds": decimal_str(self.total_proceeds),
            "totalCost": decimal_str(self.total_cost),
            "totalGains": decimal_str(self.total_gains),
            "totalLosses": decimal_str(self.total_losses),
            "netGain": decimal_str(self.net_gain),
            "annualExemption": decimal_str(self.annual_exemption),
            "taxableGain": decimal_str(self.taxable_gain),
            "estimatedTaxBasicRate": decimal_str(self.estimated_tax_basic_rate),
            "estimatedTaxHigherRate": decimal_str(self.estimated_tax_higher_rate),
            "disposals": [d.to_dict() for d in self.disposals],
            "section104Start": [s.to_dict() for s in self.section104_start],
            "section104End": [s.to_dict() for s in self.section104_end],
        }
        if self.rate_change is not None:
            out["rateChange"] = self.rate_change.to_dict()
        return out


def split_gains(disposals: Iterable[Disposal]) -> tuple[Decimal, Decimal]:
    """Return (gains, losses): zero gains count as gains, losses are positive."""
    gains = ZERO_MONEY
    losses = ZERO_MONEY
    for d in disposals:
        if d.gain >= 0:
            gains += d.gain
        else:
            losses += abs_decimal(d.gain)
    return gains, losses


def _side(
    disposals: list[Disposal],
    basic_rate: Decimal,
    higher_rate: Decimal,
    exemption: Decimal,
) -> RateChangeSide:
    gains, losses = split_gains(disposals)
    taxable = max(ZERO_MONEY, gains - losses - exemption)
    return RateChangeSide(
        gains=quantize_money(gains),
        losses=quantize_money(losses),
        net_gain=quantize_money(gains - losses),
        basic_rate=basic_rate,
        higher_rate=higher_rate,
        disposal_count=len(disposals),
        exemption=exemption,
        taxable_gain=quantize_money(taxable),
    )


def _exemption_share(side_gains: Decimal, total_gains: Decimal, exemption: Decimal) -> Decimal:
    """Part of the exemption a side gets: its share of gains (not losses)."""
    if total_gains <= 0:
        return ZERO_MONEY
    return quantize_money(side_gains / total_gains * min(exemption, total_gains))


def split_at_rate_change(
    rates: TaxYearRates, disposals: list[Disposal]
) -> RateChangeSplit | None:
    """Partition a year's disposals at the mid-year rate change, if there is one.

    The annual exemption is shared between the two sides in proportion to
    each side's gains before each side's own rates apply.
    """
    change = rates.rate_change
    if change is None:
        return None

    pre = [d for d in disposals if d.date < change.date]
    post = [d for d in disposals if d.date >= change.date]
    pre_gains, _ = split_gains(pre)
    post_gains, _ = split_gains(post)
    total_gains = pre_gains + post_gains
    exemption = rates.annual_exemption

    return RateChangeSplit(
        date=change.date,
        pre_change=_side(
            pre,
            rates.basic_rate,
            rates.higher_rate,
            _exemption_share(pre_gains, total_gains, exemption),
        ),
        post_change=_side(
            post,
            change.basic_rate,
            change.higher_rate,
            _exemption_share(post_gains, total_gains, exemption),
        ),
    )


def summarize_tax_year(
    rates: TaxYearRates,
    disposals: list[Disposal],
    *,
    section104_start: list[PoolSnapshot] | None = None,
    section104_end: list[PoolSnapshot] | None = None,
) -> TaxYearSummary:
    gains, losses = split_gains(disposals)
    net_gain = quantize_money(gains - losses)
    exemption = rates.annual_exemption
    taxable_gain = quantize_money(max(ZERO_MONEY, net_gain - exemption))

    split = split_at_rate_change(rates, disposals)
    if split is not None and (split.pre_change.gains > 0 or split.post_change.gains > 0):
        pre, post = split.pre_change, split.post_change
        basic_tax = quantize_money(
            pre.taxable_gain * pre.basic_rate + post.taxable_gain * post.basic_rate
        )
        higher_tax = quantize_money(
            pre.taxable_gain * pre.higher_rate + post.taxable_gain * post.higher_rate
        )
    else:
        basic_tax = quantize_money(taxable_gain * rates.basic_rate)
        higher_tax = quantize_money(taxable_gain * rates.higher_rate)

    logger.debug(
        "%s: %d disposal(s), net %s, taxable %s",
        rates.label,
        len(disposals),
        net_gain,
        taxable_gain,
    )
    return TaxYearSummary(
        tax_year=rates.label,
        number_of_disposals=len(disposals),
        total_proceeds=quantize_money(sum((d.proceeds for d in disposals), ZERO_MONEY)),
        total_cost=quantize_money(sum((d.cost for d in disposals), ZERO_MONEY)),
        total_gains=quantize_money(gains),
        total_losses=quantize_money(losses),
        net_gain=net_gain,
        annual_exemption=exemption,
        taxable_gain=taxable_gain,
        estimated_tax_basic_rate=basic_tax,
        estimated_tax_higher_rate=higher_tax,
        disposals=list(disposals),
        section104_start=list(section104_start or []),
        section104_end=list(section104_end or []),
        rate_change=split,
    )
