from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from .disposal_builder import build_acquisition, build_disposal
from .domain import Acquisition, BnbImpact, Disposal, MatchDetail, MatchRule, Transaction
from .events import DiagnosticRecorder
from .gap_policy import GapPolicy, ZeroCostGapPolicy
from .money import ZERO, ZERO_MONEY, per_share, quantize_money
from .pool import PoolLedger
from .tax_years import TaxYearTable
from .trade_math import acquisition_cost_gbp, disposal_proceeds_gbp

logger = logging.getLogger(__name__)

BED_AND_BREAKFAST_DAYS = 30


class RemainingBalances:
    """Unmatched quantity per acquisition, keyed by transaction id.

    Kept apart from the transactions themselves so inputs are never mutated.
    """

    def __init__(self, acquisitions: list[Transaction]) -> None:
        self._remaining: dict[str, Decimal] = {t.id: t.quantity for t in acquisitions}

    def get(self, txn: Transaction) -> Decimal:
        return self._remaining.get(txn.id, ZERO)

    def take(self, txn: Transaction, quantity: Decimal) -> None:
        left = self.get(txn) - quantity
        if left < 0:
            raise ValueError(f"over-allocated acquisition {txn.id}")
        self._remaining[txn.id] = left


@dataclass
class _DisposalWork:
    txn: Transaction
    proceeds: Decimal
    proceeds_per_share: Decimal
    remaining: Decimal
    cost: Decimal = ZERO_MONEY
    details: list[MatchDetail] = field(default_factory=list)

    @classmethod
    def start(cls, txn: Transaction) -> _DisposalWork:
        proceeds = disposal_proceeds_gbp(txn, txn.quantity)
        return cls(
            txn=txn,
            proceeds=proceeds,
            proceeds_per_share=per_share(proceeds, txn.quantity),
            remaining=txn.quantity,
        )


@dataclass
class SymbolResult:
    symbol: str
    disposals: list[Disposal]
    acquisitions: list[Acquisition]


class ShareMatcher:
    """Identify the acquisitions behind each disposal of one symbol.

    HMRC order: same day, then acquisitions in the following 30 days, then the
    Section 104 pool. Same-day matching is settled for every disposal of the
    symbol before any 30-day matching, so the 30-day rule never takes shares
    a later disposal needs under the same-day rule.
    """

    def __init__(
        self,
        ledger: PoolLedger,
        *,
        tax_years: TaxYearTable | None = None,
        gap_policy: GapPolicy | None = None,
        recorder: DiagnosticRecorder | None = None,
    ) -> None:
        self.ledger = ledger
        self.tax_years = tax_years or TaxYearTable.default()
        self.gap_policy = gap_policy or ZeroCostGapPolicy()
        self.recorder = recorder or DiagnosticRecorder()

    def process_symbol(self, symbol: str, transactions: list[Transaction]) -> SymbolResult:
        """Match one symbol's date-ordered stream and update its pool."""
        acquisitions = [t for t in transactions if t.is_acquisition]
        balances = RemainingBalances(acquisitions)
        works = [_DisposalWork.start(t) for t in transactions if not t.is_acquisition]

        for work in works:
            self._match_same_day(work, acquisitions, balances)

        disposals: list[Disposal] = []
        for work in works:
            if work.remaining > 0:
                self._match_bed_and_breakfast(work, acquisitions, balances)
            if work.remaining > 0:
                self._match_section_104(work, acquisitions, balances)
            disposals.append(self._finish(work))

        # whatever is left over sits in the pool
        for acq in acquisitions:
            left = balances.get(acq)
            if left > 0:
                self._roll_into_pool(acq, left, balances)

        return SymbolResult(
            symbol=symbol,
            disposals=disposals,
            acquisitions=[build_acquisition(a) for a in acquisitions],
        )

    def _match_same_day(
        self,
        work: _DisposalWork,
        acquisitions: list[Transaction],
        balances: RemainingBalances,
    ) -> None:
        for acq in acquisitions:
            if work.remaining <= 0:
                break
            if acq.date != work.txn.date or balances.get(acq) <= 0:
                continue
            qty, cost = self._take(work, acq, balances)
            cps = per_share(cost, qty)
            work.details.append(
                MatchDetail(
                    rule=MatchRule.SAME_DAY,
                    quantity=qty,
                    cost=cost,
                    cost_per_share=cps,
                    proceeds_per_share=work.proceeds_per_share,
                    gain_per_share=quantize_money(work.proceeds_per_share - cps),
                    acquisition_date=acq.date,
                    broker=acq.broker,
                )
            )
            logger.debug(
                "%s %s: same-day match %s @ %s", work.txn.symbol, work.txn.date, qty, cost
            )

    def _match_bed_and_breakfast(
        self,
        work: _DisposalWork,
        acquisitions: list[Transaction],
        balances: RemainingBalances,
    ) -> None:
        sale_date = work.txn.date
        window_end = sale_date + dt.timedelta(days=BED_AND_BREAKFAST_DAYS)
        pool_average: Decimal | None = None

        for acq in acquisitions:
            if work.remaining <= 0 or acq.date > window_end:
                break
            if acq.date <= sale_date or balances.get(acq) <= 0:
                continue
            if pool_average is None:
                pool_average = self._pool_average_before(
                    work.txn.symbol, sale_date, acquisitions, balances
                )

            qty, cost = self._take(work, acq, balances)
            cps = per_share(cost, qty)
            work.details.append(
                MatchDetail(
                    rule=MatchRule.BED_AND_BREAKFAST,
                    quantity=qty,
                    cost=cost,
                    cost_per_share=cps,
                    proceeds_per_share=work.proceeds_per_share,
                    gain_per_share=quantize_money(work.proceeds_per_share - cps),
                    acquisition_date=acq.date,
                    broker=acq.broker,
                    days_after_sale=(acq.date - sale_date).days,
                    original_currency=acq.currency,
                    original_cost_per_share=quantize_money(acq.price_per_unit),
                    exchange_rate=acq.exchange_rate,
                    bnb_impact=_bnb_impact(cps, pool_average),
                )
            )
            logger.debug(
                "%s %s: bed-and-breakfast match %s from %s @ %s",
                work.txn.symbol,
                sale_date,
                qty,
                acq.date,
                cost,
            )

    def _match_section_104(
        self,
        work: _DisposalWork,
        acquisitions: list[Transaction],
        balances: RemainingBalances,
    ) -> None:
        symbol = work.txn.symbol
        for acq in acquisitions:
            if acq.date >= work.txn.date:
                break
            left = balances.get(acq)
            if left > 0:
                self._roll_into_pool(acq, left, balances)

        pool = self.ledger.pool(symbol)
        if pool.quantity <= 0:
            return

        qty = min(work.remaining, pool.quantity)
        qty_before, cost_before = pool.quantity, pool.cost
        average = quantize_money(pool.average_cost)
        cost = self.ledger.draw(symbol, work.txn.date, qty)

        work.remaining -= qty
        work.cost += cost
        work.details.append(
            MatchDetail(
                rule=MatchRule.SECTION_104,
                quantity=qty,
                cost=cost,
                cost_per_share=average,
                proceeds_per_share=work.proceeds_per_share,
                gain_per_share=quantize_money(work.proceeds_per_share - average),
                average_cost=average,
                pool_quantity_before=qty_before,
                pool_quantity_after=pool.quantity,
                pool_cost_before=quantize_money(cost_before),
                pool_cost_after=quantize_money(pool.cost),
            )
        )
        logger.debug(
            "%s %s: section 104 match %s @ avg %s (pool %s -> %s)",
            symbol,
            work.txn.date,
            qty,
            average,
            qty_before,
            pool.quantity,
        )

    def _finish(self, work: _DisposalWork) -> Disposal:
        unmatched = work.remaining
        cost = work.cost
        if unmatched > 0:
            cost, diagnostic = self.gap_policy.resolve(work.txn, unmatched, cost)
            if diagnostic is not None:
                logger.warning(diagnostic.message)
                self.recorder.record(diagnostic)

        rates, _known = self.tax_years.for_date(work.txn.date)
        return build_disposal(
            work.txn,
            work.details,
            proceeds=work.proceeds,
            cost=cost,
            tax_year=rates.label,
            unmatched_quantity=unmatched,
        )

    def _take(
        self, work: _DisposalWork, acq: Transaction, balances: RemainingBalances
    ) -> tuple[Decimal, Decimal]:
        qty = min(work.remaining, balances.get(acq))
        cost = acquisition_cost_gbp(acq, qty)
        balances.take(acq, qty)
        work.remaining -= qty
        work.cost += cost
        return qty, cost

    def _roll_into_pool(
        self, acq: Transaction, quantity: Decimal, balances: RemainingBalances
    ) -> None:
        cost = acquisition_cost_gbp(acq, quantity)
        self.ledger.add(acq.symbol, acq.date, quantity, cost)
        balances.take(acq, quantity)

    def _pool_average_before(
        self,
        symbol: str,
        sale_date: dt.date,
        acquisitions: list[Transaction],
        balances: RemainingBalances,
    ) -> Decimal:
        """Pool average the disposal would have used had there been no re-purchase."""
        pool = self.ledger.pool(symbol)
        quantity, cost = pool.quantity, pool.cost
        for acq in acquisitions:
            if acq.date >= sale_date:
                break
            left = balances.get(acq)
            if left > 0:
                quantity += left
                cost += acquisition_cost_gbp(acq, left)
        return per_share(cost, quantity)


def _bnb_impact(actual: Decimal, pool_average: Decimal | None) -> BnbImpact:
    would_be = pool_average if pool_average is not None else ZERO_MONEY
    difference = quantize_money(actual - would_be)
    if difference > 0:
        explanation = (
            f"B&B increased cost basis by £{difference}/share (reduced gain)"
        )
    elif difference < 0:
        explanation = (
            f"B&B decreased cost basis by £{-difference}/share (increased gain)"
        )
    else:
        explanation = "B&B cost basis equals the Section 104 average"
    return BnbImpact(
        s104_cost_per_share_would_be=would_be,
        actual_cost_per_share=actual,
        cost_difference=difference,
        explanation=explanation,
    )
