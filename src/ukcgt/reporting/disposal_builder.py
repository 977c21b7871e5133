from __future__ import annotations

from decimal import Decimal

from .domain import Acquisition, Disposal, MatchDetail, Transaction
from .money import ZERO, per_share, quantize_money
from .trade_math import acquisition_cost_gbp


def build_disposal(
    txn: Transaction,
    details: list[MatchDetail],
    proceeds: Decimal,
    cost: Decimal,
    tax_year: str,
    unmatched_quantity: Decimal = ZERO,
) -> Disposal:
    cost = quantize_money(cost)
    gain = quantize_money(proceeds - cost)
    return Disposal(
        id=txn.id,
        seq=txn.seq,
        symbol=txn.symbol,
        asset_name=txn.asset_name,
        date=txn.date,
        quantity=txn.quantity,
        proceeds=proceeds,
        proceeds_per_share=per_share(proceeds, txn.quantity),
        cost=cost,
        cost_per_share=per_share(cost, txn.quantity),
        gain=gain,
        gain_per_share=per_share(gain, txn.quantity),
        tax_year=tax_year,
        broker=txn.broker,
        match_details=tuple(details),
        unmatched_quantity=unmatched_quantity,
    )


def build_acquisition(txn: Transaction) -> Acquisition:
    cost = acquisition_cost_gbp(txn, txn.quantity)
    return Acquisition(
        seq=txn.seq,
        symbol=txn.symbol,
        date=txn.date,
        quantity=txn.quantity,
        total_cost=cost,
        cost_per_share=per_share(cost, txn.quantity),
        broker=txn.broker,
        currency=txn.currency,
    )
