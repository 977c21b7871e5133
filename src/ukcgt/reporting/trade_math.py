from __future__ import annotations

from decimal import Decimal

from .domain import Transaction
from .money import quantize_money


def gross_amount(txn: Transaction, quantity: Decimal) -> Decimal:
    """Pro-rata consideration for ``quantity`` units, before fees, in trade currency.

    An explicit total amount wins over quantity x price per unit.
    """
    if txn.total_amount is not None:
        return txn.total_amount * (quantity / txn.quantity)
    return quantity * txn.price_per_unit


def fee_share(txn: Transaction, quantity: Decimal) -> Decimal:
    return txn.fees * (quantity / txn.quantity)


def acquisition_cost_gbp(txn: Transaction, quantity: Decimal) -> Decimal:
    """Allowable cost in GBP: consideration plus incidental fees."""
    cost = gross_amount(txn, quantity) + fee_share(txn, quantity)
    return quantize_money(cost / txn.exchange_rate)


def disposal_proceeds_gbp(txn: Transaction, quantity: Decimal) -> Decimal:
    """Net disposal proceeds in GBP: consideration less incidental fees."""
    proceeds = gross_amount(txn, quantity) - fee_share(txn, quantity)
    return quantize_money(proceeds / txn.exchange_rate)
