"""Test fixtures for transaction records and transactions.

Production code gets raw records from CSV files via load.py and turns them
into Transaction objects in normalize.py. Tests build both directly: raw
records (dicts in the normalized CSV schema) for end-to-end tests, and
Transaction instances for matcher and pool tests.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from ukcgt.reporting.domain import Transaction, TransactionType


def record(
    date: str,
    type_: str,
    symbol: str,
    quantity: str,
    price: str,
    *,
    total: str | None = None,
    fees: str = "0",
    currency: str = "GBP",
    fx: str = "1",
    broker: str = "Test Broker",
) -> dict[str, str]:
    """Raw record as it would come out of a normalized transaction CSV."""
    row = {
        "date": date,
        "type": type_,
        "symbol": symbol,
        "quantity": quantity,
        "price_per_unit": price,
        "fees": fees,
        "currency": currency,
        "exchange_rate": fx,
        "broker": broker,
    }
    if total is not None:
        row["total_amount"] = total
    return row


def buy(date: str, symbol: str, quantity: str, price: str, **kw) -> dict[str, str]:
    return record(date, "BUY", symbol, quantity, price, **kw)


def sell(date: str, symbol: str, quantity: str, price: str, **kw) -> dict[str, str]:
    return record(date, "SELL", symbol, quantity, price, **kw)


def txn(
    seq: int,
    date: dt.date,
    type_: TransactionType,
    quantity: str,
    price: str,
    *,
    symbol: str = "XYZ",
    fees: str = "0",
    currency: str = "GBP",
    fx: str = "1",
    total: str | None = None,
) -> Transaction:
    return Transaction(
        id=f"txn-{seq}",
        seq=seq,
        symbol=symbol,
        type=type_,
        date=date,
        quantity=Decimal(quantity),
        price_per_unit=Decimal(price),
        total_amount=None if total is None else Decimal(total),
        fees=Decimal(fees),
        currency=currency,
        exchange_rate=Decimal(fx),
        broker="Test Broker",
        asset_name=symbol,
    )


def acquire(seq: int, date: dt.date, quantity: str, price: str, **kw) -> Transaction:
    return txn(seq, date, TransactionType.ACQUIRE, quantity, price, **kw)


def dispose(seq: int, date: dt.date, quantity: str, price: str, **kw) -> Transaction:
    return txn(seq, date, TransactionType.DISPOSE, quantity, price, **kw)
