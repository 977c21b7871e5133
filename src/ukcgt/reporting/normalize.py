from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from ukcgt.conv import is_placeholder, parse_trade_date, to_dec, to_dec_strict

from .domain import Transaction, TransactionType
from .money import ZERO, abs_decimal

logger = logging.getLogger(__name__)

_TYPE_ALIASES = {
    "BUY": TransactionType.ACQUIRE,
    "ACQUIRE": TransactionType.ACQUIRE,
    "SELL": TransactionType.DISPOSE,
    "DISPOSE": TransactionType.DISPOSE,
}

# canonical field -> accepted spellings (snake_case first, then the camelCase contract)
_FIELD_NAMES = {
    "symbol": ("symbol",),
    "type": ("type",),
    "date": ("date",),
    "quantity": ("quantity",),
    "price_per_unit": ("price_per_unit", "pricePerUnit"),
    "total_amount": ("total_amount", "totalAmount"),
    "fees": ("fees",),
    "currency": ("currency",),
    "exchange_rate": ("exchange_rate", "exchangeRate"),
    "broker": ("broker",),
    "asset_name": ("asset_name", "assetName"),
}


@dataclass(frozen=True)
class RejectedRecord:
    index: int
    reason: str
    record: Any


@dataclass
class NormalizeResult:
    transactions: list[Transaction] = field(default_factory=list)
    rejected: list[RejectedRecord] = field(default_factory=list)


class _RecordError(ValueError):
    pass


def _get(record: Any, name: str) -> Any:
    for key in _FIELD_NAMES[name]:
        if isinstance(record, Mapping):
            value = record.get(key)
        else:
            value = getattr(record, key, None)
        if value is not None:
            return value
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _number(record: Any, name: str, default: Decimal | None = ZERO) -> Decimal | None:
    """Read a numeric field; missing cells give ``default``, junk rejects the record."""
    value = _get(record, name)
    if is_placeholder(value):
        return to_dec(value, default) if default is not None else None
    try:
        return to_dec_strict(value)
    except ValueError as exc:
        raise _RecordError(f"invalid {name.replace('_', ' ')} {value!r}: {exc}") from exc


def _non_negative(record: Any, name: str, default: Decimal | None = ZERO) -> Decimal | None:
    value = _number(record, name, default)
    if value is not None and value < 0:
        raise _RecordError(f"negative {name.replace('_', ' ')} {value}")
    return value


def _normalize_one(index: int, record: Any) -> Transaction:
    date = parse_trade_date(_get(record, "date"))
    if date is None:
        raise _RecordError(f"invalid or missing date {_get(record, 'date')!r}")

    raw_type = _text(_get(record, "type")).upper()
    txn_type = _TYPE_ALIASES.get(raw_type)
    if txn_type is None:
        raise _RecordError(f"unknown transaction type {raw_type!r}")

    symbol = _text(_get(record, "symbol")).upper()
    if not symbol:
        raise _RecordError("missing symbol")

    quantity = abs_decimal(_number(record, "quantity"))
    if quantity <= 0:
        raise _RecordError("quantity must be positive")

    exchange_rate = _non_negative(record, "exchange_rate")
    if exchange_rate == 0:
        exchange_rate = Decimal("1")

    return Transaction(
        id=f"txn-{index}",
        seq=index,
        symbol=symbol,
        type=txn_type,
        date=date,
        quantity=quantity,
        price_per_unit=_non_negative(record, "price_per_unit"),
        total_amount=_non_negative(record, "total_amount", default=None),
        fees=_non_negative(record, "fees"),
        currency=_text(_get(record, "currency")).upper() or "GBP",
        exchange_rate=exchange_rate,
        broker=_text(_get(record, "broker")) or "Unknown",
        asset_name=_text(_get(record, "asset_name")) or symbol,
    )


def normalize_transactions(records: Iterable[Any]) -> NormalizeResult:
    """Validate and canonicalize raw records into date-ordered transactions.

    Records that cannot be used (unreadable date, unknown type, missing
    symbol, non-positive quantity, unreadable or non-finite
    numbers, negative price, total, fees or FX rate) are left out of the
    result and reported in ``rejected``; they never abort the run.
    The ordering is stable: same-day transactions keep their input order.
    """
    result = NormalizeResult()
    for index, record in enumerate(records):
        try:
            txn = _normalize_one(index, record)
        except _RecordError as exc:
            logger.warning("Skipping transaction #%d: %s", index, exc)
            result.rejected.append(RejectedRecord(index, str(exc), record))
            continue
        result.transactions.append(txn)

    result.transactions.sort(key=lambda t: t.date)
    logger.debug(
        "Normalized %d transaction(s), rejected %d",
        len(result.transactions),
        len(result.rejected),
    )
    return result


def group_by_symbol(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    """Split a date-ordered stream into per-symbol streams, preserving order."""
    by_symbol: dict[str, list[Transaction]] = {}
    for txn in transactions:
        by_symbol.setdefault(txn.symbol, []).append(txn)
    return by_symbol
