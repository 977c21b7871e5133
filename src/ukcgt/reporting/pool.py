from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from .domain import PoolSnapshot
from .money import ZERO, ZERO_MONEY, per_share, quantize_money


class PoolEventKind(str, Enum):
    ACQUISITION = "ACQUISITION"
    DISPOSAL = "DISPOSAL"


@dataclass(frozen=True)
class PoolEvent:
    symbol: str
    date: dt.date
    kind: PoolEventKind
    quantity: Decimal
    cost: Decimal
    seq: int  # position in the ledger's event log


@dataclass
class Section104Pool:
    """Average-cost holding for one symbol."""

    quantity: Decimal = ZERO
    cost: Decimal = ZERO_MONEY

    @property
    def average_cost(self) -> Decimal:
        if self.quantity == 0:
            return ZERO
        return self.cost / self.quantity

    def add(self, quantity: Decimal, cost: Decimal) -> None:
        if quantity <= 0:
            raise ValueError("pool additions must have positive quantity")
        if cost < 0:
            raise ValueError("pool additions cannot carry negative cost")
        self.quantity += quantity
        self.cost += cost

    def remove(self, quantity: Decimal) -> Decimal:
        """Take ``quantity`` out at average cost and return the allowable cost.

        Emptying the pool takes the whole remaining cost so no pennies are
        stranded by rounding.
        """
        if quantity <= 0:
            raise ValueError("pool disposals must have positive quantity")
        if quantity > self.quantity:
            raise ValueError(
                f"cannot remove {quantity} from pool holding {self.quantity}"
            )
        if quantity == self.quantity:
            cost = self.cost
        else:
            cost = quantize_money(quantity * self.cost / self.quantity)
        self.quantity -= quantity
        self.cost -= cost
        if self.quantity == 0:
            self.cost = ZERO_MONEY
        return cost


class PoolLedger:
    """Section 104 pools for one calculation, plus the log of every pool mutation.

    A ledger belongs to a single ``calculate`` run and is discarded with it.
    """

    def __init__(self) -> None:
        self._pools: dict[str, Section104Pool] = {}
        self._events: list[PoolEvent] = []

    def pool(self, symbol: str) -> Section104Pool:
        if symbol not in self._pools:
            self._pools[symbol] = Section104Pool()
        return self._pools[symbol]

    @property
    def events(self) -> list[PoolEvent]:
        return self._events

    def add(self, symbol: str, date: dt.date, quantity: Decimal, cost: Decimal) -> None:
        self.pool(symbol).add(quantity, cost)
        self._record(symbol, date, PoolEventKind.ACQUISITION, quantity, cost)

    def draw(self, symbol: str, date: dt.date, quantity: Decimal) -> Decimal:
        cost = self.pool(symbol).remove(quantity)
        self._record(symbol, date, PoolEventKind.DISPOSAL, quantity, cost)
        return cost

    def _record(
        self,
        symbol: str,
        date: dt.date,
        kind: PoolEventKind,
        quantity: Decimal,
        cost: Decimal,
    ) -> None:
        self._events.append(
            PoolEvent(symbol, date, kind, quantity, cost, seq=len(self._events))
        )

    def holdings(self) -> list[PoolSnapshot]:
        """Current state of every non-empty pool, sorted by symbol."""
        return _to_snapshots(self._pools)

    def snapshot(self, cutoff: dt.date, *, inclusive: bool) -> list[PoolSnapshot]:
        """Pool state as of ``cutoff``, rebuilt from the event log alone."""
        return _to_snapshots(reconstruct_pools(self._events, cutoff, inclusive=inclusive))


def reconstruct_pools(
    events: Iterable[PoolEvent], cutoff: dt.date, *, inclusive: bool
) -> dict[str, Section104Pool]:
    """Replay pool events dated before ``cutoff`` (or on it, when inclusive).

    Pure function of the event log: events are replayed in (date, seq) order
    into fresh pools, independent of any live pool state.
    """
    pools: dict[str, Section104Pool] = {}
    for event in sorted(events, key=lambda e: (e.date, e.seq)):
        if event.date > cutoff or (event.date == cutoff and not inclusive):
            break
        pool = pools.setdefault(event.symbol, Section104Pool())
        if event.kind is PoolEventKind.ACQUISITION:
            pool.quantity += event.quantity
            pool.cost += event.cost
        else:
            pool.quantity -= event.quantity
            pool.cost -= event.cost
    return pools


def _to_snapshots(pools: dict[str, Section104Pool]) -> list[PoolSnapshot]:
    return [
        PoolSnapshot(
            symbol=symbol,
            quantity=pool.quantity,
            total_cost=quantize_money(pool.cost),
            average_cost=per_share(pool.cost, pool.quantity),
        )
        for symbol, pool in sorted(pools.items())
        if pool.quantity > 0
    ]
