import datetime as dt
from decimal import Decimal

import pytest

from ukcgt.reporting.pool import (
    PoolEventKind,
    PoolLedger,
    Section104Pool,
    reconstruct_pools,
)


def test_pool_add_and_average():
    pool = Section104Pool()
    pool.add(Decimal("100"), Decimal("1000"))
    pool.add(Decimal("100"), Decimal("2000"))
    assert pool.quantity == Decimal("200")
    assert pool.cost == Decimal("3000")
    assert pool.average_cost == Decimal("15")


def test_pool_remove_at_average_cost():
    pool = Section104Pool(Decimal("200"), Decimal("3000"))
    assert pool.remove(Decimal("100")) == Decimal("1500.00")
    assert pool.quantity == Decimal("100")
    assert pool.cost == Decimal("1500.00")


def test_pool_remove_everything_takes_whole_cost():
    pool = Section104Pool(Decimal("3"), Decimal("10.00"))
    assert pool.remove(Decimal("1")) == Decimal("3.33")
    assert pool.remove(Decimal("2")) == Decimal("6.67")
    assert pool.quantity == 0
    assert pool.cost == Decimal("0.00")


def test_pool_rejects_invalid_operations():
    pool = Section104Pool(Decimal("10"), Decimal("100"))
    with pytest.raises(ValueError):
        pool.remove(Decimal("11"))
    with pytest.raises(ValueError):
        pool.remove(Decimal("0"))
    with pytest.raises(ValueError):
        pool.add(Decimal("0"), Decimal("1"))
    with pytest.raises(ValueError):
        pool.add(Decimal("1"), Decimal("-1"))
    # failed operations leave the pool untouched
    assert pool.quantity == Decimal("10")
    assert pool.cost == Decimal("100")


def test_ledger_logs_every_mutation():
    ledger = PoolLedger()
    ledger.add("XYZ", dt.date(2023, 1, 1), Decimal("100"), Decimal("1000"))
    cost = ledger.draw("XYZ", dt.date(2023, 6, 1), Decimal("40"))

    assert cost == Decimal("400.00")
    assert [e.kind for e in ledger.events] == [
        PoolEventKind.ACQUISITION,
        PoolEventKind.DISPOSAL,
    ]
    assert [e.seq for e in ledger.events] == [0, 1]
    assert ledger.events[1].cost == Decimal("400.00")


def test_ledger_holdings_skip_empty_pools_and_sort_by_symbol():
    ledger = PoolLedger()
    ledger.add("ZZZ", dt.date(2023, 1, 1), Decimal("10"), Decimal("30"))
    ledger.add("AAA", dt.date(2023, 1, 1), Decimal("5"), Decimal("50"))
    ledger.add("MMM", dt.date(2023, 1, 1), Decimal("1"), Decimal("1"))
    ledger.draw("MMM", dt.date(2023, 2, 1), Decimal("1"))

    holdings = ledger.holdings()
    assert [h.symbol for h in holdings] == ["AAA", "ZZZ"]
    assert holdings[1].average_cost == Decimal("3.00")


def test_snapshot_respects_cutoff_inclusivity():
    ledger = PoolLedger()
    ledger.add("XYZ", dt.date(2024, 4, 5), Decimal("10"), Decimal("100"))
    ledger.add("XYZ", dt.date(2024, 4, 6), Decimal("10"), Decimal("300"))

    before = ledger.snapshot(dt.date(2024, 4, 6), inclusive=False)
    on = ledger.snapshot(dt.date(2024, 4, 6), inclusive=True)

    assert before[0].quantity == Decimal("10")
    assert on[0].quantity == Decimal("20")
    assert on[0].total_cost == Decimal("400.00")
    assert on[0].average_cost == Decimal("20.00")


def test_reconstruction_uses_event_log_not_live_pool_state():
    ledger = PoolLedger()
    # events recorded out of date order still replay chronologically
    ledger.add("XYZ", dt.date(2024, 3, 1), Decimal("10"), Decimal("100"))
    ledger.add("ABC", dt.date(2023, 3, 1), Decimal("4"), Decimal("40"))
    ledger.draw("XYZ", dt.date(2024, 5, 1), Decimal("10"))

    pools = reconstruct_pools(ledger.events, dt.date(2024, 4, 5), inclusive=True)
    assert pools["XYZ"].quantity == Decimal("10")
    assert pools["ABC"].quantity == Decimal("4")

    # live state after the draw is empty for XYZ; the earlier snapshot is not
    assert ledger.pool("XYZ").quantity == 0
    assert [s.symbol for s in ledger.snapshot(dt.date(2024, 4, 5), inclusive=True)] == [
        "ABC",
        "XYZ",
    ]
