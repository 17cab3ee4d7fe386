from __future__ import annotations

import pytest

from conftest import USER_ID, StubSupabase, trade_row
from journal.app.common.supabase_client import JournalDataError
from journal.app.trades import queries
from journal.app.trades.filters import TradeFilters, parse_filters


@pytest.fixture
def db():
    rows = [
        trade_row(id=f"t{i}", trade_date=f"2024-03-0{i}", pnl=float(i * 10 - 25), symbol=s)
        for i, s in zip(range(1, 6), ["AAPL", "MSFT", "TSLA", "AAPL", "NVDA"])
    ]
    return StubSupabase(tables={"trades": rows, "strategies": []})


def test_clamp_page() -> None:
    assert queries.clamp_page(None, None) == (1, 50)
    assert queries.clamp_page(0, 0) == (1, 1)
    assert queries.clamp_page(-1, 9999) == (1, 100)
    assert queries.clamp_page(3, 20) == (3, 20)


def test_resolve_sort() -> None:
    assert queries.resolve_sort(None, None) == ("trade_date", True)
    assert queries.resolve_sort("pnl", "ASC") == ("pnl", False)
    assert queries.resolve_sort("password", "asc") == ("trade_date", False)


def test_first_page_is_newest_first(db) -> None:
    page = queries.fetch_trade_page(db, USER_ID, TradeFilters(), page=1, limit=2)
    assert [t["id"] for t in page["trades"]] == ["t5", "t4"]
    assert page["totalCount"] == 5
    assert page["totalPages"] == 3
    assert page["hasNextPage"] is True
    assert page["hasPreviousPage"] is False


def test_last_and_out_of_range_pages(db) -> None:
    last = queries.fetch_trade_page(db, USER_ID, TradeFilters(), page=3, limit=2)
    assert [t["id"] for t in last["trades"]] == ["t1"]
    assert last["hasNextPage"] is False
    assert last["hasPreviousPage"] is True

    beyond = queries.fetch_trade_page(db, USER_ID, TradeFilters(), page=999, limit=2)
    assert beyond["trades"] == []
    assert beyond["totalCount"] == 5
    assert beyond["currentPage"] == 999


def test_sort_by_pnl_ascending(db) -> None:
    page = queries.fetch_trade_page(
        db, USER_ID, TradeFilters(), limit=5, sort_by="pnl", sort_order="asc"
    )
    pnls = [t["pnl"] for t in page["trades"]]
    assert pnls == sorted(pnls)


def test_unknown_emotion_filter_returns_empty_page(db) -> None:
    page = queries.fetch_trade_page(db, USER_ID, parse_filters(emotional_states="BOGUS"))
    assert page["trades"] == []
    assert page["totalCount"] == 0
    assert db.calls == []


def test_fetch_trades_reads_in_chunks(db, monkeypatch) -> None:
    monkeypatch.setattr(queries, "FETCH_CHUNK", 2)
    rows = queries.fetch_trades(db, USER_ID)
    assert [r["id"] for r in rows] == ["t1", "t2", "t3", "t4", "t5"]
    assert len(db.calls) == 3


def test_compute_pnl() -> None:
    assert queries.compute_pnl("Buy", 10, 12.5, 100) == 250.0
    assert queries.compute_pnl("sell", 20, 18, 10) == 20.0
    assert queries.compute_pnl("Buy", 10, None, 100) is None
    assert queries.compute_pnl("hold", 10, 11, 1) is None


def test_create_fills_missing_pnl(db) -> None:
    created = queries.create_trade(db, USER_ID, {
        "symbol": "AMD", "side": "Sell", "trade_date": "2024-03-08",
        "quantity": 10, "entry_price": 20, "exit_price": 18,
    })
    assert created["pnl"] == 20.0
    assert created["user_id"] == USER_ID
    assert created["id"]


def test_update_recomputes_pnl_when_prices_change(db) -> None:
    updated = queries.update_trade(db, USER_ID, "t1", {"exit_price": 12.0})
    assert updated["pnl"] == 200.0

    explicit = queries.update_trade(db, USER_ID, "t1", {"exit_price": 13.0, "pnl": 5})
    assert explicit["pnl"] == 5

    assert queries.update_trade(db, USER_ID, "missing", {"notes": "x"}) is None


def test_delete_is_scoped_to_user(db) -> None:
    assert queries.delete_trade(db, "someone-else", "t1") is False
    assert queries.delete_trade(db, USER_ID, "t1") is True
    assert queries.get_trade(db, USER_ID, "t1") is None


def test_available_symbols(db) -> None:
    assert queries.available_symbols(db, USER_ID) == [
        {"symbol": "AAPL", "count": 2},
        {"symbol": "MSFT", "count": 1},
        {"symbol": "NVDA", "count": 1},
        {"symbol": "TSLA", "count": 1},
    ]


def test_database_errors_are_wrapped(db) -> None:
    db.fail_tables.add("trades")
    with pytest.raises(JournalDataError, match="fetch trades"):
        queries.fetch_trades(db, USER_ID)
