from __future__ import annotations

import numpy as np
import pytest

from journal.app.dashboard.metrics import (
    calendar_month,
    compute_summary,
    cumulative_series,
    daily_pnl,
    max_drawdown_pct,
    summary_by_strategy,
    trades_dataframe,
)
from shared.schemas import Side, TradeRecord


def _trade(trade_date, pnl, entry="09:30", exit_="10:30", strategy_id=None):
    return TradeRecord(
        symbol="MSFT",
        side=Side.BUY,
        trade_date=trade_date,
        pnl=pnl,
        entry_time=entry,
        exit_time=exit_,
        strategy_id=strategy_id,
    )


@pytest.fixture
def df():
    return trades_dataframe([
        _trade("2024-03-05", 30, entry=None, strategy_id="b"),
        _trade("2024-03-04", 100, strategy_id="a"),
        _trade("2024-03-04", -50, exit_="10:00", strategy_id="a"),
    ])


def test_dataframe_is_sorted_oldest_first(df) -> None:
    assert list(df["pnl"]) == [100, -50, 30]
    assert df["hold_minutes"].isna().sum() == 1


def test_summary(df) -> None:
    summary = compute_summary(df)
    pnl = np.array([100, -50, 30], dtype=float)

    assert summary["total"] == 3
    assert summary["totalPnL"] == 80.0
    assert summary["winrate"] == pytest.approx(66.67)
    assert summary["profitFactor"] == 2.6
    assert summary["avgTimeHeld"] == 45.0
    assert summary["sharpeRatio"] == pytest.approx(round(pnl.mean() / pnl.std(), 4))
    assert summary["tradingDays"] == 2
    assert summary["bestTrade"] == 100.0
    assert summary["worstTrade"] == -50.0
    assert summary["longestWinStreak"] == 1
    assert summary["longestLossStreak"] == 1
    assert summary["expectancy"] == pytest.approx(26.67)


def test_profit_factor_without_losses() -> None:
    winners = trades_dataframe([_trade("2024-03-04", 10), _trade("2024-03-05", 20)])
    assert compute_summary(winners)["profitFactor"] == 999.0
    assert compute_summary(winners)["longestWinStreak"] == 2

    flat = trades_dataframe([_trade("2024-03-04", None)])
    summary = compute_summary(flat)
    assert summary["profitFactor"] == 0.0
    assert summary["sharpeRatio"] == 0.0


def test_empty_summary() -> None:
    summary = compute_summary(trades_dataframe([]))
    assert summary["total"] == 0
    assert summary["totalPnL"] == 0.0
    assert daily_pnl(trades_dataframe([])) == []
    assert cumulative_series(trades_dataframe([])) == []


def test_daily_pnl(df) -> None:
    assert daily_pnl(df) == [
        {"date": "2024-03-04", "pnl": 50.0, "trades": 2, "cumulative": 50.0},
        {"date": "2024-03-05", "pnl": 30.0, "trades": 1, "cumulative": 80.0},
    ]


def test_cumulative_series(df) -> None:
    series = cumulative_series(df)
    assert [p["cumulative"] for p in series] == [100.0, 50.0, 80.0]
    assert series[0]["index"] == 1
    assert series[-1]["date"] == "2024-03-05"


def test_max_drawdown(df) -> None:
    assert max_drawdown_pct(df["pnl"]) == pytest.approx(50.0)
    losers = trades_dataframe([_trade("2024-03-04", -10), _trade("2024-03-05", -5)])
    assert max_drawdown_pct(losers["pnl"]) == 0.0


def test_calendar_month(df) -> None:
    month = calendar_month(df, 2024, 3)
    assert month["firstWeekday"] == 4
    assert len(month["days"]) == 31
    assert month["days"][3] == {"day": 4, "date": "2024-03-04", "pnl": 50.0, "trades": 2}
    assert month["days"][0]["trades"] == 0
    assert month["monthPnL"] == 80.0
    assert month["tradingDays"] == 2
    assert month["winningDays"] == 2

    empty = calendar_month(df, 2024, 2)
    assert len(empty["days"]) == 29
    assert empty["tradingDays"] == 0


def test_summary_by_strategy(df) -> None:
    assert summary_by_strategy(df, "a")["total"] == 2
    assert summary_by_strategy(df, "a")["totalPnL"] == 50.0
    assert summary_by_strategy(df, "missing")["total"] == 0


def test_drawdown_is_measured_against_final_peak() -> None:
    df = trades_dataframe([
        _trade("2024-03-04", 10), _trade("2024-03-05", -200), _trade("2024-03-06", 500),
    ])
    drawdown = max_drawdown_pct(df["pnl"])
    assert drawdown == pytest.approx(64.516, abs=1e-3)
    assert drawdown <= 100


def test_drawdown_matches_vrating_risk_metrics() -> None:
    from journal.app.scoring.vrating import risk_management_metrics

    trades = [_trade("2024-03-04", 10), _trade("2024-03-05", -200), _trade("2024-03-06", 500)]
    risk = risk_management_metrics(trades, large_loss_threshold=-50)
    assert risk.maxDrawdownPercentage == pytest.approx(
        max_drawdown_pct(trades_dataframe(trades)["pnl"])
    )
