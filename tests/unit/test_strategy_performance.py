from __future__ import annotations

from journal.app.strategies.performance import strategy_performance
from shared.schemas import Side, StrategyRecord, StrategyTargets, TradeRecord


def _trade(trade_date, pnl):
    return TradeRecord(
        symbol="SPY",
        side=Side.BUY,
        trade_date=trade_date,
        pnl=pnl,
        entry_time="09:30",
        exit_time="10:00",
        strategy_id="s1",
    )


def _strategy(**targets) -> StrategyRecord:
    return StrategyRecord(
        name="Opening Range",
        targets=StrategyTargets(**targets),
        id="s1",
    )


def test_targets_checked_against_realised_metrics() -> None:
    strategy = _strategy(winrate_min=60, winrate_max=80, net_pnl_min=0, max_drawdown_max=20)
    trades = [_trade("2024-03-04", 100), _trade("2024-03-05", -50), _trade("2024-03-06", 30)]

    result = strategy_performance(strategy, trades)
    checks = {t["target"]: t for t in result["targets"]}

    assert set(checks) == {"winrate", "net_pnl", "max_drawdown"}
    assert checks["winrate"]["passed"] is True
    assert checks["net_pnl"]["actual"] == 80.0
    assert checks["max_drawdown"]["actual"] == 50.0
    assert checks["max_drawdown"]["passed"] is False
    assert result["compliant"] is False
    assert result["maxDrawdown"] == 50.0
    assert len(result["chartData"]) == 3
    assert result["strategy"]["name"] == "Opening Range"


def test_compliant_when_every_target_passes() -> None:
    strategy = _strategy(profit_factor_min=1.5, avg_hold_period_max=60)
    result = strategy_performance(strategy, [_trade("2024-03-04", 40), _trade("2024-03-05", -10)])
    assert result["compliant"] is True


def test_no_trades_leaves_targets_unevaluated() -> None:
    result = strategy_performance(_strategy(winrate_min=50), [])
    assert result["targets"] == [
        {"target": "winrate", "min": 50, "max": None, "actual": 0.0, "passed": None}
    ]
    assert result["compliant"] is False
    assert result["summary"]["total"] == 0
    assert result["chartData"] == []
