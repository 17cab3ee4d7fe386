"""
Strategy performance: realised metrics for one strategy's trades and how
they compare against the strategy's configured target ranges.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from journal.app.dashboard.metrics import (
    compute_summary,
    cumulative_series,
    max_drawdown_pct,
    trades_dataframe,
)
from shared.schemas import StrategyRecord, TradeRecord

logger = logging.getLogger(__name__)


@dataclass
class TargetCheck:
    """One target range against its realised value."""
    target: str
    minimum: Optional[float]
    maximum: Optional[float]
    actual: float
    passed: Optional[bool]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "min": self.minimum,
            "max": self.maximum,
            "actual": self.actual,
            "passed": self.passed,
        }


def _check(
    target: str,
    actual: float,
    minimum: Optional[float],
    maximum: Optional[float],
    has_data: bool,
) -> Optional[TargetCheck]:
    if minimum is None and maximum is None:
        return None
    passed = None
    if has_data:
        passed = (minimum is None or actual >= minimum) and (
            maximum is None or actual <= maximum
        )
    return TargetCheck(target, minimum, maximum, round(actual, 2), passed)


def target_compliance(
    strategy: StrategyRecord,
    summary: Dict[str, Any],
    drawdown_pct: float,
) -> List[TargetCheck]:
    t = strategy.targets
    has_data = summary["total"] > 0
    checks = [
        _check("winrate", summary["winrate"], t.winrate_min, t.winrate_max, has_data),
        _check("profit_factor", summary["profitFactor"], t.profit_factor_min, None, has_data),
        _check("net_pnl", summary["totalPnL"], t.net_pnl_min, t.net_pnl_max, has_data),
        _check("max_drawdown", drawdown_pct, None, t.max_drawdown_max, has_data),
        _check("sharpe_ratio", summary["sharpeRatio"], t.sharpe_ratio_min, None, has_data),
        _check(
            "avg_hold_period",
            summary["avgTimeHeld"],
            t.avg_hold_period_min,
            t.avg_hold_period_max,
            has_data,
        ),
    ]
    return [c for c in checks if c is not None]


def strategy_performance(
    strategy: StrategyRecord,
    trades: List[TradeRecord],
) -> Dict[str, Any]:
    df = trades_dataframe(trades)
    summary = compute_summary(df)
    drawdown = round(max_drawdown_pct(df["pnl"]) if not df.empty else 0.0, 2)
    checks = target_compliance(strategy, summary, drawdown)

    evaluated = [c for c in checks if c.passed is not None]
    compliant = bool(evaluated) and all(c.passed for c in evaluated)
    if evaluated and not compliant:
        failed = [c.target for c in evaluated if not c.passed]
        logger.info(f"Strategy {strategy.name} outside targets: {failed}")

    return {
        "strategy": strategy.to_dict(),
        "summary": summary,
        "maxDrawdown": drawdown,
        "chartData": cumulative_series(df),
        "targets": [c.to_dict() for c in checks],
        "compliant": compliant,
    }
