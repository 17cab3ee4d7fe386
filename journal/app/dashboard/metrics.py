import calendar
from typing import List, Optional

import numpy as np
import pandas as pd

from shared.schemas import TradeRecord

PNL_COLUMNS = ["trade_date", "symbol", "side", "pnl", "hold_minutes", "strategy_id"]


def trades_dataframe(trades: List[TradeRecord]) -> pd.DataFrame:
    """
    Flatten trade records into a DataFrame, oldest first.
    Missing P&L counts as zero.
    """
    if not trades:
        return pd.DataFrame(columns=PNL_COLUMNS)

    df = pd.DataFrame(
        [
            {
                "trade_date": t.trade_date,
                "symbol": t.symbol,
                "side": t.side.value if t.side else None,
                "pnl": t.pnl if t.pnl is not None else 0.0,
                "hold_minutes": t.hold_minutes,
                "strategy_id": t.strategy_id,
            }
            for t in trades
        ]
    )
    df["trade_date"] = pd.to_datetime(df["trade_date"], errors="coerce")
    df["hold_minutes"] = pd.to_numeric(df["hold_minutes"], errors="coerce")
    return df.sort_values("trade_date", kind="stable").reset_index(drop=True)


def _streaks(pnl: pd.Series) -> tuple:
    longest_win = longest_loss = win = loss = 0
    for value in pnl:
        if value > 0:
            win, loss = win + 1, 0
        elif value < 0:
            win, loss = 0, loss + 1
        else:
            win = loss = 0
        longest_win = max(longest_win, win)
        longest_loss = max(longest_loss, loss)
    return longest_win, longest_loss


def max_drawdown_pct(pnl: pd.Series) -> float:
    """
    Largest fall of cumulative P&L from its running peak, as % of the highest
    cumulative P&L reached. Same definition as the VRating risk metrics.
    """
    if pnl.empty:
        return 0.0
    equity = pnl.astype(float).cumsum().to_numpy()
    peak = np.maximum.accumulate(equity)
    final_peak = float(peak[-1])
    if final_peak <= 0:
        return 0.0
    return float((peak - equity).max() / final_peak * 100)


def compute_summary(df: pd.DataFrame) -> dict:
    if df.empty:
        return {
            "total": 0,
            "totalPnL": 0.0,
            "winrate": 0.0,
            "profitFactor": 0.0,
            "avgTimeHeld": 0.0,
            "sharpeRatio": 0.0,
            "tradingDays": 0,
            "bestTrade": 0.0,
            "worstTrade": 0.0,
            "longestWinStreak": 0,
            "longestLossStreak": 0,
            "expectancy": 0.0,
        }

    pnl = df["pnl"].astype(float)
    gross_profit = float(pnl[pnl > 0].sum())
    gross_loss = float(abs(pnl[pnl < 0].sum()))
    if gross_loss == 0:
        profit_factor = 999.0 if gross_profit > 0 else 0.0
    else:
        profit_factor = gross_profit / gross_loss

    std = float(pnl.std(ddof=0))
    held = df["hold_minutes"].dropna()
    win_streak, loss_streak = _streaks(pnl)

    return {
        "total": int(len(df)),
        "totalPnL": round(float(pnl.sum()), 2),
        "winrate": round(float((pnl > 0).mean() * 100), 2),
        "profitFactor": round(profit_factor, 2),
        "avgTimeHeld": round(float(held.mean()), 2) if not held.empty else 0.0,
        "sharpeRatio": round(float(pnl.mean()) / std, 4) if std > 0 else 0.0,
        "tradingDays": int(df["trade_date"].dt.date.nunique()),
        "bestTrade": round(float(pnl.max()), 2),
        "worstTrade": round(float(pnl.min()), 2),
        "longestWinStreak": win_streak,
        "longestLossStreak": loss_streak,
        "expectancy": round(float(pnl.mean()), 2),
    }


def daily_pnl(df: pd.DataFrame) -> List[dict]:
    """Per-day P&L and trade count with a running cumulative total."""
    if df.empty:
        return []

    daily = (
        df.dropna(subset=["trade_date"])
        .groupby(df["trade_date"].dt.strftime("%Y-%m-%d"))["pnl"]
        .agg(["sum", "count"])
        .sort_index()
    )
    daily["cumulative"] = daily["sum"].cumsum()

    return [
        {
            "date": d,
            "pnl": round(float(row["sum"]), 2),
            "trades": int(row["count"]),
            "cumulative": round(float(row["cumulative"]), 2),
        }
        for d, row in daily.iterrows()
    ]


def cumulative_series(df: pd.DataFrame) -> List[dict]:
    """Cumulative P&L after each trade, for equity charts."""
    if df.empty:
        return []
    cumulative = df["pnl"].cumsum()
    return [
        {
            "index": i + 1,
            "date": d.strftime("%Y-%m-%d") if pd.notna(d) else None,
            "pnl": round(float(p), 2),
            "cumulative": round(float(c), 2),
        }
        for i, (d, p, c) in enumerate(zip(df["trade_date"], df["pnl"], cumulative))
    ]


def calendar_month(df: pd.DataFrame, year: int, month: int) -> dict:
    """Day cells for one month; days without trades are present with zeros."""
    days_in_month = calendar.monthrange(year, month)[1]
    cells = {
        day: {"day": day, "date": f"{year:04d}-{month:02d}-{day:02d}", "pnl": 0.0, "trades": 0}
        for day in range(1, days_in_month + 1)
    }

    if not df.empty:
        in_month = df[
            (df["trade_date"].dt.year == year) & (df["trade_date"].dt.month == month)
        ]
        grouped = in_month.groupby(in_month["trade_date"].dt.day)["pnl"].agg(["sum", "count"])
        for day, row in grouped.iterrows():
            cells[int(day)]["pnl"] = round(float(row["sum"]), 2)
            cells[int(day)]["trades"] = int(row["count"])

    month_pnl = sum(c["pnl"] for c in cells.values())
    traded = [c for c in cells.values() if c["trades"]]
    return {
        "year": year,
        "month": month,
        "firstWeekday": calendar.monthrange(year, month)[0],
        "days": list(cells.values()),
        "monthPnL": round(month_pnl, 2),
        "tradingDays": len(traded),
        "winningDays": sum(1 for c in traded if c["pnl"] > 0),
    }


def summary_by_strategy(df: pd.DataFrame, strategy_id: Optional[str]) -> dict:
    if df.empty:
        return compute_summary(df)
    return compute_summary(df[df["strategy_id"] == strategy_id])
