"""
Fake journal data for demos and manual testing.

Builds five template strategies and a 100-trade history (71 winners,
29 losers) spread over them. Used by the /api/generate-test-data route and
runnable directly against a Supabase project:

    python -m journal.app.research.seed_fake_data --token <jwt> --user-id <uuid>
"""

import argparse
import json
import logging
import random
import sys
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

from journal.app.common.config import get_config
from journal.app.common.supabase_client import insert_rows
from shared.emotion_defs import VALID_EMOTIONS
from shared.schemas import Market, Side

logger = logging.getLogger(__name__)

TRADING_SYMBOLS = [
    "AAPL", "GOOGL", "MSFT", "TSLA", "AMZN", "META", "NVDA", "AMD", "NFLX",
    "BTCUSD", "ETHUSD", "SPY", "QQQ", "IWM", "GLD", "SLV", "OIL", "NG",
]

TOTAL_TRADES = 100
WINNING_TRADES = 71
HISTORY_DAYS = 60
EXTRA_EMOTION_CHANCE = 0.3

STRATEGY_TARGETS = {
    "winrate_min": 60,
    "winrate_max": 80,
    "profit_factor_min": 1.5,
    "net_pnl_min": -1000,
    "net_pnl_max": 5000,
    "max_drawdown_max": 20,
    "sharpe_ratio_min": 1.0,
    "avg_hold_period_min": 1,
    "avg_hold_period_max": 120,
}

STRATEGY_TEMPLATES = [
    {
        "name": "Momentum Breakout Strategy",
        "description": "Focuses on identifying momentum breakouts and riding the trend for maximum profit",
        "rules": [
            "Wait for confirmation breakout above resistance",
            "Enter trade on first pullback",
            "Use 2:1 risk/reward ratio",
            "Take partial profits at key levels",
            "Stop loss below breakout candle low",
        ],
    },
    {
        "name": "Mean Reversion Strategy",
        "description": "Capitalizes on price reversals after extreme movements",
        "rules": [
            "Identify overbought/oversold conditions",
            "Wait for reversal confirmation",
            "Enter on first reversal signal",
            "Use tight stop losses",
            "Target previous support/resistance levels",
        ],
    },
    {
        "name": "Scalping Strategy",
        "description": "Quick in-and-out trades capturing small price movements",
        "rules": [
            "Trade only during high volume sessions",
            "Take 5-10 pip profits quickly",
            "Use immediate breakeven stops",
            "No overnight positions",
            "Maximum 2 trades per hour",
        ],
    },
    {
        "name": "Swing Trading Strategy",
        "description": "Medium-term trades capturing larger price swings over several days",
        "rules": [
            "Trade with the dominant trend",
            "Use wider stop losses for volatility",
            "Scale into positions gradually",
            "Take profits at key Fibonacci levels",
            "Hold trades 2-5 days typically",
        ],
    },
    {
        "name": "Options Income Strategy",
        "description": "Generating consistent income through options selling strategies",
        "rules": [
            "Sell options with 30-45 days DTE",
            "Target 0.5-2% monthly returns",
            "Manage Greeks actively",
            "Roll positions when necessary",
            "Maintain defined risk per trade",
        ],
    },
]


class FakeJournalGenerator:
    """Deterministic when given a seeded random.Random."""

    def __init__(self, rng: Optional[random.Random] = None, today: Optional[date] = None):
        self.rng = rng or random.Random()
        self.today = today or date.today()

    def strategy_rows(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": t["name"],
                "description": t["description"],
                "rules": list(t["rules"]),
                "is_active": True,
                **STRATEGY_TARGETS,
            }
            for t in STRATEGY_TEMPLATES
        ]

    def trade_date(self) -> date:
        """Random weekday within the history window; weekends move back to Friday."""
        d = self.today - timedelta(days=self.rng.randint(0, HISTORY_DAYS))
        if d.weekday() >= 5:
            d -= timedelta(days=d.weekday() - 4)
        return d

    def entry_exit_times(self) -> tuple:
        """Entry between 06:00 and 15:58, exit strictly after it and before 16:00."""
        entry = self.rng.randint(6 * 60, 16 * 60 - 2)
        exit_ = self.rng.randint(entry + 1, 16 * 60 - 1)
        return f"{entry // 60:02d}:{entry % 60:02d}", f"{exit_ // 60:02d}:{exit_ % 60:02d}"

    def pnl(self, is_win: bool) -> int:
        if is_win:
            return self.rng.randint(50, 499)
        return -self.rng.randint(25, 299)

    def emotions(self, index: int) -> List[str]:
        """Base tag cycles through the vocabulary; sometimes one or two extras are added."""
        base = VALID_EMOTIONS[index % len(VALID_EMOTIONS)]
        tags = [base]
        if self.rng.random() < EXTRA_EMOTION_CHANCE:
            others = [e for e in VALID_EMOTIONS if e != base]
            tags.extend(self.rng.sample(others, self.rng.randint(1, 2)))
        return tags

    def trade_row(self, strategy_id: str, index: int, total: int, is_win: bool) -> Dict[str, Any]:
        side = self.rng.choice([Side.BUY, Side.SELL])
        quantity = self.rng.randint(100, 999)
        entry_price = self.rng.randint(10, 909)
        pnl = self.pnl(is_win)
        move = pnl / quantity
        exit_price = entry_price + move if side == Side.BUY else entry_price - move
        entry_time, exit_time = self.entry_exit_times()

        return {
            "symbol": self.rng.choice(TRADING_SYMBOLS),
            "market": self.rng.choice(list(Market)).value,
            "strategy_id": strategy_id,
            "trade_date": self.trade_date().isoformat(),
            "side": side.value,
            "quantity": quantity,
            "entry_price": entry_price,
            "exit_price": round(exit_price, 4),
            "pnl": pnl,
            "entry_time": entry_time,
            "exit_time": exit_time,
            "emotional_state": self.emotions(index),
            "notes": f"Generated test trade {index + 1} of {total} - {'WIN' if is_win else 'LOSS'}",
        }

    def trade_rows(
        self,
        strategy_ids: Sequence[str],
        total: int = TOTAL_TRADES,
        wins: int = WINNING_TRADES,
    ) -> List[Dict[str, Any]]:
        if not strategy_ids:
            raise ValueError("At least one strategy id is required")
        if not 0 <= wins <= total:
            raise ValueError("wins must be between 0 and total")

        rows = [
            self.trade_row(self.rng.choice(list(strategy_ids)), i, total, i < wins)
            for i in range(total)
        ]
        self.rng.shuffle(rows)
        return rows


def batched(rows: List[Dict[str, Any]], size: int) -> List[List[Dict[str, Any]]]:
    return [rows[i:i + size] for i in range(0, len(rows), size)]


def summarize_trades(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    pnls = [r.get("pnl") or 0 for r in rows]
    wins = sum(1 for p in pnls if p > 0)
    return {
        "totalPnL": round(sum(pnls), 2),
        "winRate": round(wins / len(rows) * 100, 1) if rows else 0.0,
        "wins": wins,
        "losses": len(rows) - wins,
    }


def seed(
    token: str,
    user_id: str,
    trades: int = TOTAL_TRADES,
    wins: int = WINNING_TRADES,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Create the template strategies and a trade history via the REST API."""
    gen = FakeJournalGenerator(rng)
    batch_size = get_config().test_data_batch_size

    strategies = insert_rows(
        "strategies",
        [{**s, "user_id": user_id} for s in gen.strategy_rows()],
        token=token,
    )
    strategy_ids = [s["id"] for s in strategies]
    logger.info(f"Created {len(strategy_ids)} strategies")

    rows = [{**r, "user_id": user_id} for r in gen.trade_rows(strategy_ids, trades, wins)]
    inserted = 0
    for n, batch in enumerate(batched(rows, batch_size), start=1):
        inserted += len(insert_rows("trades", batch, token=token))
        logger.info(f"Inserted batch {n} ({inserted}/{len(rows)} trades)")

    return {"strategies": len(strategy_ids), "trades": inserted, "stats": summarize_trades(rows)}


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed a journal with fake trades")
    parser.add_argument("--token", help="User JWT (row level security applies)")
    parser.add_argument("--user-id", help="Owner user id")
    parser.add_argument("--trades", type=int, default=TOTAL_TRADES)
    parser.add_argument("--wins", type=int, default=WINNING_TRADES)
    parser.add_argument("--random-seed", type=int, default=None)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the generated rows as JSON instead of inserting them",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    rng = random.Random(args.random_seed)
    if args.dry_run:
        gen = FakeJournalGenerator(rng)
        ids = [f"strategy-{i + 1}" for i in range(len(STRATEGY_TEMPLATES))]
        json.dump(
            {"strategies": gen.strategy_rows(), "trades": gen.trade_rows(ids, args.trades, args.wins)},
            sys.stdout,
            indent=2,
        )
        return 0

    if not args.token or not args.user_id:
        parser.error("--token and --user-id are required unless --dry-run is given")

    result = seed(args.token, args.user_id, args.trades, args.wins, rng)
    logger.info(f"Seed complete: {result}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
