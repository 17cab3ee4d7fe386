"""
Confluence statistics: how trade side and outcome line up with the
emotional tags recorded on each trade.

Single pass over the trade list. A trade with several tags is counted once
in each tag's bucket.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from journal.app.common.config import get_config
from shared.emotion_defs import VALID_EMOTIONS
from shared.schemas import Leaning, Side, TradeRecord

logger = logging.getLogger(__name__)

FULL_MARK = 100
LEANING_WEIGHT = 0.3


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


@dataclass
class EmotionBucket:
    """Per-tag counters."""
    emotion: str
    buy_count: int = 0
    sell_count: int = 0
    other_count: int = 0
    pnl_sum: float = 0.0

    @property
    def total(self) -> int:
        return self.buy_count + self.sell_count + self.other_count

    @property
    def buy_ratio(self) -> float:
        return self.buy_count / self.total * 100 if self.total else 0.0

    @property
    def avg_pnl(self) -> float:
        return self.pnl_sum / self.total if self.total else 0.0

    @property
    def leaning_value(self) -> float:
        if not self.total:
            return 0.0
        return clamp((self.buy_count - self.sell_count) / self.total * 100, -100, 100)

    def add(self, trade: TradeRecord) -> None:
        if trade.side == Side.BUY:
            self.buy_count += 1
        elif trade.side == Side.SELL:
            self.sell_count += 1
        else:
            self.other_count += 1
        self.pnl_sum += trade.pnl or 0.0

    def leaning(self, threshold: float) -> Leaning:
        if self.leaning_value > threshold:
            return Leaning.BUY
        if self.leaning_value < -threshold:
            return Leaning.SELL
        return Leaning.BALANCED

    def radar_value(self, total_tags: int) -> float:
        """Frequency share of all tag occurrences, nudged by how one-sided the tag is."""
        share = self.total / total_tags * 100 if total_tags else 0.0
        return clamp(share + abs(self.leaning_value) * LEANING_WEIGHT)

    def to_row(self, total_tags: int, threshold: float) -> Dict[str, Any]:
        leaning = self.leaning(threshold)
        side = {Leaning.BUY: Side.BUY.value, Leaning.SELL: Side.SELL.value}.get(
            leaning, "NULL"
        )
        return {
            "subject": self.emotion,
            "value": round(self.radar_value(total_tags), 2),
            "fullMark": FULL_MARK,
            "leaning": leaning.value,
            "side": side,
            "leaningValue": round(self.leaning_value, 2),
            "totalTrades": self.total,
            "buyCount": self.buy_count,
            "sellCount": self.sell_count,
            "buyRatio": round(self.buy_ratio, 2),
            "avgPnL": round(self.avg_pnl, 2),
        }


def bucket_by_emotion(trades: Iterable[TradeRecord]) -> Dict[str, EmotionBucket]:
    buckets: Dict[str, EmotionBucket] = {}
    for trade in trades:
        for tag in trade.emotional_state:
            if tag not in buckets:
                buckets[tag] = EmotionBucket(emotion=tag)
            buckets[tag].add(trade)
    return buckets


def emotional_rows(
    trades: List[TradeRecord],
    leaning_threshold: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """Radar-chart rows for every tag present, in vocabulary order."""
    if leaning_threshold is None:
        leaning_threshold = get_config().leaning_threshold

    buckets = bucket_by_emotion(trades)
    total_tags = sum(b.total for b in buckets.values())
    return [
        buckets[tag].to_row(total_tags, leaning_threshold)
        for tag in VALID_EMOTIONS
        if tag in buckets
    ]


def trade_totals(trades: List[TradeRecord]) -> Dict[str, Any]:
    total = len(trades)
    total_pnl = sum(t.pnl or 0.0 for t in trades)
    wins = sum(1 for t in trades if t.is_win)
    notionals = [t.notional for t in trades if t.notional is not None]

    return {
        "totalTrades": total,
        "totalPnL": round(total_pnl, 2),
        "winRate": round(wins / total * 100, 2) if total else 0.0,
        "avgTradeSize": round(sum(notionals) / len(notionals), 2) if notionals else 0.0,
        "lastSyncTime": int(time.time() * 1000),
    }


def compute_confluence_stats(
    trades: List[TradeRecord],
    leaning_threshold: Optional[float] = None,
) -> Dict[str, Any]:
    """Totals plus per-emotion rows for a filtered trade set."""
    stats = trade_totals(trades)
    stats["emotionalData"] = emotional_rows(trades, leaning_threshold)
    logger.debug(
        f"Confluence stats over {stats['totalTrades']} trades, "
        f"{len(stats['emotionalData'])} emotions"
    )
    return stats
