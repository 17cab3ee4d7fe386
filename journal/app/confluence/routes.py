"""
FastAPI routes for confluence analysis.
Endpoints: /api/confluence-stats, /api/confluence-impact
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from journal.app.common.auth import UserContext, get_current_user
from journal.app.confluence.impact import emotion_impact
from journal.app.confluence.psychology import psychological_summary
from journal.app.confluence.stats import compute_confluence_stats
from journal.app.trades.filters import TradeFilters, trade_filters
from journal.app.trades.queries import fetch_trades
from shared.schemas import TradeRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["confluence"])


class ConfluenceStatsResponse(BaseModel):
    totalTrades: int
    totalPnL: float
    winRate: float
    avgTradeSize: float
    lastSyncTime: int
    emotionalData: List[Dict[str, Any]]
    psychologicalMetrics: Dict[str, float]
    validationWarnings: List[str]


def _load(user: UserContext, filters: TradeFilters) -> List[TradeRecord]:
    rows = fetch_trades(user.db, user.user_id, filters)
    return [TradeRecord.from_dict(r) for r in rows]


@router.get("/confluence-stats", response_model=ConfluenceStatsResponse)
def confluence_stats(
    filters: TradeFilters = Depends(trade_filters),
    user: UserContext = Depends(get_current_user),
):
    """Totals and per-emotion leaning for the caller's filtered trades."""
    trades = _load(user, filters)
    stats = compute_confluence_stats(trades)
    stats.update(psychological_summary(stats["emotionalData"]))

    if filters.unknown_emotions:
        stats["validationWarnings"].append(
            f"Ignored unknown emotional states: {', '.join(filters.unknown_emotions)}"
        )

    logger.info(
        f"confluence-stats user={user.user_id} trades={stats['totalTrades']} "
        f"filters={filters.to_dict()}"
    )
    return ConfluenceStatsResponse(**stats)


@router.get("/confluence-impact")
def confluence_impact(
    filters: TradeFilters = Depends(trade_filters),
    user: UserContext = Depends(get_current_user),
):
    """Logistic-regression effect of each emotion tag on the odds of a win."""
    return emotion_impact(_load(user, filters))
