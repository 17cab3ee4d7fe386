"""
Test-data endpoint for demo accounts.
Endpoint: POST /api/generate-test-data
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from journal.app.common.auth import UserContext, get_current_user
from journal.app.common.config import get_config
from journal.app.research.seed_fake_data import (
    FakeJournalGenerator,
    batched,
    summarize_trades,
)
from journal.app.strategies import queries as strategy_queries
from journal.app.trades import queries as trade_queries
from shared.emotion_defs import normalize_emotions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["test-data"])


class SeedRequest(BaseModel):
    action: str


def _create_strategies(user: UserContext) -> Dict[str, Any]:
    rows = strategy_queries.create_strategies(
        user.db, user.user_id, FakeJournalGenerator().strategy_rows()
    )
    return {
        "message": "Strategies created successfully",
        "strategies": rows,
        "count": len(rows),
    }


def _generate_trades(user: UserContext) -> Dict[str, Any]:
    strategies = strategy_queries.strategy_options(user.db, user.user_id)
    if not strategies:
        raise HTTPException(
            status_code=400,
            detail="No strategies found. Please create strategies first.",
        )

    rows = FakeJournalGenerator().trade_rows([s["id"] for s in strategies])
    inserted = 0
    for batch in batched(rows, get_config().test_data_batch_size):
        inserted += trade_queries.create_trades(user.db, user.user_id, batch)

    logger.info(f"Generated {inserted} test trades for user {user.user_id}")
    return {
        "message": "Trades generated successfully",
        "count": inserted,
        "stats": summarize_trades(rows),
    }


def _verify_data(user: UserContext) -> Dict[str, Any]:
    trades = trade_queries.fetch_trades(
        user.db, user.user_id, columns="id, pnl, strategy_id, emotional_state, market, symbol"
    )
    strategies = strategy_queries.list_strategies(user.db, user.user_id)
    names = {s["id"]: s["name"] for s in strategies}

    emotions: Dict[str, int] = {}
    markets: Dict[str, int] = {}
    by_strategy: Dict[str, int] = {}
    for t in trades:
        for tag in normalize_emotions(t.get("emotional_state")):
            emotions[tag] = emotions.get(tag, 0) + 1
        market = t.get("market") or "Unknown"
        markets[market] = markets.get(market, 0) + 1
        if t.get("strategy_id") in names:
            name = names[t["strategy_id"]]
            by_strategy[name] = by_strategy.get(name, 0) + 1

    with_pnl = [t for t in trades if t.get("pnl") is not None]
    summary = summarize_trades(with_pnl)
    return {
        "summary": {
            "totalTrades": len(trades),
            "tradesWithPnL": len(with_pnl),
            "winningTrades": summary["wins"],
            "losingTrades": sum(1 for t in with_pnl if t["pnl"] < 0),
            "totalPnL": summary["totalPnL"],
            "winRate": summary["winRate"],
            "totalStrategies": len(strategies),
            "activeStrategies": sum(1 for s in strategies if s.get("is_active")),
        },
        "emotionDistribution": emotions,
        "marketDistribution": markets,
        "strategyDistribution": by_strategy,
    }


@router.post("/generate-test-data")
def generate_test_data(
    body: SeedRequest,
    request: Request,
    user: UserContext = Depends(get_current_user),
):
    if body.action == "delete-all":
        logger.warning(f"Blocked delete-all request from user {user.user_id}")
        return JSONResponse(
            status_code=403,
            content={
                "error": "DANGEROUS OPERATION BLOCKED",
                "message": "The delete-all action is disabled to prevent accidental data loss.",
                "blocked": True,
                "requestId": getattr(request.state, "request_id", None),
            },
        )
    if body.action == "create-strategies":
        return _create_strategies(user)
    if body.action == "generate-trades":
        return _generate_trades(user)
    if body.action == "verify-data":
        return _verify_data(user)

    raise HTTPException(status_code=400, detail=f"Unknown action: {body.action!r}")
