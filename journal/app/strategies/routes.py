"""
FastAPI routes for strategies.
Endpoints: /api/strategies, /api/strategies/{id}, /api/strategies/{id}/performance
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError, model_validator

from journal.app.common.auth import UserContext, get_current_user
from journal.app.dashboard.metrics import summary_by_strategy, trades_dataframe
from journal.app.strategies import queries
from journal.app.strategies.performance import strategy_performance
from journal.app.trades.filters import TradeFilters
from journal.app.trades.queries import fetch_trades
from shared.schemas import StrategyRecord, TradeRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/strategies", tags=["strategies"])

RANGE_PAIRS = [
    ("winrate_min", "winrate_max"),
    ("net_pnl_min", "net_pnl_max"),
    ("avg_hold_period_min", "avg_hold_period_max"),
]


# =======================
# Request Models
# =======================

class StrategyTargetsIn(BaseModel):
    winrate_min: Optional[float] = Field(default=None, ge=0, le=100)
    winrate_max: Optional[float] = Field(default=None, ge=0, le=100)
    profit_factor_min: Optional[float] = Field(default=None, ge=0)
    net_pnl_min: Optional[float] = None
    net_pnl_max: Optional[float] = None
    max_drawdown_max: Optional[float] = Field(default=None, ge=0, le=100)
    sharpe_ratio_min: Optional[float] = None
    avg_hold_period_min: Optional[float] = Field(default=None, ge=0)
    avg_hold_period_max: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_ranges(self):
        for low, high in RANGE_PAIRS:
            lo, hi = getattr(self, low), getattr(self, high)
            if lo is not None and hi is not None and lo > hi:
                raise ValueError(f"{low} must not exceed {high}")
        return self


class StrategyIn(StrategyTargetsIn):
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    rules: List[str] = Field(default_factory=list)
    is_active: bool = True


class StrategyUpdate(StrategyTargetsIn):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    rules: Optional[List[str]] = None
    is_active: Optional[bool] = None


# =======================
# Routes
# =======================

@router.get("")
def list_strategies(
    active_only: bool = Query(False, alias="activeOnly"),
    user: UserContext = Depends(get_current_user),
):
    """Strategies with summary stats of the trades tagged to each."""
    strategies = queries.list_strategies(user.db, user.user_id, active_only=active_only)
    if not strategies:
        return []

    trades = [TradeRecord.from_dict(r) for r in fetch_trades(user.db, user.user_id)]
    df = trades_dataframe(trades)
    return [{**s, "stats": summary_by_strategy(df, s["id"])} for s in strategies]


@router.post("", status_code=201)
def create_strategy(body: StrategyIn, user: UserContext = Depends(get_current_user)):
    return queries.create_strategy(user.db, user.user_id, body.model_dump())


def _require(user: UserContext, strategy_id: str) -> Dict[str, Any]:
    strategy = queries.get_strategy(user.db, user.user_id, strategy_id)
    if strategy is None:
        raise HTTPException(status_code=404, detail="Strategy not found")
    return strategy


@router.get("/{strategy_id}")
def get_strategy(strategy_id: str, user: UserContext = Depends(get_current_user)):
    return _require(user, strategy_id)


@router.put("/{strategy_id}")
def update_strategy(
    strategy_id: str,
    body: StrategyUpdate,
    user: UserContext = Depends(get_current_user),
):
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    # Range checks must also hold against the stored values
    existing = _require(user, strategy_id)
    merged = {**existing, **changes}
    try:
        StrategyTargetsIn(**{k: merged.get(k) for k in StrategyTargetsIn.model_fields})
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors()[0]["msg"])

    updated = queries.update_strategy(user.db, user.user_id, strategy_id, changes)
    return updated or {**existing, **changes}


@router.delete("/{strategy_id}")
def delete_strategy(strategy_id: str, user: UserContext = Depends(get_current_user)):
    if not queries.delete_strategy(user.db, user.user_id, strategy_id):
        raise HTTPException(status_code=404, detail="Strategy not found")
    return {"status": "deleted", "id": strategy_id}


@router.get("/{strategy_id}/performance")
def performance(strategy_id: str, user: UserContext = Depends(get_current_user)):
    strategy = StrategyRecord.from_dict(_require(user, strategy_id))
    rows = fetch_trades(user.db, user.user_id, TradeFilters(strategy_id=strategy_id))
    return strategy_performance(strategy, [TradeRecord.from_dict(r) for r in rows])
