"""
FastAPI routes for trade CRUD and paginated listings.
Endpoints: /api/trades, /api/trades/{id}, /api/confluence-trades
"""

import logging
from datetime import date
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import AfterValidator, BaseModel, Field

from journal.app.common.auth import UserContext, get_current_user
from journal.app.trades import queries
from journal.app.trades.filters import TradeFilters, trade_filters
from shared.emotion_defs import partition_emotions
from shared.schemas import Market, Side, clock_minutes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["trades"])


# =======================
# Request / Response Models
# =======================

def _clean_side(v: str) -> str:
    side = Side.parse(v)
    if side is None:
        raise ValueError("side must be Buy or Sell")
    return side.value


def _clean_market(v: str) -> str:
    for m in Market:
        if m.value.lower() == v.strip().lower():
            return m.value
    raise ValueError("market must be one of Stock, Crypto, Forex, Futures")


def _clean_clock(v: str) -> Optional[str]:
    if not v:
        return None
    if clock_minutes(v) is None:
        raise ValueError("time must be HH:MM")
    return v


def _clean_emotions(v: List[str]) -> List[str]:
    valid, unknown = partition_emotions(v)
    if unknown:
        raise ValueError(f"unknown emotional states: {', '.join(unknown)}")
    return valid


SymbolStr = Annotated[
    str, Field(min_length=1, max_length=20), AfterValidator(lambda v: v.strip().upper())
]
SideStr = Annotated[str, AfterValidator(_clean_side)]
MarketStr = Annotated[str, AfterValidator(_clean_market)]
ClockStr = Annotated[str, AfterValidator(_clean_clock)]
EmotionList = Annotated[List[str], AfterValidator(_clean_emotions)]


class TradeIn(BaseModel):
    symbol: SymbolStr
    side: SideStr
    trade_date: date
    quantity: float = Field(gt=0)
    entry_price: float = Field(ge=0)
    exit_price: Optional[float] = Field(default=None, ge=0)
    pnl: Optional[float] = None
    market: Optional[MarketStr] = None
    strategy_id: Optional[str] = None
    entry_time: Optional[ClockStr] = None
    exit_time: Optional[ClockStr] = None
    emotional_state: EmotionList = Field(default_factory=list)
    notes: str = ""

    def to_row(self) -> Dict[str, Any]:
        row = self.model_dump()
        row["trade_date"] = self.trade_date.isoformat()
        return row


class TradeUpdate(BaseModel):
    symbol: Optional[SymbolStr] = None
    side: Optional[SideStr] = None
    trade_date: Optional[date] = None
    quantity: Optional[float] = Field(default=None, gt=0)
    entry_price: Optional[float] = Field(default=None, ge=0)
    exit_price: Optional[float] = Field(default=None, ge=0)
    pnl: Optional[float] = None
    market: Optional[MarketStr] = None
    strategy_id: Optional[str] = None
    entry_time: Optional[ClockStr] = None
    exit_time: Optional[ClockStr] = None
    emotional_state: Optional[EmotionList] = None
    notes: Optional[str] = None

    def to_changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        if self.trade_date is not None:
            changes["trade_date"] = self.trade_date.isoformat()
        return changes


class TradePage(BaseModel):
    trades: List[Dict[str, Any]]
    totalCount: int
    currentPage: int
    totalPages: int
    hasNextPage: bool
    hasPreviousPage: bool


# =======================
# Routes
# =======================

def _list_trades(user, filters, page, limit, sort_by, sort_order) -> TradePage:
    result = queries.fetch_trade_page(
        user.db,
        user.user_id,
        filters,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return TradePage(**result)


@router.get("/confluence-trades", response_model=TradePage)
def confluence_trades(
    page: Optional[int] = Query(1),
    limit: Optional[int] = Query(None),
    sort_by: Optional[str] = Query("trade_date", alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    filters: TradeFilters = Depends(trade_filters),
    user: UserContext = Depends(get_current_user),
):
    """Paginated, filtered trades behind the confluence view."""
    return _list_trades(user, filters, page, limit, sort_by, sort_order)


@router.get("/trades", response_model=TradePage)
def list_trades(
    page: Optional[int] = Query(1),
    limit: Optional[int] = Query(None),
    sort_by: Optional[str] = Query("trade_date", alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    filters: TradeFilters = Depends(trade_filters),
    user: UserContext = Depends(get_current_user),
):
    return _list_trades(user, filters, page, limit, sort_by, sort_order)


@router.post("/trades", status_code=201)
def create_trade(body: TradeIn, user: UserContext = Depends(get_current_user)):
    return queries.create_trade(user.db, user.user_id, body.to_row())


@router.get("/trades/{trade_id}")
def get_trade(trade_id: str, user: UserContext = Depends(get_current_user)):
    trade = queries.get_trade(user.db, user.user_id, trade_id)
    if trade is None:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


@router.put("/trades/{trade_id}")
def update_trade(
    trade_id: str,
    body: TradeUpdate,
    user: UserContext = Depends(get_current_user),
):
    changes = body.to_changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    trade = queries.update_trade(user.db, user.user_id, trade_id, changes)
    if trade is None:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


@router.delete("/trades/{trade_id}")
def delete_trade(trade_id: str, user: UserContext = Depends(get_current_user)):
    if not queries.delete_trade(user.db, user.user_id, trade_id):
        raise HTTPException(status_code=404, detail="Trade not found")
    return {"status": "deleted", "id": trade_id}
