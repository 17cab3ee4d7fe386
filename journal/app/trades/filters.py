"""
Query-string filters shared by the trade listing, confluence and dashboard
routes, and their translation into PostgREST filters.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from fastapi import HTTPException, Query

from shared.emotion_defs import partition_emotions
from shared.schemas import Market, PnlFilter, Side


def escape_like(text: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class TradeFilters:
    """Parsed trade filters."""
    emotions: List[str] = field(default_factory=list)
    unknown_emotions: List[str] = field(default_factory=list)
    symbol: Optional[str] = None
    market: Optional[str] = None
    side: Optional[Side] = None
    pnl_filter: PnlFilter = PnlFilter.ALL
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    strategy_id: Optional[str] = None

    @property
    def matches_nothing(self) -> bool:
        """Emotions were requested but none of them exist."""
        return bool(self.unknown_emotions) and not self.emotions

    def apply(self, query, user_id: Optional[str] = None):
        """Add the filters to a PostgREST select builder."""
        if user_id:
            query = query.eq("user_id", user_id)
        if self.emotions:
            query = query.ov("emotional_state", self.emotions)
        if self.symbol:
            query = query.ilike("symbol", f"%{escape_like(self.symbol)}%")
        if self.market:
            query = query.ilike("market", self.market)
        if self.side:
            query = query.eq("side", self.side.value)
        if self.pnl_filter == PnlFilter.PROFITABLE:
            query = query.gt("pnl", 0)
        elif self.pnl_filter == PnlFilter.LOSSABLE:
            query = query.lt("pnl", 0)
        if self.date_from:
            query = query.gte("trade_date", self.date_from.isoformat())
        if self.date_to:
            query = query.lte("trade_date", self.date_to.isoformat())
        if self.strategy_id:
            query = query.eq("strategy_id", self.strategy_id)
        return query

    def to_dict(self) -> dict:
        return {
            "emotionalStates": self.emotions,
            "symbol": self.symbol,
            "market": self.market,
            "side": self.side.value if self.side else None,
            "pnlFilter": self.pnl_filter.value,
            "dateFrom": self.date_from.isoformat() if self.date_from else None,
            "dateTo": self.date_to.isoformat() if self.date_to else None,
            "strategyId": self.strategy_id,
        }


def _parse_date(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {name}: expected YYYY-MM-DD, got {value!r}",
        )


def parse_filters(
    emotional_states: Optional[str] = None,
    symbol: Optional[str] = None,
    market: Optional[str] = None,
    side: Optional[str] = None,
    pnl_filter: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    strategy_id: Optional[str] = None,
) -> TradeFilters:
    """Validate raw query values. Raises HTTPException(400) on bad input."""
    emotions, unknown = partition_emotions(emotional_states)

    parsed_side = None
    if side and side.strip().lower() not in ("", "all"):
        parsed_side = Side.parse(side)
        if parsed_side is None:
            raise HTTPException(status_code=400, detail=f"Invalid side: {side!r}")

    parsed_market = None
    if market and market.strip().lower() not in ("", "all"):
        names = {m.value.lower(): m.value for m in Market}
        parsed_market = names.get(market.strip().lower())
        if parsed_market is None:
            raise HTTPException(status_code=400, detail=f"Invalid market: {market!r}")

    try:
        parsed_pnl = PnlFilter((pnl_filter or "all").strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid pnlFilter: {pnl_filter!r}")

    start = _parse_date(date_from, "dateFrom")
    end = _parse_date(date_to, "dateTo")
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="dateFrom must not be after dateTo")

    return TradeFilters(
        emotions=emotions,
        unknown_emotions=unknown,
        symbol=symbol.strip() if symbol and symbol.strip() else None,
        market=parsed_market,
        side=parsed_side,
        pnl_filter=parsed_pnl,
        date_from=start,
        date_to=end,
        strategy_id=strategy_id or None,
    )


def trade_filters(
    emotional_states: Optional[str] = Query(None, alias="emotionalStates"),
    symbol: Optional[str] = Query(None),
    market: Optional[str] = Query(None),
    side: Optional[str] = Query(None),
    pnl_filter: Optional[str] = Query(None, alias="pnlFilter"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    strategy_id: Optional[str] = Query(None, alias="strategyId"),
) -> TradeFilters:
    """FastAPI dependency wrapping parse_filters."""
    return parse_filters(
        emotional_states=emotional_states,
        symbol=symbol,
        market=market,
        side=side,
        pnl_filter=pnl_filter,
        date_from=date_from,
        date_to=date_to,
        strategy_id=strategy_id,
    )
