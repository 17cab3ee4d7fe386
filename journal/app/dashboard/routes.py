import calendar
from dataclasses import replace
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from journal.app.common.auth import UserContext, get_current_user
from journal.app.dashboard.metrics import (
    calendar_month,
    compute_summary,
    daily_pnl,
    trades_dataframe,
)
from journal.app.scoring.vrating import (
    calculate_vrating,
    category_improvements,
    vrating_description,
)
from journal.app.trades.filters import TradeFilters, trade_filters
from journal.app.trades.queries import fetch_trades
from shared.schemas import TradeRecord

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _records(user: UserContext, filters: TradeFilters) -> List[TradeRecord]:
    return [TradeRecord.from_dict(r) for r in fetch_trades(user.db, user.user_id, filters)]


@router.get("/summary")
def summary(
    filters: TradeFilters = Depends(trade_filters),
    user: UserContext = Depends(get_current_user),
):
    """
    Headline stats for the dashboard cards.
    """
    return compute_summary(trades_dataframe(_records(user, filters)))


@router.get("/pnl")
def pnl_by_day(
    filters: TradeFilters = Depends(trade_filters),
    user: UserContext = Depends(get_current_user),
):
    """
    Aggregate PnL by trade date.
    """
    return daily_pnl(trades_dataframe(_records(user, filters)))


@router.get("/calendar")
def month_calendar(
    year: Optional[int] = Query(None, ge=1970, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    filters: TradeFilters = Depends(trade_filters),
    user: UserContext = Depends(get_current_user),
):
    today = date.today()
    year = year or today.year
    month = month or today.month

    month_filters = replace(
        filters,
        date_from=date(year, month, 1),
        date_to=date(year, month, calendar.monthrange(year, month)[1]),
    )

    return calendar_month(trades_dataframe(_records(user, month_filters)), year, month)


@router.get("/vrating")
def vrating(
    filters: TradeFilters = Depends(trade_filters),
    user: UserContext = Depends(get_current_user),
):
    result = calculate_vrating(_records(user, filters)).to_dict()
    result["description"] = vrating_description(result["overallRating"])
    result["improvements"] = category_improvements(result["categoryScores"])
    return result
