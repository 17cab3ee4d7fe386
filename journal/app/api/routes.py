"""
FastAPI routes for service metadata.
Endpoints: /health, /api/filter-options
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from journal.app.common.auth import UserContext, get_current_user
from journal.app.common.config import get_config
from journal.app.strategies.queries import strategy_options
from journal.app.trades.queries import available_symbols
from shared.emotion_defs import VALID_EMOTIONS
from shared.schemas import Market, PnlFilter, Side

logger = logging.getLogger(__name__)

router = APIRouter()


# =======================
# Response Models
# =======================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    supabase_configured: bool
    default_page_size: int
    max_page_size: int


class SymbolOption(BaseModel):
    symbol: str
    count: int


class StrategyOption(BaseModel):
    id: str
    name: str


class FilterOptionsResponse(BaseModel):
    symbols: List[SymbolOption]
    strategies: List[StrategyOption]
    markets: List[str]
    sides: List[str]
    emotions: List[str]
    pnlFilters: List[str]


# =======================
# Routes
# =======================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    config = get_config()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        supabase_configured=bool(config.supabase_url and config.supabase_anon_key),
        default_page_size=config.default_page_size,
        max_page_size=config.max_page_size,
    )


@router.get("/api/filter-options", response_model=FilterOptionsResponse)
def filter_options(user: UserContext = Depends(get_current_user)):
    """Values for the filter dropdowns, scoped to the caller's data."""
    return FilterOptionsResponse(
        symbols=[SymbolOption(**s) for s in available_symbols(user.db, user.user_id)],
        strategies=[
            StrategyOption(id=s["id"], name=s["name"])
            for s in strategy_options(user.db, user.user_id)
        ],
        markets=[m.value for m in Market],
        sides=[s.value for s in Side],
        emotions=list(VALID_EMOTIONS),
        pnlFilters=[p.value for p in PnlFilter],
    )


def route_summary(openapi_schema: Dict) -> List[Dict[str, str]]:
    """Method/path pairs for the index endpoint, taken from the OpenAPI paths."""
    summary = []
    for path, operations in openapi_schema.get("paths", {}).items():
        for method in sorted(operations):
            summary.append({"method": method.upper(), "path": path})
    return summary
