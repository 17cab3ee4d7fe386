"""
Trade reads and writes against the Supabase `trades` table.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from journal.app.common.config import get_config
from journal.app.common.supabase_client import run_query
from journal.app.trades.filters import TradeFilters
from shared.schemas import TRADE_COLUMNS, Side

logger = logging.getLogger(__name__)

TABLE = "trades"
SORTABLE_COLUMNS = ("trade_date", "pnl", "symbol", "quantity", "entry_price", "created_at")

# PostgREST caps a single response at 1000 rows by default
FETCH_CHUNK = 1000


def clamp_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Coerce page / limit into valid values instead of rejecting them."""
    config = get_config()
    page = page if page and page > 0 else 1
    if limit is None:
        limit = config.default_page_size
    limit = max(1, min(limit, config.max_page_size))
    return page, limit


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> Tuple[str, bool]:
    column = sort_by if sort_by in SORTABLE_COLUMNS else "trade_date"
    if sort_by and column != sort_by:
        logger.info(f"Unsupported sortBy {sort_by!r}, falling back to trade_date")
    desc = (sort_order or "desc").lower() != "asc"
    return column, desc


def empty_page(page: int) -> Dict[str, Any]:
    return {
        "trades": [],
        "totalCount": 0,
        "currentPage": page,
        "totalPages": 0,
        "hasNextPage": False,
        "hasPreviousPage": page > 1,
    }


def fetch_trade_page(
    db,
    user_id: str,
    filters: TradeFilters,
    page: Optional[int] = 1,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> Dict[str, Any]:
    """
    One page of filtered trades plus pagination metadata.
    Pages past the end come back empty rather than as an error.
    """
    page, limit = clamp_page(page, limit)
    if filters.matches_nothing:
        return empty_page(page)

    count_resp = run_query(
        filters.apply(
            db.table(TABLE).select("id", count="exact", head=True), user_id
        ),
        "count trades",
    )
    total = count_resp.count or 0
    total_pages = math.ceil(total / limit) if total else 0

    rows: List[Dict[str, Any]] = []
    if page <= total_pages:
        column, desc = resolve_sort(sort_by, sort_order)
        start = (page - 1) * limit
        query = (
            filters.apply(db.table(TABLE).select(TRADE_COLUMNS), user_id)
            .order(column, desc=desc)
            .order("id")
            .range(start, start + limit - 1)
        )
        rows = run_query(query, "fetch trades").data or []

    return {
        "trades": rows,
        "totalCount": total,
        "currentPage": page,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPreviousPage": page > 1,
    }


def fetch_trades(
    db,
    user_id: str,
    filters: Optional[TradeFilters] = None,
    columns: str = TRADE_COLUMNS,
) -> List[Dict[str, Any]]:
    """All trades matching the filters, oldest first."""
    filters = filters or TradeFilters()
    if filters.matches_nothing:
        return []

    rows: List[Dict[str, Any]] = []
    start = 0
    while True:
        query = (
            filters.apply(db.table(TABLE).select(columns), user_id)
            .order("trade_date")
            .order("id")
            .range(start, start + FETCH_CHUNK - 1)
        )
        chunk = run_query(query, "fetch trades").data or []
        rows.extend(chunk)
        if len(chunk) < FETCH_CHUNK:
            break
        start += FETCH_CHUNK

    logger.debug(f"Fetched {len(rows)} trades for user {user_id}")
    return rows


def get_trade(db, user_id: str, trade_id: str) -> Optional[Dict[str, Any]]:
    resp = run_query(
        db.table(TABLE)
        .select(TRADE_COLUMNS)
        .eq("id", trade_id)
        .eq("user_id", user_id)
        .limit(1),
        "fetch trade",
    )
    rows = resp.data or []
    return rows[0] if rows else None


def compute_pnl(
    side: Any,
    entry_price: Optional[float],
    exit_price: Optional[float],
    quantity: Optional[float],
) -> Optional[float]:
    """Realised P&L from prices, or None when a price is missing."""
    parsed = Side.parse(side) if not isinstance(side, Side) else side
    if parsed is None or None in (entry_price, exit_price, quantity):
        return None
    if parsed == Side.BUY:
        pnl = (exit_price - entry_price) * quantity
    else:
        pnl = (entry_price - exit_price) * quantity
    return round(pnl, 2)


def _with_pnl(payload: Dict[str, Any]) -> Dict[str, Any]:
    if payload.get("pnl") is None:
        derived = compute_pnl(
            payload.get("side"),
            payload.get("entry_price"),
            payload.get("exit_price"),
            payload.get("quantity"),
        )
        if derived is not None:
            payload["pnl"] = derived
    return payload


def create_trade(db, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    row = _with_pnl({**payload, "user_id": user_id})
    resp = run_query(db.table(TABLE).insert(row), "insert trade")
    data = resp.data or []
    logger.info(f"Trade created for user {user_id}: {row.get('symbol')} {row.get('side')}")
    return data[0] if data else row


def create_trades(db, user_id: str, payloads: List[Dict[str, Any]]) -> int:
    """Bulk insert; returns the number of rows written."""
    rows = [_with_pnl({**p, "user_id": user_id}) for p in payloads]
    if not rows:
        return 0
    resp = run_query(db.table(TABLE).insert(rows), "insert trades")
    return len(resp.data or rows)


def update_trade(
    db,
    user_id: str,
    trade_id: str,
    changes: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    existing = get_trade(db, user_id, trade_id)
    if existing is None:
        return None

    merged = {**existing, **changes}
    price_fields = ("side", "entry_price", "exit_price", "quantity")
    if "pnl" not in changes and any(f in changes for f in price_fields):
        derived = compute_pnl(
            merged.get("side"),
            merged.get("entry_price"),
            merged.get("exit_price"),
            merged.get("quantity"),
        )
        if derived is not None:
            changes = {**changes, "pnl": derived}

    resp = run_query(
        db.table(TABLE).update(changes).eq("id", trade_id).eq("user_id", user_id),
        "update trade",
    )
    data = resp.data or []
    return data[0] if data else {**existing, **changes}


def delete_trade(db, user_id: str, trade_id: str) -> bool:
    resp = run_query(
        db.table(TABLE).delete().eq("id", trade_id).eq("user_id", user_id),
        "delete trade",
    )
    deleted = bool(resp.data)
    if deleted:
        logger.info(f"Trade {trade_id} deleted for user {user_id}")
    return deleted


def available_symbols(db, user_id: str) -> List[Dict[str, Any]]:
    """Distinct symbols with trade counts, most traded first."""
    rows = fetch_trades(db, user_id, columns="symbol")
    counts: Dict[str, int] = {}
    for r in rows:
        symbol = (r.get("symbol") or "").strip()
        if symbol:
            counts[symbol] = counts.get(symbol, 0) + 1
    return [
        {"symbol": s, "count": c}
        for s, c in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]
