"""
Strategy reads and writes against the Supabase `strategies` table.
"""

import logging
from typing import Any, Dict, List, Optional

from journal.app.common.supabase_client import run_query

logger = logging.getLogger(__name__)

TABLE = "strategies"
STRATEGY_COLUMNS = (
    "id, user_id, name, description, rules, winrate_min, winrate_max, "
    "profit_factor_min, net_pnl_min, net_pnl_max, max_drawdown_max, "
    "sharpe_ratio_min, avg_hold_period_min, avg_hold_period_max, is_active, "
    "created_at, updated_at"
)


def list_strategies(db, user_id: str, active_only: bool = False) -> List[Dict[str, Any]]:
    query = db.table(TABLE).select(STRATEGY_COLUMNS).eq("user_id", user_id)
    if active_only:
        query = query.eq("is_active", True)
    resp = run_query(query.order("created_at", desc=True), "fetch strategies")
    return resp.data or []


def strategy_options(db, user_id: str) -> List[Dict[str, Any]]:
    """(id, name) pairs for filter dropdowns, by name."""
    resp = run_query(
        db.table(TABLE).select("id, name").eq("user_id", user_id).order("name"),
        "fetch strategy names",
    )
    return resp.data or []


def get_strategy(db, user_id: str, strategy_id: str) -> Optional[Dict[str, Any]]:
    resp = run_query(
        db.table(TABLE)
        .select(STRATEGY_COLUMNS)
        .eq("id", strategy_id)
        .eq("user_id", user_id)
        .limit(1),
        "fetch strategy",
    )
    rows = resp.data or []
    return rows[0] if rows else None


def create_strategies(db, user_id: str, payloads: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    rows = [{**p, "user_id": user_id} for p in payloads]
    if not rows:
        return []
    resp = run_query(db.table(TABLE).insert(rows), "insert strategies")
    logger.info(f"Created {len(rows)} strategies for user {user_id}")
    return resp.data or rows


def create_strategy(db, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return create_strategies(db, user_id, [payload])[0]


def update_strategy(
    db,
    user_id: str,
    strategy_id: str,
    changes: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    resp = run_query(
        db.table(TABLE).update(changes).eq("id", strategy_id).eq("user_id", user_id),
        "update strategy",
    )
    rows = resp.data or []
    return rows[0] if rows else None


def delete_strategy(db, user_id: str, strategy_id: str) -> bool:
    resp = run_query(
        db.table(TABLE).delete().eq("id", strategy_id).eq("user_id", user_id),
        "delete strategy",
    )
    return bool(resp.data)
