"""
Shared schemas and data contracts for journal rows.
Mirrors the columns of the Supabase `trades` and `strategies` tables.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from shared.emotion_defs import normalize_emotions


class Side(Enum):
    BUY = "Buy"
    SELL = "Sell"

    @classmethod
    def parse(cls, value: Any) -> Optional["Side"]:
        """Case-insensitive lookup; returns None for anything unrecognised."""
        if value is None:
            return None
        text = str(value).strip().lower()
        for side in cls:
            if side.value.lower() == text:
                return side
        return None


class Market(Enum):
    STOCK = "Stock"
    CRYPTO = "Crypto"
    FOREX = "Forex"
    FUTURES = "Futures"


class PnlFilter(Enum):
    ALL = "all"
    PROFITABLE = "profitable"
    LOSSABLE = "lossable"


class Leaning(Enum):
    BUY = "Buy Leaning"
    SELL = "Sell Leaning"
    BALANCED = "Balanced"


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def clock_minutes(value: Any) -> Optional[int]:
    """Minutes after midnight for an 'HH:MM' or 'HH:MM:SS' value."""
    if not value:
        return None
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def hold_minutes(entry_time: Any, exit_time: Any) -> Optional[int]:
    """Minutes between entry and exit; an exit before the entry wraps past midnight."""
    start = clock_minutes(entry_time)
    end = clock_minutes(exit_time)
    if start is None or end is None:
        return None
    if end < start:
        end += 24 * 60
    return end - start


@dataclass
class TradeRecord:
    """One row of the trades table."""
    symbol: str
    side: Optional[Side]
    trade_date: str
    quantity: Optional[float] = None
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    pnl: Optional[float] = None
    market: Optional[str] = None
    strategy_id: Optional[str] = None
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    emotional_state: List[str] = field(default_factory=list)
    notes: str = ""
    id: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def is_win(self) -> bool:
        return (self.pnl or 0) > 0

    @property
    def is_loss(self) -> bool:
        return (self.pnl or 0) < 0

    @property
    def hold_minutes(self) -> Optional[int]:
        return hold_minutes(self.entry_time, self.exit_time)

    @property
    def notional(self) -> Optional[float]:
        if self.quantity is None or self.entry_price is None:
            return None
        return self.quantity * self.entry_price

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "symbol": self.symbol,
            "side": self.side.value if self.side else None,
            "trade_date": self.trade_date,
            "quantity": self.quantity,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "pnl": self.pnl,
            "market": self.market,
            "strategy_id": self.strategy_id,
            "entry_time": self.entry_time,
            "exit_time": self.exit_time,
            "emotional_state": self.emotional_state,
            "notes": self.notes,
        }
        if self.id:
            data["id"] = self.id
        if self.user_id:
            data["user_id"] = self.user_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TradeRecord":
        trade_date = data.get("trade_date") or ""
        if isinstance(trade_date, date):
            trade_date = trade_date.isoformat()
        return cls(
            symbol=data.get("symbol") or "",
            side=Side.parse(data.get("side")),
            trade_date=str(trade_date)[:10],
            quantity=_to_float(data.get("quantity")),
            entry_price=_to_float(data.get("entry_price")),
            exit_price=_to_float(data.get("exit_price")),
            pnl=_to_float(data.get("pnl")),
            market=data.get("market"),
            strategy_id=data.get("strategy_id"),
            entry_time=data.get("entry_time"),
            exit_time=data.get("exit_time"),
            emotional_state=normalize_emotions(data.get("emotional_state")),
            notes=data.get("notes") or "",
            id=data.get("id"),
            user_id=data.get("user_id"),
        )


@dataclass
class StrategyTargets:
    """Target ranges a strategy is expected to stay within."""
    winrate_min: Optional[float] = None
    winrate_max: Optional[float] = None
    profit_factor_min: Optional[float] = None
    net_pnl_min: Optional[float] = None
    net_pnl_max: Optional[float] = None
    max_drawdown_max: Optional[float] = None
    sharpe_ratio_min: Optional[float] = None
    avg_hold_period_min: Optional[float] = None
    avg_hold_period_max: Optional[float] = None


TARGET_FIELDS = list(StrategyTargets.__dataclass_fields__)


@dataclass
class StrategyRecord:
    """One row of the strategies table."""
    name: str
    description: str = ""
    rules: List[str] = field(default_factory=list)
    targets: StrategyTargets = field(default_factory=StrategyTargets)
    is_active: bool = True
    id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "description": self.description,
            "rules": self.rules,
            "is_active": self.is_active,
        }
        for name in TARGET_FIELDS:
            data[name] = getattr(self.targets, name)
        if self.id:
            data["id"] = self.id
        if self.user_id:
            data["user_id"] = self.user_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StrategyRecord":
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            rules=list(data.get("rules") or []),
            targets=StrategyTargets(
                **{name: _to_float(data.get(name)) for name in TARGET_FIELDS}
            ),
            is_active=data.get("is_active", True),
            id=data.get("id"),
            user_id=data.get("user_id"),
            created_at=data.get("created_at") or "",
        )


# Columns fetched for trade listings and statistics
TRADE_COLUMNS = (
    "id, user_id, symbol, side, market, trade_date, quantity, entry_price, "
    "exit_price, pnl, strategy_id, entry_time, exit_time, emotional_state, "
    "notes, created_at"
)
