from __future__ import annotations

from shared.emotion_defs import (
    EmotionCategory,
    VALID_EMOTIONS,
    get_emotions_by_category,
    normalize_emotions,
    partition_emotions,
)
from shared.schemas import Side, TradeRecord, hold_minutes


def test_vocabulary_order_and_size() -> None:
    assert VALID_EMOTIONS[0] == "FOMO"
    assert VALID_EMOTIONS[-1] == "NEUTRAL"
    assert len(VALID_EMOTIONS) == 10


def test_normalize_accepts_list_json_and_plain_strings() -> None:
    assert normalize_emotions(["fomo", " Discipline "]) == ["FOMO", "DISCIPLINE"]
    assert normalize_emotions('["TILT", "patience"]') == ["TILT", "PATIENCE"]
    assert normalize_emotions('"neutral"') == ["NEUTRAL"]
    assert normalize_emotions("revenge") == ["REVENGE"]
    assert normalize_emotions("FOMO, TILT") == ["FOMO", "TILT"]


def test_normalize_drops_unknown_empty_and_duplicate_tags() -> None:
    assert normalize_emotions(None) == []
    assert normalize_emotions("") == []
    assert normalize_emotions(["FOMO", "fomo", "", None, "EXCITED"]) == ["FOMO"]
    assert normalize_emotions("[not json") == []


def test_partition_reports_unknown_tags() -> None:
    valid, unknown = partition_emotions("fomo,bogus,Greedy")
    assert valid == ["FOMO"]
    assert unknown == ["BOGUS", "GREEDY"]


def test_categories() -> None:
    assert set(get_emotions_by_category(EmotionCategory.POSITIVE)) == {
        "PATIENCE", "DISCIPLINE", "CONFIDENT",
    }
    assert get_emotions_by_category(EmotionCategory.NEUTRAL) == ["NEUTRAL"]


def test_trade_record_from_row_normalises_fields() -> None:
    trade = TradeRecord.from_dict({
        "symbol": "AAPL",
        "side": "sell",
        "trade_date": "2024-03-04T00:00:00",
        "quantity": "10",
        "entry_price": 5,
        "pnl": None,
        "emotional_state": '["fomo"]',
        "entry_time": "23:30",
        "exit_time": "00:15:00",
    })
    assert trade.side == Side.SELL
    assert trade.trade_date == "2024-03-04"
    assert trade.quantity == 10.0
    assert trade.notional == 50.0
    assert trade.emotional_state == ["FOMO"]
    assert trade.hold_minutes == 45
    assert not trade.is_win and not trade.is_loss


def test_hold_minutes_handles_missing_and_bad_values() -> None:
    assert hold_minutes("09:30", "10:00") == 30
    assert hold_minutes(None, "10:00") is None
    assert hold_minutes("25:00", "10:00") is None
    assert hold_minutes("ab:cd", "10:00") is None
