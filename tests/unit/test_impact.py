from __future__ import annotations

from journal.app.confluence.impact import emotion_frame, emotion_impact
from shared.emotion_defs import VALID_EMOTIONS
from shared.schemas import Side, TradeRecord


def _trade(tags, pnl):
    return TradeRecord(
        symbol="QQQ", side=Side.BUY, trade_date="2024-03-04", pnl=pnl, emotional_state=list(tags)
    )


def _history():
    trades = []
    for i in range(20):
        trades.append(_trade(["DISCIPLINE"], 50 if i < 16 else -20))
        trades.append(_trade(["FOMO"], 40 if i < 4 else -30))
    return trades


def test_frame_skips_open_trades() -> None:
    df = emotion_frame([_trade(["FOMO"], 10), _trade(["TILT"], None)])
    assert len(df) == 1
    assert list(df.columns) == VALID_EMOTIONS + ["label", "pnl"]
    assert df.loc[0, "FOMO"] == 1
    assert df.loc[0, "label"] == 1


def test_impact_ranks_helpful_emotions_first() -> None:
    result = emotion_impact(_history(), min_trades=20)

    assert result["status"] == "ok"
    assert result["trades"] == 40
    assert result["baseWinRate"] == 50.0
    assert 0.5 < result["auc"] <= 1.0

    by_tag = {e["emotion"]: e for e in result["emotions"]}
    assert set(by_tag) == {"DISCIPLINE", "FOMO"}
    assert result["emotions"][0]["emotion"] == "DISCIPLINE"
    assert by_tag["DISCIPLINE"]["coefficient"] > 0 > by_tag["FOMO"]["coefficient"]
    assert by_tag["DISCIPLINE"]["winRate"] == 80.0
    assert by_tag["FOMO"]["trades"] == 20
    assert by_tag["FOMO"]["avgPnL"] == -16.0


def test_insufficient_data() -> None:
    assert emotion_impact(_history()[:6], min_trades=20) == {
        "status": "insufficient_data", "trades": 6, "minTrades": 20,
    }
    winners_only = [_trade(["FOMO"], 10) for _ in range(30)]
    assert emotion_impact(winners_only, min_trades=20)["status"] == "insufficient_data"

    untagged = [_trade([], 10 if i % 2 else -10) for i in range(30)]
    assert emotion_impact(untagged, min_trades=20)["status"] == "insufficient_data"
