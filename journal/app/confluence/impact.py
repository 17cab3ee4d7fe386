import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import roc_auc_score

from journal.app.common.config import get_config
from shared.emotion_defs import VALID_EMOTIONS
from shared.schemas import TradeRecord

logger = logging.getLogger(__name__)


def emotion_frame(trades: List[TradeRecord]) -> pd.DataFrame:
    """One row per closed trade: one-hot emotion columns, label and pnl."""
    records = []
    for t in trades:
        if t.pnl is None:
            continue
        rec = {tag: int(tag in t.emotional_state) for tag in VALID_EMOTIONS}
        rec["label"] = int(t.pnl > 0)
        rec["pnl"] = t.pnl
        records.append(rec)
    return pd.DataFrame(records, columns=VALID_EMOTIONS + ["label", "pnl"])


def train_emotion_model(df: pd.DataFrame):
    X = df.drop(columns=["label", "pnl"])
    X = X.loc[:, X.sum(axis=0) > 0]
    y = df["label"]

    model = LogisticRegression(
        max_iter=1000,
        class_weight="balanced",
    )
    model.fit(X, y)

    probs = model.predict_proba(X)[:, 1]
    auc = roc_auc_score(y, probs)

    return model, list(X.columns), auc


def emotion_impact(
    trades: List[TradeRecord],
    min_trades: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Fit win/loss against emotion tags and report each tag's effect.
    Coefficients are log-odds; the AUC is in-sample.
    """
    if min_trades is None:
        min_trades = get_config().min_impact_trades

    df = emotion_frame(trades)
    if (
        len(df) < min_trades
        or df["label"].nunique() < 2
        or df[VALID_EMOTIONS].to_numpy().sum() == 0
    ):
        return {
            "status": "insufficient_data",
            "trades": int(len(df)),
            "minTrades": min_trades,
        }

    model, columns, auc = train_emotion_model(df)
    logger.info(f"Emotion impact model fitted on {len(df)} trades (auc={auc:.3f})")

    emotions = []
    for tag, coef in zip(columns, model.coef_[0]):
        tagged = df[df[tag] == 1]
        emotions.append({
            "emotion": tag,
            "coefficient": round(float(coef), 4),
            "oddsRatio": round(float(np.exp(coef)), 4),
            "winRate": round(float(tagged["label"].mean() * 100), 2),
            "avgPnL": round(float(tagged["pnl"].mean()), 2),
            "trades": int(len(tagged)),
        })
    emotions.sort(key=lambda e: e["coefficient"], reverse=True)

    return {
        "status": "ok",
        "trades": int(len(df)),
        "baseWinRate": round(float(df["label"].mean() * 100), 2),
        "auc": round(float(auc), 4),
        "emotions": emotions,
    }
