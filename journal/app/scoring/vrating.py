"""
VRating: a 0-10 composite trading score.

Five categories, each scored 0-10 from banded linear interpolation:
- Profitability (30%)
- Risk Management (25%)
- Consistency (20%)
- Emotional Discipline (15%)
- Journaling Adherence (10%)
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from journal.app.common.config import get_config
from journal.app.dashboard.metrics import max_drawdown_pct
from shared.schemas import TradeRecord

logger = logging.getLogger(__name__)

POSITIVE_EMOTIONS = {"PATIENCE", "DISCIPLINE", "CONFIDENT", "FOCUSED", "CALM"}
NEGATIVE_EMOTIONS = {"FOMO", "REVENGE", "TILT", "GREED"}
NEUTRAL_EMOTIONS = {"NEUTRAL", "ANALYTICAL", "OBJECTIVE"}
NORMAL_TRADING_EMOTIONS = {"OVERRISK", "ANXIOUS", "FEAR"}

CATEGORY_WEIGHTS = {
    "profitability": 0.30,
    "riskManagement": 0.25,
    "consistency": 0.20,
    "emotionalDiscipline": 0.15,
    "journalingAdherence": 0.10,
}


def safe_percentage(value: float, total: float) -> float:
    if total == 0:
        return 0.0
    return round(value / total * 100, 2)


def lerp(low: float, high: float, pct: float) -> float:
    return low + (high - low) * pct


def _clamp_score(score: float) -> float:
    return min(10.0, max(0.0, score))


def _std(values: List[float]) -> float:
    return float(np.std(values)) if values else 0.0


def _monthly_pnl(trades: List[TradeRecord]) -> Dict[str, float]:
    months: Dict[str, float] = {}
    for t in trades:
        if not t.trade_date:
            continue
        key = t.trade_date[:7]
        months[key] = months.get(key, 0.0) + (t.pnl or 0.0)
    return months


# =======================
# Metrics
# =======================

@dataclass
class ProfitabilityMetrics:
    netPLPercentage: float = 0.0
    winRate: float = 0.0
    totalProfit: float = 0.0
    totalLoss: float = 0.0
    winningTrades: int = 0
    losingTrades: int = 0
    positiveMonthsPercentage: float = 0.0
    monthlyPL: List[Dict[str, float]] = field(default_factory=list)


@dataclass
class RiskManagementMetrics:
    maxDrawdownPercentage: float = 0.0
    largeLossPercentage: float = 0.0
    quantityVariability: float = 0.0
    averageTradeDuration: float = 0.0
    oversizedTradesPercentage: float = 0.0


@dataclass
class ConsistencyMetrics:
    plStdDevPercentage: float = 0.0
    longestLossStreak: int = 0
    monthlyConsistencyRatio: float = 0.0


@dataclass
class EmotionalDisciplineMetrics:
    positiveEmotionPercentage: float = 0.0
    negativeImpactPercentage: float = 0.0
    positiveEmotionWinCorrelation: float = 0.0
    emotionLoggingCompleteness: float = 0.0


@dataclass
class JournalingAdherenceMetrics:
    completenessPercentage: float = 0.0
    strategyUsage: float = 0.0
    notesUsage: float = 0.0
    emotionUsage: float = 0.0


def profitability_metrics(trades: List[TradeRecord]) -> ProfitabilityMetrics:
    if not trades:
        return ProfitabilityMetrics()

    profits = [t.pnl for t in trades if (t.pnl or 0) > 0]
    losses = [abs(t.pnl) for t in trades if (t.pnl or 0) < 0]
    total_profit = sum(profits)
    total_loss = sum(losses)

    months = _monthly_pnl(trades)
    positive_months = sum(1 for pl in months.values() if pl > 0)

    return ProfitabilityMetrics(
        netPLPercentage=(total_profit - total_loss) / len(trades) * 100,
        winRate=safe_percentage(len(profits), len(trades)),
        totalProfit=total_profit,
        totalLoss=total_loss,
        winningTrades=len(profits),
        losingTrades=len(losses),
        positiveMonthsPercentage=safe_percentage(positive_months, len(months)),
        monthlyPL=[{"month": m, "pl": pl} for m, pl in months.items()],
    )


def risk_management_metrics(
    trades: List[TradeRecord],
    large_loss_threshold: Optional[float] = None,
) -> RiskManagementMetrics:
    if not trades:
        return RiskManagementMetrics()
    if large_loss_threshold is None:
        large_loss_threshold = get_config().large_loss_threshold

    max_dd_pct = max_drawdown_pct(pd.Series([t.pnl or 0.0 for t in trades]))

    large_losses = sum(1 for t in trades if (t.pnl or 0) < large_loss_threshold)

    quantities = [t.quantity for t in trades if (t.quantity or 0) > 0]
    avg_qty = sum(quantities) / len(quantities) if quantities else 0.0
    qty_variability = _std(quantities) / avg_qty * 100 if avg_qty > 0 else 0.0

    durations = [
        t.hold_minutes / 60 for t in trades if t.hold_minutes and t.hold_minutes > 0
    ]
    avg_duration = sum(durations) / len(durations) if durations else 0.0

    oversized = sum(1 for q in quantities if avg_qty > 0 and q > avg_qty * 2)

    return RiskManagementMetrics(
        maxDrawdownPercentage=max_dd_pct,
        largeLossPercentage=safe_percentage(large_losses, len(trades)),
        quantityVariability=qty_variability,
        averageTradeDuration=avg_duration,
        oversizedTradesPercentage=safe_percentage(oversized, len(quantities)),
    )


def consistency_metrics(trades: List[TradeRecord]) -> ConsistencyMetrics:
    if not trades:
        return ConsistencyMetrics()

    pnls = [t.pnl or 0.0 for t in trades]
    avg = sum(pnls) / len(pnls)
    std_pct = _std(pnls) / abs(avg) * 100 if avg != 0 else 0.0

    streak = longest = 0
    for pnl in pnls:
        if pnl < 0:
            streak += 1
            longest = max(longest, streak)
        else:
            streak = 0

    months = _monthly_pnl(trades)
    positive = sum(1 for pl in months.values() if pl > 0)

    return ConsistencyMetrics(
        plStdDevPercentage=std_pct,
        longestLossStreak=longest,
        monthlyConsistencyRatio=positive / len(months) if months else 0.0,
    )


def emotional_discipline_metrics(trades: List[TradeRecord]) -> EmotionalDisciplineMetrics:
    if not trades:
        return EmotionalDisciplineMetrics()

    positive = negative = logged = 0.0
    negative_losses = positive_wins = positive_trades = 0.0

    for t in trades:
        if not t.emotional_state:
            continue
        logged += 1
        # Only the first two tags are weighed, as primary and secondary emotion
        tags = set(t.emotional_state[:2])
        won = (t.pnl or 0) > 0

        if tags & POSITIVE_EMOTIONS:
            positive += 1
            positive_trades += 1
            positive_wins += 1 if won else 0
        if tags & NEGATIVE_EMOTIONS:
            negative += 1
            negative_losses += 1 if (t.pnl or 0) < 0 else 0
        for group, weight in ((NEUTRAL_EMOTIONS, 0.5), (NORMAL_TRADING_EMOTIONS, 0.25)):
            if tags & group:
                positive += weight
                positive_trades += weight
                positive_wins += weight if won else 0

    return EmotionalDisciplineMetrics(
        positiveEmotionPercentage=safe_percentage(positive, logged),
        negativeImpactPercentage=safe_percentage(negative_losses, negative),
        positiveEmotionWinCorrelation=safe_percentage(positive_wins, positive_trades),
        emotionLoggingCompleteness=safe_percentage(logged, len(trades)),
    )


def journaling_adherence_metrics(trades: List[TradeRecord]) -> JournalingAdherenceMetrics:
    if not trades:
        return JournalingAdherenceMetrics()

    n = len(trades)
    strategy = safe_percentage(sum(1 for t in trades if t.strategy_id), n)
    notes = safe_percentage(sum(1 for t in trades if t.notes.strip()), n)
    emotion = safe_percentage(sum(1 for t in trades if t.emotional_state), n)

    return JournalingAdherenceMetrics(
        completenessPercentage=(strategy + notes + emotion) / 3,
        strategyUsage=strategy,
        notesUsage=notes,
        emotionUsage=emotion,
    )


# =======================
# Scores
# =======================

def profitability_score(m: ProfitabilityMetrics) -> float:
    npl, wr = m.netPLPercentage, m.winRate

    if npl > 50 and wr > 70:
        score = 10.0
    elif npl >= 30 and wr >= 60:
        score = lerp(8.0, 9.9, min((npl - 30) / 20, (wr - 60) / 10))
    elif npl >= 10 and wr >= 50:
        score = min(6.0 + (npl - 10) * 0.1, 7.9)
    elif 0 <= npl <= 10 or 40 <= wr < 50:
        score = lerp(4.0, 5.9, min(npl / 10, (wr - 40) / 10))
    elif -10 <= npl < 0 or 30 <= wr < 40:
        score = lerp(2.0, 3.9, min((npl + 10) / 10, (wr - 30) / 10))
    else:
        score = lerp(1.0, 1.9, max(0.0, min(1.0, npl / -10)))

    if m.positiveMonthsPercentage > 80:
        score += 0.5

    return _clamp_score(score)


def risk_management_score(m: RiskManagementMetrics) -> float:
    dd = m.maxDrawdownPercentage
    large = m.largeLossPercentage
    var = m.quantityVariability
    dur = m.averageTradeDuration

    if dd < 10 and large < 10 and var < 30 and dur > 12:
        score = lerp(9.0, 10.0, min(
            (10 - dd) / 10, (10 - large) / 10, (30 - var) / 30, (dur - 12) / 48
        ))
    elif 10 <= dd <= 20 and 10 <= large <= 20 and 30 <= var <= 50 and 6 <= dur <= 12:
        score = lerp(7.0, 8.9, min(
            (20 - dd) / 10, (20 - large) / 10, (50 - var) / 20, (dur - 6) / 6
        ))
    elif 20 <= dd <= 30 and 20 <= large <= 30 and 50 <= var <= 70 and 1 <= dur <= 6:
        score = lerp(5.0, 6.9, min(
            (30 - dd) / 10, (30 - large) / 10, (70 - var) / 20, dur / 6
        ))
    elif 30 <= dd <= 40 and 30 <= large <= 40 and 70 <= var <= 80 and dur < 1:
        score = lerp(3.0, 4.9, min(
            (40 - dd) / 10, (40 - large) / 10, (80 - var) / 10, dur
        ))
    else:
        score = lerp(1.0, 2.9, max(0.0, min(
            1.0, max(0.0, (50 - dd) / 50), max(0.0, (60 - large) / 60)
        )))

    if m.oversizedTradesPercentage > 10:
        score -= 1.0

    return _clamp_score(score)


def consistency_score(m: ConsistencyMetrics) -> float:
    sd = m.plStdDevPercentage
    streak = m.longestLossStreak
    ratio = m.monthlyConsistencyRatio

    # Band edges compare the 0-1 month ratio against whole numbers, so the
    # top bands are only reachable through the fallback lerp.
    if sd < 5 and streak <= 3 and ratio > 5:
        score = 10.0
    elif 5 <= sd <= 10 and 4 <= streak <= 5 and 3 <= ratio <= 5:
        score = lerp(8.0, 9.9, min((10 - sd) / 5, (5 - streak) / 1, (ratio - 3) / 2))
    elif 10 <= sd <= 15 and 6 <= streak <= 7 and 2 <= ratio <= 3:
        score = lerp(6.0, 7.9, min((15 - sd) / 5, (7 - streak) / 1, (ratio - 2) / 1))
    elif 15 <= sd <= 20 and 8 <= streak <= 10 and 1 <= ratio <= 2:
        score = lerp(4.0, 5.9, min((20 - sd) / 5, (10 - streak) / 2, (ratio - 1) / 1))
    else:
        score = lerp(2.0, 3.9, max(0.0, min(
            1.0,
            max(0.0, (25 - sd) / 25),
            max(0.0, (10 - streak) / 10),
            max(0.0, ratio),
        )))

    return _clamp_score(score)


def emotional_discipline_score(
    m: EmotionalDisciplineMetrics,
    total_pnl: Optional[float] = None,
) -> float:
    pos = m.positiveEmotionPercentage
    neg = m.negativeImpactPercentage

    if pos > 80 and neg < 15:
        score = 10.0
    elif 65 <= pos <= 80 and 15 <= neg <= 25:
        score = lerp(8.5, 9.9, min((pos - 65) / 15, (25 - neg) / 10))
    elif 50 <= pos <= 65 and 25 <= neg <= 40:
        score = lerp(7.0, 8.4, min((pos - 50) / 15, (40 - neg) / 15))
    elif 35 <= pos <= 50 and 40 <= neg <= 55:
        score = lerp(5.5, 6.9, min((pos - 35) / 15, (55 - neg) / 15))
    else:
        score = lerp(4.0, 5.4, max(0.0, min(1.0, pos / 8, max(0.0, (60 - neg) / 60))))

    if m.positiveEmotionWinCorrelation > 70:
        score += 1.0
    elif m.positiveEmotionWinCorrelation > 60:
        score += 0.5

    if m.emotionLoggingCompleteness > 95:
        score += 1.0

    if total_pnl and total_pnl > 0 and score < 8.0:
        score += 0.5

    return _clamp_score(score)


def journaling_adherence_score(m: JournalingAdherenceMetrics) -> float:
    pct = m.completenessPercentage

    if pct > 95:
        score = 10.0
    elif 80 <= pct <= 95:
        score = lerp(8.0, 9.9, (pct - 80) / 15)
    elif 60 <= pct <= 80:
        score = lerp(6.0, 7.9, (pct - 60) / 20)
    elif 40 <= pct <= 60:
        score = lerp(4.0, 5.9, (pct - 40) / 20)
    else:
        score = lerp(2.0, 3.9, max(0.0, min(1.0, pct / 20)))

    if m.emotionUsage >= 100:
        score += 0.5

    return _clamp_score(score)


# =======================
# Rating
# =======================

@dataclass
class VRatingResult:
    overallRating: float
    categoryScores: Dict[str, float]
    metrics: Dict[str, dict]
    tradeCount: int
    period: Dict[str, str]

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_vrating(trades: List[TradeRecord]) -> VRatingResult:
    """Weighted rating over a trade set; empty input scores zero everywhere."""
    if not trades:
        return VRatingResult(
            overallRating=0.0,
            categoryScores={name: 0.0 for name in CATEGORY_WEIGHTS},
            metrics={
                "profitability": asdict(ProfitabilityMetrics()),
                "riskManagement": asdict(RiskManagementMetrics()),
                "consistency": asdict(ConsistencyMetrics()),
                "emotionalDiscipline": asdict(EmotionalDisciplineMetrics()),
                "journalingAdherence": asdict(JournalingAdherenceMetrics()),
            },
            tradeCount=0,
            period={"startDate": "", "endDate": ""},
        )

    ordered = sorted(trades, key=lambda t: t.trade_date or "")

    profitability = profitability_metrics(ordered)
    risk = risk_management_metrics(ordered)
    consistency = consistency_metrics(ordered)
    emotional = emotional_discipline_metrics(ordered)
    journaling = journaling_adherence_metrics(ordered)
    total_pnl = sum(t.pnl or 0.0 for t in ordered)

    scores = {
        "profitability": profitability_score(profitability),
        "riskManagement": risk_management_score(risk),
        "consistency": consistency_score(consistency),
        "emotionalDiscipline": emotional_discipline_score(emotional, total_pnl),
        "journalingAdherence": journaling_adherence_score(journaling),
    }
    overall = sum(scores[name] * weight for name, weight in CATEGORY_WEIGHTS.items())

    logger.debug(f"VRating {overall:.2f} over {len(ordered)} trades: {scores}")

    return VRatingResult(
        overallRating=round(overall, 2),
        categoryScores={name: round(s, 2) for name, s in scores.items()},
        metrics={
            "profitability": asdict(profitability),
            "riskManagement": asdict(risk),
            "consistency": asdict(consistency),
            "emotionalDiscipline": asdict(emotional),
            "journalingAdherence": asdict(journaling),
        },
        tradeCount=len(trades),
        period={"startDate": ordered[0].trade_date, "endDate": ordered[-1].trade_date},
    )


def single_trade_vrating(trade: TradeRecord) -> float:
    """Rough score for one trade from P&L, primary emotion and completeness."""
    pnl = trade.pnl or 0.0
    score = 5.0

    if pnl > 0:
        score += min(2.0, pnl / 10)
    elif pnl < 0:
        score -= min(3.0, abs(pnl) / 5)

    if trade.emotional_state:
        primary = trade.emotional_state[0]
        if primary in POSITIVE_EMOTIONS:
            score += 0.5
        elif primary in NEGATIVE_EMOTIONS:
            score -= 0.5

    if trade.strategy_id:
        score += 0.3
    if trade.notes.strip():
        score += 0.3
    if trade.emotional_state:
        score += 0.4

    return _clamp_score(round(score, 2))


RATING_DESCRIPTIONS = [
    (9.0, "Exceptional - Elite trading performance"),
    (8.0, "Excellent - Superior trading skills"),
    (7.0, "Very Good - Above average performance"),
    (6.0, "Good - Competent trading"),
    (5.0, "Average - Room for improvement"),
    (4.0, "Below Average - Needs significant work"),
    (3.0, "Poor - Major improvements needed"),
    (2.0, "Very Poor - Fundamental issues"),
]


def vrating_description(rating: float) -> str:
    for floor, text in RATING_DESCRIPTIONS:
        if rating >= floor:
            return text
    return "Critical - Complete review required"


IMPROVEMENT_THRESHOLD = 6.0

CATEGORY_IMPROVEMENTS = {
    "profitability": [
        "Focus on improving win rate through better entry/exit strategies",
        "Consider reducing position size to minimize losses",
        "Review losing trades to identify common patterns",
        "Implement stricter risk-reward ratios",
    ],
    "riskManagement": [
        "Implement stop-loss orders consistently",
        "Reduce position size variability",
        "Avoid oversized trades (>2x average)",
        "Consider longer holding periods for better risk management",
    ],
    "consistency": [
        "Focus on reducing P&L volatility",
        "Work on shorter loss streaks",
        "Improve monthly consistency with more positive months",
    ],
    "emotionalDiscipline": [
        "Focus on reducing negative emotional impact on trades",
        "Take breaks after emotional trades",
        "Develop pre-trade emotional checklist",
        "Work on improving emotional correlation with winning trades",
    ],
    "journalingAdherence": [
        "Use journaling templates for consistency",
        "Focus on complete emotional logging",
        "Review journal entries weekly for insights",
        "Improve strategy usage documentation",
    ],
}


def category_improvements(category_scores: Dict[str, float]) -> Dict[str, List[str]]:
    return {
        name: list(tips)
        for name, tips in CATEGORY_IMPROVEMENTS.items()
        if category_scores.get(name, 0.0) < IMPROVEMENT_THRESHOLD
    }
