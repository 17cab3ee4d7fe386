"""
Shared emotion definitions used by the confluence, scoring and seeding code.
Tags are stored upper-case in trades.emotional_state.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Tuple


class EmotionCategory(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    NORMAL = "normal"
    REFLECTIVE = "reflective"


@dataclass
class EmotionDefinition:
    name: str
    category: EmotionCategory
    description: str


# Ordered vocabulary; confluence rows are returned in this order
EMOTION_DEFINITIONS: List[EmotionDefinition] = [
    EmotionDefinition(
        name="FOMO",
        category=EmotionCategory.NEGATIVE,
        description="Entered for fear of missing a move",
    ),
    EmotionDefinition(
        name="REVENGE",
        category=EmotionCategory.NEGATIVE,
        description="Trading to win back a previous loss",
    ),
    EmotionDefinition(
        name="TILT",
        category=EmotionCategory.NEGATIVE,
        description="Decision-making degraded by frustration",
    ),
    EmotionDefinition(
        name="OVERRISK",
        category=EmotionCategory.NORMAL,
        description="Position larger than the plan allowed",
    ),
    EmotionDefinition(
        name="PATIENCE",
        category=EmotionCategory.POSITIVE,
        description="Waited for the planned setup",
    ),
    EmotionDefinition(
        name="REGRET",
        category=EmotionCategory.REFLECTIVE,
        description="Second-guessing the entry or exit",
    ),
    EmotionDefinition(
        name="DISCIPLINE",
        category=EmotionCategory.POSITIVE,
        description="Followed the strategy rules",
    ),
    EmotionDefinition(
        name="CONFIDENT",
        category=EmotionCategory.POSITIVE,
        description="Clear conviction in the trade thesis",
    ),
    EmotionDefinition(
        name="ANXIOUS",
        category=EmotionCategory.NORMAL,
        description="Uneasy while the position was open",
    ),
    EmotionDefinition(
        name="NEUTRAL",
        category=EmotionCategory.NEUTRAL,
        description="No notable emotional state",
    ),
]

VALID_EMOTIONS: List[str] = [e.name for e in EMOTION_DEFINITIONS]


def get_emotion_names() -> List[str]:
    """Get list of all emotion tag names."""
    return list(VALID_EMOTIONS)


def get_emotions_by_category(category: EmotionCategory) -> List[str]:
    """Get emotion tag names of a specific category."""
    return [e.name for e in EMOTION_DEFINITIONS if e.category == category]


def _raw_tags(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set)):
        return [str(v) for v in raw if v is not None]
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        if text[0] in "[\"":
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return [str(v) for v in parsed if v is not None]
            if isinstance(parsed, str):
                text = parsed
        return text.split(",")
    return [str(raw)]


def partition_emotions(raw: Any) -> Tuple[List[str], List[str]]:
    """
    Split a stored emotional_state value into (valid, unknown) tags.

    Accepts a list, a JSON-encoded list or string, or a comma separated
    string. Tags are trimmed and upper-cased; duplicates are dropped.
    """
    valid: List[str] = []
    unknown: List[str] = []
    for tag in _raw_tags(raw):
        tag = tag.strip().upper()
        if not tag:
            continue
        target = valid if tag in VALID_EMOTIONS else unknown
        if tag not in target:
            target.append(tag)
    return valid, unknown


def normalize_emotions(raw: Any) -> List[str]:
    """Recognised tags of a stored emotional_state value, in stored order."""
    return partition_emotions(raw)[0]
