"""
Psychological metrics derived from the confluence emotion rows.

Discipline level and tilt control are both driven by one stability index
and coupled so they cannot drift implausibly far apart.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from journal.app.common.config import get_config
from shared.emotion_defs import EmotionCategory, get_emotions_by_category

logger = logging.getLogger(__name__)

POSITIVE = {"DISCIPLINE", "CONFIDENT", "PATIENCE"}
NEGATIVE = {"TILT", "REVENGE"}
NEUTRAL = set(get_emotions_by_category(EmotionCategory.NEUTRAL))

POSITIVE_WEIGHT = 2.0
NEUTRAL_WEIGHT = 1.0
NEGATIVE_WEIGHT = 1.5
COUPLING_FACTOR = 0.6
MAX_PAIR_DEVIATION = 30.0


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


@dataclass
class PsychologicalMetrics:
    discipline_level: float = 50.0
    tilt_control: float = 50.0

    @property
    def stability_index(self) -> float:
        return round((self.discipline_level + self.tilt_control) / 2, 2)

    def to_dict(self) -> Dict[str, float]:
        return {
            "disciplineLevel": self.discipline_level,
            "tiltControl": self.tilt_control,
            "psychologicalStabilityIndex": self.stability_index,
        }


@dataclass
class ValidationConfig:
    max_deviation: float = 15.0
    min_stability_index: float = 20.0
    auto_correct: bool = True
    strict: bool = False


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    corrected: Optional[PsychologicalMetrics] = None


def _category_score(rows: List[Dict[str, Any]], tags: set) -> float:
    """Summed radar values of matching rows, normalised to 0-100."""
    if not rows:
        return 0.0
    total = sum(float(r.get("value", 0)) for r in rows if r.get("subject") in tags)
    return total / (len(rows) * 100) * 100


def calculate_psychological_metrics(rows: List[Dict[str, Any]]) -> PsychologicalMetrics:
    if not rows:
        return PsychologicalMetrics()

    positive = _category_score(rows, POSITIVE)
    negative = _category_score(rows, NEGATIVE)
    neutral = _category_score(rows, NEUTRAL)

    ess = POSITIVE_WEIGHT * positive + NEUTRAL_WEIGHT * neutral - NEGATIVE_WEIGHT * negative
    psi = _clamp((ess + 100) / 2)

    discipline = psi + psi * COUPLING_FACTOR * (1 - psi / 100)
    tilt = psi + psi * COUPLING_FACTOR * (1 - psi / 100)

    if abs(discipline - tilt) > MAX_PAIR_DEVIATION:
        if discipline > tilt:
            tilt = discipline - MAX_PAIR_DEVIATION
        else:
            discipline = tilt - MAX_PAIR_DEVIATION

    return PsychologicalMetrics(
        discipline_level=round(_clamp(discipline), 2),
        tilt_control=round(_clamp(tilt), 2),
    )


def validate_psychological_metrics(
    metrics: PsychologicalMetrics,
    config: Optional[ValidationConfig] = None,
) -> ValidationResult:
    if config is None:
        config = ValidationConfig(max_deviation=get_config().max_metric_deviation)

    errors: List[str] = []
    warnings: List[str] = []
    discipline = metrics.discipline_level
    tilt = metrics.tilt_control

    for name, value in (("Discipline level", discipline), ("Tilt control", tilt)):
        if not 0 <= value <= 100:
            errors.append(f"{name} {value} is outside 0-100")

    deviation = abs(discipline - tilt)
    if deviation > config.max_deviation:
        warnings.append(
            f"Discipline level and tilt control differ by {deviation:.2f} "
            f"(max {config.max_deviation:.0f})"
        )

    if (discipline > 90 and tilt < 10) or (tilt > 90 and discipline < 10):
        errors.append("Impossible state: discipline level and tilt control are contradictory")

    if metrics.stability_index < config.min_stability_index:
        warnings.append(
            f"Psychological stability index {metrics.stability_index:.2f} "
            f"is below {config.min_stability_index:.0f}"
        )

    corrected = None
    if config.auto_correct and (errors or deviation > config.max_deviation):
        discipline, tilt = _clamp(discipline), _clamp(tilt)
        if abs(discipline - tilt) > config.max_deviation:
            mid = (discipline + tilt) / 2
            half = config.max_deviation / 2
            if discipline > tilt:
                discipline, tilt = mid + half, mid - half
            else:
                discipline, tilt = mid - half, mid + half
        corrected = PsychologicalMetrics(
            discipline_level=round(discipline, 2), tilt_control=round(tilt, 2)
        )

    is_valid = not errors and not (config.strict and warnings)
    if not is_valid:
        logger.warning(f"Psychological metrics failed validation: {errors or warnings}")
    return ValidationResult(
        is_valid=is_valid, errors=errors, warnings=warnings, corrected=corrected
    )


def psychological_summary(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Metrics for the stats response, auto-corrected when validation flags them."""
    metrics = calculate_psychological_metrics(rows)
    result = validate_psychological_metrics(metrics)
    if result.corrected is not None:
        metrics = result.corrected
    return {
        "psychologicalMetrics": metrics.to_dict(),
        "validationWarnings": result.errors + result.warnings,
    }
