from __future__ import annotations

import pytest

from journal.app.confluence.psychology import (
    PsychologicalMetrics,
    ValidationConfig,
    calculate_psychological_metrics,
    psychological_summary,
    validate_psychological_metrics,
)


def test_empty_rows_default_to_midpoint() -> None:
    metrics = calculate_psychological_metrics([])
    assert metrics.discipline_level == 50.0
    assert metrics.tilt_control == 50.0
    assert metrics.stability_index == 50.0


def test_positive_emotions_raise_stability() -> None:
    metrics = calculate_psychological_metrics([{"subject": "DISCIPLINE", "value": 60}])
    assert metrics.discipline_level == 100.0
    assert metrics.tilt_control == 100.0


def test_negative_emotions_lower_stability() -> None:
    rows = [{"subject": "TILT", "value": 80}, {"subject": "REVENGE", "value": 40}]
    metrics = calculate_psychological_metrics(rows)
    assert metrics.discipline_level == pytest.approx(7.85)
    assert metrics.tilt_control == pytest.approx(7.85)

    result = validate_psychological_metrics(metrics, ValidationConfig())
    assert result.is_valid
    assert any("stability index" in w for w in result.warnings)


def test_impossible_state_is_an_error_and_gets_corrected() -> None:
    result = validate_psychological_metrics(
        PsychologicalMetrics(discipline_level=95, tilt_control=5), ValidationConfig()
    )
    assert not result.is_valid
    assert any("Impossible state" in e for e in result.errors)
    assert any("differ by" in w for w in result.warnings)
    assert result.corrected.discipline_level == 57.5
    assert result.corrected.tilt_control == 42.5


def test_out_of_range_values_are_clamped() -> None:
    result = validate_psychological_metrics(
        PsychologicalMetrics(discipline_level=120, tilt_control=100), ValidationConfig()
    )
    assert any("outside 0-100" in e for e in result.errors)
    assert result.corrected.discipline_level == 100
    assert result.corrected.tilt_control == 100


def test_strict_mode_turns_warnings_into_failures() -> None:
    metrics = PsychologicalMetrics(discipline_level=50, tilt_control=70)
    assert validate_psychological_metrics(metrics, ValidationConfig()).is_valid
    assert not validate_psychological_metrics(metrics, ValidationConfig(strict=True)).is_valid


def test_summary_shape() -> None:
    summary = psychological_summary([{"subject": "NEUTRAL", "value": 50}])
    assert set(summary["psychologicalMetrics"]) == {
        "disciplineLevel", "tiltControl", "psychologicalStabilityIndex",
    }
    assert summary["validationWarnings"] == []
