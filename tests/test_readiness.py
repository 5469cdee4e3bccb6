"""Tests for the daily readiness score."""

import pytest

from iron_brain.analysis.readiness import (
    ReadinessColor,
    calculate_readiness,
    readiness_color,
    subjective_component,
    tsb_component,
)
from iron_brain.data.models import AllergySeverity


class TestComponents:
    """Individual readiness components."""

    @pytest.mark.parametrize("tsb, expected", [
        (20, 100),
        (6, 100),
        (5, 100),
        (0, 85),
        (-10, 57),
        (-30, 0),
        (-31, 0),
    ])
    def test_tsb_component(self, tsb, expected):
        assert tsb_component(tsb) == expected

    def test_subjective_component(self):
        assert subjective_component(None, None) == (50, None)
        assert subjective_component(10, None) == (100, 10)
        assert subjective_component(1, 1) == (0, 1)

        score, raw = subjective_component(7, 9)
        assert raw == pytest.approx(8.0)
        assert score == 77

    @pytest.mark.parametrize("score, expected", [
        (100, ReadinessColor.GREEN),
        (76, ReadinessColor.GREEN),
        (75, ReadinessColor.YELLOW),
        (40, ReadinessColor.YELLOW),
        (39, ReadinessColor.RED),
        (0, ReadinessColor.RED),
    ])
    def test_color_thresholds(self, score, expected):
        assert readiness_color(score) == expected


class TestCalculateReadiness:
    """Weighted blend and allergy penalty."""

    def test_full_inputs(self):
        """Worked example: 85*0.5 + 77*0.3 + 80*0.2 = 81.6 -> 82."""
        status = calculate_readiness(0, sleep_score=80, soreness=7, mood=9)

        assert status.score == 82
        assert status.color == ReadinessColor.GREEN
        assert status.allergy_penalty == 0
        assert status.breakdown == "TSB: 0 → 85, Sleep: 80, Subjective: 8.0/10 → 77"

    def test_missing_inputs_are_neutral(self):
        """Sleep and subjective default to 50; half-up rounding of 53.5."""
        status = calculate_readiness(-10)

        assert status.score == 54
        assert status.color == ReadinessColor.YELLOW
        assert status.breakdown == "TSB: -10 → 57"

    def test_deep_fatigue_is_red(self):
        status = calculate_readiness(-30)
        assert status.score == 25
        assert status.color == ReadinessColor.RED

    @pytest.mark.parametrize("allergy, expected_score, expected_penalty", [
        (AllergySeverity.NONE, 75, 0),
        (AllergySeverity.MILD, 75, 0),
        (AllergySeverity.MODERATE, 65, 10),
        (AllergySeverity.SEVERE, 45, 30),
    ])
    def test_allergy_penalty(self, allergy, expected_score, expected_penalty):
        status = calculate_readiness(10, allergy=allergy)

        assert status.score == expected_score
        assert status.allergy_penalty == expected_penalty
        assert status.color == ReadinessColor.YELLOW

    def test_score_never_negative(self):
        status = calculate_readiness(-50, sleep_score=0, soreness=1, mood=1, allergy=AllergySeverity.SEVERE)
        assert status.score == 0
        assert status.color == ReadinessColor.RED

    def test_tsb_is_truncated_to_whole_units(self):
        assert calculate_readiness(4.9).breakdown.startswith("TSB: 4 → ")
