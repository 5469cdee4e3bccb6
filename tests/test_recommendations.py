"""Tests for the daily coach assessment."""

from datetime import date, timedelta

from iron_brain.analysis.periodization import TrainingPhase
from iron_brain.analysis.recommendations import (
    FormStatus,
    active_special_periods,
    assess_day,
    coach_message,
    determine_form_status,
)
from iron_brain.data.models import SpecialPeriod, SpecialPeriodType


class TestFormStatus:

    def test_thresholds(self):
        assert determine_form_status(10) == FormStatus.FRESHNESS
        assert determine_form_status(5) == FormStatus.OPTIMAL
        assert determine_form_status(-30) == FormStatus.OPTIMAL
        assert determine_form_status(-31) == FormStatus.OVERREACHING


class TestCoachMessage:
    """Message priority: special periods, critical fatigue, sweet spot, phase."""

    def setup_method(self):
        """Set up test fixtures."""
        self.day = date(2024, 5, 15)
        self.injury = SpecialPeriod(SpecialPeriodType.INJURY, self.day - timedelta(days=3), self.day)
        self.holiday = SpecialPeriod(SpecialPeriodType.HOLIDAY, self.day, self.day + timedelta(days=7))

    def test_injury_beats_everything(self):
        message = coach_message(-50, TrainingPhase.BUILD, [self.holiday, self.injury])
        assert message.startswith("Recovery Mode.")

    def test_holiday(self):
        assert coach_message(0, TrainingPhase.BASE, [self.holiday]).startswith("Holiday Mode.")

    def test_critical_fatigue(self):
        assert coach_message(-41, TrainingPhase.BASE).startswith("CRITICAL: Systemic fatigue is too high")

    def test_sweet_spot(self):
        message = coach_message(-20, TrainingPhase.BUILD)
        assert message.startswith("Phase: Build. You are in the Sweet Spot.")
        assert coach_message(-10, TrainingPhase.PEAK).startswith("Phase: Peak. You are in the Sweet Spot.")

    def test_phase_guidance(self):
        assert coach_message(0, TrainingPhase.TAPER).startswith("Phase: Taper. Race ready!")
        assert "72h rest" in coach_message(0, TrainingPhase.OFF_SEASON, strength_spacing_hours=72)

    def test_active_periods_inclusive(self):
        periods = [self.injury, self.holiday]
        assert active_special_periods(periods, self.day) == periods
        assert active_special_periods(periods, self.day + timedelta(days=8)) == []


class TestAssessDay:

    def test_assessment(self):
        goal = date(2024, 6, 1)
        day = goal - timedelta(days=10)

        assessment = assess_day(day, 8, goal)

        assert assessment.phase == TrainingPhase.TAPER
        assert assessment.form_status == FormStatus.FRESHNESS
        assert assessment.message.startswith("Phase: Taper.")
        assert assessment.active_periods == []
