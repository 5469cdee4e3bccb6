"""Tests for the coach rules engine."""

from datetime import date, timedelta

import pytest

from iron_brain.analysis.rules_engine import (
    CoachSettings,
    DayContext,
    Session,
    WarningType,
    average_zone,
    calculate_sss,
    has_blocker,
    infer_zone,
    tss_band_zone,
    validate_daily_plan,
    validate_with_context,
)
from iron_brain.data.models import AllergySeverity, DailyWellnessLog, TrainingPlan, WorkoutLog, WorkoutType

DAY = date(2024, 5, 15)


def _plan(workout_type, day=DAY, tss=50, sub_type=None, is_commute=False, distance_km=None):
    return TrainingPlan(
        date=day,
        type=workout_type,
        duration_minutes=60,
        planned_tss=tss,
        sub_type=sub_type,
        is_commute=is_commute,
        distance_km=distance_km,
    )


def _run_log(day, km, zones=None):
    return WorkoutLog(
        date=day,
        type=WorkoutType.RUN,
        duration_minutes=60,
        computed_tss=50,
        distance_meters=km * 1000,
        hr_zone_distribution=zones or {"Z2": 3600},
    )


def _titles(warnings):
    return [w.title for w in warnings]


class TestZoneInference:
    """Dominant intensity zone of a workout."""

    def test_average_zone(self):
        assert average_zone({"Z1": 600, "Z4": 600}) == 3
        assert average_zone({"Z2": 1200, "Z3": 400}) == 2
        assert average_zone({}) == 2
        assert average_zone({"unknown": 100}) == 2

    @pytest.mark.parametrize("tss, expected", [
        (None, 2), (0, 1), (29, 1), (30, 2), (59, 2), (60, 3), (90, 4), (119, 4), (120, 5),
    ])
    def test_tss_bands(self, tss, expected):
        assert tss_band_zone(tss) == expected

    def test_priority_order(self):
        """HR distribution beats power, power beats sub-type, sub-type beats TSS."""
        hr_and_power = Session(date=DAY, type=WorkoutType.BIKE, tss=150,
                               hr_zone_distribution={"Z1": 3600}, power_zone_distribution={"Z5": 3600})
        assert infer_zone(hr_and_power) == 1

        power_only = Session(date=DAY, type=WorkoutType.BIKE, tss=10, power_zone_distribution={"Z4": 3600})
        assert infer_zone(power_only) == 4

        assert infer_zone(_plan(WorkoutType.BIKE, tss=150, sub_type="Easy Spin")) == 1
        assert infer_zone(_plan(WorkoutType.RUN, tss=10, sub_type="Tempo")) == 3
        assert infer_zone(_plan(WorkoutType.RUN, sub_type="VO2 Intervals")) == 4
        assert infer_zone(_plan(WorkoutType.RUN, tss=150, sub_type="Long Run")) == 2
        assert infer_zone(_plan(WorkoutType.RUN, tss=100, sub_type="Fartlek")) == 4

    def test_calculate_sss(self):
        assert calculate_sss(10, 3) == pytest.approx(16.0)
        assert calculate_sss(0, 5) == 0


class TestCoachSettings:
    """Rule tunables."""

    def test_invalid_strength_spacing(self):
        with pytest.raises(ValueError):
            CoachSettings(strength_spacing_hours=36)

    def test_defaults(self):
        settings = CoachSettings()
        assert settings.enabled
        assert not settings.allow_consecutive_runs
        assert settings.strength_spacing_hours == 48


class TestValidateDailyPlan:
    """The five coach rules."""

    def setup_method(self):
        """Set up test fixtures."""
        self.settings = CoachSettings()
        self.yesterday = DAY - timedelta(days=1)

    def test_disabled_engine_returns_nothing(self):
        settings = CoachSettings(enabled=False)
        warnings = validate_daily_plan(_plan(WorkoutType.RUN), settings, yesterday=_plan(WorkoutType.RUN, self.yesterday))
        assert warnings == []

    def test_no_plan_returns_nothing(self):
        assert validate_daily_plan(None, self.settings) == []

    def test_consecutive_runs_blocked(self):
        warnings = validate_daily_plan(
            _plan(WorkoutType.RUN), self.settings, yesterday=_plan(WorkoutType.RUN, self.yesterday)
        )

        assert len(warnings) == 1
        assert warnings[0].title == "Consecutive Runs Blocked"
        assert warnings[0].message == "Running two days in a row is disabled in settings."
        assert warnings[0].type == WarningType.RULE_VIOLATION
        assert warnings[0].is_blocker

    def test_consecutive_runs_allowed_or_exempt(self):
        yesterday = [_plan(WorkoutType.RUN, self.yesterday)]

        allowed = CoachSettings(allow_consecutive_runs=True)
        assert validate_daily_plan(_plan(WorkoutType.RUN), allowed, yesterday=yesterday) == []

        commute = _plan(WorkoutType.RUN, is_commute=True)
        assert validate_daily_plan(commute, self.settings, yesterday=yesterday) == []

        no_exemption = CoachSettings(allow_commute_exemption=False)
        assert has_blocker(validate_daily_plan(commute, no_exemption, yesterday=yesterday))

    @pytest.mark.parametrize("spacing, days_since, blocked", [
        (24, 1, False),
        (48, 1, True),
        (48, 2, False),
        (72, 2, True),
        (72, 3, False),
    ])
    def test_strength_spacing(self, spacing, days_since, blocked):
        settings = CoachSettings(strength_spacing_hours=spacing)
        warnings = validate_daily_plan(
            _plan(WorkoutType.STRENGTH), settings, last_strength_date=DAY - timedelta(days=days_since)
        )

        assert has_blocker(warnings) == blocked
        if blocked:
            assert warnings[0].title == "Strength Spacing Violation"
            assert warnings[0].message == f"Strength sessions must be {spacing}h apart."

    def test_post_strength_protocol(self):
        yesterday = _plan(WorkoutType.STRENGTH, self.yesterday)

        warnings = validate_daily_plan(_plan(WorkoutType.BIKE, sub_type="Tempo"), self.settings, yesterday=yesterday)
        assert _titles(warnings) == ["Post-Strength Protocol"]
        assert warnings[0].message == "Post-Strength Rule: Consider Swim or Zone 1 Spin only."
        assert warnings[0].type == WarningType.RECOVERY_ADVICE
        assert not warnings[0].is_blocker

        assert validate_daily_plan(_plan(WorkoutType.SWIM, tss=100), self.settings, yesterday=yesterday) == []
        assert validate_daily_plan(_plan(WorkoutType.BIKE, sub_type="Recovery"), self.settings,
                                   yesterday=yesterday) == []
        assert validate_daily_plan(_plan(WorkoutType.RUN, tss=20), self.settings, yesterday=yesterday) == []

    def test_severe_allergy(self):
        severe = DailyWellnessLog(date=DAY, allergy_severity=AllergySeverity.SEVERE)

        warnings = validate_daily_plan(_plan(WorkoutType.BIKE, sub_type="Tempo"), self.settings, wellness=severe)
        assert _titles(warnings) == ["Severe Allergy Active"]
        assert warnings[0].message == "Severe Allergy Active. Only Zone 1 Active Recovery allowed."
        assert warnings[0].type == WarningType.INJURY_RISK
        assert warnings[0].is_blocker

        # Strength is blocked regardless of its inferred zone
        assert has_blocker(validate_daily_plan(_plan(WorkoutType.STRENGTH, tss=10), self.settings, wellness=severe))
        assert validate_daily_plan(_plan(WorkoutType.SWIM, sub_type="Easy"), self.settings, wellness=severe) == []

        moderate = DailyWellnessLog(date=DAY, allergy_severity=AllergySeverity.MODERATE)
        assert validate_daily_plan(_plan(WorkoutType.BIKE, sub_type="Tempo"), self.settings, wellness=moderate) == []

    def _daily_runs(self, older_km, recent_km, days=14):
        """One run a day on the ``days`` days before DAY; the newest 7 use ``recent_km``."""
        return [
            _run_log(DAY - timedelta(days=offset), recent_km if offset <= 7 else older_km)
            for offset in range(days, 0, -1)
        ]

    def test_mechanical_load_increase(self):
        """Last 7 runs above 115% of the 7 before them warns."""
        runs = self._daily_runs(5, 6)  # 49.0 vs 58.8 > 56.35

        warnings = validate_daily_plan(_plan(WorkoutType.BIKE), self.settings, recent_runs=runs)

        assert _titles(warnings) == ["Mechanical Load Increase"]
        assert warnings[0].message == (
            "Mechanical load increased >15% vs previous week. Consider reducing run volume."
        )
        assert warnings[0].type == WarningType.INJURY_RISK
        assert not warnings[0].is_blocker

    def test_mechanical_load_within_limit(self):
        runs = self._daily_runs(5, 5.5)  # 53.9
        assert validate_daily_plan(_plan(WorkoutType.BIKE), self.settings, recent_runs=runs) == []

    def test_mechanical_load_sparse_history(self):
        """A single short run is not a trend, whatever is planned today."""
        runs = [_run_log(DAY - timedelta(days=8), 1)]
        today = _plan(WorkoutType.RUN, sub_type="Easy", distance_km=5)

        assert validate_daily_plan(today, self.settings, recent_runs=runs) == []

    def test_mechanical_load_needs_fourteen_runs(self):
        runs = self._daily_runs(5, 10, days=13)
        assert validate_daily_plan(_plan(WorkoutType.BIKE), self.settings, recent_runs=runs) == []

        # A run older than 14 days does not fill the window
        stale = runs + [_run_log(DAY - timedelta(days=15), 5)]
        assert validate_daily_plan(_plan(WorkoutType.BIKE), self.settings, recent_runs=stale) == []

    def test_mechanical_load_ignores_todays_plan(self):
        runs = self._daily_runs(5, 5)
        today = _plan(WorkoutType.RUN, sub_type="Easy", distance_km=20)

        assert validate_daily_plan(today, self.settings, recent_runs=runs) == []

    def test_mechanical_load_monitoring_off(self):
        monitoring_off = CoachSettings(mechanical_load_monitoring=False)
        runs = self._daily_runs(5, 10)
        assert validate_daily_plan(_plan(WorkoutType.BIKE), monitoring_off, recent_runs=runs) == []

    def test_all_rules_evaluated(self):
        """Several rules can fire on the same day."""
        yesterday = [_plan(WorkoutType.RUN, self.yesterday), _plan(WorkoutType.STRENGTH, self.yesterday)]
        severe = DailyWellnessLog(date=DAY, allergy_severity=AllergySeverity.SEVERE)

        warnings = validate_daily_plan(
            _plan(WorkoutType.RUN, sub_type="Tempo"), self.settings, yesterday=yesterday, wellness=severe
        )

        assert _titles(warnings) == [
            "Consecutive Runs Blocked",
            "Post-Strength Protocol",
            "Severe Allergy Active",
        ]


class TestDayContext:
    """Context built from mixed history."""

    def test_from_history(self):
        history = [
            _run_log(DAY - timedelta(days=20), 10),
            _run_log(DAY - timedelta(days=14), 6),
            _plan(WorkoutType.STRENGTH, DAY - timedelta(days=5)),
            _plan(WorkoutType.STRENGTH, DAY - timedelta(days=2)),
            _run_log(DAY - timedelta(days=1), 8),
            _run_log(DAY, 8),
            _plan(WorkoutType.STRENGTH, DAY + timedelta(days=1)),
        ]

        context = DayContext.from_history(history, DAY)

        assert [s.type for s in context.yesterday] == [WorkoutType.RUN]
        assert context.last_strength_date == DAY - timedelta(days=2)
        assert [s.date for s in context.recent_runs] == [DAY - timedelta(days=14), DAY - timedelta(days=1)]
        assert context.wellness is None

    def test_validate_with_context(self):
        history = [_run_log(DAY - timedelta(days=1), 8), _plan(WorkoutType.STRENGTH, DAY - timedelta(days=1))]
        context = DayContext.from_history(history, DAY)

        warnings = validate_with_context(_plan(WorkoutType.STRENGTH), context, CoachSettings())

        assert _titles(warnings) == ["Strength Spacing Violation", "Post-Strength Protocol"]
        assert has_blocker(warnings)
