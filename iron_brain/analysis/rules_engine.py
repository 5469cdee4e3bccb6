"""Injury-prevention rules applied to a single day's planned workout.

Completed logs and planned sessions are both viewed as a ``Session`` so that
live validation and the season generator share one rule implementation.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..config import config
from ..data.models import (
    AllergySeverity,
    DailyWellnessLog,
    TrainingPlan,
    WorkoutLog,
    WorkoutType,
)
from .periodization import TrainingPhase

logger = logging.getLogger(__name__)

Workout = Union[WorkoutLog, TrainingPlan]

MECHANICAL_WINDOW_DAYS = 14
MECHANICAL_MIN_RUNS = 14
ZONE_KEYS = {"Z1": 1, "Z2": 2, "Z3": 3, "Z4": 4, "Z5": 5}

# Checked in order; the first keyword group found in the sub-type wins.
SUB_TYPE_ZONES: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("tempo", "threshold"), 3),
    (("interval", "vo2", "sprint"), 4),
    (("easy", "recovery", "zone 1"), 1),
    (("long", "endurance"), 2),
)


class WarningType(Enum):
    RULE_VIOLATION = "rule_violation"
    RECOVERY_ADVICE = "recovery_advice"
    INJURY_RISK = "injury_risk"


@dataclass(frozen=True)
class CoachWarning:
    """Outcome of a rule; blockers must not be scheduled."""
    type: WarningType
    title: str
    message: str
    is_blocker: bool


@dataclass(frozen=True)
class CoachSettings:
    """Master switch plus the four rule tunables."""
    enabled: bool = True
    allow_consecutive_runs: bool = False
    strength_spacing_hours: int = 48
    mechanical_load_monitoring: bool = True
    allow_commute_exemption: bool = True

    def __post_init__(self):
        if self.strength_spacing_hours not in config.ALLOWED_STRENGTH_SPACING:
            raise ValueError(
                f"strength_spacing_hours must be one of {config.ALLOWED_STRENGTH_SPACING}, "
                f"got {self.strength_spacing_hours}"
            )

    @classmethod
    def from_config(cls) -> "CoachSettings":
        return cls(
            enabled=config.SMART_PLANNING_ENABLED,
            allow_consecutive_runs=config.RUN_CONSECUTIVE_ALLOWED,
            strength_spacing_hours=config.STRENGTH_SPACING_HOURS,
            mechanical_load_monitoring=config.MECHANICAL_LOAD_MONITORING,
            allow_commute_exemption=config.ALLOW_COMMUTE_EXEMPTION,
        )


@dataclass(frozen=True)
class Session:
    """Rule-relevant view of a completed or planned workout."""
    date: date
    type: WorkoutType
    tss: Optional[float] = None
    is_commute: bool = False
    sub_type: Optional[str] = None
    distance_km: float = 0.0
    hr_zone_distribution: Optional[Dict[str, int]] = None
    power_zone_distribution: Optional[Dict[str, int]] = None

    @classmethod
    def from_log(cls, log: WorkoutLog) -> "Session":
        return cls(
            date=log.date,
            type=log.type,
            tss=log.computed_tss,
            is_commute=log.is_commute,
            distance_km=log.distance_km,
            hr_zone_distribution=log.hr_zone_distribution,
            power_zone_distribution=log.power_zone_distribution,
        )

    @classmethod
    def from_plan(cls, plan: TrainingPlan) -> "Session":
        return cls(
            date=plan.date,
            type=plan.type,
            tss=plan.planned_tss,
            is_commute=plan.is_commute,
            sub_type=plan.sub_type,
            distance_km=plan.distance_km or 0.0,
        )

    @classmethod
    def of(cls, item: Union[Workout, "Session"]) -> "Session":
        if isinstance(item, Session):
            return item
        if isinstance(item, TrainingPlan):
            return cls.from_plan(item)
        return cls.from_log(item)


def average_zone(distribution: Dict[str, int]) -> int:
    """Time-weighted average zone of a {"Z1": seconds, ...} map, default 2."""
    total_time = 0
    weighted_sum = 0.0
    for zone, seconds in distribution.items():
        zone_number = ZONE_KEYS.get(zone.upper())
        if zone_number:
            total_time += seconds
            weighted_sum += zone_number * seconds
    if total_time <= 0:
        return 2
    return max(1, min(5, int(math.floor(weighted_sum / total_time + 0.5))))


def tss_band_zone(tss: Optional[float]) -> int:
    if tss is None:
        return 2
    if tss < 30:
        return 1
    if tss < 60:
        return 2
    if tss < 90:
        return 3
    if tss < 120:
        return 4
    return 5


def infer_zone(item: Union[Workout, Session]) -> int:
    """Infer the dominant intensity zone (1-5) of a workout.

    HR zone distribution first, then power distribution, then plan
    sub-type keywords, then TSS bands.
    """
    session = Session.of(item)
    if session.hr_zone_distribution:
        return average_zone(session.hr_zone_distribution)
    if session.power_zone_distribution:
        return average_zone(session.power_zone_distribution)
    if session.sub_type:
        sub_type = session.sub_type.lower()
        for keywords, zone in SUB_TYPE_ZONES:
            if any(keyword in sub_type for keyword in keywords):
                return zone
    return tss_band_zone(session.tss)


def calculate_sss(distance_km: float, avg_zone: int) -> float:
    """Structural stress score: distance weighted by intensity."""
    return distance_km * (1.0 + avg_zone * 0.2)


def week_sss(runs: Iterable[Session]) -> float:
    return sum(
        calculate_sss(run.distance_km, infer_zone(run))
        for run in runs
        if run.distance_km > 0
    )


@dataclass(frozen=True)
class DayContext:
    """History around the day being validated."""
    yesterday: Tuple[Session, ...] = ()
    last_strength_date: Optional[date] = None
    recent_runs: Tuple[Session, ...] = ()
    wellness: Optional[DailyWellnessLog] = None
    phase: Optional[TrainingPhase] = None

    @classmethod
    def from_history(
        cls,
        history: Iterable[Union[Workout, Session]],
        day: date,
        wellness: Optional[DailyWellnessLog] = None,
        phase: Optional[TrainingPhase] = None,
    ) -> "DayContext":
        """Build the context for ``day`` from any mix of logs and plans.

        Only sessions strictly before ``day`` are considered.
        """
        sessions = [Session.of(item) for item in history]
        before = [s for s in sessions if s.date < day]
        yesterday = tuple(s for s in before if s.date == day - timedelta(days=1))
        strength_dates = [s.date for s in before if s.type == WorkoutType.STRENGTH]
        window_start = day - timedelta(days=MECHANICAL_WINDOW_DAYS)
        runs = tuple(
            sorted(
                (s for s in before if s.type == WorkoutType.RUN and s.date >= window_start),
                key=lambda s: s.date,
            )
        )
        return cls(
            yesterday=yesterday,
            last_strength_date=max(strength_dates) if strength_dates else None,
            recent_runs=runs,
            wellness=wellness,
            phase=phase,
        )


def _as_sessions(items) -> Tuple[Session, ...]:
    if items is None:
        return ()
    if isinstance(items, (WorkoutLog, TrainingPlan, Session)):
        return (Session.of(items),)
    return tuple(Session.of(item) for item in items)


def _mechanical_load_increased(day: date, recent_runs: Sequence[Session]) -> bool:
    """Compare the last 7 runs of the trailing window with the 7 before them.

    Only history counts; the session being validated is not part of the trend.
    Fewer than 14 runs in [day - 14, day] means there is not enough data.
    """
    window_start = day - timedelta(days=MECHANICAL_WINDOW_DAYS)
    runs = sorted(
        (run for run in recent_runs if run.type == WorkoutType.RUN and window_start <= run.date <= day),
        key=lambda run: run.date,
    )
    if len(runs) < MECHANICAL_MIN_RUNS:
        return False

    current = week_sss(runs[-7:])
    previous = week_sss(runs[-14:-7])
    return previous > 0 and current > previous * config.MECHANICAL_LOAD_INCREASE_LIMIT


def validate_daily_plan(
    today_plan: Optional[Union[Workout, Session]],
    settings: CoachSettings,
    yesterday=None,
    wellness: Optional[DailyWellnessLog] = None,
    last_strength_date: Optional[date] = None,
    phase: Optional[TrainingPhase] = None,
    recent_runs: Optional[Iterable[Union[Workout, Session]]] = None,
) -> List[CoachWarning]:
    """Check one day's workout against the coach rules.

    All rules are evaluated; none short-circuits another. Missing optional
    data makes the corresponding rule not applicable.

    Args:
        today_plan: Workout planned (or logged) for the day
        settings: Rule switches
        yesterday: Workout(s) from the previous day, a single item or a sequence
        wellness: Morning check-in for the day
        last_strength_date: Date of the most recent strength session before the day
        phase: Current training phase
        recent_runs: Runs from the trailing 14 days

    Returns:
        List of CoachWarning, empty when the engine is disabled or nothing fires
    """
    if not settings.enabled or today_plan is None:
        return []

    today = Session.of(today_plan)
    yesterday_sessions = _as_sessions(yesterday)
    yesterday_types = {s.type for s in yesterday_sessions}
    warnings: List[CoachWarning] = []

    # Rule 1: consecutive runs
    if (
        not settings.allow_consecutive_runs
        and WorkoutType.RUN in yesterday_types
        and today.type == WorkoutType.RUN
        and not (settings.allow_commute_exemption and today.is_commute)
    ):
        warnings.append(CoachWarning(
            type=WarningType.RULE_VIOLATION,
            title="Consecutive Runs Blocked",
            message="Running two days in a row is disabled in settings.",
            is_blocker=True,
        ))

    # Rule 2: strength spacing
    if today.type == WorkoutType.STRENGTH and last_strength_date is not None:
        hours_since = (today.date - last_strength_date).days * 24
        if hours_since < settings.strength_spacing_hours:
            warnings.append(CoachWarning(
                type=WarningType.RULE_VIOLATION,
                title="Strength Spacing Violation",
                message=f"Strength sessions must be {settings.strength_spacing_hours}h apart.",
                is_blocker=True,
            ))

    # Rule 3: post-strength protocol
    if WorkoutType.STRENGTH in yesterday_types and today.type != WorkoutType.SWIM:
        if infer_zone(today) > 1:
            warnings.append(CoachWarning(
                type=WarningType.RECOVERY_ADVICE,
                title="Post-Strength Protocol",
                message="Post-Strength Rule: Consider Swim or Zone 1 Spin only.",
                is_blocker=False,
            ))

    # Rule 4: severe allergy
    if wellness is not None and wellness.allergy_severity == AllergySeverity.SEVERE:
        if today.type == WorkoutType.STRENGTH or infer_zone(today) > 1:
            warnings.append(CoachWarning(
                type=WarningType.INJURY_RISK,
                title="Severe Allergy Active",
                message="Severe Allergy Active. Only Zone 1 Active Recovery allowed.",
                is_blocker=True,
            ))

    # Rule 5: mechanical load trend
    if settings.mechanical_load_monitoring:
        if _mechanical_load_increased(today.date, _as_sessions(recent_runs)):
            warnings.append(CoachWarning(
                type=WarningType.INJURY_RISK,
                title="Mechanical Load Increase",
                message="Mechanical load increased >15% vs previous week. Consider reducing run volume.",
                is_blocker=False,
            ))

    if warnings:
        logger.debug(f"{today.type.value} on {today.date}: {[w.title for w in warnings]}")
    return warnings


def validate_with_context(
    today_plan: Optional[Union[Workout, Session]],
    context: DayContext,
    settings: CoachSettings,
) -> List[CoachWarning]:
    """``validate_daily_plan`` with history taken from a DayContext."""
    return validate_daily_plan(
        today_plan,
        settings,
        yesterday=context.yesterday,
        wellness=context.wellness,
        last_strength_date=context.last_strength_date,
        phase=context.phase,
        recent_runs=context.recent_runs,
    )


def has_blocker(warnings: Iterable[CoachWarning]) -> bool:
    return any(w.is_blocker for w in warnings)
