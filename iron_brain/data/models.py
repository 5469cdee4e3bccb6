"""In-memory data models consumed by the coaching core.

Workouts and plans are immutable snapshots. Weekday-keyed settings are stored
as fixed 7-slot tuples indexed by ``date.weekday()`` (0 = Monday).
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, Optional, Tuple


class WorkoutType(Enum):
    """Training disciplines."""
    RUN = "RUN"
    BIKE = "BIKE"
    SWIM = "SWIM"
    STRENGTH = "STRENGTH"
    OTHER = "OTHER"


class AnchorType(Enum):
    """Workout pinned to a weekday by the athlete."""
    NONE = "NONE"
    RUN = "RUN"
    BIKE = "BIKE"
    SWIM = "SWIM"
    STRENGTH = "STRENGTH"
    LONG_RUN = "LONG_RUN"
    LONG_BIKE = "LONG_BIKE"

    @property
    def workout_type(self) -> Optional[WorkoutType]:
        return {
            AnchorType.RUN: WorkoutType.RUN,
            AnchorType.LONG_RUN: WorkoutType.RUN,
            AnchorType.BIKE: WorkoutType.BIKE,
            AnchorType.LONG_BIKE: WorkoutType.BIKE,
            AnchorType.SWIM: WorkoutType.SWIM,
            AnchorType.STRENGTH: WorkoutType.STRENGTH,
        }.get(self)


class AllergySeverity(IntEnum):
    """Allergy severity, ordered from none to severe."""
    NONE = 0
    MILD = 1
    MODERATE = 2
    SEVERE = 3


class TaskTriggerType(Enum):
    """When a wellness task becomes relevant."""
    DAILY = "DAILY"
    TRIGGER_STRENGTH = "TRIGGER_STRENGTH"
    TRIGGER_LONG_DURATION = "TRIGGER_LONG_DURATION"
    TRIGGER_HIGH_TSS = "TRIGGER_HIGH_TSS"


class StrengthFocus(Enum):
    FULL_BODY = "FULL_BODY"
    UPPER = "UPPER"
    LOWER = "LOWER"
    HEAVY = "HEAVY"
    STABILITY = "STABILITY"


class Intensity(Enum):
    LIGHT = "LIGHT"
    HEAVY = "HEAVY"


class SpecialPeriodType(Enum):
    """Calendar periods that override normal coaching."""
    INJURY = "INJURY"
    HOLIDAY = "HOLIDAY"
    RECOVERY_WEEK = "RECOVERY_WEEK"


@dataclass(frozen=True)
class WorkoutLog:
    """A completed workout."""
    date: date
    type: WorkoutType
    duration_minutes: int
    computed_tss: Optional[int] = None
    avg_heart_rate: Optional[int] = None
    avg_power_watts: Optional[int] = None
    distance_meters: Optional[float] = None
    calories: Optional[int] = None
    hr_zone_distribution: Optional[Dict[str, int]] = None  # zone -> seconds
    power_zone_distribution: Optional[Dict[str, int]] = None
    title: Optional[str] = None
    is_commute: bool = False

    @property
    def distance_km(self) -> float:
        return (self.distance_meters or 0.0) / 1000.0


@dataclass(frozen=True)
class TrainingPlan:
    """A planned workout for a single day."""
    date: date
    type: WorkoutType
    duration_minutes: int
    planned_tss: int
    sub_type: Optional[str] = None
    strength_focus: Optional[StrengthFocus] = None
    intensity: Optional[Intensity] = None
    is_commute: bool = False
    distance_km: Optional[float] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class TrainingBalance:
    """Cardio split across disciplines, in percent."""
    bike_percent: int
    run_percent: int
    swim_percent: int

    def is_valid(self) -> bool:
        return self.bike_percent + self.run_percent + self.swim_percent == 100

    def preset_name(self) -> Optional[str]:
        """Name of the matching preset, if any."""
        for name, preset in BALANCE_PRESETS.items():
            if preset == self:
                return name
        return None


BALANCE_PRESETS: Dict[str, TrainingBalance] = {
    "IRONMAN_BASE": TrainingBalance(bike_percent=50, run_percent=30, swim_percent=20),
    "BALANCED": TrainingBalance(bike_percent=34, run_percent=33, swim_percent=33),
    "RUN_FOCUS": TrainingBalance(bike_percent=30, run_percent=50, swim_percent=20),
    "BIKE_FOCUS": TrainingBalance(bike_percent=60, run_percent=25, swim_percent=15),
}

_R, _B, _S, _ST = WorkoutType.RUN, WorkoutType.BIKE, WorkoutType.SWIM, WorkoutType.STRENGTH

DEFAULT_AVAILABILITY: Tuple[FrozenSet[WorkoutType], ...] = (
    frozenset({_S, _ST}),   # Monday
    frozenset({_B, _R}),
    frozenset({_R, _ST}),
    frozenset({_B, _S}),
    frozenset({_S, _R}),
    frozenset({_B, _R}),
    frozenset({_B, _R}),    # Sunday
)

NO_ANCHORS: Tuple[AnchorType, ...] = (AnchorType.NONE,) * 7


@dataclass(frozen=True)
class UserProfile:
    """Athlete thresholds, goal and weekly constraints."""
    ftp_bike: Optional[int] = None
    max_heart_rate: Optional[int] = None
    lthr: Optional[int] = None
    threshold_run_pace: Optional[int] = None  # seconds per km
    css_seconds_per_100m: Optional[int] = None
    default_swim_tss: int = 60
    default_strength_heavy_tss: int = 60
    goal_date: Optional[date] = None
    weekly_availability: Tuple[FrozenSet[WorkoutType], ...] = DEFAULT_AVAILABILITY
    weekly_schedule: Tuple[AnchorType, ...] = NO_ANCHORS
    training_balance: TrainingBalance = BALANCE_PRESETS["IRONMAN_BASE"]
    strength_days: int = 2

    def __post_init__(self):
        if len(self.weekly_availability) != 7 or len(self.weekly_schedule) != 7:
            raise ValueError("weekly_availability and weekly_schedule need one slot per weekday")

    def available_types(self, day: date) -> FrozenSet[WorkoutType]:
        return self.weekly_availability[day.weekday()]

    def anchor_for(self, day: date) -> AnchorType:
        return self.weekly_schedule[day.weekday()]

    def has_availability(self) -> bool:
        return any(self.weekly_availability)


@dataclass(frozen=True)
class DailyWellnessLog:
    """Morning check-in for one date."""
    date: date
    soreness: Optional[int] = None  # 1-10
    mood: Optional[int] = None  # 1-10
    allergy_severity: AllergySeverity = AllergySeverity.NONE
    morning_weight: Optional[float] = None
    sleep_minutes: Optional[int] = None
    hrv_rmssd: Optional[float] = None
    completed_task_ids: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class WellnessTaskDefinition:
    id: int
    title: str
    type: TaskTriggerType
    description: Optional[str] = None
    trigger_threshold: Optional[int] = None


@dataclass(frozen=True)
class SpecialPeriod:
    """Injury, holiday or recovery-week interval (inclusive)."""
    type: SpecialPeriodType
    start_date: date
    end_date: date
    description: Optional[str] = None

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class SleepLog:
    date: date
    duration_minutes: int
    deep_sleep_minutes: Optional[int] = None
    light_sleep_minutes: Optional[int] = None
    rem_sleep_minutes: Optional[int] = None
    awake_minutes: Optional[int] = None
    time_in_bed_minutes: Optional[int] = None
    title: Optional[str] = None
    sleep_score: Optional[int] = None
