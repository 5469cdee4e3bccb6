"""Data models and snapshot loaders."""

from .models import (
    AllergySeverity,
    AnchorType,
    DailyWellnessLog,
    SleepLog,
    SpecialPeriod,
    SpecialPeriodType,
    TrainingBalance,
    TrainingPlan,
    UserProfile,
    WellnessTaskDefinition,
    WorkoutLog,
    WorkoutType,
)

__all__ = [
    "AllergySeverity",
    "AnchorType",
    "DailyWellnessLog",
    "SleepLog",
    "SpecialPeriod",
    "SpecialPeriodType",
    "TrainingBalance",
    "TrainingPlan",
    "UserProfile",
    "WellnessTaskDefinition",
    "WorkoutLog",
    "WorkoutType",
]
