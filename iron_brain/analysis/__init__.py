"""Analysis module for load, readiness and season planning."""

from .model import BanisterModel, LoadModel, PerformanceMetrics
from .periodization import TrainingPhase, classify_phase
from .readiness import ReadinessStatus, calculate_readiness
from .rules_engine import CoachSettings, CoachWarning, validate_daily_plan
from .plan_generator import GenerationFailure, GenerationSuccess, PlanGenerator, generate_season
from .sleep import calculate_sleep_score

__all__ = [
    "BanisterModel",
    "LoadModel",
    "PerformanceMetrics",
    "TrainingPhase",
    "classify_phase",
    "ReadinessStatus",
    "calculate_readiness",
    "CoachSettings",
    "CoachWarning",
    "validate_daily_plan",
    "GenerationFailure",
    "GenerationSuccess",
    "PlanGenerator",
    "generate_season",
    "calculate_sleep_score",
]
