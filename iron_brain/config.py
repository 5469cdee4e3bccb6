"""Configuration management for the Iron Brain training coach."""

import os
from typing import Dict
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Application configuration."""

    # Model Parameters (Banister Model)
    FITNESS_DECAY_RATE: float = float(os.getenv("FITNESS_DECAY_RATE", "42"))  # days
    FATIGUE_DECAY_RATE: float = float(os.getenv("FATIGUE_DECAY_RATE", "7"))  # days

    # Physiological defaults when the profile is missing a threshold
    DEFAULT_MAX_HEART_RATE: int = int(os.getenv("DEFAULT_MAX_HEART_RATE", "185"))
    DEFAULT_FTP: int = int(os.getenv("DEFAULT_FTP", "250"))
    DEFAULT_SWIM_TSS: int = int(os.getenv("DEFAULT_SWIM_TSS", "60"))  # per hour
    DEFAULT_STRENGTH_TSS: int = int(os.getenv("DEFAULT_STRENGTH_TSS", "60"))  # per hour

    # Coach rules (master switch + tunables)
    SMART_PLANNING_ENABLED: bool = _env_bool("SMART_PLANNING_ENABLED", "true")
    RUN_CONSECUTIVE_ALLOWED: bool = _env_bool("RUN_CONSECUTIVE_ALLOWED", "false")
    STRENGTH_SPACING_HOURS: int = int(os.getenv("STRENGTH_SPACING_HOURS", "48"))
    MECHANICAL_LOAD_MONITORING: bool = _env_bool("MECHANICAL_LOAD_MONITORING", "true")
    ALLOW_COMMUTE_EXEMPTION: bool = _env_bool("ALLOW_COMMUTE_EXEMPTION", "true")
    RAMP_RATE_LIMIT: float = float(os.getenv("RAMP_RATE_LIMIT", "5.0"))  # % per week

    ALLOWED_STRENGTH_SPACING = (24, 48, 72)
    MIN_RAMP_RATE: float = 3.0
    MAX_RAMP_RATE: float = 8.0
    MECHANICAL_LOAD_INCREASE_LIMIT: float = 1.15

    # Season generation
    MIN_EFFECTIVE_CTL: float = float(os.getenv("MIN_EFFECTIVE_CTL", "20"))
    MAX_CTL: float = 150.0
    MAX_RAMP_GROWTH: float = 1.5  # cumulative ramp cap relative to the first week
    RECOVERY_WEEK_INTERVAL: int = 4
    RECOVERY_WEEK_FACTOR: float = 0.8
    STRENGTH_SESSION_TSS: int = int(os.getenv("STRENGTH_SESSION_TSS", "50"))
    STRENGTH_SESSION_MINUTES: int = 60
    MIN_SESSION_TSS: int = 20
    RUN_CLAMP_FACTOR: float = 1.15
    RUN_CLAMP_BUFFER: int = 15

    # Standard filler session sizes (TSS) and the largest single filler session
    STANDARD_SESSION_TSS: Dict[str, int] = {
        "RUN": int(os.getenv("STANDARD_RUN_TSS", "45")),
        "BIKE": int(os.getenv("STANDARD_BIKE_TSS", "60")),
        "SWIM": int(os.getenv("STANDARD_SWIM_TSS", "40")),
    }
    MAX_SESSION_TSS: Dict[str, int] = {
        "RUN": int(os.getenv("MAX_RUN_TSS", "120")),
        "BIKE": int(os.getenv("MAX_BIKE_TSS", "200")),
        "SWIM": int(os.getenv("MAX_SWIM_TSS", "90")),
    }

    # Duration heuristic for planned sessions (TSS per hour of training)
    TSS_PER_HOUR: Dict[str, float] = {
        "RUN": float(os.getenv("TSS_PER_HOUR_RUN", "60")),
        "BIKE": float(os.getenv("TSS_PER_HOUR_BIKE", "50")),
        "SWIM": float(os.getenv("TSS_PER_HOUR_SWIM", "55")),
        "STRENGTH": float(os.getenv("TSS_PER_HOUR_STRENGTH", "50")),
        "OTHER": float(os.getenv("TSS_PER_HOUR_OTHER", "40")),
    }

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_tss_per_hour(cls, workout_type: str) -> float:
        """Get the planning TSS/hour rate for a discipline."""
        return cls.TSS_PER_HOUR.get(workout_type, cls.TSS_PER_HOUR["OTHER"])

    @classmethod
    def validate(cls) -> bool:
        """Validate rule configuration."""
        if cls.STRENGTH_SPACING_HOURS not in cls.ALLOWED_STRENGTH_SPACING:
            raise ValueError(
                f"STRENGTH_SPACING_HOURS must be one of {cls.ALLOWED_STRENGTH_SPACING}, "
                f"got {cls.STRENGTH_SPACING_HOURS}"
            )
        if not cls.MIN_RAMP_RATE <= cls.RAMP_RATE_LIMIT <= cls.MAX_RAMP_RATE:
            raise ValueError(
                f"RAMP_RATE_LIMIT must be within [{cls.MIN_RAMP_RATE}, {cls.MAX_RAMP_RATE}], "
                f"got {cls.RAMP_RATE_LIMIT}"
            )
        return True


config = Config()
