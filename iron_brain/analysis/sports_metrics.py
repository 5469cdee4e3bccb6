"""Sports science metrics: TSS, zone distributions and intensity advice."""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..config import config
from ..data.models import UserProfile, WorkoutType

GAP_THRESHOLD_SECONDS = 30
MAX_REALISTIC_IF = 1.15

# Lower bounds as a fraction of max HR, highest zone first
HR_ZONE_BOUNDS = (("Z5", 0.90), ("Z4", 0.80), ("Z3", 0.70), ("Z2", 0.60), ("Z1", 0.50))
# Lower bounds as a fraction of FTP; everything below Z2 is Z1
POWER_ZONE_BOUNDS = (("Z5", 1.05), ("Z4", 0.90), ("Z3", 0.75), ("Z2", 0.55))

DEFAULT_THRESHOLD_PACE = 300  # s/km
DEFAULT_CSS = 100  # s/100m


@dataclass(frozen=True)
class HeartRateSample:
    timestamp: datetime
    bpm: int


@dataclass(frozen=True)
class PowerSample:
    timestamp: datetime
    watts: int


class IntensityTagColor(Enum):
    GREEN = "green"
    ORANGE = "orange"
    RED = "red"


@dataclass(frozen=True)
class IntensityAdvice:
    if_factor: float
    zone_label: str
    advice: str
    is_realistic: bool
    tag_color: IntensityTagColor
    warning: Optional[str] = None


class SportsMetricsCalculator:
    """Calculate training load metrics against an athlete profile."""

    def __init__(self, profile: Optional[UserProfile] = None):
        """Initialize with athlete-specific thresholds.

        Args:
            profile: Athlete profile; missing thresholds fall back to configured defaults
        """
        self.profile = profile or UserProfile()
        self.max_hr = self.profile.max_heart_rate or config.DEFAULT_MAX_HEART_RATE
        self.ftp = self.profile.ftp_bike or config.DEFAULT_FTP

    def calculate_hr_tss(self, duration_minutes: float, avg_hr: float) -> int:
        """Heart-rate TSS: hours * (avg / max HR)^2 * 100."""
        hours = duration_minutes / 60.0
        if self.max_hr <= 0:
            return int(hours * 40)
        return int(hours * (avg_hr / self.max_hr) ** 2 * 100)

    def calculate_power_tss(self, duration_minutes: float, avg_power: float) -> int:
        """Power TSS: (seconds * P * IF) / (FTP * 3600) * 100 with IF = P / FTP."""
        seconds = duration_minutes * 60.0
        intensity_factor = avg_power / self.ftp
        return int(seconds * avg_power * intensity_factor / (self.ftp * 3600.0) * 100.0)

    def calculate_tss(
        self,
        workout_type: WorkoutType,
        duration_minutes: float,
        avg_hr: Optional[float] = None,
        avg_power: Optional[float] = None,
    ) -> int:
        """Calculate Training Stress Score for any discipline.

        Power beats heart rate for the bike; without sensor data each
        discipline falls back to a fixed TSS per hour.

        Args:
            workout_type: Discipline
            duration_minutes: Duration in minutes
            avg_hr: Average heart rate, if recorded
            avg_power: Average power in watts, if recorded

        Returns:
            TSS as an integer
        """
        hours = duration_minutes / 60.0

        if workout_type == WorkoutType.BIKE:
            if avg_power is not None and self.ftp > 0:
                return self.calculate_power_tss(duration_minutes, avg_power)
            if avg_hr is not None:
                return self.calculate_hr_tss(duration_minutes, avg_hr)
            return int(hours * 40)
        if workout_type == WorkoutType.RUN:
            if avg_hr is not None:
                return self.calculate_hr_tss(duration_minutes, avg_hr)
            return int(hours * 50)
        if workout_type == WorkoutType.SWIM:
            return int(hours * (self.profile.default_swim_tss or config.DEFAULT_SWIM_TSS))
        if workout_type == WorkoutType.STRENGTH:
            return int(hours * (self.profile.default_strength_heavy_tss or config.DEFAULT_STRENGTH_TSS))
        if avg_hr is not None:
            return self.calculate_hr_tss(duration_minutes, avg_hr)
        return int(hours * 20)

    def hr_zone_distribution(self, samples: Sequence[HeartRateSample]) -> Dict[str, int]:
        """Seconds per HR zone using the sample-hold rule.

        Each sample's value holds until the next sample; segments longer than
        30 s are sensor dropouts and are ignored, as is time below 50% max HR.
        """
        if len(samples) < 2 or self.max_hr <= 0:
            return {}
        limits = [(zone, int(self.max_hr * fraction)) for zone, fraction in HR_ZONE_BOUNDS]
        return _zone_distribution(
            [s.timestamp for s in samples], [s.bpm for s in samples], limits, default_zone=None
        )

    def power_zone_distribution(self, samples: Sequence[PowerSample]) -> Dict[str, int]:
        """Seconds per power zone using the sample-hold rule."""
        if len(samples) < 2 or self.ftp <= 0:
            return {}
        limits = [(zone, int(self.ftp * fraction)) for zone, fraction in POWER_ZONE_BOUNDS]
        return _zone_distribution(
            [s.timestamp for s in samples], [s.watts for s in samples], limits, default_zone="Z1"
        )

    def get_intensity_advice(self, workout_type: WorkoutType, tss: int, duration_minutes: int) -> IntensityAdvice:
        """Intensity factor of a planned session with a discipline-specific target."""
        if duration_minutes <= 0:
            return IntensityAdvice(0.0, "N/A", "Invalid duration", True, IntensityTagColor.GREEN)

        if_factor = math.sqrt(tss * 60.0 / (duration_minutes * 100.0))
        is_realistic = if_factor <= MAX_REALISTIC_IF

        if if_factor < 0.75:
            zone_label, color = "Steady / Endurance", IntensityTagColor.GREEN
        elif if_factor <= 0.85:
            zone_label, color = "Tempo / Sweet Spot", IntensityTagColor.ORANGE
        else:
            zone_label, color = "Interval Focus", IntensityTagColor.RED

        return IntensityAdvice(
            if_factor=if_factor,
            zone_label=zone_label,
            advice=self._target_advice(workout_type, if_factor),
            is_realistic=is_realistic,
            tag_color=color,
            warning=None if is_realistic else "Intensity too high for duration",
        )

    def _target_advice(self, workout_type: WorkoutType, if_factor: float) -> str:
        if if_factor <= 0:
            return "Rest"
        if workout_type == WorkoutType.BIKE:
            watts = _round_to_5(self.ftp * if_factor)
            if if_factor < 0.75:
                return f"Steady {watts}W"
            if if_factor <= 0.85:
                return f"Tempo Effort at {watts}W"
            return f"Interval Power: ~{_round_to_5(watts * 1.1)}W (Avg: {watts}W)"
        if workout_type == WorkoutType.RUN:
            pace = int((self.profile.threshold_run_pace or DEFAULT_THRESHOLD_PACE) / if_factor)
            if if_factor < 0.75:
                return f"Steady {format_pace(pace)}/km"
            if if_factor <= 0.85:
                return f"Tempo Pace {format_pace(pace)}/km"
            return f"Interval Pace: ~{format_pace(int(pace * 0.9))}/km"
        if workout_type == WorkoutType.SWIM:
            pace = int((self.profile.css_seconds_per_100m or DEFAULT_CSS) / if_factor)
            if if_factor > 0.85:
                return f"Work Pace: {format_pace(pace)}/100m"
            return f"Pace: {format_pace(pace)}/100m"
        if workout_type == WorkoutType.STRENGTH:
            if if_factor < 0.75:
                return "Light / Recovery Focus"
            if if_factor <= 0.85:
                return "Moderate / Hypertrophy"
            return "Heavy Strength / Power"
        return "General Activity"


def _zone_distribution(timestamps: List[datetime], values: List[int], limits, default_zone) -> Dict[str, int]:
    times = np.array([ts.timestamp() for ts in timestamps])
    gaps = np.diff(times)
    durations = np.floor(gaps)  # whole seconds per segment
    values = np.asarray(values[:-1])

    distribution: Dict[str, int] = {}
    valid = (gaps > 0) & (gaps <= GAP_THRESHOLD_SECONDS)
    assigned = np.zeros(len(values), dtype=bool)
    for zone, limit in limits:
        mask = valid & ~assigned & (values >= limit)
        assigned |= mask
        seconds = int(durations[mask].sum())
        if seconds > 0:
            distribution[zone] = seconds
    if default_zone is not None:
        seconds = int(durations[valid & ~assigned].sum())
        if seconds > 0:
            distribution[default_zone] = distribution.get(default_zone, 0) + seconds
    return dict(sorted(distribution.items()))


def _round_to_5(value: float) -> int:
    return int(math.floor(value / 5.0 + 0.5)) * 5


def format_pace(seconds: int) -> str:
    """Format seconds as m:ss."""
    return f"{seconds // 60}:{seconds % 60:02d}"
