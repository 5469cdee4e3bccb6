"""Training phase classification relative to the goal race."""

from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Tuple


class TrainingPhase(Enum):
    """Training phases in a periodized season."""

    OFF_SEASON = "off_season"  # Goal far away or none set
    BASE = "base"  # Aerobic base building
    BUILD = "build"  # Increasing intensity
    PEAK = "peak"  # Race-specific sharpening
    TAPER = "taper"  # Pre-competition taper
    TRANSITION = "transition"  # Post-race recovery

    @property
    def display_name(self) -> str:
        return _PHASE_INFO[self][0]

    @property
    def description(self) -> str:
        return _PHASE_INFO[self][1]

    @property
    def focus_areas(self) -> List[str]:
        return list(_PHASE_INFO[self][2])

    @property
    def load_multiplier(self) -> float:
        """Weekly TSS multiplier applied to the ramp base."""
        return PHASE_MULTIPLIERS[self]


_PHASE_INFO = {
    TrainingPhase.OFF_SEASON: (
        "Off-Season",
        "Strength focus and maintenance while the goal is far away",
        ("Strength", "Mobility", "Technique"),
    ),
    TrainingPhase.BASE: (
        "Base",
        "Aerobic base building with progressive volume",
        ("Aerobic endurance", "Volume", "Consistency"),
    ),
    TrainingPhase.BUILD: (
        "Build",
        "Increasing intensity on top of the aerobic base",
        ("Threshold", "Race-specific intensity", "Long sessions"),
    ),
    TrainingPhase.PEAK: (
        "Peak",
        "Race-specific sharpening at maximum load",
        ("Race pace", "Specificity", "Recovery quality"),
    ),
    TrainingPhase.TAPER: (
        "Taper",
        "Reduced volume with kept intensity before the race",
        ("Freshness", "Short openers", "Sleep"),
    ),
    TrainingPhase.TRANSITION: (
        "Transition",
        "Post-race recovery and unstructured movement",
        ("Recovery", "Fun", "Mental reset"),
    ),
}

PHASE_MULTIPLIERS = {
    TrainingPhase.BASE: 1.0,
    TrainingPhase.BUILD: 1.05,
    TrainingPhase.PEAK: 1.0,
    TrainingPhase.TAPER: 0.55,
    TrainingPhase.OFF_SEASON: 0.95,
    TrainingPhase.TRANSITION: 0.35,
}

OFF_SEASON_MONTHS = 6
BASE_MIN_WEEKS = 21  # more than this -> BASE
BUILD_MIN_WEEKS = 9
PEAK_MIN_WEEKS = 3
TRANSITION_WEEKS = 4


def _whole_months_between(start: date, end: date) -> int:
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def classify_phase(today: date, goal_date: Optional[date]) -> TrainingPhase:
    """Map a date to its training phase relative to the goal.

    Weeks and months are whole units, truncated towards zero.

    Args:
        today: Date to classify
        goal_date: Goal race date, or None

    Returns:
        TrainingPhase (defined for every input)
    """
    if goal_date is None:
        return TrainingPhase.OFF_SEASON

    if today > goal_date:
        weeks_post_race = (today - goal_date).days // 7
        if weeks_post_race <= TRANSITION_WEEKS:
            return TrainingPhase.TRANSITION
        return TrainingPhase.OFF_SEASON

    if _whole_months_between(today, goal_date) > OFF_SEASON_MONTHS:
        return TrainingPhase.OFF_SEASON

    weeks_to_goal = (goal_date - today).days // 7
    if weeks_to_goal <= PEAK_MIN_WEEKS:
        return TrainingPhase.TAPER
    if weeks_to_goal <= BUILD_MIN_WEEKS:
        return TrainingPhase.PEAK
    if weeks_to_goal <= BASE_MIN_WEEKS:
        return TrainingPhase.BUILD
    return TrainingPhase.BASE


def phase_timeline(start: date, goal_date: Optional[date], weeks: int) -> List[Tuple[TrainingPhase, date, date]]:
    """Group consecutive weeks from ``start`` into phase segments.

    Returns:
        List of (phase, first_day, last_day) tuples covering ``weeks`` weeks
    """
    segments: List[Tuple[TrainingPhase, date, date]] = []
    for week in range(weeks):
        week_start = start + timedelta(weeks=week)
        week_end = week_start + timedelta(days=6)
        phase = classify_phase(week_start, goal_date)
        if segments and segments[-1][0] == phase:
            segments[-1] = (phase, segments[-1][1], week_end)
        else:
            segments.append((phase, week_start, week_end))
    return segments
