"""Daily coaching message based on form, phase and special periods."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional

from ..data.models import SpecialPeriod, SpecialPeriodType
from .periodization import TrainingPhase, classify_phase

CRITICAL_TSB = -40
SWEET_SPOT = (-30, -10)
FRESH_TSB = 5
OVERREACHING_TSB = -30

SPECIAL_PERIOD_MESSAGES = (
    (SpecialPeriodType.INJURY,
     "Recovery Mode. Focus on mobility and nutrition. Avoid impact training. "
     "Physiological repair is the priority. Monitor inflammation."),
    (SpecialPeriodType.RECOVERY_WEEK,
     "Active Recovery Week. Reduce volume and intensity to allow adaptation. "
     "Focus on sleep and quality nutrition."),
    (SpecialPeriodType.HOLIDAY,
     "Holiday Mode. Maintain activity if possible, but enjoy the break. "
     "Don't stress about missed sessions."),
)

PHASE_MESSAGES = {
    TrainingPhase.BASE: "Phase: Base. Focus on aerobic capacity, technique, and consistency. "
                        "Keep intensity low and volume steady.",
    TrainingPhase.BUILD: "Phase: Build. Progressive overload is key. Hit your key sessions hard "
                         "and respect recovery days.",
    TrainingPhase.PEAK: "Phase: Peak. Specificity is highest now. Focus on race-pace intervals "
                        "and simulation sessions.",
    TrainingPhase.TAPER: "Phase: Taper. Race ready! Maintain sharpness with short, high-intensity "
                         "sessions but reduce overall volume significantly.",
    TrainingPhase.TRANSITION: "Phase: Transition. Rest, recover, and reset mentally. "
                              "Unstructured activity only.",
}


class FormStatus(Enum):
    FRESHNESS = "freshness"
    OPTIMAL = "optimal"
    OVERREACHING = "overreaching"


@dataclass(frozen=True)
class CoachAssessment:
    phase: TrainingPhase
    form_status: FormStatus
    message: str
    active_periods: List[SpecialPeriod]


def active_special_periods(periods: Iterable[SpecialPeriod], day: date) -> List[SpecialPeriod]:
    return [period for period in periods if period.contains(day)]


def determine_form_status(tsb: float) -> FormStatus:
    if tsb > FRESH_TSB:
        return FormStatus.FRESHNESS
    if tsb < OVERREACHING_TSB:
        return FormStatus.OVERREACHING
    return FormStatus.OPTIMAL


def coach_message(
    tsb: float,
    phase: TrainingPhase,
    active_periods: Iterable[SpecialPeriod] = (),
    strength_spacing_hours: int = 48,
) -> str:
    """Pick the single most important message for today.

    Special periods override everything, then critical fatigue, then the
    sweet spot, then phase guidance.
    """
    active_types = {period.type for period in active_periods}
    for period_type, message in SPECIAL_PERIOD_MESSAGES:
        if period_type in active_types:
            return message

    if tsb < CRITICAL_TSB:
        return (
            "CRITICAL: Systemic fatigue is too high (TSB < -40). High risk of injury or "
            "overtraining. Skip high-intensity sessions today."
        )
    if SWEET_SPOT[0] <= tsb <= SWEET_SPOT[1]:
        return (
            f"Phase: {phase.display_name}. You are in the Sweet Spot. Your body is absorbing "
            f"the workload efficiently. Keep going."
        )
    if phase == TrainingPhase.OFF_SEASON:
        return (
            f"Focus: Structural Integrity. Prioritize {strength_spacing_hours}h rest between heavy "
            f"strength sessions for muscle protein synthesis. Build raw strength now."
        )
    return PHASE_MESSAGES[phase]


def assess_day(
    day: date,
    tsb: float,
    goal_date: Optional[date],
    periods: Iterable[SpecialPeriod] = (),
    strength_spacing_hours: int = 48,
) -> CoachAssessment:
    """Full assessment for one day: phase, form status and message."""
    phase = classify_phase(day, goal_date)
    active = active_special_periods(periods, day)
    return CoachAssessment(
        phase=phase,
        form_status=determine_form_status(tsb),
        message=coach_message(tsb, phase, active, strength_spacing_hours),
        active_periods=active,
    )
