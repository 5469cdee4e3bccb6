"""Daily readiness score from load balance, sleep and subjective wellness."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..data.models import AllergySeverity

# Component weights
TSB_WEIGHT = 0.5
SUBJECTIVE_WEIGHT = 0.3
SLEEP_WEIGHT = 0.2

TSB_FRESH = 5  # at or above -> full marks
TSB_FLOOR = -30  # below -> zero
NEUTRAL_SCORE = 50

ALLERGY_PENALTIES = {
    AllergySeverity.MODERATE: 10,
    AllergySeverity.SEVERE: 30,
}


class ReadinessColor(Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


@dataclass(frozen=True)
class ReadinessStatus:
    """Composite readiness score with the components that produced it."""
    score: int
    color: ReadinessColor
    breakdown: str
    allergy_penalty: int


def _clamp(value, low, high):
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def tsb_component(tsb: int) -> int:
    """Map form onto 0-100, linear between -30 and +5."""
    if tsb > TSB_FRESH:
        return 100
    if tsb < TSB_FLOOR:
        return 0
    position = tsb - TSB_FLOOR
    return _clamp(int(position / (TSB_FRESH - TSB_FLOOR) * 100), 0, 100)


def subjective_component(soreness: Optional[int], mood: Optional[int]):
    """Score soreness and mood (1-10) on 0-100.

    Returns:
        Tuple of (score, raw average or None when neither value was given)
    """
    values = [v for v in (soreness, mood) if v is not None]
    if not values:
        return NEUTRAL_SCORE, None
    avg = sum(values) / len(values)
    return _clamp(int((avg - 1) / 9.0 * 100), 0, 100), avg


def readiness_color(score: int) -> ReadinessColor:
    if score > 75:
        return ReadinessColor.GREEN
    if score >= 40:
        return ReadinessColor.YELLOW
    return ReadinessColor.RED


def calculate_readiness(
    tsb: int,
    sleep_score: Optional[int] = None,
    soreness: Optional[int] = None,
    mood: Optional[int] = None,
    allergy: AllergySeverity = AllergySeverity.NONE,
) -> ReadinessStatus:
    """Blend load, sleep and wellness into a 0-100 readiness score.

    Missing sleep or subjective inputs fall back to a neutral 50.

    Args:
        tsb: Training stress balance (form), whole units
        sleep_score: Sleep quality 0-100, if known
        soreness: Muscle soreness 1-10, if logged
        mood: Mood 1-10, if logged
        allergy: Current allergy severity

    Returns:
        ReadinessStatus
    """
    tsb = int(tsb)
    tsb_score = tsb_component(tsb)
    subjective_score, subjective_raw = subjective_component(soreness, mood)
    sleep_component = sleep_score if sleep_score is not None else NEUTRAL_SCORE

    weighted = _round_half_up(
        tsb_score * TSB_WEIGHT
        + subjective_score * SUBJECTIVE_WEIGHT
        + sleep_component * SLEEP_WEIGHT
    )
    penalty = ALLERGY_PENALTIES.get(allergy, 0)
    score = _clamp(weighted - penalty, 0, 100)

    breakdown = f"TSB: {tsb} → {tsb_score}"
    if sleep_score is not None:
        breakdown += f", Sleep: {sleep_score}"
    if subjective_raw is not None:
        breakdown += f", Subjective: {subjective_raw:.1f}/10 → {subjective_score}"

    return ReadinessStatus(
        score=score,
        color=readiness_color(score),
        breakdown=breakdown,
        allergy_penalty=penalty,
    )
