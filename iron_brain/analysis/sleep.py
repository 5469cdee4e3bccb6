"""Sleep quality score (1-100) from duration, stages, efficiency and awakenings."""

import logging
import re
from typing import Optional

from ..data.models import SleepLog

logger = logging.getLogger(__name__)

# Point budgets with and without stage data
DURATION_POINTS = 40
DURATION_POINTS_NO_STAGES = 60
STAGE_POINTS_DEEP = 20
STAGE_POINTS_REM = 10
EFFICIENCY_POINTS = 20
EFFICIENCY_POINTS_NO_STAGES = 30

VENDOR_SCORE_PATTERNS = (
    re.compile(r"(?:Sleep\s+)?Score\s*:?\s*(\d{1,3})", re.IGNORECASE),
    re.compile(r"(\d{1,3})/100"),
    re.compile(r"(?:^|\s)(\d{1,3})(?:\s|$)"),
)


def _clamp(value, low, high):
    return max(low, min(high, value))


def duration_points(duration_minutes: float) -> float:
    """Duration score on the 40-point scale, peaking at 8-9 hours."""
    m = duration_minutes
    if 480 <= m <= 540:
        return 40.0
    if 420 <= m < 480:
        return 30.0 + (m - 420) / 60 * 10
    if 540 < m <= 600:
        return 40.0 - (m - 540) / 60 * 10
    if 360 <= m < 420:
        return 20.0 + (m - 360) / 60 * 10
    if 600 < m <= 660:
        return 30.0 - (m - 600) / 60 * 10
    if m < 360:
        return max(0.0, m / 360 * 20)
    return max(0.0, 20.0 - (m - 660) / 60 * 5)


def deep_sleep_points(deep_percent: float) -> float:
    if 15 <= deep_percent <= 20:
        score = 20.0
    elif deep_percent > 20:
        score = 20.0 - (deep_percent - 20) / 10 * 5
    elif deep_percent > 10:
        score = 10.0 + (deep_percent - 10) / 5 * 10
    else:
        score = deep_percent
    return _clamp(score, 0.0, STAGE_POINTS_DEEP)


def rem_sleep_points(rem_percent: float) -> float:
    if 20 <= rem_percent <= 25:
        score = 10.0
    elif rem_percent > 25:
        score = 10.0 - (rem_percent - 25) / 10 * 3
    elif rem_percent > 15:
        score = 7.0 + (rem_percent - 15) / 5 * 3
    else:
        score = rem_percent / 15 * 7
    return _clamp(score, 0.0, STAGE_POINTS_REM)


def efficiency_points(efficiency: float) -> float:
    """Efficiency score on the 20-point scale; full marks at 95%."""
    if efficiency >= 95:
        return 20.0
    if efficiency >= 85:
        return 15.0 + (efficiency - 85) / 10 * 5
    if efficiency >= 75:
        return 10.0 + (efficiency - 75) / 10 * 5
    if efficiency >= 65:
        return 5.0 + (efficiency - 65) / 10 * 5
    return max(0.0, efficiency / 65 * 5)


def awakening_points(awake_minutes: int) -> float:
    if awake_minutes <= 5:
        return 10.0
    if awake_minutes <= 15:
        return 7.0
    if awake_minutes <= 30:
        return 4.0
    return 1.0


def calculate_sleep_score(
    duration_minutes: int,
    deep_minutes: Optional[int] = None,
    rem_minutes: Optional[int] = None,
    awake_minutes: Optional[int] = None,
    time_in_bed_minutes: Optional[int] = None,
) -> int:
    """Compute a 1-100 sleep score.

    Without deep/REM data the stage budget (30 pts) is redistributed: duration
    is scored out of 60 and efficiency out of 30.

    Args:
        duration_minutes: Total sleep time
        deep_minutes: Minutes of deep sleep
        rem_minutes: Minutes of REM sleep
        awake_minutes: Minutes awake during the night
        time_in_bed_minutes: Time in bed; efficiency is 100% when unknown

    Returns:
        Integer score in [1, 100]
    """
    deep = deep_minutes or 0
    rem = rem_minutes or 0
    awake = awake_minutes or 0
    has_stage_data = deep > 0 or rem > 0

    duration_budget = DURATION_POINTS if has_stage_data else DURATION_POINTS_NO_STAGES
    efficiency_budget = EFFICIENCY_POINTS if has_stage_data else EFFICIENCY_POINTS_NO_STAGES

    duration_score = duration_points(duration_minutes) * duration_budget / DURATION_POINTS

    stage_score = 0.0
    if has_stage_data and duration_minutes > 0:
        stage_score = (
            deep_sleep_points(deep / duration_minutes * 100)
            + rem_sleep_points(rem / duration_minutes * 100)
        )

    if time_in_bed_minutes:
        efficiency = duration_minutes / time_in_bed_minutes * 100
    else:
        efficiency = 100.0
    efficiency_score = efficiency_points(efficiency) * efficiency_budget / EFFICIENCY_POINTS

    total = int(duration_score + stage_score + efficiency_score + awakening_points(awake))
    return _clamp(total, 1, 100)


def extract_vendor_score(text: Optional[str]) -> Optional[int]:
    """Parse a device-reported score from free text ("Score: 85", "85/100", "85").

    Only values in 1-100 are accepted.
    """
    if not text:
        return None
    for pattern in VENDOR_SCORE_PATTERNS:
        match = pattern.search(text)
        if match:
            value = int(match.group(1))
            if 1 <= value <= 100:
                return value
    return None


def score_sleep_log(log: SleepLog) -> int:
    """Score for a sleep log, preferring a stored or vendor-reported value."""
    if log.sleep_score is not None:
        return _clamp(log.sleep_score, 1, 100)
    vendor_score = extract_vendor_score(log.title)
    if vendor_score is not None:
        logger.debug(f"Using vendor sleep score {vendor_score} for {log.date}")
        return vendor_score
    return calculate_sleep_score(
        log.duration_minutes,
        deep_minutes=log.deep_sleep_minutes,
        rem_minutes=log.rem_sleep_minutes,
        awake_minutes=log.awake_minutes,
        time_in_bed_minutes=log.time_in_bed_minutes,
    )
