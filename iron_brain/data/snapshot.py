"""Load workout and profile snapshots from CSV/JSON exports."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from .models import (
    BALANCE_PRESETS,
    DEFAULT_AVAILABILITY,
    NO_ANCHORS,
    AnchorType,
    TrainingBalance,
    TrainingPlan,
    UserProfile,
    WorkoutLog,
    WorkoutType,
)

logger = logging.getLogger(__name__)

WEEKDAYS = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]

WORKOUT_COLUMNS = ["date", "type", "duration_minutes"]


def _optional(value, cast):
    if value is None or pd.isna(value):
        return None
    return cast(value)


def load_workouts(path: Union[str, Path]) -> List[WorkoutLog]:
    """Read completed workouts from a CSV file.

    Required columns: date, type, duration_minutes. Optional: computed_tss,
    avg_heart_rate, avg_power_watts, distance_meters, title, is_commute.
    """
    df = pd.read_csv(path)
    missing = [col for col in WORKOUT_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Workout CSV is missing columns: {', '.join(missing)}")

    df["date"] = pd.to_datetime(df["date"]).dt.date
    df = df.sort_values("date")

    logs = []
    for row in df.to_dict("records"):
        logs.append(WorkoutLog(
            date=row["date"],
            type=WorkoutType(str(row["type"]).upper()),
            duration_minutes=int(row["duration_minutes"]),
            computed_tss=_optional(row.get("computed_tss"), int),
            avg_heart_rate=_optional(row.get("avg_heart_rate"), int),
            avg_power_watts=_optional(row.get("avg_power_watts"), int),
            distance_meters=_optional(row.get("distance_meters"), float),
            title=_optional(row.get("title"), str),
            is_commute=bool(_optional(row.get("is_commute"), bool) or False),
        ))
    logger.info(f"Loaded {len(logs)} workouts from {path}")
    return logs


def _parse_weekday_map(raw, default, parse_value):
    if raw is None:
        return default
    if isinstance(raw, dict):
        return tuple(parse_value(raw.get(day)) for day in WEEKDAYS)
    if len(raw) != 7:
        raise ValueError("Weekday lists need exactly 7 entries (Monday first)")
    return tuple(parse_value(value) for value in raw)


def _parse_balance(raw) -> TrainingBalance:
    if raw is None:
        return BALANCE_PRESETS["IRONMAN_BASE"]
    if isinstance(raw, str):
        try:
            return BALANCE_PRESETS[raw.upper()]
        except KeyError:
            raise ValueError(f"Unknown training balance preset: {raw}")
    return TrainingBalance(
        bike_percent=int(raw["bike"]),
        run_percent=int(raw["run"]),
        swim_percent=int(raw["swim"]),
    )


def profile_from_dict(data: Dict[str, Any]) -> UserProfile:
    """Build a UserProfile from a JSON-style dict."""
    goal = data.get("goal_date")
    availability = _parse_weekday_map(
        data.get("weekly_availability"),
        DEFAULT_AVAILABILITY,
        lambda types: frozenset(WorkoutType(t.upper()) for t in (types or [])),
    )
    schedule = _parse_weekday_map(
        data.get("weekly_schedule"),
        NO_ANCHORS,
        lambda anchor: AnchorType((anchor or "NONE").upper()),
    )
    return UserProfile(
        ftp_bike=data.get("ftp_bike"),
        max_heart_rate=data.get("max_heart_rate"),
        lthr=data.get("lthr"),
        threshold_run_pace=data.get("threshold_run_pace"),
        css_seconds_per_100m=data.get("css_seconds_per_100m"),
        default_swim_tss=data.get("default_swim_tss", 60),
        default_strength_heavy_tss=data.get("default_strength_heavy_tss", 60),
        goal_date=date.fromisoformat(goal) if goal else None,
        weekly_availability=availability,
        weekly_schedule=schedule,
        training_balance=_parse_balance(data.get("training_balance")),
        strength_days=int(data.get("strength_days", 2)),
    )


def load_profile(path: Union[str, Path]) -> UserProfile:
    with open(path) as f:
        return profile_from_dict(json.load(f))


def plans_to_frame(plans: List[TrainingPlan]) -> pd.DataFrame:
    """Tabulate generated plans, one row per workout."""
    return pd.DataFrame([
        {
            "date": plan.date,
            "type": plan.type.value,
            "sub_type": plan.sub_type,
            "duration_minutes": plan.duration_minutes,
            "planned_tss": plan.planned_tss,
        }
        for plan in plans
    ], columns=["date", "type", "sub_type", "duration_minutes", "planned_tss"])


def write_plans(plans: List[TrainingPlan], path: Optional[Union[str, Path]]) -> None:
    plans_to_frame(plans).to_csv(path, index=False)
    logger.info(f"Wrote {len(plans)} planned workouts to {path}")
