"""Recovery support: nutrition targets, wellness task triggers and advice."""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..data.models import (
    AllergySeverity,
    DailyWellnessLog,
    TaskTriggerType,
    WellnessTaskDefinition,
    WorkoutLog,
    WorkoutType,
)

PROTEIN_G_PER_KG = 2.0
FAT_G_PER_KG = 1.0

ALLERGY_ADVICE = (
    "Elevated allergy levels detected. Allergies increase biological cost "
    "and can contribute to fatigue. Consider reducing training intensity or volume "
    "until symptoms improve."
)


@dataclass(frozen=True)
class NutritionTargets:
    protein_grams: float
    fat_grams: float
    carb_grams: float

    def to_dict(self):
        return {
            "protein_grams": self.protein_grams,
            "fat_grams": self.fat_grams,
            "carb_grams": self.carb_grams,
        }


def carbs_per_kg(daily_tss: float) -> float:
    """Carbohydrate target in g/kg: 3 below 50 TSS, 5 up to 100, 7 above."""
    if daily_tss < 50:
        return 3.0
    if daily_tss <= 100:
        return 5.0
    return 7.0


def calculate_nutrition(weight_kg: float, daily_tss: float) -> NutritionTargets:
    """Daily macronutrient targets from body weight and training stress.

    Args:
        weight_kg: Body weight in kilograms
        daily_tss: Total TSS for the day

    Returns:
        NutritionTargets in grams
    """
    return NutritionTargets(
        protein_grams=weight_kg * PROTEIN_G_PER_KG,
        fat_grams=weight_kg * FAT_G_PER_KG,
        carb_grams=weight_kg * carbs_per_kg(daily_tss),
    )


def _exceeds(value: float, threshold: Optional[int]) -> bool:
    return threshold is not None and value > threshold


def get_relevant_tasks(
    logs: Iterable[WorkoutLog],
    tasks: Iterable[WellnessTaskDefinition],
) -> List[WellnessTaskDefinition]:
    """Tasks that apply to a day given its workouts.

    DAILY tasks always apply; trigger tasks apply when the day contains a
    strength session or its total duration/TSS exceeds the task threshold.
    Order follows the task list; duplicates are dropped.
    """
    logs = list(logs)
    has_strength = any(log.type == WorkoutType.STRENGTH for log in logs)
    total_minutes = sum(log.duration_minutes for log in logs)
    total_tss = sum(log.computed_tss or 0 for log in logs)

    relevant: List[WellnessTaskDefinition] = []
    for task in tasks:
        if task.type == TaskTriggerType.DAILY:
            active = True
        elif task.type == TaskTriggerType.TRIGGER_STRENGTH:
            active = has_strength
        elif task.type == TaskTriggerType.TRIGGER_LONG_DURATION:
            active = _exceeds(total_minutes, task.trigger_threshold)
        elif task.type == TaskTriggerType.TRIGGER_HIGH_TSS:
            active = _exceeds(total_tss, task.trigger_threshold)
        else:
            active = False
        if active and task not in relevant:
            relevant.append(task)
    return relevant


def get_coach_advice(wellness: Optional[DailyWellnessLog]) -> str:
    """Advice text for the day's check-in, empty when nothing to flag."""
    if wellness is None:
        return ""
    advice = []
    if wellness.allergy_severity >= AllergySeverity.MODERATE:
        advice.append(ALLERGY_ADVICE)
    return "\n\n".join(advice)
