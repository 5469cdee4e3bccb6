"""Banister fitness/fatigue load model."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from ..config import config
from ..data.models import WorkoutLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceMetrics:
    """Fitness (CTL), fatigue (ATL) and form (TSB) on one date."""
    ctl: float
    atl: float
    tsb: float

    def to_dict(self):
        return {"ctl": self.ctl, "atl": self.atl, "tsb": self.tsb}


class BanisterModel:
    """Exponentially weighted fitness-fatigue model seeded at zero."""

    def __init__(self, fitness_decay: float = None, fatigue_decay: float = None):
        """Initialize the model.

        Args:
            fitness_decay: Time constant for fitness (days) - typically 42
            fatigue_decay: Time constant for fatigue (days) - typically 7
        """
        self.fitness_decay = fitness_decay or config.FITNESS_DECAY_RATE
        self.fatigue_decay = fatigue_decay or config.FATIGUE_DECAY_RATE
        self.fitness_alpha = 1 - np.exp(-1 / self.fitness_decay)
        self.fatigue_alpha = 1 - np.exp(-1 / self.fatigue_decay)

    def impulse_response(self, training_loads: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Run the recurrence over consecutive daily loads.

        Args:
            training_loads: Array of daily TSS, one entry per calendar day

        Returns:
            Tuple of (ctl, atl, tsb) arrays
        """
        training_loads = np.asarray(training_loads, dtype=float)
        n_days = len(training_loads)
        ctl = np.zeros(n_days)
        atl = np.zeros(n_days)

        prev_ctl = 0.0
        prev_atl = 0.0
        for i in range(n_days):
            prev_ctl = prev_ctl + (training_loads[i] - prev_ctl) * self.fitness_alpha
            prev_atl = prev_atl + (training_loads[i] - prev_atl) * self.fatigue_alpha
            ctl[i] = prev_ctl
            atl[i] = prev_atl

        return ctl, atl, ctl - atl


def daily_loads(logs: Iterable[WorkoutLog], start: date, end: date) -> pd.Series:
    """Sum computed TSS per calendar day over [start, end].

    Days without workouts are 0; logs outside the range are ignored.
    """
    index = pd.date_range(start=start, end=end, freq="D")
    loads = pd.Series(0.0, index=index)
    for log in logs:
        if start <= log.date <= end:
            loads[pd.Timestamp(log.date)] += log.computed_tss or 0
    return loads


class LoadModel:
    """Derives fitness/fatigue/form from a workout history."""

    def __init__(self, model: Optional[BanisterModel] = None):
        self.model = model or BanisterModel()

    def calculate_performance_metrics(self, logs: Iterable[WorkoutLog], target_date: date) -> PerformanceMetrics:
        """Metrics on ``target_date`` from the earliest log onwards.

        Args:
            logs: Workout history in any order
            target_date: Date to evaluate (inclusive)

        Returns:
            PerformanceMetrics, all zero when there is no history before the target
        """
        logs = [log for log in logs if log.date <= target_date]
        if not logs:
            return PerformanceMetrics(ctl=0.0, atl=0.0, tsb=0.0)

        start = min(log.date for log in logs)
        loads = daily_loads(logs, start, target_date)
        ctl, atl, tsb = self.model.impulse_response(loads.to_numpy())
        return PerformanceMetrics(ctl=float(ctl[-1]), atl=float(atl[-1]), tsb=float(tsb[-1]))

    def metrics_history(self, logs: Iterable[WorkoutLog], start: date, end: date) -> pd.DataFrame:
        """Daily metrics for [start, end] in one forward pass.

        The recurrence starts at the earliest log (or ``start``) so values inside
        the window carry the load accumulated before it.

        Returns:
            DataFrame with columns date, training_load, fitness, fatigue, form
        """
        logs = [log for log in logs if log.date <= end]
        origin = min([start] + [log.date for log in logs])
        loads = daily_loads(logs, origin, end)
        ctl, atl, tsb = self.model.impulse_response(loads.to_numpy())

        df = pd.DataFrame({
            "date": loads.index,
            "training_load": loads.to_numpy(),
            "fitness": ctl,
            "fatigue": atl,
            "form": tsb,
        })
        df = df[df["date"] >= pd.Timestamp(start)].reset_index(drop=True)
        logger.debug(f"Computed {len(df)} days of load metrics from {origin} to {end}")
        return df

    def current_ctl(self, logs: Iterable[WorkoutLog], today: date) -> float:
        """CTL as of yesterday, the baseline the season generator starts from."""
        return self.calculate_performance_metrics(logs, today - timedelta(days=1)).ctl
