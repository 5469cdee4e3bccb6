"""Multi-week season generation under phase budgets and coach rules.

Each week gets a TSS target from the ramp base and the phase multiplier,
split into strength/run/bike/swim budgets. Anchored weekdays are placed
first, then the remaining days are filled Run -> Bike -> Swim. Every
candidate goes through the rules engine before it is committed.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from ..config import config
from ..data.models import (
    AnchorType,
    Intensity,
    StrengthFocus,
    TrainingPlan,
    UserProfile,
    WorkoutLog,
    WorkoutType,
)
from .periodization import TrainingPhase, classify_phase
from .rules_engine import CoachSettings, DayContext, has_blocker, validate_with_context

logger = logging.getLogger(__name__)

MIN_GOAL_DAYS = 14
MAX_GOAL_DAYS = 730
MAX_STRENGTH_SESSIONS = 4
FORWARD_CHECK_DAYS = 3  # longest rule look-back (72h strength spacing)

FILL_ORDER = (WorkoutType.RUN, WorkoutType.BIKE, WorkoutType.SWIM)

FILLER_SUB_TYPES = {
    TrainingPhase.BASE: "Endurance",
    TrainingPhase.BUILD: "Tempo",
    TrainingPhase.PEAK: "Threshold",
    TrainingPhase.TAPER: "Easy",
    TrainingPhase.OFF_SEASON: "Easy",
    TrainingPhase.TRANSITION: "Recovery",
}

# Long anchor base durations (minutes) by balance preset
LONG_RUN_MINUTES = {"IRONMAN_BASE": 150, "BALANCED": 105, "RUN_FOCUS": 75}
LONG_RUN_DEFAULT_MINUTES = 90
LONG_BIKE_MINUTES = {"IRONMAN_BASE": 180, "BALANCED": 120, "BIKE_FOCUS": 240}
LONG_BIKE_DEFAULT_MINUTES = 150
LONG_PHASE_FACTORS = {TrainingPhase.TAPER: 0.6, TrainingPhase.TRANSITION: 0.4}
LONG_RUN_TSS_PER_MINUTE = 1.2
LONG_BIKE_TSS_PER_MINUTE = 0.8


@dataclass(frozen=True)
class DisciplineBudget:
    """Weekly TSS budget per discipline."""
    strength_tss: int
    run_tss: int
    bike_tss: int
    swim_tss: int

    @property
    def total_tss(self) -> int:
        return self.strength_tss + self.run_tss + self.bike_tss + self.swim_tss

    def for_type(self, workout_type: WorkoutType) -> int:
        return {
            WorkoutType.STRENGTH: self.strength_tss,
            WorkoutType.RUN: self.run_tss,
            WorkoutType.BIKE: self.bike_tss,
            WorkoutType.SWIM: self.swim_tss,
        }.get(workout_type, 0)


@dataclass(frozen=True)
class WeekSummary:
    """What the generator aimed for and placed in one week."""
    week_number: int
    start_date: date
    phase: TrainingPhase
    is_recovery_week: bool
    ramp_base_tss: float
    equivalent_tss: int  # target this week would have without the recovery reduction
    target_tss: int
    budget: DisciplineBudget
    planned_tss: int
    skipped: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationSuccess:
    plans: List[TrainingPlan]
    weeks: List[WeekSummary] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class GenerationFailure:
    reason: str
    detail: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return False


GenerationResult = Union[GenerationSuccess, GenerationFailure]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def strength_sessions_for_phase(strength_days: int, phase: TrainingPhase) -> int:
    """Phase-adjusted number of strength sessions in a week."""
    if phase in (TrainingPhase.TAPER, TrainingPhase.TRANSITION):
        return 0
    if phase == TrainingPhase.OFF_SEASON:
        return min(MAX_STRENGTH_SESSIONS, _round_half_up(strength_days * 1.2))
    return strength_days


def average_weekly_run_tss(history: Iterable[Union[WorkoutLog, TrainingPlan]], before: date, days: int = 14) -> float:
    """Average weekly running TSS over the ``days`` preceding ``before``."""
    window_start = before - timedelta(days=days)
    total = 0.0
    for item in history:
        if item.type != WorkoutType.RUN or not window_start <= item.date < before:
            continue
        tss = item.planned_tss if isinstance(item, TrainingPlan) else item.computed_tss
        total += tss or 0
    return total / (days / 7)


def calculate_discipline_budget(
    target_tss: int,
    balance,
    strength_sessions: int,
    recent_run_avg: float,
) -> DisciplineBudget:
    """Split a weekly target into per-discipline budgets.

    Strength is reserved first at a fixed cost per session. The cardio
    remainder follows the balance percentages; running is capped at 115% of
    the recent weekly average + 15 and the overflow goes to the bike.
    """
    strength_tss = strength_sessions * config.STRENGTH_SESSION_TSS
    cardio = max(0, target_tss - strength_tss)

    swim = cardio * balance.swim_percent // 100
    run = cardio * balance.run_percent // 100
    bike = cardio - swim - run  # bike absorbs the integer-division remainder

    max_safe_run = int(recent_run_avg * config.RUN_CLAMP_FACTOR) + config.RUN_CLAMP_BUFFER
    if run > max_safe_run:
        bike += run - max_safe_run
        run = max_safe_run

    return DisciplineBudget(strength_tss=strength_tss, run_tss=run, bike_tss=bike, swim_tss=swim)


def _duration_for(workout_type: WorkoutType, tss: int) -> int:
    return max(1, _round_half_up(tss / config.get_tss_per_hour(workout_type.value) * 60))


def _plan_id(day: date, workout_type: WorkoutType) -> str:
    return f"{day.isoformat()}-{workout_type.value.lower()}"


class PlanGenerator:
    """Builds a season of TrainingPlan entries."""

    def __init__(self, settings: Optional[CoachSettings] = None, ramp_rate_limit: Optional[float] = None):
        self.settings = settings or CoachSettings.from_config()
        self.ramp_rate_limit = ramp_rate_limit if ramp_rate_limit is not None else config.RAMP_RATE_LIMIT
        self.logger = logger

    def validate_inputs(
        self,
        profile: Optional[UserProfile],
        current_ctl: float,
        start_date: date,
        months: int,
    ) -> Optional[GenerationFailure]:
        """Pre-flight checks; returns a failure or None when generation may run."""
        if not self.settings.enabled:
            return GenerationFailure(
                "Smart Planning is disabled",
                "Please enable Smart Planning in Coach Settings to generate training plans.",
            )
        if profile is None:
            return GenerationFailure(
                "User profile is missing. Please complete your profile.",
                "Required: goal date, training balance, and weekly availability.",
            )
        if profile.goal_date is None:
            return GenerationFailure(
                "Goal date is not set. Please set a target race date.",
                "Set your primary race date (goal date) in the profile.",
            )

        days_until_goal = (profile.goal_date - start_date).days
        if days_until_goal < MIN_GOAL_DAYS:
            return GenerationFailure(
                f"Goal date is too close ({max(days_until_goal, 0) // 7} weeks). Minimum 2 weeks required.",
                f"Your goal date is {days_until_goal} days from the start date.",
            )
        if days_until_goal > MAX_GOAL_DAYS:
            return GenerationFailure(
                f"Goal date is too far ({days_until_goal} days). Maximum 2 years for accurate projection.",
                "Please set a goal date within the next 2 years.",
            )

        if current_ctl < 0:
            return GenerationFailure(
                "CTL cannot be negative. Please check your training data.",
                "Your current fitness level (CTL) is outside the valid range.",
            )
        if current_ctl > config.MAX_CTL:
            return GenerationFailure(
                f"CTL exceeds realistic maximum ({config.MAX_CTL:.0f}). Please verify your training data.",
                "Your current fitness level (CTL) is outside the valid range.",
            )

        if not profile.has_availability():
            return GenerationFailure(
                "No training days available. Please set weekly availability.",
                "Every weekday has an empty availability set.",
            )
        if not profile.training_balance.is_valid():
            balance = profile.training_balance
            total = balance.bike_percent + balance.run_percent + balance.swim_percent
            return GenerationFailure(
                "Training balance must sum to 100%.",
                f"Bike/run/swim percentages currently sum to {total}%.",
            )
        if not config.MIN_RAMP_RATE <= self.ramp_rate_limit <= config.MAX_RAMP_RATE:
            return GenerationFailure(
                f"Ramp rate {self.ramp_rate_limit}% is outside the allowed range.",
                f"Choose a ramp rate between {config.MIN_RAMP_RATE}% and {config.MAX_RAMP_RATE}% per week.",
            )
        if months < 1:
            return GenerationFailure("Season length must be at least one month.")
        return None

    def generate_season(
        self,
        start_date: date,
        current_ctl: float,
        months: int,
        recent_logs: Sequence[WorkoutLog],
        profile: Optional[UserProfile],
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> GenerationResult:
        """Generate ``months`` of daily plans starting at ``start_date``.

        Args:
            start_date: First day of the first generated week
            current_ctl: Fitness at the start of the season
            months: Number of calendar months to cover
            recent_logs: Real workouts from the trailing two weeks
            profile: Athlete profile
            should_cancel: Polled between weeks; returning True stops generation

        Returns:
            GenerationSuccess with the plans and week summaries, or GenerationFailure
        """
        failure = self.validate_inputs(profile, current_ctl, start_date, months)
        if failure is not None:
            self.logger.warning(f"Generation aborted: {failure.reason}")
            return failure

        try:
            return self._generate(start_date, current_ctl, months, recent_logs, profile, should_cancel)
        except Exception as e:
            self.logger.exception("Season generation failed")
            return GenerationFailure("Season generation failed", str(e))

    def _generate(self, start_date, current_ctl, months, recent_logs, profile, should_cancel) -> GenerationResult:
        end_date = (pd.Timestamp(start_date) + pd.DateOffset(months=months)).date()
        total_weeks = math.ceil((end_date - start_date).days / 7)
        real_logs = [log for log in recent_logs if log.date < start_date]

        effective_ctl = max(current_ctl, config.MIN_EFFECTIVE_CTL)
        initial_base = effective_ctl * 7
        ramp_base = initial_base
        ramp_factor = 1 + self.ramp_rate_limit / 100

        self.logger.info(
            f"Generating {total_weeks} weeks from {start_date}: CTL {current_ctl:.1f}, "
            f"ramp {self.ramp_rate_limit}%, goal {profile.goal_date}"
        )

        plans: List[TrainingPlan] = []
        weeks: List[WeekSummary] = []
        for week_number in range(1, total_weeks + 1):
            if should_cancel is not None and should_cancel():
                self.logger.info(f"Generation cancelled before week {week_number}")
                return GenerationFailure("Generation cancelled", f"Stopped before week {week_number}.")

            week_start = start_date + timedelta(weeks=week_number - 1)
            phase = classify_phase(week_start, profile.goal_date)
            is_recovery = week_number % config.RECOVERY_WEEK_INTERVAL == 0

            # Recovery weeks do not advance the ramp; it resumes from the last loading week
            if week_number > 1 and not is_recovery and phase in (TrainingPhase.BASE, TrainingPhase.BUILD):
                ramp_base = min(ramp_base * ramp_factor, initial_base * config.MAX_RAMP_GROWTH)

            equivalent = _round_half_up(ramp_base * phase.load_multiplier)
            target = _round_half_up(equivalent * config.RECOVERY_WEEK_FACTOR) if is_recovery else equivalent

            week_plans, summary = self._generate_week(
                week_number, week_start, phase, is_recovery, ramp_base, equivalent, target,
                profile, real_logs, plans,
            )
            plans.extend(week_plans)
            weeks.append(summary)

        if not plans:
            self.logger.warning("Generation finished without placing any workouts")
        self.logger.info(f"Generated {len(plans)} workouts over {total_weeks} weeks")
        return GenerationSuccess(plans=plans, weeks=weeks)

    def _generate_week(
        self,
        week_number: int,
        week_start: date,
        phase: TrainingPhase,
        is_recovery: bool,
        ramp_base: float,
        equivalent: int,
        target: int,
        profile: UserProfile,
        real_logs: List[WorkoutLog],
        previous_plans: List[TrainingPlan],
    ) -> Tuple[List[TrainingPlan], WeekSummary]:
        history = list(real_logs) + list(previous_plans)
        strength_sessions = min(
            strength_sessions_for_phase(profile.strength_days, phase),
            target // config.STRENGTH_SESSION_TSS,
        )
        run_avg = average_weekly_run_tss(history, week_start)
        budget = calculate_discipline_budget(target, profile.training_balance, strength_sessions, run_avg)
        self.logger.debug(
            f"Week {week_number} ({phase.display_name}{', recovery' if is_recovery else ''}): "
            f"target {target}, run {budget.run_tss}, bike {budget.bike_tss}, "
            f"swim {budget.swim_tss}, strength {budget.strength_tss}"
        )

        week = _WeekState(week_start, budget, history)
        skipped: List[str] = []

        # Pass 1: anchors
        for offset in range(7):
            day = week_start + timedelta(days=offset)
            anchor = profile.anchor_for(day)
            if anchor == AnchorType.NONE:
                continue
            candidate = self._anchor_candidate(anchor, day, profile, phase, target, week, strength_sessions)
            if candidate is None:
                skipped.append(f"{anchor.value} anchor on {day}: no budget left")
                continue
            if week.try_place(candidate, self.settings):
                self.logger.debug(f"  + {anchor.value} anchor on {day} ({candidate.planned_tss} TSS)")
            else:
                skipped.append(f"{anchor.value} anchor on {day}: blocked by coach rules")
                self.logger.warning(f"  x {anchor.value} anchor on {day} blocked by coach rules")

        # Pass 2: remaining strength days, then cardio fillers
        self._place_strength(week, profile, strength_sessions)
        pools = {t: budget.for_type(t) - week.used(t) for t in FILL_ORDER}
        # Unplaced strength sessions become bike volume
        pools[WorkoutType.BIKE] += budget.strength_tss - week.used(WorkoutType.STRENGTH)
        carry = 0
        for workout_type in FILL_ORDER:
            carry = self._fill(week, profile, phase, workout_type, pools[workout_type] + carry)
        if carry > 0:
            self.logger.debug(f"  {carry} TSS could not be placed in week {week_number}")

        summary = WeekSummary(
            week_number=week_number,
            start_date=week_start,
            phase=phase,
            is_recovery_week=is_recovery,
            ramp_base_tss=ramp_base,
            equivalent_tss=equivalent,
            target_tss=target,
            budget=budget,
            planned_tss=sum(p.planned_tss for p in week.plans),
            skipped=tuple(skipped),
        )
        return sorted(week.plans, key=lambda p: p.date), summary

    def _anchor_candidate(
        self,
        anchor: AnchorType,
        day: date,
        profile: UserProfile,
        phase: TrainingPhase,
        target: int,
        week: "_WeekState",
        strength_sessions: int,
    ) -> Optional[TrainingPlan]:
        workout_type = anchor.workout_type
        if anchor == AnchorType.STRENGTH:
            if week.count(WorkoutType.STRENGTH) >= strength_sessions:
                return None
            return _strength_plan(day)

        remaining = week.budget.for_type(workout_type) - week.used(workout_type)
        if anchor == AnchorType.LONG_RUN:
            minutes = _long_minutes(LONG_RUN_MINUTES, LONG_RUN_DEFAULT_MINUTES, 240, profile, phase, target)
            return _sized_plan(day, workout_type, _round_half_up(minutes * LONG_RUN_TSS_PER_MINUTE),
                               remaining, "Long Run", LONG_RUN_TSS_PER_MINUTE)
        if anchor == AnchorType.LONG_BIKE:
            minutes = _long_minutes(LONG_BIKE_MINUTES, LONG_BIKE_DEFAULT_MINUTES, 360, profile, phase, target)
            return _sized_plan(day, workout_type, _round_half_up(minutes * LONG_BIKE_TSS_PER_MINUTE),
                               remaining, "Long Bike", LONG_BIKE_TSS_PER_MINUTE)

        if workout_type == WorkoutType.SWIM:
            size = profile.default_swim_tss
        else:
            size = config.STANDARD_SESSION_TSS[workout_type.value]
        return _sized_plan(day, workout_type, size, remaining, FILLER_SUB_TYPES[phase])

    def _place_strength(self, week: "_WeekState", profile: UserProfile, strength_sessions: int) -> None:
        for offset in range(7):
            if week.count(WorkoutType.STRENGTH) >= strength_sessions:
                return
            day = week.start + timedelta(days=offset)
            if week.is_occupied(day) or WorkoutType.STRENGTH not in profile.available_types(day):
                continue
            if week.try_place(_strength_plan(day), self.settings):
                self.logger.debug(f"  + Strength on {day}")

    def _fill(
        self,
        week: "_WeekState",
        profile: UserProfile,
        phase: TrainingPhase,
        workout_type: WorkoutType,
        remaining: int,
    ) -> int:
        """Spread ``remaining`` TSS over free days; returns what could not be placed."""
        if remaining < config.MIN_SESSION_TSS:
            return max(0, remaining)

        standard = config.STANDARD_SESSION_TSS[workout_type.value]
        max_session = config.MAX_SESSION_TSS[workout_type.value]
        free_days = [
            week.start + timedelta(days=offset)
            for offset in range(7)
            if not week.is_occupied(week.start + timedelta(days=offset))
        ]
        candidate_days = [day for day in free_days if workout_type in profile.available_types(day)]

        # Take the days the disciplines filled later can least afford to lose first
        later = FILL_ORDER[FILL_ORDER.index(workout_type) + 1:]
        open_days = {t: sum(1 for day in free_days if t in profile.available_types(day)) for t in later}

        def contention(day: date) -> float:
            return sum(1 / open_days[t] for t in later if t in profile.available_types(day))

        candidate_days.sort(key=lambda day: (contention(day), day))

        for index, day in enumerate(candidate_days):
            if remaining < config.MIN_SESSION_TSS:
                break
            days_left = len(candidate_days) - index
            sessions_left = max(1, min(days_left, math.ceil(remaining / standard)))
            tss = min(max_session, remaining, math.ceil(remaining / sessions_left))
            plan = TrainingPlan(
                id=_plan_id(day, workout_type),
                date=day,
                type=workout_type,
                sub_type=FILLER_SUB_TYPES[phase],
                duration_minutes=_duration_for(workout_type, tss),
                planned_tss=tss,
            )
            if week.try_place(plan, self.settings):
                remaining -= tss
                self.logger.debug(f"  + {workout_type.value} filler on {day} ({tss} TSS)")

        return max(0, remaining)


def _strength_plan(day: date) -> TrainingPlan:
    return TrainingPlan(
        id=_plan_id(day, WorkoutType.STRENGTH),
        date=day,
        type=WorkoutType.STRENGTH,
        sub_type="Strength",
        duration_minutes=config.STRENGTH_SESSION_MINUTES,
        planned_tss=config.STRENGTH_SESSION_TSS,
        strength_focus=StrengthFocus.FULL_BODY,
        intensity=Intensity.HEAVY,
    )


def _long_minutes(presets, default, max_minutes, profile, phase, target) -> int:
    minutes = presets.get(profile.training_balance.preset_name(), default)
    minutes = _round_half_up(minutes * LONG_PHASE_FACTORS.get(phase, 1.0))
    if target > 400:
        minutes = _round_half_up(minutes * 1.2)
    elif target < 200:
        minutes = _round_half_up(minutes * 0.8)
    return max(30, min(max_minutes, minutes))


def _sized_plan(day, workout_type, size, remaining, sub_type, tss_per_minute=None) -> Optional[TrainingPlan]:
    """Plan of ``size`` TSS clipped to the remaining budget, None if too small."""
    tss = min(size, remaining)
    if tss < config.MIN_SESSION_TSS:
        return None
    if tss_per_minute:
        duration = _round_half_up(tss / tss_per_minute)
    else:
        duration = _duration_for(workout_type, tss)
    return TrainingPlan(
        id=_plan_id(day, workout_type),
        date=day,
        type=workout_type,
        sub_type=sub_type,
        duration_minutes=duration,
        planned_tss=tss,
    )


class _WeekState:
    """Plans committed so far in one week, with rule-checked placement."""

    def __init__(self, start: date, budget: DisciplineBudget, history: List[Union[WorkoutLog, TrainingPlan]]):
        self.start = start
        self.budget = budget
        self.history = history
        self.plans: List[TrainingPlan] = []

    def is_occupied(self, day: date) -> bool:
        return any(p.date == day for p in self.plans)

    def used(self, workout_type: WorkoutType) -> int:
        return sum(p.planned_tss for p in self.plans if p.type == workout_type)

    def count(self, workout_type: WorkoutType) -> int:
        return sum(1 for p in self.plans if p.type == workout_type)

    def try_place(self, candidate: TrainingPlan, settings: CoachSettings) -> bool:
        """Commit ``candidate`` unless it, or a later placed session, would be blocked."""
        if self.is_occupied(candidate.date):
            return False
        placed = self.history + self.plans
        context = DayContext.from_history(placed, candidate.date)
        if has_blocker(validate_with_context(candidate, context, settings)):
            return False

        # Sessions already placed later in the week must stay valid with the candidate
        with_candidate = placed + [candidate]
        horizon = candidate.date + timedelta(days=FORWARD_CHECK_DAYS)
        for plan in self.plans:
            if candidate.date < plan.date <= horizon:
                later_context = DayContext.from_history(with_candidate, plan.date)
                if has_blocker(validate_with_context(plan, later_context, settings)):
                    return False

        self.plans.append(candidate)
        return True


def generate_season(
    start_date: date,
    current_ctl: float,
    months: int,
    recent_logs: Sequence[WorkoutLog],
    profile: Optional[UserProfile],
    settings: Optional[CoachSettings] = None,
    ramp_rate_limit: Optional[float] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> GenerationResult:
    """Convenience wrapper around ``PlanGenerator.generate_season``."""
    generator = PlanGenerator(settings=settings, ramp_rate_limit=ramp_rate_limit)
    return generator.generate_season(start_date, current_ctl, months, recent_logs, profile, should_cancel)
