"""Command-line interface for the Iron Brain training coach."""

import logging
from datetime import date, datetime, timedelta

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import config
from .analysis.model import LoadModel
from .analysis.periodization import phase_timeline
from .analysis.plan_generator import PlanGenerator
from .analysis.readiness import ReadinessColor, calculate_readiness
from .analysis.recommendations import assess_day
from .analysis.recovery import calculate_nutrition
from .analysis.rules_engine import CoachSettings, DayContext, validate_with_context
from .analysis.sleep import calculate_sleep_score, extract_vendor_score
from .data.models import AllergySeverity, DailyWellnessLog, TrainingPlan, WorkoutType
from .data.snapshot import load_profile, load_workouts, write_plans

console = Console()

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])

READINESS_STYLES = {
    ReadinessColor.GREEN: "green",
    ReadinessColor.YELLOW: "yellow",
    ReadinessColor.RED: "red",
}


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else (value or date.today())


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose):
    """Iron Brain - training load, readiness and season planning."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.LOG_LEVEL,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@cli.command()
@click.option("--workouts", required=True, type=click.Path(exists=True), help="Workout CSV export")
@click.option("--date", "target", type=DATE_TYPE, help="Evaluation date (default: today)")
@click.option("--days", default=14, help="Days of history to show", type=click.IntRange(1, 365))
def metrics(workouts, target, days):
    """Show fitness (CTL), fatigue (ATL) and form (TSB)."""
    try:
        target = _as_date(target)
        logs = load_workouts(workouts)
        model = LoadModel()
        current = model.calculate_performance_metrics(logs, target)
        history = model.metrics_history(logs, target - timedelta(days=days - 1), target)

        console.print(Panel.fit(
            f"Fitness (CTL): {current.ctl:.1f}\n"
            f"Fatigue (ATL): {current.atl:.1f}\n"
            f"Form (TSB): {current.tsb:.1f}",
            title=f"📊 Training Load on {target}",
            style="bold blue",
        ))

        table = Table(title=f"Last {days} Days", box=box.ROUNDED)
        table.add_column("Date")
        table.add_column("Load", style="magenta")
        table.add_column("Fitness", style="blue")
        table.add_column("Fatigue", style="red")
        table.add_column("Form", style="green")
        for row in history.itertuples():
            table.add_row(
                row.date.strftime("%m/%d"),
                f"{row.training_load:.0f}",
                f"{row.fitness:.1f}",
                f"{row.fatigue:.1f}",
                f"{row.form:+.1f}",
            )
        console.print(table)
    except Exception as e:
        console.print(f"[red]❌ Error: {e}[/red]")


@cli.command()
@click.option("--goal", type=DATE_TYPE, help="Goal race date")
@click.option("--date", "target", type=DATE_TYPE, help="Date to classify (default: today)")
@click.option("--tsb", default=0.0, help="Current form, used for the coach message")
@click.option("--weeks", default=0, help="Also show the phase timeline for this many weeks",
              type=click.IntRange(0, 104))
def phase(goal, target, tsb, weeks):
    """Show the training phase and today's coach message."""
    target = _as_date(target)
    goal_date = goal.date() if goal else None
    assessment = assess_day(target, tsb, goal_date, strength_spacing_hours=config.STRENGTH_SPACING_HOURS)

    console.print(Panel.fit(
        f"[bold]{assessment.phase.display_name}[/bold]: {assessment.phase.description}\n"
        f"Focus: {', '.join(assessment.phase.focus_areas)}\n"
        f"Form status: {assessment.form_status.value}\n\n"
        f"{assessment.message}",
        title=f"🧭 Phase on {target}",
        style="bold blue",
    ))

    if weeks:
        table = Table(title="Phase Timeline", box=box.ROUNDED)
        table.add_column("Phase", style="yellow")
        table.add_column("From")
        table.add_column("To")
        for segment_phase, first_day, last_day in phase_timeline(target, goal_date, weeks):
            table.add_row(segment_phase.display_name, str(first_day), str(last_day))
        console.print(table)


@cli.command()
@click.option("--tsb", required=True, type=int, help="Training stress balance (form)")
@click.option("--sleep-score", type=click.IntRange(0, 100), help="Sleep score 0-100")
@click.option("--soreness", type=click.IntRange(1, 10), help="Soreness 1-10")
@click.option("--mood", type=click.IntRange(1, 10), help="Mood 1-10")
@click.option("--allergy", type=click.Choice([s.name for s in AllergySeverity], case_sensitive=False),
              default="NONE", help="Allergy severity")
def readiness(tsb, sleep_score, soreness, mood, allergy):
    """Compute today's readiness score."""
    status = calculate_readiness(
        tsb,
        sleep_score=sleep_score,
        soreness=soreness,
        mood=mood,
        allergy=AllergySeverity[allergy.upper()],
    )
    style = READINESS_STYLES[status.color]
    body = f"[{style}]Readiness: {status.score}/100[/{style}]\n{status.breakdown}"
    if status.allergy_penalty:
        body += f"\nAllergy penalty: -{status.allergy_penalty}"
    console.print(Panel.fit(body, title="💪 Readiness", style="bold"))


@cli.command("sleep-score")
@click.option("--duration", required=True, type=click.IntRange(0, 1440), help="Total sleep minutes")
@click.option("--deep", type=int, help="Deep sleep minutes")
@click.option("--rem", type=int, help="REM sleep minutes")
@click.option("--awake", type=int, help="Minutes awake")
@click.option("--in-bed", type=int, help="Minutes in bed")
@click.option("--title", help="Device title text, may contain a reported score")
def sleep_score(duration, deep, rem, awake, in_bed, title):
    """Score a night of sleep on 1-100."""
    vendor = extract_vendor_score(title)
    if vendor is not None:
        console.print(f"😴 Sleep score: [bold]{vendor}[/bold] (device reported)")
        return
    score = calculate_sleep_score(
        duration, deep_minutes=deep, rem_minutes=rem, awake_minutes=awake, time_in_bed_minutes=in_bed
    )
    console.print(f"😴 Sleep score: [bold]{score}[/bold]")


@cli.command()
@click.option("--weight", required=True, type=click.FloatRange(20, 250), help="Body weight in kg")
@click.option("--tss", default=0.0, type=click.FloatRange(0), help="Total TSS for the day")
def nutrition(weight, tss):
    """Daily macronutrient targets."""
    targets = calculate_nutrition(weight, tss)
    table = Table(title=f"🍝 Nutrition for {tss:.0f} TSS", box=box.ROUNDED)
    table.add_column("Macro")
    table.add_column("Grams", style="green")
    table.add_row("Protein", f"{targets.protein_grams:.0f}")
    table.add_row("Fat", f"{targets.fat_grams:.0f}")
    table.add_row("Carbs", f"{targets.carb_grams:.0f}")
    console.print(table)


@cli.command()
@click.option("--workouts", required=True, type=click.Path(exists=True), help="Workout CSV export")
@click.option("--date", "target", type=DATE_TYPE, help="Planned date (default: today)")
@click.option("--type", "workout_type", required=True,
              type=click.Choice([t.value for t in WorkoutType], case_sensitive=False))
@click.option("--tss", default=50, type=click.IntRange(0), help="Planned TSS")
@click.option("--duration", default=60, type=click.IntRange(1), help="Planned minutes")
@click.option("--sub-type", help="Session label, e.g. Tempo or Easy")
@click.option("--distance", type=float, help="Planned distance in km")
@click.option("--commute", is_flag=True, help="Session is a commute")
@click.option("--allergy", type=click.Choice([s.name for s in AllergySeverity], case_sensitive=False),
              default="NONE")
def validate(workouts, target, workout_type, tss, duration, sub_type, distance, commute, allergy):
    """Check a planned workout against the coach rules."""
    try:
        config.validate()
    except ValueError as e:
        console.print(f"[red]❌ Configuration Error: {e}[/red]")
        console.print("[yellow]See .env.example for the allowed values.[/yellow]")
        return

    try:
        target = _as_date(target)
        logs = load_workouts(workouts)
        plan = TrainingPlan(
            date=target,
            type=WorkoutType(workout_type.upper()),
            duration_minutes=duration,
            planned_tss=tss,
            sub_type=sub_type,
            is_commute=commute,
            distance_km=distance,
        )
        wellness = DailyWellnessLog(date=target, allergy_severity=AllergySeverity[allergy.upper()])
        context = DayContext.from_history(logs, target, wellness=wellness)
        warnings = validate_with_context(plan, context, CoachSettings.from_config())

        if not warnings:
            console.print("[green]✅ No rule violations[/green]")
            return
        for warning in warnings:
            style = "red" if warning.is_blocker else "yellow"
            marker = "⛔" if warning.is_blocker else "⚠️"
            console.print(f"[{style}]{marker} {warning.title}: {warning.message}[/{style}]")
    except Exception as e:
        console.print(f"[red]❌ Error: {e}[/red]")


@cli.command()
@click.option("--profile", "profile_path", required=True, type=click.Path(exists=True),
              help="Athlete profile JSON")
@click.option("--workouts", type=click.Path(exists=True), help="Workout CSV export")
@click.option("--start", type=DATE_TYPE, help="First day of the season (default: today)")
@click.option("--months", default=3, help="Months to generate", type=click.IntRange(1, 24))
@click.option("--ramp", type=float, help="Weekly ramp rate limit in %")
@click.option("--output", type=click.Path(), help="Write the plan to this CSV")
def plan(profile_path, workouts, start, months, ramp, output):
    """Generate a periodized season plan."""
    try:
        config.validate()
    except ValueError as e:
        console.print(f"[red]❌ Configuration Error: {e}[/red]")
        console.print("[yellow]See .env.example for the allowed values.[/yellow]")
        return

    start = _as_date(start)
    try:
        profile = load_profile(profile_path)
        logs = load_workouts(workouts) if workouts else []
        current_ctl = LoadModel().current_ctl(logs, start)
        generator = PlanGenerator(ramp_rate_limit=ramp)
    except Exception as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        return

    console.print(Panel.fit(
        f"🏁 Season plan from {start} ({months} months, CTL {current_ctl:.1f})",
        style="bold blue",
    ))
    with console.status("Generating plan..."):
        result = generator.generate_season(start, current_ctl, months, logs, profile)

    if not result.is_success:
        console.print(f"[red]❌ {result.reason}[/red]")
        if result.detail:
            console.print(f"[red]{result.detail}[/red]")
        return

    table = Table(title="Weekly Targets", box=box.ROUNDED)
    table.add_column("Week")
    table.add_column("Start")
    table.add_column("Phase", style="yellow")
    table.add_column("Target", style="magenta")
    table.add_column("Planned", style="green")
    for week in result.weeks:
        label = week.phase.display_name + (" (recovery)" if week.is_recovery_week else "")
        table.add_row(
            str(week.week_number), str(week.start_date), label,
            str(week.target_tss), str(week.planned_tss),
        )
    console.print(table)
    console.print(f"[green]✅ {len(result.plans)} workouts planned[/green]")

    if output:
        write_plans(result.plans, output)
        console.print(f"💾 Saved to {output}")


def main():
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")


if __name__ == "__main__":
    main()
