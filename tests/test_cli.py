"""Tests for the command-line interface."""

import json

import pandas as pd
from click.testing import CliRunner

from iron_brain.cli import cli
from iron_brain.config import Config

WORKOUTS_CSV = """date,type,duration_minutes,computed_tss,distance_meters,title
2024-05-01,BIKE,90,80,,Morning ride
2024-05-10,RUN,45,50,9000,Easy run
2024-05-12,SWIM,40,35,2000,
2024-05-14,RUN,50,55,10000,Tempo run
"""


class TestCli:
    """Commands run end to end against small fixtures."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def _write_workouts(self):
        with open("workouts.csv", "w") as f:
            f.write(WORKOUTS_CSV)
        return "workouts.csv"

    def test_readiness(self):
        result = self.runner.invoke(cli, ["readiness", "--tsb", "0", "--sleep-score", "80",
                                          "--soreness", "7", "--mood", "9"])

        assert result.exit_code == 0
        assert "82/100" in result.output

    def test_readiness_allergy_penalty(self):
        result = self.runner.invoke(cli, ["readiness", "--tsb", "10", "--allergy", "severe"])

        assert result.exit_code == 0
        assert "45/100" in result.output
        assert "Allergy penalty: -30" in result.output

    def test_sleep_score(self):
        result = self.runner.invoke(cli, ["sleep-score", "--duration", "510", "--deep", "90", "--rem", "100",
                                          "--awake", "5", "--in-bed", "520"])

        assert result.exit_code == 0
        assert "Sleep score: 99" in result.output

    def test_sleep_score_from_device_title(self):
        result = self.runner.invoke(cli, ["sleep-score", "--duration", "300", "--title", "Sleep Score: 85"])

        assert "Sleep score: 85" in result.output
        assert "device reported" in result.output

    def test_nutrition(self):
        result = self.runner.invoke(cli, ["nutrition", "--weight", "70", "--tss", "120"])

        assert result.exit_code == 0
        assert "490" in result.output
        assert "140" in result.output

    def test_phase(self):
        result = self.runner.invoke(cli, ["phase", "--goal", "2024-06-01", "--date", "2024-05-22",
                                          "--weeks", "3"])

        assert result.exit_code == 0
        assert "Taper" in result.output
        assert "Phase Timeline" in result.output
        assert "Transition" in result.output

    def test_phase_without_goal(self):
        result = self.runner.invoke(cli, ["phase", "--date", "2024-05-22"])
        assert "Off-Season" in result.output

    def test_metrics(self):
        with self.runner.isolated_filesystem():
            path = self._write_workouts()
            result = self.runner.invoke(cli, ["metrics", "--workouts", path, "--date", "2024-05-15",
                                              "--days", "5"])

        assert result.exit_code == 0
        assert "Fitness (CTL)" in result.output
        assert "Last 5 Days" in result.output

    def test_validate_blocks_consecutive_runs(self):
        with self.runner.isolated_filesystem():
            path = self._write_workouts()
            result = self.runner.invoke(cli, ["validate", "--workouts", path, "--date", "2024-05-15",
                                              "--type", "run", "--tss", "40"])

        assert result.exit_code == 0
        assert "Consecutive Runs Blocked" in result.output

    def test_validate_clean_day(self):
        with self.runner.isolated_filesystem():
            path = self._write_workouts()
            result = self.runner.invoke(cli, ["validate", "--workouts", path, "--date", "2024-05-15",
                                              "--type", "swim"])

        assert "No rule violations" in result.output

    def test_plan_writes_csv(self):
        with self.runner.isolated_filesystem():
            with open("profile.json", "w") as f:
                json.dump({"goal_date": "2024-07-01", "training_balance": "IRONMAN_BASE", "strength_days": 2}, f)
            path = self._write_workouts()

            result = self.runner.invoke(cli, ["plan", "--profile", "profile.json", "--workouts", path,
                                              "--start", "2024-05-20", "--months", "1", "--output", "plan.csv"])
            plan = pd.read_csv("plan.csv")

        assert result.exit_code == 0
        assert "Weekly Targets" in result.output
        assert "workouts planned" in result.output
        assert list(plan.columns) == ["date", "type", "sub_type", "duration_minutes", "planned_tss"]
        assert len(plan) > 0

    def test_plan_reports_failure(self):
        with self.runner.isolated_filesystem():
            with open("profile.json", "w") as f:
                json.dump({"strength_days": 2}, f)

            result = self.runner.invoke(cli, ["plan", "--profile", "profile.json", "--start", "2024-05-20"])

        assert result.exit_code == 0
        assert "Goal date is not set" in result.output

    def test_plan_rejects_unknown_preset(self):
        with self.runner.isolated_filesystem():
            with open("profile.json", "w") as f:
                json.dump({"goal_date": "2024-07-01", "training_balance": "SPRINT"}, f)

            result = self.runner.invoke(cli, ["plan", "--profile", "profile.json"])

        assert "Unknown training balance preset: SPRINT" in result.output

    def test_plan_rejects_bad_strength_spacing(self, monkeypatch):
        monkeypatch.setattr(Config, "STRENGTH_SPACING_HOURS", 36)
        with self.runner.isolated_filesystem():
            with open("profile.json", "w") as f:
                json.dump({"goal_date": "2024-07-01", "training_balance": "IRONMAN_BASE"}, f)

            result = self.runner.invoke(cli, ["plan", "--profile", "profile.json", "--start", "2024-05-20"])

        assert result.exception is None
        assert "❌ Configuration Error" in result.output
        assert "STRENGTH_SPACING_HOURS must be one of" in result.output
        assert "Weekly Targets" not in result.output

    def test_validate_rejects_bad_ramp_rate(self, monkeypatch):
        monkeypatch.setattr(Config, "RAMP_RATE_LIMIT", 12.0)
        with self.runner.isolated_filesystem():
            path = self._write_workouts()
            result = self.runner.invoke(cli, ["validate", "--workouts", path, "--date", "2024-05-15",
                                              "--type", "swim"])

        assert result.exception is None
        assert "RAMP_RATE_LIMIT must be within" in result.output
        assert "No rule violations" not in result.output
