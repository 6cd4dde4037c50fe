"""Tests for the execution view projector."""

from datetime import datetime, timedelta, timezone

import pytest

from flowforge.core.models import RunStats
from flowforge.core.projector import (
    WAITING_MESSAGE,
    duration_seconds,
    format_cost,
    project,
    project_dashboard,
    project_history,
)

STARTED = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


class TestProjectRun:
    """Tests for the run-level fields."""

    def test_completed_run(self, completed_run):
        """A finished run shows its stats."""
        view = project(completed_run)
        assert view.run_id == "r1"
        assert view.title == "Summarize"
        assert view.status_label == "COMPLETED"
        assert view.status_class == "completed"
        assert view.stats_visible is True
        assert view.tokens_label == "1234"
        assert view.cost_label == "$0.012500"
        assert view.duration_seconds == 42
        assert view.duration_label == "42s"

    @pytest.mark.parametrize("status", ["pending", "running"])
    def test_stats_hidden_while_in_progress(self, make_run, status):
        """Stats only show for completed or failed runs."""
        assert project(make_run(status=status)).stats_visible is False

    def test_failed_run_shows_stats(self, make_run):
        """failed is terminal too."""
        view = project(make_run(status="failed"))
        assert view.stats_visible is True
        assert view.status_label == "FAILED"

    def test_running_duration_uses_now(self, make_run):
        """A running run measures up to the given now, floored."""
        view = project(make_run(), now=STARTED + timedelta(seconds=7, milliseconds=900))
        assert view.duration_seconds == 7
        assert view.duration_label == "7s"

    def test_no_start_time(self, make_run):
        """Without started_at there is no duration."""
        view = project(make_run(started_at=None))
        assert view.duration_seconds is None
        assert view.duration_label == "0s"

    def test_aware_timestamps(self, make_run):
        """Timezone-aware timestamps are compared as-is."""
        run = make_run(
            started_at="2025-01-01T12:00:00+02:00",
            completed_at="2025-01-01T10:01:00Z",
            status="completed",
        )
        assert duration_seconds(run) == 60


class TestProjectSteps:
    """Tests for the per-step rows."""

    def test_order_preserved(self, make_run, step_payload):
        """Rows appear in step_executions order."""
        run = make_run(steps=[step_payload(i, f"S{i}", "pending") for i in (3, 1, 2)])
        assert [s.name for s in project(run).steps] == ["S3", "S1", "S2"]

    def test_icons(self, make_run, step_payload):
        """Each status has its icon and style."""
        run = make_run(
            steps=[
                step_payload(1, status="passed"),
                step_payload(2, status="failed"),
                step_payload(3, status="running"),
                step_payload(4, status="pending"),
            ]
        )
        rows = project(run).steps
        assert [r.icon for r in rows] == ["✓", "✗", "⟳", "○"]
        assert [r.style for r in rows] == ["success", "error", "running", "pending"]

    def test_labels(self, completed_run):
        """Attempts, cost and status line are formatted."""
        check = project(completed_run).steps[1]
        assert check.attempts_label == "Attempt: 3"
        assert check.cost_label == "Cost: $0.007500"
        assert check.status_line == "FAILED • Attempt: 3 • Cost: $0.007500"
        assert check.error == "No match"
        assert check.output is None

    def test_criteria_description(self, make_run, step_payload):
        """contains shows its value; always does not."""
        run = make_run(
            steps=[
                step_payload(1, criteria_type="contains", criteria_value="value"),
                step_payload(2, criteria_type="always", criteria_value="stale"),
            ]
        )
        rows = project(run).steps
        assert rows[0].criteria_description == 'contains: "value"'
        assert rows[1].criteria_description == "Always Pass"

    def test_thinking(self, make_run, step_payload):
        """A running step with nothing to show yet is thinking."""
        run = make_run(
            steps=[
                step_payload(1, status="running"),
                step_payload(2, status="running", output="partial"),
                step_payload(3, status="pending"),
            ]
        )
        assert [s.thinking for s in project(run).steps] == [True, False, False]

    def test_empty_run_has_placeholder(self, make_run):
        """No step records yields a single waiting row."""
        rows = project(make_run()).steps
        assert len(rows) == 1
        assert rows[0].placeholder is True
        assert rows[0].name == WAITING_MESSAGE


class TestDashboardAndHistory:
    """Tests for the dashboard and history projections."""

    def test_success_rate_rounds_half_up(self):
        """1 of 8 completed is 12.5%, shown as 13%."""
        view = project_dashboard(RunStats(total_runs=8, completed_runs=1, total_cost=0.5), 3)
        assert view.success_rate == 13
        assert view.success_rate_label == "13%"
        assert view.total_workflows == 3
        assert view.total_cost_label == "$0.500000"

    def test_no_runs(self):
        """No runs means 0%, not a division error."""
        assert project_dashboard(RunStats(), 0).success_rate == 0

    def test_history_entries(self, make_run):
        """History rows shorten the id and classify the status."""
        runs = [
            make_run("abcdef123", status="completed", total_tokens=5),
            make_run("b2", status="failed"),
            make_run("c3", status="running"),
        ]
        entries = project_history(runs)
        assert entries[0].short_id == "abcdef"
        assert entries[0].tokens_label == "5 tokens"
        assert [e.status_class for e in entries] == ["success", "error", "neutral"]
        assert [e.icon for e in entries] == ["✓", "✗", "⟳"]


def test_format_cost():
    """Costs always have six decimals."""
    assert format_cost(0) == "$0.000000"
    assert format_cost(1.5) == "$1.500000"
