"""Execution view projection.

Pure functions that turn server snapshots into render-ready view models.
Nothing here touches a terminal or a clock of its own: the current time
is passed in (or read once per call), so a caller that wants a ticking
duration re-projects periodically.

    view = project(tracker.current_snapshot())
    render_execution(console, view)
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import NamedTuple

from flowforge.core import criteria
from flowforge.core.models import (
    RUN_COMPLETED,
    RUN_FAILED,
    STEP_FAILED,
    STEP_PASSED,
    STEP_RUNNING,
    TERMINAL_RUN_STATUSES,
    Run,
    RunStats,
    StepExecution,
)

WAITING_MESSAGE = "Waiting for steps to start..."


class StatusIndicator(NamedTuple):
    """An icon and the theme style used to draw it."""

    icon: str
    style: str


ICON_PASSED = StatusIndicator("✓", "success")
ICON_FAILED = StatusIndicator("✗", "error")
ICON_RUNNING = StatusIndicator("⟳", "running")
ICON_IDLE = StatusIndicator("○", "pending")

_STEP_ICONS: dict[str, StatusIndicator] = {
    STEP_PASSED: ICON_PASSED,
    STEP_FAILED: ICON_FAILED,
    STEP_RUNNING: ICON_RUNNING,
}

# Run list entries use the run status, not the step status
_RUN_ICONS: dict[str, StatusIndicator] = {
    RUN_COMPLETED: ICON_PASSED,
    RUN_FAILED: ICON_FAILED,
}

_RUN_CLASSES: dict[str, str] = {
    RUN_COMPLETED: "success",
    RUN_FAILED: "error",
}


def step_indicator(status: str) -> StatusIndicator:
    return _STEP_ICONS.get(status, ICON_IDLE)


def format_cost(cost: float) -> str:
    return f"${cost:.6f}"


@dataclass(frozen=True)
class StepView:
    """One row of the execution view."""

    step_id: str
    name: str
    status: str
    icon: str
    style: str
    status_line: str = ""
    criteria_description: str = ""
    attempts_label: str = ""
    cost_label: str = ""
    output: str | None = None
    error: str | None = None
    thinking: bool = False
    placeholder: bool = False


@dataclass(frozen=True)
class ExecutionView:
    """Render-ready picture of one run."""

    run_id: str
    title: str
    status_label: str
    status_class: str
    stats_visible: bool
    tokens_label: str
    cost_label: str
    duration_seconds: int | None
    duration_label: str
    steps: list[StepView] = field(default_factory=list)


@dataclass(frozen=True)
class DashboardView:
    total_workflows: int
    total_runs: int
    success_rate: int
    success_rate_label: str
    total_cost_label: str


@dataclass(frozen=True)
class HistoryEntry:
    run_id: str
    short_id: str
    workflow_name: str
    status: str
    status_class: str
    icon: str
    started_at: datetime | None
    tokens_label: str
    cost_label: str


def _as_utc(value: datetime) -> datetime:
    # The server emits naive ISO timestamps in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def duration_seconds(run: Run, now: datetime | None = None) -> int | None:
    """Whole seconds from start to completion, or to now while running.

    Returns None if the run has not recorded a start time.
    """
    if run.started_at is None:
        return None
    if run.completed_at is not None:
        end = _as_utc(run.completed_at)
    else:
        end = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    elapsed = (end - _as_utc(run.started_at)).total_seconds()
    return max(0, math.floor(elapsed))


def project_step(step: StepExecution) -> StepView:
    indicator = step_indicator(step.status)
    attempts_label = f"Attempt: {step.attempts}"
    cost_label = f"Cost: {format_cost(step.cost)}"
    return StepView(
        step_id=str(step.step_id),
        name=step.step_name,
        status=step.status,
        icon=indicator.icon,
        style=indicator.style,
        status_line=f"{step.status.upper()} • {attempts_label} • {cost_label}",
        criteria_description=criteria.describe(step.criteria_type, step.criteria_value),
        attempts_label=attempts_label,
        cost_label=cost_label,
        output=step.output or None,
        error=step.error or None,
        thinking=step.status == STEP_RUNNING and not step.output and not step.error,
    )


def waiting_placeholder() -> StepView:
    return StepView(
        step_id="",
        name=WAITING_MESSAGE,
        status="waiting",
        icon=ICON_IDLE.icon,
        style=ICON_IDLE.style,
        placeholder=True,
    )


def project(snapshot: Run, now: datetime | None = None) -> ExecutionView:
    """Map a run snapshot to its execution view.

    Args:
        snapshot: The run as last received from the server.
        now: Reference time for runs still in progress. Defaults to the
            current UTC time.

    Example:
        >>> view = project(run)
        >>> view.status_label
        'COMPLETED'
        >>> view.stats_visible
        True
    """
    seconds = duration_seconds(snapshot, now)
    steps = [project_step(s) for s in snapshot.step_executions]
    return ExecutionView(
        run_id=snapshot.id,
        title=snapshot.workflow_name,
        status_label=snapshot.status.upper(),
        status_class=snapshot.status,
        stats_visible=snapshot.status in TERMINAL_RUN_STATUSES,
        tokens_label=str(snapshot.total_tokens),
        cost_label=format_cost(snapshot.total_cost),
        duration_seconds=seconds,
        duration_label=f"{seconds or 0}s",
        steps=steps or [waiting_placeholder()],
    )


def project_dashboard(stats: RunStats, workflow_count: int) -> DashboardView:
    """Summary figures for the dashboard."""
    if stats.total_runs > 0:
        # Half-up, so 12.5% shows as 13%
        rate = math.floor(stats.completed_runs / stats.total_runs * 100 + 0.5)
    else:
        rate = 0
    return DashboardView(
        total_workflows=workflow_count,
        total_runs=stats.total_runs,
        success_rate=rate,
        success_rate_label=f"{rate}%",
        total_cost_label=format_cost(stats.total_cost),
    )


def project_history(runs: Iterable[Run]) -> list[HistoryEntry]:
    """Entries for the run history and recent-activity lists."""
    entries = []
    for run in runs:
        entries.append(
            HistoryEntry(
                run_id=run.id,
                short_id=run.id[:6],
                workflow_name=run.workflow_name,
                status=run.status,
                status_class=_RUN_CLASSES.get(run.status, "neutral"),
                icon=_RUN_ICONS.get(run.status, ICON_RUNNING).icon,
                started_at=run.started_at,
                tokens_label=f"{run.total_tokens} tokens",
                cost_label=format_cost(run.total_cost),
            )
        )
    return entries
