"""Rich rendering of FlowForge view models.

The projector decides what is shown; these functions only decide how.
Builders return renderables so rich.live.Live can redraw them, and the
print_* helpers write them to a console.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import IO, Any

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from flowforge.app.notifications import Notification
from flowforge.core import criteria
from flowforge.core.models import Step, Workflow
from flowforge.core.projector import DashboardView, ExecutionView, HistoryEntry, StepView
from flowforge.frontends.cli.output import format_timestamp
from flowforge.frontends.cli.themes import get_theme

# Output longer than this is cut in the live view
MAX_OUTPUT_CHARS = 2000

_NOTIFICATION_ICONS = {"success": "✓", "error": "✗", "info": "•"}


def make_console(
    theme_name: str = "default",
    file: IO[str] | None = None,
    **kwargs: Any,
) -> Console:
    """Console with a FlowForge theme."""
    return Console(theme=get_theme(theme_name), file=file, **kwargs)


# =============================================================================
# Execution view
# =============================================================================


def step_renderable(step: StepView) -> RenderableType:
    """One step row: icon and name, status line, criteria, then output."""
    if step.placeholder:
        return Text(f"{step.icon} {step.name}", style="muted")

    header = Text()
    header.append(f"{step.icon} ", style=step.style)
    header.append(step.name, style="label")

    parts: list[RenderableType] = [header]
    parts.append(Text(f"  {step.status_line}", style="muted"))
    parts.append(Text(f"  Criteria: {step.criteria_description}", style="criteria"))

    if step.thinking:
        parts.append(Text("  Thinking...", style="thinking"))
    if step.output:
        output = step.output
        if len(output) > MAX_OUTPUT_CHARS:
            output = output[:MAX_OUTPUT_CHARS] + "..."
        parts.append(Text(output, style="output"))
    if step.error:
        parts.append(Text(f"  Error: {step.error}", style="error"))

    return Group(*parts)


def execution_renderable(
    view: ExecutionView,
    notifications: Iterable[Notification] = (),
) -> RenderableType:
    """The whole execution view, ready for console.print or Live.update."""
    header = Text()
    header.append(view.title or "Untitled workflow", style="title")
    header.append("  ")
    header.append(f" {view.status_label} ", style=f"status.{view.status_class}")

    rows: list[RenderableType] = [header]
    if view.stats_visible:
        stats = Table.grid(padding=(0, 2))
        stats.add_row(
            Text(f"Tokens: {view.tokens_label}", style="label"),
            Text(f"Cost: {view.cost_label}", style="label"),
            Text(f"Duration: {view.duration_label}", style="label"),
        )
        rows.append(stats)
    else:
        rows.append(Text(f"Elapsed: {view.duration_label}", style="muted"))

    rows.append(Text(""))
    for step in view.steps:
        rows.append(step_renderable(step))
        rows.append(Text(""))

    for notification in notifications:
        rows.append(notification_renderable(notification))

    return Panel(
        Group(*rows),
        title=f"Run {view.run_id}",
        title_align="left",
        border_style="border",
    )


def print_execution(console: Console, view: ExecutionView) -> None:
    console.print(execution_renderable(view))


# =============================================================================
# Dashboard and history
# =============================================================================


def history_table(entries: list[HistoryEntry], title: str | None = None) -> Table:
    table = Table(title=title, title_justify="left", border_style="border", expand=False)
    table.add_column("", width=1)
    table.add_column("RUN", style="muted")
    table.add_column("WORKFLOW", style="label")
    table.add_column("STATUS")
    table.add_column("STARTED", style="muted")
    table.add_column("TOKENS", justify="right")
    table.add_column("COST", justify="right")

    for entry in entries:
        table.add_row(
            Text(entry.icon, style=entry.status_class),
            entry.short_id,
            entry.workflow_name,
            Text(entry.status, style=entry.status_class),
            format_timestamp(entry.started_at),
            entry.tokens_label,
            entry.cost_label,
        )
    return table


def print_dashboard(
    console: Console,
    dashboard: DashboardView,
    recent: list[HistoryEntry],
) -> None:
    """Print the summary figures followed by recent activity."""
    figures = Table.grid(padding=(0, 4))
    figures.add_row(
        Text("Workflows", style="muted"),
        Text("Runs", style="muted"),
        Text("Success rate", style="muted"),
        Text("Total cost", style="muted"),
    )
    figures.add_row(
        Text(str(dashboard.total_workflows), style="title"),
        Text(str(dashboard.total_runs), style="title"),
        Text(dashboard.success_rate_label, style="title"),
        Text(dashboard.total_cost_label, style="title"),
    )
    console.print(Panel(figures, title="Dashboard", title_align="left", border_style="border"))

    if recent:
        console.print(history_table(recent, title="Recent activity"))
    else:
        console.print("[muted]No runs yet[/]")


# =============================================================================
# Workflows
# =============================================================================


def step_summary(index: int, step: Step) -> Text:
    """One line per step for the editor and `workflow show`."""
    line = Text()
    line.append(f"{index + 1:>2}. ", style="muted")
    line.append(step.name, style="label")
    line.append(f"  [{step.model}]", style="muted")
    description = criteria.describe(step.criteria_type, step.criteria_value)
    line.append(f"  {description}", style="criteria")
    line.append(f"  retries={step.retry_limit} context={step.context_mode}", style="muted")
    return line


def print_workflow(console: Console, workflow: Workflow) -> None:
    title = Text(workflow.name or "Untitled workflow", style="title")
    if workflow.id is not None:
        title.append(f"  #{workflow.id}", style="muted")
    console.print(title)
    if workflow.description:
        console.print(Text(workflow.description, style="muted"))

    if not workflow.steps:
        console.print("[muted]No steps[/]")
        return
    for index, step in enumerate(workflow.steps):
        console.print(step_summary(index, step))


# =============================================================================
# Notifications
# =============================================================================


def notification_renderable(notification: Notification) -> Text:
    icon = _NOTIFICATION_ICONS.get(notification.level, "•")
    return Text(f"{icon} {notification.message}", style=notification.level)


def print_notification(console: Console, notification: Notification) -> None:
    console.print(notification_renderable(notification))
