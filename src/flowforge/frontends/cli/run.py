"""Run commands, including the live run watcher."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from contextlib import suppress

import rich_click as click
from rich.console import Console
from rich.live import Live

from flowforge.app.controller import AppController
from flowforge.app.state import View
from flowforge.core.config import ClientConfig
from flowforge.core.projector import ExecutionView, project_dashboard, project_history
from flowforge.frontends.cli.output import format_timestamp, output_json_or_table, print_table
from flowforge.frontends.cli.rendering import execution_renderable, make_console
from flowforge.frontends.cli.utils import api_connection, async_command, controller_session
from flowforge.transport.live_channel import ChannelState

logger = logging.getLogger(__name__)

# Seconds between redraws; keeps the duration of a running run ticking
REFRESH_INTERVAL = 1.0


@click.group()
def run() -> None:
    """Start and follow workflow runs.

    **Commands:**

        flowforge run start    Start a run of a saved workflow

        flowforge run watch    Follow a run live until it finishes

        flowforge run list     List recent runs

        flowforge run stats    Run totals and success rate
    """
    pass


@run.command("start")
@click.argument("workflow_id")
@click.option("--watch", "-w", is_flag=True, help="Follow the run until it finishes")
@click.pass_obj
@async_command
async def run_start(config: ClientConfig, workflow_id: str, watch: bool) -> None:
    """Start a run of a saved workflow.

    **Examples:**

        flowforge run start 3

        flowforge run start 3 --watch
    """
    if not watch:
        async with api_connection(config) as api:
            run_id = await api.start_run(workflow_id)
        click.echo(run_id)
        return

    console = make_console()
    async with controller_session(config, console=console) as controller:
        controller.channel.start()
        if await controller.edit_workflow(workflow_id) is None:
            sys.exit(1)
        run_id = await controller.run_workflow()
        if run_id is None:
            sys.exit(1)
        await watch_execution(controller, console)


@run.command("watch")
@click.argument("run_id")
@click.option(
    "--refresh",
    default=REFRESH_INTERVAL,
    show_default=True,
    help="Seconds between redraws",
)
@click.pass_obj
@async_command
async def run_watch(config: ClientConfig, run_id: str, refresh: float) -> None:
    """Follow a run live until it finishes.

    Step results appear as the server reports them. Press Ctrl-C to stop
    watching; the run itself keeps going on the server.

    **Example:**

        flowforge run watch a1b2c3d4
    """
    console = make_console()
    async with controller_session(config, console=console) as controller:
        controller.channel.start()
        if await controller.view_run(run_id) is None:
            sys.exit(1)
        await watch_execution(controller, console, refresh=refresh)


@run.command("list")
@click.option("--limit", "-n", type=int, default=None, help="Maximum number of runs")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
@async_command
async def run_list(config: ClientConfig, limit: int | None, json_output: bool) -> None:
    """List recent runs, newest first.

    **Examples:**

        flowforge run list

        flowforge run list --limit 5 --json
    """
    async with api_connection(config) as api:
        runs = await api.list_runs(limit=limit)

    def show_table() -> None:
        entries = project_history(runs)
        if not entries:
            click.echo("No runs yet")
            return
        rows = [
            [
                e.icon,
                e.short_id,
                e.workflow_name,
                e.status,
                format_timestamp(e.started_at),
                e.tokens_label,
                e.cost_label,
            ]
            for e in entries
        ]
        print_table(
            ["", "RUN", "WORKFLOW", "STATUS", "STARTED", "TOKENS", "COST"],
            rows,
            widths=[1, 8, 24, 10, 20, 14, 12],
            separator_width=94,
        )

    output_json_or_table(runs, json_output, show_table)


@run.command("stats")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
@async_command
async def run_stats(config: ClientConfig, json_output: bool) -> None:
    """Show run totals and success rate.

    **Example:**

        flowforge run stats
    """
    async with api_connection(config) as api:
        stats = await api.get_run_stats()
        workflows = await api.list_workflows()
    view = project_dashboard(stats, len(workflows))

    def show_table() -> None:
        click.echo(f"Workflows:    {view.total_workflows}")
        click.echo(f"Runs:         {view.total_runs}")
        click.echo(f"Success rate: {view.success_rate_label}")
        click.echo(f"Total cost:   {view.total_cost_label}")

    output_json_or_table(stats, json_output, show_table)


async def watch_execution(
    controller: AppController,
    console: Console,
    refresh: float = REFRESH_INTERVAL,
) -> ExecutionView | None:
    """Draw the tracked run live until it finishes or the user leaves.

    Push updates redraw immediately; in between, the view is re-projected
    every refresh seconds. While the push channel is not open the run is
    fetched again on each of those ticks instead. Ctrl-C asks for
    confirmation while the run is still active.

    Returns:
        The last view drawn.
    """
    view = controller.execution_view()
    if view is None:
        return None

    interrupted = asyncio.Event()
    loop = asyncio.get_running_loop()
    with suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, interrupted.set)

    live = Live(execution_renderable(view), console=console, auto_refresh=False)

    def redraw(latest: ExecutionView | None = None) -> None:
        latest = latest or controller.execution_view()
        if latest is not None:
            live.update(
                execution_renderable(latest, controller.notifier.active()),
                refresh=True,
            )

    controller.renderer = redraw
    controller.channel.start()
    try:
        with live:
            while controller.tracker.is_active:
                try:
                    await asyncio.wait_for(interrupted.wait(), timeout=refresh)
                except asyncio.TimeoutError:
                    if controller.channel.state is not ChannelState.OPEN:
                        # No pushes arrive while disconnected; poll instead
                        await controller.refresh_run()
                    redraw()
                    continue

                interrupted.clear()
                live.stop()
                if await controller.navigate(View.DASHBOARD, load=False):
                    logger.info("Stopped watching run %s", controller.tracker.tracked_run_id)
                    break
                live.start(refresh=True)
            if not controller.tracker.is_active:
                redraw()
    finally:
        controller.renderer = None
        with suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    return controller.execution_view()
