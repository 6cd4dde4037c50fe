"""CLI entry point."""

from __future__ import annotations

import sys

import rich_click as click

from flowforge.__version__ import __version__
from flowforge.app.state import View
from flowforge.core.config import ClientConfig
from flowforge.core.logging_config import configure_logging
from flowforge.frontends.cli.output import output_json
from flowforge.frontends.cli.rendering import make_console, print_dashboard
from flowforge.frontends.cli.run import run
from flowforge.frontends.cli.utils import async_command, controller_session
from flowforge.frontends.cli.workflow import workflow

# Configure rich-click styling
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
click.rich_click.ERRORS_EPILOGUE = ""
click.rich_click.MAX_WIDTH = 100


# =========================================================================
# Root CLI
# =========================================================================
@click.group()
@click.version_option(__version__, prog_name="flowforge")
@click.option("--api", "api_base", default=None, help="REST base URL (env: FLOWFORGE_API_BASE)")
@click.option("--ws", "ws_url", default=None, help="Push channel URL (env: FLOWFORGE_WS_URL)")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (env: FLOWFORGE_LOG_LEVEL, default WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, api_base: str | None, ws_url: str | None, log_level: str | None):
    """FlowForge - build workflows of prompt steps and watch them run.

    Talks to a FlowForge server: workflows and runs over REST, live run
    progress over a WebSocket push channel.

    **Workflows:**

        flowforge workflow   List, create, edit, import and export workflows

    **Runs:**

        flowforge run        Start runs and follow them live

        flowforge dashboard  Totals, success rate and recent activity
    """
    configure_logging(level=log_level)
    ctx.obj = ClientConfig.from_env(api_base=api_base, ws_url=ws_url)


# =========================================================================
# Command groups
# =========================================================================
cli.add_command(workflow)
cli.add_command(run)


@cli.command()
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
@async_command
async def dashboard(config: ClientConfig, json_output: bool) -> None:
    """Show totals, success rate and recent activity.

    **Examples:**

        flowforge dashboard

        flowforge dashboard --json
    """
    console = make_console()
    async with controller_session(config, console=console) as controller:
        await controller.navigate(View.DASHBOARD)
        state = controller.state

    if state.dashboard is None:
        sys.exit(1)

    if json_output:
        output_json(
            {
                "total_workflows": state.dashboard.total_workflows,
                "total_runs": state.dashboard.total_runs,
                "success_rate": state.dashboard.success_rate,
                "total_cost": state.dashboard.total_cost_label,
                "recent_activity": [
                    {"id": e.run_id, "workflow_name": e.workflow_name, "status": e.status}
                    for e in state.recent_activity
                ],
            }
        )
    else:
        print_dashboard(console, state.dashboard, state.recent_activity)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
