"""Workflow commands."""

from __future__ import annotations

import json
import sys
from typing import IO

import rich_click as click
from rich.console import Console

from flowforge.app.controller import AppController
from flowforge.core.config import ClientConfig
from flowforge.frontends.cli.editor import PromptAsker, run_editor
from flowforge.frontends.cli.output import (
    output_json,
    output_json_or_table,
    print_table,
    truncate,
)
from flowforge.frontends.cli.rendering import make_console, print_workflow
from flowforge.frontends.cli.utils import (
    always_confirm,
    api_connection,
    async_command,
    confirm,
    controller_session,
)


@click.group()
def workflow() -> None:
    """Manage workflows.

    A workflow is an ordered list of prompt steps. Each step sends its
    prompt to a model and checks the output against a pass criteria,
    retrying up to its retry limit.

    **Commands:**

        flowforge workflow list      List workflows

        flowforge workflow show      Show a workflow and its steps

        flowforge workflow create    Create a workflow interactively

        flowforge workflow edit      Edit a workflow interactively

        flowforge workflow delete    Delete a workflow and its run history

        flowforge workflow export    Write a workflow as JSON

        flowforge workflow import    Create a workflow from exported JSON
    """
    pass


@workflow.command("list")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
@async_command
async def workflow_list(config: ClientConfig, json_output: bool) -> None:
    """List workflows.

    **Examples:**

        flowforge workflow list

        flowforge workflow list --json
    """
    async with api_connection(config) as api:
        workflows = await api.list_workflows()

    def show_table() -> None:
        if not workflows:
            click.echo("No workflows yet")
            return
        rows = [
            [
                str(wf.id),
                truncate(wf.name, 30),
                str(wf.step_count),
                str(wf.run_count),
                truncate(wf.description or "", 40),
            ]
            for wf in workflows
        ]
        print_table(
            ["ID", "NAME", "STEPS", "RUNS", "DESCRIPTION"],
            rows,
            widths=[6, 30, 6, 6, 40],
            separator_width=92,
        )

    output_json_or_table(workflows, json_output, show_table)


@workflow.command("show")
@click.argument("workflow_id")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
@async_command
async def workflow_show(config: ClientConfig, workflow_id: str, json_output: bool) -> None:
    """Show a workflow and its steps.

    **Examples:**

        flowforge workflow show 3

        flowforge workflow show 3 --json
    """
    async with api_connection(config) as api:
        wf = await api.get_workflow(workflow_id)

    output_json_or_table(wf, json_output, lambda: print_workflow(make_console(), wf))


@workflow.command("delete")
@click.argument("workflow_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
@async_command
async def workflow_delete(config: ClientConfig, workflow_id: str, yes: bool) -> None:
    """Delete a workflow.

    All run history of the workflow is deleted with it.

    **Examples:**

        flowforge workflow delete 3

        flowforge workflow delete 3 --yes
    """
    confirmation = always_confirm if yes else confirm
    async with controller_session(config, confirmation=confirmation) as controller:
        deleted = await controller.delete_workflow(workflow_id)

    if deleted is None:
        sys.exit(1)
    if not deleted:
        click.echo("Cancelled")


@workflow.command("export")
@click.argument("workflow_id")
@click.option(
    "--output",
    "-o",
    type=click.File("w"),
    default=None,
    help="Write to file instead of stdout",
)
@click.pass_obj
@async_command
async def workflow_export(
    config: ClientConfig, workflow_id: str, output: IO[str] | None
) -> None:
    """Export a workflow as JSON.

    The document can be loaded again with `flowforge workflow import`.

    **Examples:**

        flowforge workflow export 3

        flowforge workflow export 3 -o summarize.json
    """
    async with api_connection(config) as api:
        document = await api.export_workflow(workflow_id)

    if output is None:
        output_json(document)
    else:
        json.dump(document, output, indent=2)
        output.write("\n")
        click.echo(f"Exported workflow {workflow_id} to {output.name}")


@workflow.command("import")
@click.argument("source", type=click.File("r"), default="-")
@click.pass_obj
@async_command
async def workflow_import(config: ClientConfig, source: IO[str]) -> None:
    """Import a workflow from exported JSON.

    SOURCE is a file path, or `-` (the default) to read stdin.

    **Examples:**

        flowforge workflow import summarize.json

        cat summarize.json | flowforge workflow import
    """
    text = source.read()
    if not text.strip():
        click.echo("Nothing to import")
        return

    async with controller_session(config) as controller:
        imported = await controller.import_workflow(text)

    if imported is None:
        sys.exit(1)
    click.echo(f"Created workflow {imported.id}: {imported.name}")


@workflow.command("create")
@click.pass_obj
@async_command
async def workflow_create(config: ClientConfig) -> None:
    """Create a workflow interactively.

    Prompts for the workflow name and description, then for steps.

    **Example:**

        flowforge workflow create
    """
    console = make_console()
    async with controller_session(config, console=console) as controller:
        await controller.new_workflow()
        await _edit_until_saved(controller, console)


@workflow.command("edit")
@click.argument("workflow_id")
@click.pass_obj
@async_command
async def workflow_edit(config: ClientConfig, workflow_id: str) -> None:
    """Edit a workflow interactively.

    **Example:**

        flowforge workflow edit 3
    """
    console = make_console()
    async with controller_session(config, console=console) as controller:
        if await controller.edit_workflow(workflow_id) is None:
            sys.exit(1)
        await _edit_until_saved(controller, console)


async def _edit_until_saved(controller: AppController, console: Console) -> None:
    saved = await run_editor(controller, PromptAsker(), console)
    if saved is None:
        click.echo("Discarded")
    else:
        click.echo(f"Saved workflow {saved.id}: {saved.name}")
