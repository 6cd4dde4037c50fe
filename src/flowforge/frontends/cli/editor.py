"""Interactive workflow editor for `flowforge workflow create|edit`.

A small prompt loop on top of AppController: the controller owns the
draft, this module only asks questions. The criteria value question is
skipped for kinds that do not take a value, using the same registry the
execution view uses to describe criteria.

Prompts go through an Ask callable so tests can script the answers:

    async def ask(message: str, default: str = "", choices=None) -> str
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Sequence
from typing import Protocol

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console

from flowforge.app.controller import AppController
from flowforge.app.editor import StepForm
from flowforge.core import criteria
from flowforge.core.errors import ValidationFailure
from flowforge.core.models import CONTEXT_MODES, Workflow
from flowforge.frontends.cli.rendering import step_summary

logger = logging.getLogger(__name__)

EDITOR_HELP = "[a]dd, [e]dit N, [d]elete N, [s]ave, [q]uit"


class Ask(Protocol):
    def __call__(
        self, message: str, default: str = "", choices: Sequence[str] | None = None
    ) -> Awaitable[str]: ...


class PromptAsker:
    """Ask implementation backed by a prompt_toolkit session."""

    def __init__(self, session: PromptSession[str] | None = None):
        self._session = session or PromptSession(history=InMemoryHistory())

    async def __call__(
        self, message: str, default: str = "", choices: Sequence[str] | None = None
    ) -> str:
        completer = WordCompleter(list(choices), sentence=True) if choices else None
        return await self._session.prompt_async(message, default=default, completer=completer)


def parse_retry_limit(text: str) -> int | None:
    """Blank means the default limit."""
    text = text.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        raise ValidationFailure(f"Retry limit must be a whole number, got {text!r}") from None


async def fill_step_form(form: StepForm, ask: Ask) -> StepForm:
    """Ask for every field of form, in dialog order."""
    form.name = await ask("Step name: ", default=form.name)
    form.model = await ask("Model: ", default=form.model)
    form.prompt = await ask("Prompt: ", default=form.prompt)

    kind = await ask(
        "Criteria: ",
        default=form.criteria_type,
        choices=[k.name for k in criteria.kinds()],
    )
    form.select_criteria(kind.strip() or criteria.DEFAULT_CRITERIA)
    if form.value_field_visible:
        form.criteria_value = await ask(
            f"{criteria.label(form.criteria_type)}: ", default=form.criteria_value
        )

    current_retry = "" if form.retry_limit is None else str(form.retry_limit)
    retry = await ask("Retry limit: ", default=current_retry)
    form.retry_limit = parse_retry_limit(retry)
    form.context_mode = await ask(
        "Context mode: ", default=form.context_mode, choices=CONTEXT_MODES
    )
    return form


def _step_index(argument: str, console: Console) -> int | None:
    """1-based step number from the command line, as a 0-based index."""
    try:
        return int(argument) - 1
    except ValueError:
        console.print(f"[error]Not a step number: {argument!r}[/]")
        return None


def print_steps(console: Console, controller: AppController) -> None:
    steps = controller.store.steps
    if not steps:
        console.print("[muted]No steps yet[/]")
    for index, step in enumerate(steps):
        console.print(step_summary(index, step))


async def run_editor(controller: AppController, ask: Ask, console: Console) -> Workflow | None:
    """Edit the controller's draft until it is saved or the user quits.

    Returns:
        The saved workflow, or None if the editor was left without saving.
    """
    draft = controller.store.draft
    if draft is None:
        return None

    try:
        controller.store.set_name(await ask("Workflow name: ", default=draft.name))
        controller.store.set_description(
            await ask("Description: ", default=draft.description)
        )

        while True:
            console.print()
            print_steps(console, controller)
            command, _, argument = (await ask(f"{EDITOR_HELP}: ")).strip().partition(" ")
            command = command.lower()

            if command in ("a", "add"):
                form = controller.open_step_form()
                assert form is not None
                await _edit_step(controller, form, ask)

            elif command in ("e", "edit"):
                index = _step_index(argument, console)
                if index is None:
                    continue
                form = controller.open_step_form(index)
                if form is None:
                    console.print(f"[error]No step {argument}[/]")
                else:
                    await _edit_step(controller, form, ask)

            elif command in ("d", "delete"):
                index = _step_index(argument, console)
                if index is not None and not controller.delete_step(index):
                    console.print("[muted]Step not deleted[/]")

            elif command in ("s", "save"):
                saved = await controller.save_workflow()
                if saved is not None:
                    return saved

            elif command in ("q", "quit"):
                controller.store.discard()
                return None

            elif command:
                console.print(f"[error]Unknown command: {command}[/]")

    except (EOFError, KeyboardInterrupt):
        logger.debug("Editor closed without saving")
        controller.store.discard()
        return None


async def _edit_step(controller: AppController, form: StepForm, ask: Ask) -> None:
    try:
        await fill_step_form(form, ask)
    except ValidationFailure as e:
        controller.notifier.error(str(e))
        return
    await controller.commit_step_form(form)
