"""Shared utilities for CLI commands."""

from __future__ import annotations

import asyncio
import functools
from collections.abc import AsyncIterator, Callable, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import rich_click as click
from rich.console import Console

from flowforge.app.controller import AppController, Renderer
from flowforge.core.config import ClientConfig
from flowforge.core.errors import FlowForgeError
from flowforge.frontends.cli.output import error_exit
from flowforge.frontends.cli.rendering import make_console, print_notification
from flowforge.transport.http import WorkflowAPIClient

T = TypeVar("T")


def async_command(fn: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """Run an async click command on a fresh event loop.

    FlowForge errors escaping the command end it with `Error: ...` and
    exit status 1.

    Usage:
        @workflow.command("list")
        @click.pass_obj
        @async_command
        async def workflow_list(config: ClientConfig) -> None:
            ...
    """

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return asyncio.run(fn(*args, **kwargs))
        except FlowForgeError as e:
            error_exit(str(e))

    return wrapper


def confirm(prompt: str) -> bool:
    """Confirmation hook for the controller, asking on the terminal."""
    return click.confirm(prompt, default=False)


def always_confirm(prompt: str) -> bool:
    """Confirmation hook used with --yes."""
    return True


@asynccontextmanager
async def api_connection(config: ClientConfig) -> AsyncIterator[WorkflowAPIClient]:
    """REST client for one command.

    Usage:
        async with api_connection(config) as api:
            workflows = await api.list_workflows()
    """
    async with WorkflowAPIClient(config.api_base, timeout=config.request_timeout) as api:
        yield api


@asynccontextmanager
async def controller_session(
    config: ClientConfig,
    confirmation: Callable[[str], bool] = confirm,
    console: Console | None = None,
    renderer: Renderer | None = None,
) -> AsyncIterator[AppController]:
    """Controller for one command, with notifications printed to console.

    The push channel is not started here; commands that watch a run call
    controller.start() themselves. Everything is shut down on exit.
    """
    console = console or make_console()
    controller = AppController.from_config(config, confirmation=confirmation, renderer=renderer)
    controller.notifier.add_listener(functools.partial(print_notification, console))
    try:
        yield controller
    finally:
        await controller.shutdown()

