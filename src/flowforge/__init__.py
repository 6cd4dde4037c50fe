"""FlowForge - client for tracking workflow runs on a FlowForge server.

A workflow is an ordered pipeline of prompt-evaluation steps executed by
the server. This package edits workflows, starts runs, and keeps a live
view of a run consistent with the server through fetches and a push
channel.

Layers:
    core/       Pure client-side logic (models, store, tracker, projector)
    transport/  REST client and reconnecting push channel
    app/        Application state and the controller that owns it
    frontends/  User interfaces (CLI)

Key Concepts:
    Workflow:   Ordered list of steps, edited locally and saved to the server
    Run:        One execution of a workflow; tracked as an immutable snapshot
    Snapshot:   The last complete Run payload received for the tracked run

Quick Start (watch a run):
    >>> from flowforge import AppController, ClientConfig
    >>>
    >>> controller = AppController.from_config(ClientConfig.from_env(), confirmation=lambda _: True)
    >>> await controller.start()
    >>> await controller.view_run("a1b2c3")
    >>> print(controller.execution_view().status_label)
    >>> await controller.shutdown()

Editing a workflow:
    >>> from flowforge.core import WorkflowStore, new_step
    >>> from flowforge.transport import WorkflowAPIClient
    >>>
    >>> async with WorkflowAPIClient("http://localhost:3000/api") as api:
    ...     store = WorkflowStore(api=api)
    ...     store.create_draft()
    ...     store.set_name("Summarize")
    ...     store.add_step(new_step(1, prompt="Summarize {{input}}"))
    ...     saved = await store.save()
"""

from flowforge.__version__ import __version__
from flowforge.app import AppController, AppState, Notifier, View
from flowforge.core import (
    ExecutionView,
    FlowForgeError,
    Run,
    RunTracker,
    Step,
    StepExecution,
    Workflow,
    WorkflowStore,
    new_step,
    project,
)
from flowforge.core.config import ClientConfig
from flowforge.transport import LiveChannel, WorkflowAPIClient

__all__ = [
    "__version__",
    # App
    "AppController",
    "AppState",
    "Notifier",
    "View",
    "ClientConfig",
    # Core
    "FlowForgeError",
    "Workflow",
    "Step",
    "Run",
    "StepExecution",
    "WorkflowStore",
    "new_step",
    "RunTracker",
    "ExecutionView",
    "project",
    # Transport
    "WorkflowAPIClient",
    "LiveChannel",
]
