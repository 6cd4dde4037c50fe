"""Core - pure client-side state and logic.

No I/O happens here: the store and controller reach the server through
the WorkflowAPI protocol from flowforge.transport.

Modules:
    criteria    Criteria kinds and how they are described
    models      Wire models (Workflow, Step, Run, StepExecution, ...)
    store       WorkflowStore - the workflow draft under edit
    tracker     RunTracker - snapshot of the run being viewed
    projector   Run snapshot -> ExecutionView
    errors      FlowForgeError hierarchy
"""

from flowforge.core.errors import (
    ChannelDisconnect,
    FlowForgeError,
    MalformedImport,
    NetworkFailure,
    NotFound,
    StatusRegression,
    ValidationFailure,
)
from flowforge.core.models import (
    PushMessage,
    Run,
    RunStats,
    Step,
    StepExecution,
    Workflow,
    WorkflowSummary,
)
from flowforge.core.projector import ExecutionView, StepView, project
from flowforge.core.store import WorkflowStore, new_step
from flowforge.core.tracker import RunTracker

__all__ = [
    # Errors
    "FlowForgeError",
    "NetworkFailure",
    "NotFound",
    "ValidationFailure",
    "MalformedImport",
    "ChannelDisconnect",
    "StatusRegression",
    # Models
    "Workflow",
    "WorkflowSummary",
    "Step",
    "Run",
    "RunStats",
    "StepExecution",
    "PushMessage",
    # State
    "WorkflowStore",
    "new_step",
    "RunTracker",
    # Projection
    "ExecutionView",
    "StepView",
    "project",
]
