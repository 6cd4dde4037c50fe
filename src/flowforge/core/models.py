"""Wire models for workflows and runs.

Pydantic models for the payloads exchanged with the FlowForge server.
Unknown fields are kept (extra="allow") so server-computed values such as
step counts survive a round trip. Run and StepExecution are frozen: a
snapshot is replaced wholesale, never edited in place.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from flowforge.core.config import DEFAULT_MODEL
from flowforge.core.criteria import DEFAULT_CRITERIA

ContextMode = Literal["full", "summary", "none"]

CONTEXT_MODES: tuple[str, ...] = ("full", "summary", "none")

# Run statuses
RUN_PENDING = "pending"
RUN_RUNNING = "running"
RUN_COMPLETED = "completed"
RUN_FAILED = "failed"
TERMINAL_RUN_STATUSES = frozenset({RUN_COMPLETED, RUN_FAILED})

# Step execution statuses
STEP_PENDING = "pending"
STEP_RUNNING = "running"
STEP_PASSED = "passed"
STEP_FAILED = "failed"
TERMINAL_STEP_STATUSES = frozenset({STEP_PASSED, STEP_FAILED})

DEFAULT_RETRY_LIMIT = 3


def _zero_if_none(v: Any) -> Any:
    return 0 if v is None else v


# Server sends null for counters that have not been computed yet
Count = Annotated[int, BeforeValidator(_zero_if_none)]
Amount = Annotated[float, BeforeValidator(_zero_if_none)]


class Step(BaseModel):
    """One unit of work in a workflow."""

    model_config = ConfigDict(extra="allow", frozen=True, protected_namespaces=())

    name: str
    model: str = DEFAULT_MODEL
    prompt: str = ""
    criteria_type: str = DEFAULT_CRITERIA
    criteria_value: str | None = ""
    retry_limit: int = Field(default=DEFAULT_RETRY_LIMIT, ge=0)
    context_mode: ContextMode = "full"


class Workflow(BaseModel):
    """A named, ordered sequence of steps.

    id is None for a draft that has never been saved.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: int | str | None = None
    name: str = ""
    description: str = ""
    steps: tuple[Step, ...] = ()

    @field_validator("description", mode="before")
    @classmethod
    def empty_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    def to_payload(self) -> dict[str, Any]:
        """Body sent on create/update."""
        return {
            "name": self.name,
            "description": self.description,
            "steps": [step.model_dump(mode="json") for step in self.steps],
        }


class WorkflowSummary(BaseModel):
    """Workflow list entry with server-computed counts."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: int | str
    name: str
    description: str | None = None
    step_count: Count = 0
    run_count: Count = 0


class StepExecution(BaseModel):
    """Runtime record of one step within a run."""

    model_config = ConfigDict(extra="allow", frozen=True)

    step_id: int | str
    step_name: str = ""
    status: str = STEP_PENDING
    attempts: Count = 0
    cost: Amount = 0.0
    output: str | None = None
    error: str | None = None
    criteria_type: str = DEFAULT_CRITERIA
    criteria_value: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STEP_STATUSES


class Run(BaseModel):
    """Complete, authoritative state of one workflow execution."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    workflow_id: int | str | None = None
    workflow_name: str = ""
    status: str = RUN_PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    total_tokens: Count = 0
    total_cost: Amount = 0.0
    step_executions: tuple[StepExecution, ...] = ()

    @field_validator("step_executions", mode="before")
    @classmethod
    def no_steps(cls, v: Any) -> Any:
        return () if v is None else v

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_RUN_STATUSES


class RunStats(BaseModel):
    """Aggregate run statistics from the summary endpoint."""

    model_config = ConfigDict(extra="allow", frozen=True)

    total_runs: Count = 0
    completed_runs: Count = 0
    total_cost: Amount = 0.0


class PushMessage(BaseModel):
    """Notification frame received on the push channel."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    run_id: str = Field(alias="runId")
    type: str
    status: str | None = None
