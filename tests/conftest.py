"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from flowforge.core.models import Run, Workflow


def build_step_execution(
    step_id: int | str = 1,
    name: str = "Draft",
    status: str = "pending",
    **fields: Any,
) -> dict[str, Any]:
    """Server payload for one step execution."""
    payload: dict[str, Any] = {
        "step_id": step_id,
        "step_name": name,
        "status": status,
        "attempts": 1 if status != "pending" else 0,
        "cost": 0.0,
        "output": None,
        "error": None,
        "criteria_type": "always",
        "criteria_value": None,
    }
    payload.update(fields)
    return payload


def build_run(
    run_id: str = "r1",
    status: str = "running",
    steps: list[dict[str, Any]] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """Server payload for GET /runs/{id}."""
    payload: dict[str, Any] = {
        "id": run_id,
        "workflow_id": 42,
        "workflow_name": "Summarize",
        "status": status,
        "started_at": "2025-01-01T10:00:00",
        "completed_at": None,
        "total_tokens": 0,
        "total_cost": 0.0,
        "step_executions": steps if steps is not None else [],
    }
    payload.update(fields)
    return payload


def build_workflow(workflow_id: int | None = 42, **fields: Any) -> dict[str, Any]:
    """Server payload for GET /workflows/{id}."""
    payload: dict[str, Any] = {
        "id": workflow_id,
        "name": "Summarize",
        "description": "Summarize a document",
        "steps": [
            {
                "name": "Draft",
                "model": "kimi-k2-instruct-0905",
                "prompt": "Summarize {{input}}",
                "criteria_type": "always",
                "criteria_value": "",
                "retry_limit": 3,
                "context_mode": "full",
            }
        ],
    }
    payload.update(fields)
    return payload


@pytest.fixture
def make_run():
    """Factory for Run models built from server payloads."""

    def _make(run_id: str = "r1", status: str = "running", steps=None, **fields: Any) -> Run:
        return Run.model_validate(build_run(run_id, status, steps, **fields))

    return _make


@pytest.fixture
def run_payload():
    """Factory for run payloads."""
    return build_run


@pytest.fixture
def step_payload():
    """Factory for step execution payloads."""
    return build_step_execution


@pytest.fixture
def workflow_payload():
    """Factory for workflow payloads."""
    return build_workflow


@pytest.fixture
def saved_workflow() -> Workflow:
    """The workflow the server returns after saving "Summarize"."""
    return Workflow.model_validate(build_workflow())


@pytest.fixture
def completed_run(make_run) -> Run:
    """A finished run with one passed and one failed step."""
    return make_run(
        status="completed",
        completed_at="2025-01-01T10:00:42",
        total_tokens=1234,
        total_cost=0.0125,
        steps=[
            build_step_execution(1, "Draft", "passed", output="A summary", cost=0.005),
            build_step_execution(
                2,
                "Check",
                "failed",
                error="No match",
                attempts=3,
                cost=0.0075,
                criteria_type="contains",
                criteria_value="summary",
            ),
        ],
    )
