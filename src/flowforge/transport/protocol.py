"""Transport protocol definitions.

The core and the controller depend on these interfaces, not on aiohttp,
so tests can substitute fakes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from flowforge.core.models import Run, RunStats, Workflow, WorkflowSummary


class WorkflowAPI(Protocol):
    """REST operations on workflows and runs.

    Implementations raise NetworkFailure (or NotFound) on failure.
    """

    async def list_workflows(self) -> list[WorkflowSummary]: ...

    async def get_workflow(self, workflow_id: int | str) -> Workflow: ...

    async def create_workflow(self, workflow: Workflow) -> Workflow: ...

    async def update_workflow(self, workflow_id: int | str, workflow: Workflow) -> Workflow: ...

    async def delete_workflow(self, workflow_id: int | str) -> None: ...

    async def export_workflow(self, workflow_id: int | str) -> Any: ...

    async def import_workflow(self, document: Any) -> Workflow: ...

    async def list_runs(self, limit: int | None = None) -> list[Run]: ...

    async def get_run_stats(self) -> RunStats: ...

    async def get_run(self, run_id: str) -> Run: ...

    async def start_run(self, workflow_id: int | str) -> str: ...

    async def close(self) -> None: ...


class PushConnection(Protocol):
    """One open push connection.

    Iterating yields raw text frames until the connection closes.
    Transport errors are raised as ChannelDisconnect.
    """

    def __aiter__(self) -> AsyncIterator[str]: ...

    async def close(self) -> None: ...
