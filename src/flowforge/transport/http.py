"""HTTP transport - REST client for the FlowForge server.

Uses aiohttp.ClientSession, the same client stack as the push channel.
Every failure is reported as NetworkFailure, and a 404 as NotFound, so
callers only deal with FlowForge errors.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import aiohttp
from pydantic import ValidationError

from flowforge.core.errors import NetworkFailure, NotFound
from flowforge.core.models import Run, RunStats, Workflow, WorkflowSummary

logger = logging.getLogger(__name__)


@dataclass
class WorkflowAPIClient:
    """REST client for workflows and runs.

    Example:
        >>> async with WorkflowAPIClient("http://localhost:3000/api") as api:
        ...     workflows = await api.list_workflows()
        ...     run_id = await api.start_run(workflows[0].id)
    """

    base_url: str
    timeout: float = 30.0
    _session: aiohttp.ClientSession | None = None

    async def connect(self) -> None:
        """Open the HTTP session. Called implicitly by the first request."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            logger.debug("HTTP client ready for %s", self.base_url)

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> WorkflowAPIClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def list_workflows(self) -> list[WorkflowSummary]:
        data = await self._request("GET", "/workflows")
        return self._parse_list(WorkflowSummary, data)

    async def get_workflow(self, workflow_id: int | str) -> Workflow:
        data = await self._request("GET", f"/workflows/{workflow_id}", what="Workflow")
        return self._parse(Workflow, data)

    async def create_workflow(self, workflow: Workflow) -> Workflow:
        data = await self._request("POST", "/workflows", json=workflow.to_payload())
        return self._parse(Workflow, data)

    async def update_workflow(self, workflow_id: int | str, workflow: Workflow) -> Workflow:
        data = await self._request(
            "PUT", f"/workflows/{workflow_id}", json=workflow.to_payload(), what="Workflow"
        )
        return self._parse(Workflow, data)

    async def delete_workflow(self, workflow_id: int | str) -> None:
        await self._request("DELETE", f"/workflows/{workflow_id}", what="Workflow")

    async def export_workflow(self, workflow_id: int | str) -> Any:
        """Fetch the export document for a workflow (as served, unparsed into models)."""
        return await self._request("GET", f"/workflows/{workflow_id}/export", what="Workflow")

    async def import_workflow(self, document: Any) -> Workflow:
        data = await self._request("POST", "/workflows/import", json=document)
        return self._parse(Workflow, data)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def list_runs(self, limit: int | None = None) -> list[Run]:
        params = {"limit": str(limit)} if limit is not None else None
        data = await self._request("GET", "/runs", params=params)
        runs = data.get("runs", []) if isinstance(data, dict) else data
        return self._parse_list(Run, runs)

    async def get_run_stats(self) -> RunStats:
        data = await self._request("GET", "/runs/stats/summary")
        return self._parse(RunStats, data)

    async def get_run(self, run_id: str) -> Run:
        data = await self._request("GET", f"/runs/{run_id}", what="Run")
        return self._parse(Run, data)

    async def start_run(self, workflow_id: int | str) -> str:
        """Start a run and return its id."""
        data = await self._request("POST", f"/runs/start/{workflow_id}", what="Workflow")
        try:
            return str(data["id"])
        except (KeyError, TypeError) as e:
            raise NetworkFailure("Start run response has no run id") from e

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
        what: str | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None if empty).

        Args:
            what: Resource name for the NotFound message; when None a 404
                is reported as a plain NetworkFailure.

        Raises:
            NotFound: On 404 for a named resource.
            NetworkFailure: On connection errors, timeouts, other non-2xx
                statuses or an undecodable body.
        """
        await self.connect()
        assert self._session is not None

        url = f"{self.base_url}{path}"
        try:
            async with self._session.request(method, url, json=json, params=params) as response:
                if response.status == 404 and what is not None:
                    raise NotFound(f"{what} not found")
                if response.status >= 400:
                    body = await response.text()
                    logger.debug("%s %s -> %d: %s", method, url, response.status, body[:200])
                    raise NetworkFailure(
                        f"{method} {path} failed with status {response.status}",
                        status=response.status,
                    )
                text = await response.text()
                if not text:
                    return None
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkFailure(f"{method} {path} failed: {e or type(e).__name__}") from e
        except ValueError as e:
            raise NetworkFailure(f"{method} {path} returned invalid JSON") from e

    @staticmethod
    def _parse(model: Any, data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise NetworkFailure(f"Unexpected {model.__name__} payload: {e}") from e

    @classmethod
    def _parse_list(cls, model: Any, data: Any) -> list[Any]:
        if not isinstance(data, list):
            raise NetworkFailure(f"Expected a list of {model.__name__}, got {type(data).__name__}")
        return [cls._parse(model, item) for item in data]
