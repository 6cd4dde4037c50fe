"""Tests for WorkflowAPIClient."""

import asyncio

import aiohttp
import pytest
import pytest_asyncio
from aioresponses import aioresponses

from flowforge.core.errors import NetworkFailure, NotFound
from flowforge.core.models import Workflow
from flowforge.transport.http import WorkflowAPIClient

BASE = "http://api.test/api"


@pytest_asyncio.fixture
async def api():
    client = WorkflowAPIClient(BASE, timeout=5.0)
    yield client
    await client.close()


class TestWorkflows:
    """Workflow endpoints."""

    @pytest.mark.asyncio
    async def test_list_workflows(self, api):
        """GET /workflows parses summaries."""
        with aioresponses() as m:
            m.get(
                f"{BASE}/workflows",
                payload=[
                    {"id": 7, "name": "Summarize", "description": "", "step_count": 2},
                    {"id": 8, "name": "Translate", "description": None, "run_count": 4},
                ],
            )
            workflows = await api.list_workflows()

        assert [w.id for w in workflows] == [7, 8]
        assert workflows[0].step_count == 2
        assert workflows[1].run_count == 4

    @pytest.mark.asyncio
    async def test_get_workflow(self, api, workflow_payload):
        """GET /workflows/{id} parses a full workflow."""
        with aioresponses() as m:
            m.get(f"{BASE}/workflows/42", payload=workflow_payload())
            wf = await api.get_workflow(42)

        assert wf.name == "Summarize"
        assert wf.steps[0].retry_limit == 3

    @pytest.mark.asyncio
    async def test_get_workflow_not_found(self, api):
        """404 is NotFound with the resource name."""
        with aioresponses() as m:
            m.get(f"{BASE}/workflows/99", status=404, payload={"error": "not found"})
            with pytest.raises(NotFound, match="Workflow not found") as exc_info:
                await api.get_workflow(99)

        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_create_workflow(self, api, workflow_payload):
        """POST /workflows sends name, description and steps."""
        draft = Workflow.model_validate(workflow_payload(workflow_id=None))
        with aioresponses() as m:
            m.post(f"{BASE}/workflows", payload=workflow_payload(workflow_id=42))
            saved = await api.create_workflow(draft)

            request = next(iter(m.requests.values()))[0]

        assert saved.id == 42
        body = request.kwargs["json"]
        assert set(body) == {"name", "description", "steps"}
        assert body["steps"][0]["name"] == "Draft"

    @pytest.mark.asyncio
    async def test_update_workflow(self, api, workflow_payload):
        """PUT /workflows/{id} returns the server copy."""
        wf = Workflow.model_validate(workflow_payload())
        with aioresponses() as m:
            m.put(f"{BASE}/workflows/42", payload=workflow_payload(name="Renamed"))
            saved = await api.update_workflow(42, wf)

        assert saved.name == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_workflow_empty_body(self, api):
        """DELETE with an empty body returns None."""
        with aioresponses() as m:
            m.delete(f"{BASE}/workflows/7", status=204)
            assert await api.delete_workflow(7) is None

    @pytest.mark.asyncio
    async def test_export_and_import(self, api, workflow_payload):
        """Export returns the raw document; import posts it back."""
        document = {"name": "Summarize", "steps": [{"name": "Draft"}], "version": 1}
        with aioresponses() as m:
            m.get(f"{BASE}/workflows/42/export", payload=document)
            m.post(f"{BASE}/workflows/import", payload=workflow_payload(workflow_id=43))

            exported = await api.export_workflow(42)
            imported = await api.import_workflow(exported)

        assert exported == document
        assert imported.id == 43


class TestRuns:
    """Run endpoints."""

    @pytest.mark.asyncio
    async def test_list_runs_with_limit(self, api, run_payload):
        """GET /runs?limit=N unwraps the runs list."""
        with aioresponses() as m:
            m.get(f"{BASE}/runs?limit=5", payload={"runs": [run_payload("r1"), run_payload("r2")]})
            runs = await api.list_runs(limit=5)

        assert [r.id for r in runs] == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_list_runs_missing_key(self, api):
        """A response without runs is an empty list."""
        with aioresponses() as m:
            m.get(f"{BASE}/runs", payload={})
            assert await api.list_runs() == []

    @pytest.mark.asyncio
    async def test_run_stats(self, api):
        """GET /runs/stats/summary."""
        with aioresponses() as m:
            m.get(
                f"{BASE}/runs/stats/summary",
                payload={"total_runs": 4, "completed_runs": 3, "total_cost": None},
            )
            stats = await api.get_run_stats()

        assert stats.total_runs == 4
        assert stats.total_cost == 0.0

    @pytest.mark.asyncio
    async def test_get_run(self, api, run_payload, step_payload):
        """GET /runs/{id} parses the snapshot."""
        with aioresponses() as m:
            m.get(
                f"{BASE}/runs/r1",
                payload=run_payload("r1", steps=[step_payload(1, status="running")]),
            )
            run = await api.get_run("r1")

        assert run.id == "r1"
        assert run.step_executions[0].status == "running"

    @pytest.mark.asyncio
    async def test_get_run_not_found(self, api):
        """Missing runs are NotFound."""
        with aioresponses() as m:
            m.get(f"{BASE}/runs/nope", status=404)
            with pytest.raises(NotFound, match="Run not found"):
                await api.get_run("nope")

    @pytest.mark.asyncio
    async def test_start_run(self, api):
        """POST /runs/start/{workflow_id} returns the new run id."""
        with aioresponses() as m:
            m.post(f"{BASE}/runs/start/42", payload={"id": "r1"})
            assert await api.start_run(42) == "r1"

    @pytest.mark.asyncio
    async def test_start_run_without_id(self, api):
        """A start response without id is a NetworkFailure."""
        with aioresponses() as m:
            m.post(f"{BASE}/runs/start/42", payload={})
            with pytest.raises(NetworkFailure, match="no run id"):
                await api.start_run(42)


class TestFailures:
    """Error mapping."""

    @pytest.mark.asyncio
    async def test_server_error(self, api):
        """Non-2xx is NetworkFailure carrying the status."""
        with aioresponses() as m:
            m.get(f"{BASE}/workflows", status=500, body="boom")
            with pytest.raises(NetworkFailure) as exc_info:
                await api.list_workflows()

        assert exc_info.value.status == 500
        assert not isinstance(exc_info.value, NotFound)

    @pytest.mark.asyncio
    async def test_404_on_unnamed_resource(self, api):
        """A 404 for a list endpoint is a plain NetworkFailure."""
        with aioresponses() as m:
            m.get(f"{BASE}/workflows", status=404)
            with pytest.raises(NetworkFailure) as exc_info:
                await api.list_workflows()

        assert not isinstance(exc_info.value, NotFound)

    @pytest.mark.asyncio
    async def test_connection_error(self, api):
        """Connection errors are NetworkFailure."""
        with aioresponses() as m:
            m.get(f"{BASE}/runs/r1", exception=aiohttp.ClientConnectionError("refused"))
            with pytest.raises(NetworkFailure, match="refused"):
                await api.get_run("r1")

    @pytest.mark.asyncio
    async def test_timeout(self, api):
        """Timeouts are NetworkFailure."""
        with aioresponses() as m:
            m.get(f"{BASE}/runs/r1", exception=asyncio.TimeoutError())
            with pytest.raises(NetworkFailure, match="TimeoutError"):
                await api.get_run("r1")

    @pytest.mark.asyncio
    async def test_invalid_json(self, api):
        """An undecodable body is NetworkFailure."""
        with aioresponses() as m:
            m.get(f"{BASE}/runs/r1", body="<html>")
            with pytest.raises(NetworkFailure, match="invalid JSON"):
                await api.get_run("r1")

    @pytest.mark.asyncio
    async def test_unexpected_payload(self, api):
        """A payload that does not fit the model is NetworkFailure."""
        with aioresponses() as m:
            m.get(f"{BASE}/runs/r1", payload={"status": "running"})
            with pytest.raises(NetworkFailure, match="Unexpected Run payload"):
                await api.get_run("r1")

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self):
        """Leaving the context closes the session."""
        async with WorkflowAPIClient(BASE) as client:
            assert client._session is not None
        assert client._session is None
