"""Application controller.

AppController is the one owner of client state: the workflow draft, the
tracked run, the push channel and the screen-level AppState. Front ends
call its actions and read its state; they never write state directly.

Each public action is an error boundary. FlowForge errors raised inside
it are logged, turned into an error notification, and the action returns
None. State is only written after the data it needs has arrived, so a
failure leaves the last good state in place.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from flowforge.app.editor import StepForm
from flowforge.app.notifications import Notifier
from flowforge.app.state import AppState, View
from flowforge.core.config import ClientConfig
from flowforge.core.errors import FlowForgeError, NetworkFailure, NotFound
from flowforge.core.models import RUN_COMPLETED, PushMessage, Run, Workflow
from flowforge.core.projector import ExecutionView, project, project_dashboard, project_history
from flowforge.core.store import WorkflowStore
from flowforge.core.tracker import RunTracker
from flowforge.core.validation import parse_import
from flowforge.transport.http import WorkflowAPIClient
from flowforge.transport.live_channel import ChannelState, LiveChannel
from flowforge.transport.protocol import WorkflowAPI

logger = logging.getLogger(__name__)

T = TypeVar("T")

Confirmation = Callable[[str], bool]
Renderer = Callable[[ExecutionView], None]

RUN_COMPLETED_EVENT = "run_completed"
RECENT_ACTIVITY_LIMIT = 5

LEAVE_RUN_PROMPT = "Navigate away? Live updates will continue in background."
DELETE_WORKFLOW_PROMPT = (
    "Are you sure you want to delete this workflow? All run history will be lost."
)
DELETE_STEP_PROMPT = "Delete this step?"


def action(
    message: str | None = None, *, replace_all: bool = False
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T | None]]]:
    """Make a controller coroutine an error boundary.

    Args:
        message: Notification text for network failures. NotFound,
            ValidationFailure and MalformedImport show their own message.
        replace_all: Use message for every FlowForge error.
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T | None]]:
        @functools.wraps(fn)
        async def wrapper(self: AppController, *args: Any, **kwargs: Any) -> T | None:
            try:
                return await fn(self, *args, **kwargs)
            except FlowForgeError as e:
                logger.warning("%s failed: %s", fn.__name__, e)
                generic = isinstance(e, NetworkFailure) and not isinstance(e, NotFound)
                if message and (replace_all or generic):
                    self.notifier.error(message)
                else:
                    self.notifier.error(str(e))
                return None

        return wrapper

    return decorator


@dataclass
class AppController:
    """Owns application state and mediates every user action.

    Example:
        >>> controller = AppController.from_config(config, confirmation=click.confirm)
        >>> await controller.start()
        >>> await controller.view_run("r1")
        >>> controller.execution_view().status_label
        'RUNNING'
        >>> await controller.shutdown()
    """

    api: WorkflowAPI
    channel: LiveChannel
    confirmation: Confirmation
    notifier: Notifier = field(default_factory=Notifier)
    renderer: Renderer | None = None
    state: AppState = field(default_factory=AppState)
    tracker: RunTracker = field(default_factory=RunTracker)
    store: WorkflowStore = field(init=False)

    # Run refreshes started from channel callbacks, not yet finished
    _refresh_tasks: set[asyncio.Task[Any]] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        self.store = WorkflowStore(api=self.api)
        self.channel.watch_filter = self.is_watching
        self.channel.subscribe(self.schedule_push)
        self.channel.add_observer(self.on_channel_state)

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        confirmation: Confirmation,
        renderer: Renderer | None = None,
    ) -> AppController:
        return cls(
            api=WorkflowAPIClient(config.api_base, timeout=config.request_timeout),
            channel=LiveChannel.for_url(config.ws_url, reconnect_delay=config.reconnect_delay),
            confirmation=confirmation,
            notifier=Notifier(ttl=config.notification_ttl),
            renderer=renderer,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, view: View = View.DASHBOARD) -> None:
        """Open the push channel and show the first screen."""
        self.channel.start()
        await self.navigate(view)

    async def shutdown(self) -> None:
        await self.channel.stop()
        for task in list(self._refresh_tasks):
            task.cancel()
        await asyncio.gather(*self._refresh_tasks, return_exceptions=True)
        await self.api.close()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def navigate(self, view: View, load: bool = True) -> bool:
        """Switch screens, loading the data the new screen shows.

        Leaving the execution view while the tracked run is still active
        asks for confirmation first. The push subscription and the server
        run are not affected either way.

        Args:
            view: Screen to show.
            load: Fetch the data the screen lists. Front ends that only
                need the confirmation pass False.

        Returns:
            False if the user declined to leave.
        """
        leaving_live_run = (
            self.state.current_view is View.EXECUTION
            and view is not View.EXECUTION
            and self.tracker.is_active
        )
        if leaving_live_run and not self.confirmation(LEAVE_RUN_PROMPT):
            return False

        self.state.show(view)
        if not load:
            return True
        if view is View.DASHBOARD:
            await self.load_dashboard()
        elif view is View.WORKFLOWS:
            await self.load_workflows()
        elif view is View.HISTORY:
            await self.load_run_history()
        return True

    def is_watching(self, message: PushMessage) -> bool:
        """Push filter: only the tracked run, and only while its view is shown."""
        return (
            self.state.current_view is View.EXECUTION
            and message.run_id == self.tracker.tracked_run_id
        )

    # ------------------------------------------------------------------
    # Dashboard and lists
    # ------------------------------------------------------------------

    @action("Failed to load stats")
    async def load_dashboard(self) -> None:
        stats = await self.api.get_run_stats()
        workflows = await self.api.list_workflows()
        self.state.set_dashboard(project_dashboard(stats, len(workflows)))
        await self.load_recent_activity()

    async def load_recent_activity(self) -> None:
        # Secondary panel: failures are logged, not notified
        try:
            runs = await self.api.list_runs(limit=RECENT_ACTIVITY_LIMIT)
        except FlowForgeError as e:
            logger.error("Failed to load recent activity: %s", e)
            return
        self.state.set_recent_activity(project_history(runs))

    @action("Failed to load workflows")
    async def load_workflows(self) -> None:
        self.state.set_workflows(await self.api.list_workflows())

    @action("Failed to load history")
    async def load_run_history(self, limit: int | None = None) -> None:
        runs = await self.api.list_runs(limit=limit)
        self.state.set_history(project_history(runs))

    # ------------------------------------------------------------------
    # Workflow editing
    # ------------------------------------------------------------------

    async def new_workflow(self) -> Workflow:
        draft = self.store.create_draft()
        await self.navigate(View.EDITOR)
        return draft

    @action()
    async def edit_workflow(self, workflow_id: int | str) -> Workflow:
        workflow = await self.store.load(workflow_id)
        await self.navigate(View.EDITOR)
        return workflow

    def open_step_form(self, index: int | None = None) -> StepForm | None:
        """Form for a new step, or for the existing step at index.

        Returns None if index is out of range.
        """
        if index is None:
            return StepForm()
        steps = self.store.steps
        if not 0 <= index < len(steps):
            logger.warning("No step at index %d", index)
            return None
        return StepForm.for_step(steps[index], index)

    @action()
    async def commit_step_form(self, form: StepForm) -> bool:
        """Add or update the step described by form."""
        if form.is_new:
            self.store.add_step(form.to_step(len(self.store.steps) + 1))
            return True
        return self.store.update_step(form.editing_index, form.to_step(form.editing_index + 1))

    def delete_step(self, index: int) -> bool:
        if not self.confirmation(DELETE_STEP_PROMPT):
            return False
        return self.store.remove_step(index)

    @action("Failed to save")
    async def save_workflow(self) -> Workflow:
        saved = await self.store.save()
        self.notifier.success("Workflow saved successfully")
        return saved

    @action("Failed to delete")
    async def delete_workflow(self, workflow_id: int | str) -> bool:
        """Delete a workflow after confirmation.

        Returns:
            True if deleted, False if the user cancelled (no request is
            made), None if the request failed.
        """
        if not self.confirmation(DELETE_WORKFLOW_PROMPT):
            return False
        await self.api.delete_workflow(workflow_id)
        self.notifier.success("Workflow deleted")
        await self.load_workflows()
        return True

    @action("Failed to start run")
    async def run_workflow(self) -> str | None:
        """Start a run of the saved draft and switch to its execution view."""
        draft = self.store.draft
        if draft is None or not self.store.can_run:
            return None
        assert draft.id is not None
        run_id = await self.api.start_run(draft.id)
        logger.info("Started run %s of workflow %s", run_id, draft.id)
        await self.view_run(run_id)
        return run_id

    @action("Failed to export")
    async def export_workflow(self) -> Any:
        """Fetch the export document of the saved draft."""
        draft = self.store.draft
        if draft is None or not self.store.can_export:
            return None
        assert draft.id is not None
        return await self.api.export_workflow(draft.id)

    @action("Invalid JSON or import failed", replace_all=True)
    async def import_workflow(self, text: str) -> Workflow | None:
        text = text.strip()
        if not text:
            return None
        workflow = await self.api.import_workflow(parse_import(text))
        self.notifier.success("Workflow imported")
        await self.navigate(View.WORKFLOWS)
        return workflow

    # ------------------------------------------------------------------
    # Run execution view
    # ------------------------------------------------------------------

    @action("Failed to load run details")
    async def view_run(self, run_id: str, is_update: bool = False) -> Run | None:
        """Show a run, fetching its current snapshot.

        Args:
            run_id: Run to show.
            is_update: Refresh of the run already tracked (push-triggered);
                keeps the current snapshot until the fetch lands.
        """
        if not is_update:
            self.tracker.reset(run_id)
            await self.navigate(View.EXECUTION)

        run = await self.api.get_run(run_id)
        if self.tracker.apply(run):
            self._render()
        return self.tracker.current_snapshot()

    async def refresh_run(self) -> Run | None:
        """Fetch the tracked run again if its execution view is shown."""
        run_id = self.tracker.tracked_run_id
        if run_id is None or self.state.current_view is not View.EXECUTION:
            return None
        return await self.view_run(run_id, is_update=True)

    def schedule_push(self, message: PushMessage) -> asyncio.Task[None]:
        """Channel subscriber: handle the push without blocking the channel."""
        return self._spawn(self.handle_push(message))

    def on_channel_state(self, state: ChannelState) -> None:
        """Re-sync the shown run each time the channel (re)opens.

        Pushes sent while the channel was down are gone; a fresh fetch
        picks up whatever they announced.
        """
        if (
            state is ChannelState.OPEN
            and self.state.current_view is View.EXECUTION
            and self.tracker.tracked_run_id is not None
        ):
            self._spawn(self.refresh_run())

    async def wait_for_refreshes(self) -> None:
        """Wait until every scheduled run refresh has finished."""
        while self._refresh_tasks:
            await asyncio.gather(*self._refresh_tasks, return_exceptions=True)

    def _spawn(self, coro: Awaitable[T]) -> asyncio.Task[T]:
        task = asyncio.ensure_future(coro)
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_done)
        return task

    def _refresh_done(self, task: asyncio.Task[Any]) -> None:
        self._refresh_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Run refresh failed", exc_info=task.exception())

    async def handle_push(self, message: PushMessage) -> None:
        await self.view_run(message.run_id, is_update=True)

        if message.type == RUN_COMPLETED_EVENT:
            if message.status == RUN_COMPLETED:
                self.notifier.success("Run Completed Successfully")
            else:
                self.notifier.error("Run Failed")

    def execution_view(self, now: datetime | None = None) -> ExecutionView | None:
        """Project the tracked snapshot, or None before it has loaded."""
        snapshot = self.tracker.current_snapshot()
        if snapshot is None:
            return None
        return project(snapshot, now)

    def _render(self) -> None:
        if self.renderer is None:
            return
        view = self.execution_view()
        if view is not None:
            self.renderer(view)
