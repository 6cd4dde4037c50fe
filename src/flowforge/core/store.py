"""Workflow draft store.

Holds the one workflow currently under edit. Step edits happen locally;
save() sends the draft to the server and then adopts the server's
response as the new draft, so computed fields (ids, counts) are never
stale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from flowforge.core.config import DEFAULT_MODEL
from flowforge.core.criteria import DEFAULT_CRITERIA
from flowforge.core.errors import ValidationFailure
from flowforge.core.models import DEFAULT_RETRY_LIMIT, Step, Workflow
from flowforge.core.validation import build_step, validate_workflow_name

if TYPE_CHECKING:
    from flowforge.transport.protocol import WorkflowAPI

logger = logging.getLogger(__name__)


def new_step(
    position: int,
    name: str = "",
    model: str = DEFAULT_MODEL,
    prompt: str = "",
    criteria_type: str = DEFAULT_CRITERIA,
    criteria_value: str | None = "",
    retry_limit: int | None = None,
    context_mode: str = "full",
) -> Step:
    """Build a step with the editor defaults.

    Args:
        position: 1-based position the step will take; used for the
            default name "Step N" when name is empty.
        retry_limit: None falls back to the default of 3.

    Raises:
        ValidationFailure: If a field value is invalid.
    """
    return build_step(
        name=name or f"Step {position}",
        model=model,
        prompt=prompt,
        criteria_type=criteria_type,
        criteria_value=criteria_value,
        retry_limit=DEFAULT_RETRY_LIMIT if retry_limit is None else retry_limit,
        context_mode=context_mode,
    )


@dataclass
class WorkflowStore:
    """Holds one workflow draft and persists it through the Workflow API.

    Example:
        >>> store = WorkflowStore(api=api)
        >>> store.create_draft()
        >>> store.set_name("Summarize")
        >>> store.add_step(new_step(1, name="Draft"))
        >>> saved = await store.save()
        >>> saved.id
        42
    """

    api: WorkflowAPI
    _draft: Workflow | None = field(default=None, init=False)

    @property
    def draft(self) -> Workflow | None:
        return self._draft

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._draft.steps if self._draft else ()

    @property
    def can_run(self) -> bool:
        """Runs can only be started for a saved workflow."""
        return self._draft is not None and self._draft.is_saved

    @property
    def can_export(self) -> bool:
        return self.can_run

    def create_draft(self) -> Workflow:
        """Start a new, empty, unsaved workflow."""
        self._draft = Workflow()
        return self._draft

    async def load(self, workflow_id: int | str) -> Workflow:
        """Load a workflow from the server as the current draft.

        Raises:
            NotFound: If the workflow does not exist. The draft is unchanged.
            NetworkFailure: On any other request failure.
        """
        workflow = await self.api.get_workflow(workflow_id)
        self._draft = workflow
        return workflow

    def discard(self) -> None:
        """Drop the draft without saving."""
        self._draft = None

    def set_name(self, name: str) -> None:
        self._draft = self._require_draft().model_copy(update={"name": name})

    def set_description(self, description: str) -> None:
        self._draft = self._require_draft().model_copy(update={"description": description})

    def add_step(self, step: Step) -> None:
        draft = self._require_draft()
        self._replace_steps(draft, (*draft.steps, step))

    def update_step(self, index: int, step: Step) -> bool:
        """Replace the step at index.

        Returns:
            False (and changes nothing) if index is out of range.
        """
        draft = self._require_draft()
        if not self._in_range(draft, index):
            return False
        steps = list(draft.steps)
        steps[index] = step
        self._replace_steps(draft, tuple(steps))
        return True

    def remove_step(self, index: int) -> bool:
        """Remove the step at index.

        Returns:
            False (and changes nothing) if index is out of range.
        """
        draft = self._require_draft()
        if not self._in_range(draft, index):
            return False
        self._replace_steps(draft, draft.steps[:index] + draft.steps[index + 1 :])
        return True

    async def save(self) -> Workflow:
        """Create or update the draft on the server.

        The draft is replaced wholesale by the server's representation.

        Raises:
            ValidationFailure: If the name is empty.
            NetworkFailure: If the request fails. The draft is unchanged.
        """
        draft = self._require_draft()
        name = validate_workflow_name(draft.name)
        outgoing = draft.model_copy(update={"name": name})

        if draft.is_saved:
            assert draft.id is not None
            saved = await self.api.update_workflow(draft.id, outgoing)
        else:
            saved = await self.api.create_workflow(outgoing)

        logger.info("Saved workflow %s (%d steps)", saved.id, len(saved.steps))
        self._draft = saved
        return saved

    def _require_draft(self) -> Workflow:
        if self._draft is None:
            raise ValidationFailure("No workflow is being edited")
        return self._draft

    def _in_range(self, draft: Workflow, index: int) -> bool:
        if 0 <= index < len(draft.steps):
            return True
        logger.warning("Step index %d out of range (%d steps)", index, len(draft.steps))
        return False

    def _replace_steps(self, draft: Workflow, steps: tuple[Step, ...]) -> None:
        self._draft = draft.model_copy(update={"steps": steps})
