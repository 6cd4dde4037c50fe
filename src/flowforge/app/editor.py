"""Step editor form state.

Mirrors the fields of the add/edit step dialog. Whether the criteria
value field is shown comes straight from the criteria registry, the
same table the execution viewer uses.
"""

from __future__ import annotations

from dataclasses import dataclass

from flowforge.core import criteria
from flowforge.core.config import DEFAULT_MODEL
from flowforge.core.models import DEFAULT_RETRY_LIMIT, Step
from flowforge.core.store import new_step

# Index used by a form that adds a new step rather than editing one
NEW_STEP = -1


@dataclass
class StepForm:
    """Editable copy of one step."""

    name: str = ""
    model: str = DEFAULT_MODEL
    prompt: str = ""
    criteria_type: str = criteria.DEFAULT_CRITERIA
    criteria_value: str = ""
    retry_limit: int | None = DEFAULT_RETRY_LIMIT
    context_mode: str = "full"
    editing_index: int = NEW_STEP

    @classmethod
    def for_step(cls, step: Step, index: int) -> StepForm:
        return cls(
            name=step.name,
            model=step.model,
            prompt=step.prompt,
            criteria_type=step.criteria_type,
            criteria_value=step.criteria_value or "",
            retry_limit=step.retry_limit,
            context_mode=step.context_mode,
            editing_index=index,
        )

    @property
    def is_new(self) -> bool:
        return self.editing_index == NEW_STEP

    @property
    def value_field_visible(self) -> bool:
        return criteria.requires_value(self.criteria_type)

    def select_criteria(self, kind: str) -> None:
        self.criteria_type = kind

    def to_step(self, position: int) -> Step:
        """Build the step; hidden criteria values are not kept.

        Raises:
            ValidationFailure: If a field value is invalid.
        """
        return new_step(
            position,
            name=self.name.strip(),
            model=self.model,
            prompt=self.prompt,
            criteria_type=self.criteria_type,
            criteria_value=self.criteria_value if self.value_field_visible else "",
            retry_limit=self.retry_limit,
            context_mode=self.context_mode,
        )
