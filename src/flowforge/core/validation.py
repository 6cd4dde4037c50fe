"""Validation for workflow drafts, steps and import payloads.

Runs locally before anything is sent to the server, so the user gets a
ValidationFailure instead of a rejected request.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from flowforge.core.errors import MalformedImport, ValidationFailure
from flowforge.core.models import Step

MAX_NAME_LENGTH = 200


def validate_workflow_name(name: str) -> str:
    """Validate a workflow name and return it stripped.

    Rules:
    - Required (whitespace-only counts as empty)
    - At most 200 characters

    Raises:
        ValidationFailure: If the name is invalid.

    Example:
        >>> validate_workflow_name("  Summarize ")
        'Summarize'
        >>> validate_workflow_name("   ")  # ValidationFailure
    """
    name = (name or "").strip()
    if not name:
        raise ValidationFailure("Workflow name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationFailure(f"Workflow name must be {MAX_NAME_LENGTH} characters or less")
    return name


def build_step(**fields: Any) -> Step:
    """Construct a Step, reporting bad field values as ValidationFailure.

    Example:
        >>> build_step(name="Draft", retry_limit=-1)  # ValidationFailure
    """
    try:
        return Step(**fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationFailure(f"Invalid step: {problems}") from e


def parse_import(text: str) -> Any:
    """Parse an import payload.

    Raises:
        MalformedImport: If the text is not valid JSON.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedImport(f"Import payload is not valid JSON: {e.msg}") from e
