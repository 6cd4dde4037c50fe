"""Step criteria registry.

Single source of truth for the pass/fail criteria kinds a step may use.
The step editor asks requires_value() to decide whether to prompt for a
criteria value; the execution viewer uses describe(), which only shows a
value for kinds that require one. Both read the same table, so they can
never disagree.

Criteria are evaluated by the server; this module only names and
formats them.
"""

from __future__ import annotations

from typing import NamedTuple


class CriteriaKind(NamedTuple):
    """A criteria kind and whether it takes an auxiliary value."""

    name: str
    label: str
    requires_value: bool


DEFAULT_CRITERIA = "always"

ALWAYS_PASS_LABEL = "Always Pass"

# Display order is the order shown in the step editor
_KINDS: dict[str, CriteriaKind] = {
    kind.name: kind
    for kind in (
        CriteriaKind("always", ALWAYS_PASS_LABEL, False),
        CriteriaKind("contains", "Output contains text", True),
        CriteriaKind("regex", "Output matches regex", True),
        CriteriaKind("json", "Output is valid JSON", False),
        CriteriaKind("code", "Output contains a code block", False),
    )
}


def kinds() -> list[CriteriaKind]:
    """Return the known criteria kinds in display order."""
    return list(_KINDS.values())


def is_known(kind: str) -> bool:
    return kind in _KINDS


def label(kind: str) -> str:
    """Human label for a kind; unknown kinds are shown by name."""
    entry = _KINDS.get(kind)
    return entry.label if entry else kind


def requires_value(kind: str) -> bool:
    """Whether the kind needs a criteria value.

    Kinds the registry does not know are assumed to need one.
    """
    entry = _KINDS.get(kind)
    return entry.requires_value if entry else True


def shows_value(kind: str) -> bool:
    """Whether the execution viewer displays the criteria value."""
    return requires_value(kind)


def describe(kind: str, value: str | None) -> str:
    """Format a criteria for display.

    Kinds shown without a value, such as json, are labelled by kind alone
    so that the viewer and the editor agree on which kinds carry a value.

    Example:
        >>> describe("always", None)
        'Always Pass'
        >>> describe("contains", "value")
        'contains: "value"'
        >>> describe("json", "")
        'json'
    """
    if kind == "always":
        return ALWAYS_PASS_LABEL
    if shows_value(kind):
        return f'{kind}: "{value or ""}"'
    return kind

