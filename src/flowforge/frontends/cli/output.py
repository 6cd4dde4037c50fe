"""Plain-text and JSON output for CLI commands.

Tables here are fixed-width text so they stay readable when piped;
the rich renderables live in rendering.py.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any, NoReturn

import rich_click as click
from pydantic import BaseModel

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def print_table(
    headers: Sequence[str],
    rows: Iterable[Sequence[str]],
    widths: Sequence[int] | None = None,
    separator_width: int = 70,
) -> None:
    """Print rows under a header line and a dashed separator.

    Args:
        headers: Column titles.
        rows: Cell values; short rows are padded with empty cells.
        widths: Column widths. Defaults to the header lengths. The last
            column is never padded.
        separator_width: Length of the dashed line.
    """
    widths = list(widths) if widths is not None else [len(h) for h in headers]
    fmt = " ".join([f"{{:<{w}}}" for w in widths[:-1]] + ["{}"])

    click.echo(fmt.format(*headers))
    click.echo("-" * separator_width)
    for row in rows:
        cells = [*row, *[""] * (len(headers) - len(row))]
        click.echo(fmt.format(*cells[: len(headers)]))


def truncate(text: str, width: int) -> str:
    """Cut text to width, marking the cut with '...'."""
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def format_timestamp(value: datetime | None) -> str:
    return value.strftime(TIMESTAMP_FORMAT) if value else ""


def to_jsonable(data: Any) -> Any:
    """Dump pydantic models (or lists of them) to JSON-compatible data."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, Iterable) and not isinstance(data, (str, bytes, dict)):
        return [to_jsonable(item) for item in data]
    return data


def output_json(data: Any, indent: int = 2) -> None:
    click.echo(json.dumps(to_jsonable(data), indent=indent, default=str))


def output_json_or_table(data: Any, json_flag: bool, table_fn: Callable[[], None]) -> None:
    """Print data as JSON when --json was given, otherwise call table_fn."""
    if json_flag:
        output_json(data)
    else:
        table_fn()


def error_exit(message: str, code: int = 1) -> NoReturn:
    """Print `Error: message` to stderr and exit."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)
