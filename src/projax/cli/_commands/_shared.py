# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes and the mapping from projax errors to them
- Output formatters (JSON, table)
- Console utilities for error handling
"""

from collections.abc import Iterator
from contextlib import contextmanager
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

from projax.exceptions import (
    ConfigLoadError,
    ConfigValidationError,
    DuplicatePathError,
    PathMissingError,
    ProjaxError,
    ProjectNotFoundError,
)

if TYPE_CHECKING:
    from rich.console import Console

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any] | list[Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "exit_code_for",
    "exit_with_error",
    "format_json",
    "format_table",
    "format_timestamp",
    "get_error_console",
    "handle_errors",
]


class ExitCode(IntEnum):
    """Standard exit codes for projax CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Dictionary or list to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    import orjson

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format data as a Markdown table.

    Args:
        headers: Column headers for the table.
        rows: List of rows, where each row is a list of cell values.

    Returns:
        Markdown table string representation.
    """
    from pytablewriter import MarkdownTableWriter

    writer = MarkdownTableWriter(
        headers=headers,
        value_matrix=rows,
        margin=1,
    )
    return writer.dumps()


def format_timestamp(timestamp: int | None) -> str:
    """Format epoch seconds as a UTC date-time string, or ``-`` for None."""
    if timestamp is None:
        return "-"

    import pendulum

    return pendulum.from_timestamp(timestamp, tz="UTC").to_datetime_string()


def get_error_console() -> "Console":
    """Get a Rich console configured for error output to stderr."""
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: "Console | None" = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}", markup=True, highlight=False)
    raise SystemExit(code)


def exit_code_for(error: Exception) -> ExitCode:
    """Map an exception raised by the registry or scanner to an exit code."""
    if isinstance(error, ConfigLoadError):
        return ExitCode.LOAD_ERROR
    if isinstance(error, (ConfigValidationError, DuplicatePathError, ValueError)):
        return ExitCode.VALIDATION_ERROR
    if isinstance(error, (ProjectNotFoundError, PathMissingError)):
        return ExitCode.NOT_FOUND
    if isinstance(error, (ProjaxError, OSError)):
        return ExitCode.IO_ERROR
    return ExitCode.INTERNAL_ERROR


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn projax and filesystem errors into an error message and exit code.

    Raises:
        SystemExit: If the block raised a ProjaxError or OSError.
    """
    try:
        yield
    except (ProjaxError, OSError) as e:
        exit_with_error(str(e), exit_code_for(e))
