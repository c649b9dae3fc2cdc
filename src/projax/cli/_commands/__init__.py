"""projax CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._config import app as config_app
from ._context import CLIContext, OutputFormat
from ._legacy import app as legacy_app
from ._project import app as project_app
from ._scan import app as scan_app
from ._settings import app as settings_app
from ._shared import (
    ExitCode,
    FormattableData,
    exit_code_for,
    exit_with_error,
    format_json,
    format_table,
    get_error_console,
    handle_errors,
)

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "CLIContext",
    "ExitCode",
    "FormattableData",
    "OutputFormat",
    "config_app",
    "exit_code_for",
    "exit_with_error",
    "format_json",
    "format_table",
    "get_error_console",
    "handle_errors",
    "legacy_app",
    "project_app",
    "register_commands",
    "scan_app",
    "settings_app",
]


def register_commands(app: "App") -> None:
    app.command(config_app)
    app.command(legacy_app)
    app.command(project_app)
    app.command(scan_app)
    app.command(settings_app)
