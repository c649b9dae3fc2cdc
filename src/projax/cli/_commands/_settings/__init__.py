# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415
"""Commands for the key-value settings stored in the registry."""

from projax.cli._commands._context import CLIContext
from projax.cli._commands._shared import (
    ExitCode,
    exit_with_error,
    format_json,
    format_table,
    handle_errors,
)

from ._app import app

__all__ = ["app"]


@app.command(name="get")
def _get(key: str, /) -> None:
    """Print the value of a setting

    Args:
        key: Setting name
    """
    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        value = store.get_setting(key)

    if value is None:
        exit_with_error(f"Setting not found: {key}", ExitCode.NOT_FOUND)
    print(format_json({key: value}) if ctx.is_json else value)


@app.command(name="set")
def _set(key: str, value: str, /) -> None:
    """Set a setting, creating it if needed

    Args:
        key: Setting name
        value: New value
    """
    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        store.set_setting(key, value)
    print(f"Set '{key}' = {value}")


@app.command(name="list")
def _list() -> None:
    """List all settings"""
    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        settings = store.get_all_settings()

    if ctx.is_json:
        print(format_json(settings))
        return
    if not settings:
        print("No settings")
        return
    print(format_table(["Key", "Value"], [[k, v] for k, v in settings.items()]))
