# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415, FBT002
"""Commands for viewing projax configuration."""

from typing import Annotated

from cyclopts import App, Parameter

from projax.cli._commands._context import CLIContext
from projax.cli._commands._shared import format_json, format_table

__all__ = ["app"]

app = App(
    name="config",
    help="Show the effective configuration",
    help_on_error=True,
)


@app.command(name="show")
def _show(
    defaults: Annotated[
        bool, Parameter(help="Include values that match the defaults")
    ] = False,
) -> None:
    """Print the merged configuration as TOML

    Args:
        defaults: Include values that match the built-in defaults
    """
    ctx = CLIContext.get_current()
    if ctx.config_error is not None:
        print(f"# config error: {ctx.config_error}")

    if ctx.is_json:
        print(format_json(ctx.config.to_dict(include_defaults=defaults)))
        return
    print(ctx.config.to_toml(include_defaults=defaults), end="")


@app.command(name="sources")
def _sources() -> None:
    """List configuration sources in precedence order"""
    ctx = CLIContext.get_current()
    rows = [source.as_row() for source in ctx.config.sources]
    print(format_table(["Source", "Path", "Exists"], rows))
