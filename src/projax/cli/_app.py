"""The command-line interface for projax."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from projax.config import safe_load_config
from projax.exceptions import ProjaxError
from projax.utils import create_logger

from ._commands import register_commands
from ._commands._context import CLIContext, OutputFormat
from ._commands._shared import ExitCode, exit_code_for, exit_with_error

_HELP = "Keep track of local projects, their tests and their ports."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the projax CLI.

    Global options are parsed by the meta app, which loads configuration,
    sets up the file logger and installs the CLIContext before running the
    requested command. Run it with ``app.meta()``.

    Args:
        console: Console for normal output.
        error_console: Console for errors.
        exit_on_error: Whether cyclopts exits on parse errors.

    Returns:
        The configured App.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="projax",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        data_dir: Annotated[
            Path | None,
            Parameter(name="--data-dir", help="Registry data directory"),
        ] = None,
        output_format: Annotated[
            OutputFormat,
            Parameter(name="--format", help="Output format"),
        ] = OutputFormat.TABLE,
        remote: Annotated[
            bool, Parameter(name="--remote", help="Use the running projax API")
        ] = False,
    ) -> None:
        """Launch projax with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to config file.
            data_dir: Registry data directory, overriding configuration.
            output_format: Output format for commands.
            remote: Talk to the projax API instead of the registry file.
        """
        overrides: dict[str, object] | None = None
        if data_dir is not None:
            overrides = {"registry": {"data_dir": str(data_dir)}}

        try:
            loaded_config, config_error = safe_load_config(
                config_path=config, overrides=overrides
            )
        except FileNotFoundError as e:
            exit_with_error(str(e), ExitCode.LOAD_ERROR, console=error_console)
        except ProjaxError as e:
            exit_with_error(str(e), exit_code_for(e), console=error_console)

        logger = create_logger(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,  # pyright: ignore[reportArgumentType]
            log_file=loaded_config.logging.file,
            command=tokens[0] if tokens else "",
        )

        ctx = CLIContext(
            config=loaded_config,
            output_format=output_format,
            remote=remote,
            config_error=config_error,
            logger=logger,
        )
        CLIContext.set_current(ctx)

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `projax` CLI."""
    app = create_app()
    app.meta()


if __name__ == "__main__":
    main()
