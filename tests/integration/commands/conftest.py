from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from rich.console import Console

from projax.cli import CLIContext, create_app

CliRunner = Callable[..., int]


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def projax_cli(
    console: Console,
    data_dir: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    isolated_user_config: Path,  # noqa: ARG001
) -> Iterator[CliRunner]:
    """Run the CLI against a temporary data directory and return the exit code.

    Log output goes to files under tmp_path, including when a broken config
    drops the configured log file.
    """
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("PROJAX_LOGGING__FILE", str(log_dir / "projax.log"))
    monkeypatch.setattr(
        "projax.utils._logging.get_log_file", lambda: log_dir / "fallback.log"
    )
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app.meta(["--data-dir", str(data_dir), *args])
        except SystemExit as e:
            if e.code is None:
                return 0
            return e.code if isinstance(e.code, int) else 1
        return 0

    yield _run

    CLIContext.reset()
