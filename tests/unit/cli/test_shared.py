from pathlib import Path

import orjson
import pytest
from rich.console import Console

from projax.cli._commands._shared import (
    ExitCode,
    exit_code_for,
    exit_with_error,
    format_json,
    format_table,
    format_timestamp,
    handle_errors,
)
from projax.exceptions import (
    ConfigLoadError,
    ConfigValidationError,
    DuplicatePathError,
    PathMissingError,
    ProjectNotFoundError,
    RegistryIOError,
    RemoteRegistryError,
    ScanError,
)


class TestFormatJson:
    def test_indents_by_default(self) -> None:
        output = format_json({"id": 1, "tags": ["web"]})

        assert output == '{\n  "id": 1,\n  "tags": [\n    "web"\n  ]\n}'

    def test_compact(self) -> None:
        assert format_json([1, 2], indent=False) == "[1,2]"

    def test_round_trips(self) -> None:
        data = {"project": {"name": "shop", "framework": None}}

        assert orjson.loads(format_json(data)) == data


class TestFormatTable:
    def test_markdown_table(self) -> None:
        output = format_table(["ID", "Name"], [["1", "shop"], ["2", "blog"]])
        lines = output.strip().splitlines()

        assert lines[0].replace(" ", "") == "|ID|Name|"
        assert "shop" in lines[2]
        assert "blog" in lines[3]


class TestFormatTimestamp:
    def test_none(self) -> None:
        assert format_timestamp(None) == "-"

    def test_epoch_seconds_in_utc(self) -> None:
        assert format_timestamp(1_700_000_000) == "2023-11-14 22:13:20"


class TestExitCodeFor:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ConfigLoadError("bad toml"), ExitCode.LOAD_ERROR),
            (
                ConfigValidationError("bad", key="k", value=1, expected="str"),
                ExitCode.VALIDATION_ERROR,
            ),
            (DuplicatePathError("dup", path="/p"), ExitCode.VALIDATION_ERROR),
            (ValueError("Port out of range"), ExitCode.VALIDATION_ERROR),
            (ProjectNotFoundError("missing", project_id=1), ExitCode.NOT_FOUND),
            (PathMissingError("gone", project_id=1), ExitCode.NOT_FOUND),
            (ScanError("walk failed"), ExitCode.IO_ERROR),
            (
                RegistryIOError("disk", path=Path("/d"), operation="write"),
                ExitCode.IO_ERROR,
            ),
            (RemoteRegistryError("down"), ExitCode.IO_ERROR),
            (PermissionError("denied"), ExitCode.IO_ERROR),
            (RuntimeError("boom"), ExitCode.INTERNAL_ERROR),
        ],
    )
    def test_mapping(self, error: Exception, code: ExitCode) -> None:
        assert exit_code_for(error) is code


class TestExitWithError:
    def test_prints_and_exits_with_code(self, console: Console) -> None:
        with console.capture() as capture, pytest.raises(SystemExit) as exc_info:
            exit_with_error("Project not found: 3", ExitCode.NOT_FOUND, console=console)

        assert exc_info.value.code == ExitCode.NOT_FOUND
        assert "Error: Project not found: 3" in capture.get()

    def test_defaults_to_stderr_and_internal_error(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("boom")

        assert exc_info.value.code == ExitCode.INTERNAL_ERROR
        assert "boom" in capsys.readouterr().err


class TestHandleErrors:
    def test_converts_projax_errors(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info, handle_errors():
            raise ProjectNotFoundError("Project not found: 9", project_id=9)

        assert exc_info.value.code == ExitCode.NOT_FOUND
        assert "Project not found: 9" in capsys.readouterr().err

    def test_converts_os_errors(self) -> None:
        with pytest.raises(SystemExit) as exc_info, handle_errors():
            raise PermissionError("denied")

        assert exc_info.value.code == ExitCode.IO_ERROR

    def test_other_errors_propagate(self) -> None:
        with pytest.raises(RuntimeError), handle_errors():
            raise RuntimeError("boom")

    def test_success_passes_through(self) -> None:
        with handle_errors():
            value = 1

        assert value == 1
