"""Configuration section models.

One frozen Pydantic model per TOML table. Unknown keys are ignored so that
newer config files still load.
"""

from enum import StrEnum
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegistryConfig(BaseModel):
    """Registry document location.

    Attributes:
        data_dir: Directory holding the registry document. None means the
            default, ``~/.projax``.
        file_name: Name of the registry document inside data_dir.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    data_dir: Path | None = None
    file_name: str = "data.json"

    @field_validator("data_dir")
    @classmethod
    def _expand_data_dir(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    @field_validator("file_name")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if not value or Path(value).name != value:
            msg = "must be a bare file name"
            raise ValueError(msg)
        return value


class ScanConfig(BaseModel):
    """Directory walk settings used when scanning projects.

    Attributes:
        max_depth: Deepest directory level entered below a project root.
        follow_symlinks: Whether symlinked files and directories are followed.
        respect_gitignore: Whether a project's own ``.gitignore`` is applied.
        ignore_dirs: Directory names skipped in addition to the built-in list.
        ignore_patterns: Gitignore-style patterns matched against paths
            relative to the project root.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    max_depth: int = Field(default=20, ge=0)
    follow_symlinks: bool = False
    respect_gitignore: bool = False
    ignore_dirs: tuple[str, ...] = ()
    ignore_patterns: tuple[str, ...] = ()


class ApiConfig(BaseModel):
    """Settings for talking to a running projax API.

    Attributes:
        base_url: API base URL. None means ``http://127.0.0.1:<port>/api``
            with the port read from the data directory.
        timeout: Request timeout in seconds.
        retries: Attempts per request on connection errors and timeouts.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    base_url: str | None = None
    timeout: float = Field(default=10.0, gt=0)
    retries: int = Field(default=3, ge=1)


class LogLevel(StrEnum):
    """Log level threshold, most verbose first."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log line encoding. Matches ``projax.utils.LogFormatType``."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty uses the default log file).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
