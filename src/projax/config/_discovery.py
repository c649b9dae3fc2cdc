"""Config file discovery.

The user config file lives in the platform config directory; an explicit
file can be named with ``--config``. There is no per-project config: the
registry is machine-wide.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from projax.config._defaults import DEFAULT_CONFIG
from projax.utils import get_user_config_file

if TYPE_CHECKING:
    from pathlib import Path


class ConfigSourceName(StrEnum):
    """Configuration layers, highest precedence first."""

    CLI = "cli"
    ENV = "env"
    FILE = "file"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """One layer of the merged configuration.

    ``path`` is only set for the FILE and USER layers. ``values`` holds what
    the layer contributed once loaded.
    """

    name: ConfigSourceName
    path: "Path | None"
    exists: bool
    values: dict[str, Any]  # pyright: ignore[reportExplicitAny]

    def as_row(self) -> list[str]:
        """Render the layer as a ``config sources`` table row."""
        return [
            self.name.value,
            str(self.path) if self.path is not None else "-",
            "yes" if self.exists else "no",
        ]


def _file_exists(path: "Path") -> bool:
    """Check if a file exists, treating permission errors as absent."""
    try:
        return path.is_file()
    except OSError:
        return False


def discover_sources(
    *,
    config_path: "Path | None" = None,
    include_env: bool = True,
    overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> list[ConfigSource]:
    """Discover all configuration sources.

    File sources are checked for existence but not read. ENV values are
    parsed during loading.

    Args:
        config_path: Explicit config file, if one was given.
        include_env: Include environment variables as a source.
        overrides: Command-line overrides, if any.

    Returns:
        ConfigSource objects in precedence order (highest first). Missing
        files are still included with ``exists=False``.
    """
    sources: list[ConfigSource] = []

    if overrides:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.CLI, path=None, exists=True, values=overrides
            )
        )

    if include_env:
        sources.append(
            ConfigSource(name=ConfigSourceName.ENV, path=None, exists=True, values={})
        )

    if config_path is not None:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.FILE,
                path=config_path,
                exists=_file_exists(config_path),
                values={},
            )
        )

    user_path = get_user_config_file()
    sources.append(
        ConfigSource(
            name=ConfigSourceName.USER,
            path=user_path,
            exists=_file_exists(user_path),
            values={},
        )
    )

    sources.append(
        ConfigSource(
            name=ConfigSourceName.DEFAULT,
            path=None,
            exists=True,
            values=DEFAULT_CONFIG,
        )
    )

    return sources
