# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration container with typed access.

This module provides the Config class, the single entry point for reading
projax configuration.
"""

from typing import TYPE_CHECKING, Any, ClassVar, Self, overload

import tomli_w
from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError

from projax.config._defaults import DEFAULT_CONFIG
from projax.config._loader import (
    copy_value,
    deep_merge,
    parse_env_vars,
    read_toml_file,
)
from projax.config._discovery import ConfigSource, ConfigSourceName
from projax.config._models._sections import (
    ApiConfig,
    LoggingConfig,
    RegistryConfig,
    ScanConfig,
)
from projax.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from pathlib import Path


def _parse_section[M: BaseModel](
    model: type[M], name: str, data: dict[str, Any], source: str | None
) -> M:
    """Validate one table of the merged configuration.

    Raises:
        ConfigValidationError: On the first invalid value in the table.
    """
    section = data.get(name, {})
    if not isinstance(section, dict):
        msg = f"Configuration section '{name}' must be a table"
        raise ConfigValidationError(
            msg, key=name, value=section, expected="table", source=source
        )

    try:
        return model.model_validate(section)
    except ValidationError as e:
        error = e.errors()[0]
        key = ".".join([name, *(str(part) for part in error["loc"])])
        msg = f"Invalid value for '{key}': {error['msg']}"
        raise ConfigValidationError(
            msg,
            key=key,
            value=error.get("input"),
            expected=error["msg"],
            source=source,
        ) from e


class Config(BaseModel):
    """Configuration container with typed access.

    Instances are immutable. Use from_dict(), from_file() or load() rather
    than the constructor.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    _data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())
    _registry: RegistryConfig = PrivateAttr(default_factory=RegistryConfig)
    _scan: ScanConfig = PrivateAttr(default_factory=ScanConfig)
    _api: ApiConfig = PrivateAttr(default_factory=ApiConfig)
    _logging: LoggingConfig = PrivateAttr(default_factory=LoggingConfig)

    def __init__(
        self,
        *,
        _data: dict[str, Any] | None = None,
        _sources: tuple[ConfigSource, ...] = (),
        source: str | None = None,
    ) -> None:
        """Initialize from a complete merged configuration dictionary.

        Args:
            _data: The merged configuration. Defaults are used when omitted.
            _sources: Sources that contributed to this configuration.
            source: Label reported in validation errors.

        Raises:
            ConfigValidationError: If a section fails validation.
        """
        super().__init__()
        data = _data if _data is not None else copy_value(DEFAULT_CONFIG)
        self._data = data
        self._sources = _sources
        self._registry = _parse_section(RegistryConfig, "registry", data, source)
        self._scan = _parse_section(ScanConfig, "scan", data, source)
        self._api = _parse_section(ApiConfig, "api", data, source)
        self._logging = _parse_section(LoggingConfig, "logging", data, source)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return cls(_data=deep_merge(DEFAULT_CONFIG, data))

    @classmethod
    def from_file(cls, path: "Path") -> Self:
        """Load configuration from a single file merged over the defaults.

        Args:
            path: Path to the TOML config file.

        Returns:
            Configuration object from the specified file only.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        source = ConfigSource(
            name=ConfigSourceName.FILE, path=path, exists=True, values=data
        )
        return cls(
            _data=deep_merge(DEFAULT_CONFIG, data),
            _sources=(source,),
            source=str(path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: "Path | None" = None,
        include_env: bool = True,
        overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources merge in precedence order: defaults, the user config file,
        ``config_path``, ``PROJAX_*`` environment variables, then
        ``overrides``.

        Args:
            config_path: Explicit config file (the ``--config`` option). It
                must exist.
            include_env: Include environment variables as a source.
            overrides: Values that take precedence over every other source,
                typically from command-line options.

        Returns:
            Merged configuration object.

        Raises:
            FileNotFoundError: If ``config_path`` does not exist.
            ConfigLoadError: If a config file cannot be parsed.
            ConfigValidationError: If the merged config fails validation.
        """
        # Deferred import to avoid circular dependency
        from projax.config._discovery import discover_sources  # noqa: PLC0415

        sources = discover_sources(
            config_path=config_path,
            include_env=include_env,
            overrides=overrides,
        )

        merged: dict[str, Any] = {}
        loaded_sources: list[ConfigSource] = []

        for source in reversed(sources):
            values: dict[str, Any] = source.values
            if source.name == ConfigSourceName.ENV:
                values = parse_env_vars()
            elif source.path is not None and source.exists:
                values = read_toml_file(source.path)
            elif source.path is not None and source.name == ConfigSourceName.FILE:
                msg = f"Config file not found: {source.path}"
                raise FileNotFoundError(msg)

            loaded_sources.append(
                ConfigSource(
                    name=source.name,
                    path=source.path,
                    exists=source.exists,
                    values=values,
                )
            )
            if values:
                merged = deep_merge(merged, values)

        return cls(_data=merged, _sources=tuple(reversed(loaded_sources)))

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the contributing sources, highest precedence first."""
        return list(self._sources)

    @property
    def registry(self) -> RegistryConfig:
        """Return the registry configuration section."""
        return self._registry

    @property
    def scan(self) -> ScanConfig:
        """Return the scan configuration section."""
        return self._scan

    @property
    def api(self) -> ApiConfig:
        """Return the API configuration section."""
        return self._api

    @property
    def logging(self) -> LoggingConfig:
        """Return the logging configuration section."""
        return self._logging

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get[T](self, key: str, default: T) -> Any | T: ...

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Examples:
            >>> config.get("scan.max_depth")
            20
            >>> config.get("nonexistent", "fallback")
            'fallback'
        """
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self, *, include_defaults: bool = True) -> dict[str, Any]:
        """Convert configuration to a dictionary.

        Args:
            include_defaults: Whether to include default values. If False,
                only values that differ from defaults are included.
        """
        if include_defaults:
            return copy_value(self._data)
        return _diff_from_defaults(self._data, DEFAULT_CONFIG)

    def to_toml(self, *, include_defaults: bool = False) -> str:
        """Convert configuration to a TOML string.

        Keys whose value is None have no TOML form and are left out.
        """
        return tomli_w.dumps(
            _drop_none(self.to_dict(include_defaults=include_defaults))
        )


def _diff_from_defaults(
    data: dict[str, Any],
    defaults: dict[str, Any],
) -> dict[str, Any]:
    """Extract values that differ from defaults."""
    result: dict[str, Any] = {}

    for key, value in data.items():
        if key not in defaults:
            result[key] = copy_value(value)
        elif isinstance(value, dict) and isinstance(defaults[key], dict):
            nested_diff = _diff_from_defaults(value, defaults[key])
            if nested_diff:
                result[key] = nested_diff
        elif value != defaults[key]:
            result[key] = copy_value(value)

    return result


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: _drop_none(value) if isinstance(value, dict) else value
        for key, value in data.items()
        if value is not None
    }
