"""projax configuration.

Layered TOML configuration with typed access.

Example:
    >>> from projax.config import Config
    >>> config = Config.load()
    >>> config.scan.max_depth
    20
"""

from projax.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import ConfigSource, ConfigSourceName, discover_sources
from ._load import safe_load_config
from ._loader import (
    ENV_PREFIX,
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    ApiConfig,
    Config,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RegistryConfig,
    ScanConfig,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
    "ApiConfig",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RegistryConfig",
    "ScanConfig",
    "deep_merge",
    "discover_sources",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
]
