"""Configuration models.

Pydantic models for the configuration sections and the main Config
container class.
"""

from projax.config._models._config import Config
from projax.config._models._sections import (
    ApiConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    RegistryConfig,
    ScanConfig,
)

__all__ = [
    "ApiConfig",
    "Config",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RegistryConfig",
    "ScanConfig",
]
