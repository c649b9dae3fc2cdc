"""Shared utilities: paths, logging and ignore patterns."""

from ._ignore import IgnoreConfig, collect_patterns, create_pathspec
from ._logging import LogFormatType, create_logger
from ._paths import (
    get_api_port_file,
    get_default_data_dir,
    get_log_dir,
    get_log_file,
    get_registry_file,
    get_user_config_dir,
    get_user_config_file,
)

__all__ = [
    "IgnoreConfig",
    "LogFormatType",
    "collect_patterns",
    "create_logger",
    "create_pathspec",
    "get_api_port_file",
    "get_default_data_dir",
    "get_log_dir",
    "get_log_file",
    "get_registry_file",
    "get_user_config_dir",
    "get_user_config_file",
]
