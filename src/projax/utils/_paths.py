from pathlib import Path

import platformdirs

_APP_NAME = "projax"


def get_default_data_dir() -> Path:
    """Get the default registry data directory, ``~/.projax``."""
    return Path.home() / ".projax"


def get_registry_file(
    data_dir: Path | None = None, file_name: str = "data.json"
) -> Path:
    """Get the path to the registry document.

    Args:
        data_dir: Registry data directory. Defaults to ``~/.projax``.
        file_name: Name of the document inside the data directory.

    Returns:
        Path to the registry JSON file.
    """
    return (data_dir if data_dir is not None else get_default_data_dir()) / file_name


def get_api_port_file(data_dir: Path | None = None) -> Path:
    """Get the path to the file the API process writes its port to."""
    base = data_dir if data_dir is not None else get_default_data_dir()
    return base / "api-port.txt"


def get_user_config_dir() -> Path:
    """Get the per-user configuration directory."""
    return platformdirs.user_config_path(_APP_NAME)


def get_user_config_file() -> Path:
    """Get the path to the per-user configuration file."""
    return get_user_config_dir() / "config.toml"


def get_log_dir() -> Path:
    """Get the per-user log directory."""
    return platformdirs.user_log_path(_APP_NAME)


def get_log_file() -> Path:
    """Get the path to the projax log file."""
    return get_log_dir() / "projax.log"
