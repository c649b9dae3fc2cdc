import os
import sys
from typing import TYPE_CHECKING

from projax.exceptions import ConfigError

from ._models import Config

if TYPE_CHECKING:
    from pathlib import Path


def safe_load_config(
    *,
    config_path: "Path | None" = None,
    overrides: dict[str, object] | None = None,
) -> tuple[Config, str | None]:
    """Load configuration, falling back to defaults on error.

    A broken user config file should not stop the registry from working,
    so by default errors are reported on stderr and the built-in defaults
    are used. With ``PROJAX_STRICT_CONFIG=1`` the error is raised instead.
    A missing explicit ``config_path`` is always raised.

    Args:
        config_path: Explicit path to config file (--config flag).
        overrides: Command-line overrides passed to Config.load().

    Returns:
        Tuple of (Config, error_message). On success, error_message is None.

    Raises:
        FileNotFoundError: If config_path does not exist.
        ConfigError: If loading fails in strict mode.
    """
    strict_mode = os.environ.get("PROJAX_STRICT_CONFIG", "0") == "1"

    if config_path is not None and not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)

    try:
        config = Config.load(config_path=config_path, overrides=overrides)
    except (ConfigError, OSError) as e:
        if strict_mode:
            raise
        error_msg = str(e)
        print(  # noqa: T201
            f"Warning: Failed to load config: {error_msg}",
            file=sys.stderr,
        )
        return Config.from_dict(dict(overrides or {})), error_msg
    else:
        return config, None
