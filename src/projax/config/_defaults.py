"""Default configuration values.

DEFAULT_CONFIG is a plain dict so it can be passed straight to deep_merge,
which copies its inputs.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "registry": {
        "file_name": "data.json",
    },
    "scan": {
        "max_depth": 20,
        "follow_symlinks": False,
        "respect_gitignore": False,
        "ignore_dirs": [],
        "ignore_patterns": [],
    },
    "api": {
        "timeout": 10.0,
    },
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
}
